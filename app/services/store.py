"""Key-value table abstraction consumed by the review services."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from app.clients.store import StoreServiceClient

logger = logging.getLogger(__name__)


@dataclass
class QueryPage:
    items: List[Dict[str, Any]] = field(default_factory=list)
    last_evaluated_key: Optional[Dict[str, Any]] = None


class KeyValueTable(Protocol):
    async def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        ...

    async def put_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        ...

    async def delete_item(self, key: Dict[str, Any]) -> None:
        ...

    async def query(
        self,
        index_name: str,
        partition_value: Any,
        *,
        limit: int,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
    ) -> QueryPage:
        ...


class RemoteTable:
    """A table hosted by the key-value store gateway."""

    def __init__(
        self,
        client: StoreServiceClient,
        table_name: str,
        *,
        partition_attributes: Dict[str, str],
    ) -> None:
        self._client = client
        self._table_name = table_name
        self._partition_attributes = dict(partition_attributes)

    @property
    def table_name(self) -> str:
        return self._table_name

    async def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        data = await self._client.post(self._path("get-item"), {"Key": key})
        return data.get("Item") or None

    async def put_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        await self._client.post(self._path("put-item"), {"Item": item})
        return dict(item)

    async def delete_item(self, key: Dict[str, Any]) -> None:
        await self._client.post(self._path("delete-item"), {"Key": key})

    async def query(
        self,
        index_name: str,
        partition_value: Any,
        *,
        limit: int,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
    ) -> QueryPage:
        attribute = self._partition_attributes.get(index_name)
        if attribute is None:
            raise ValueError(f"Unknown index '{index_name}' for table {self._table_name}")

        payload: Dict[str, Any] = {
            "IndexName": index_name,
            "KeyCondition": {attribute: partition_value},
            "Limit": limit,
        }
        if exclusive_start_key:
            payload["ExclusiveStartKey"] = exclusive_start_key

        data = await self._client.post(self._path("query"), payload)
        return QueryPage(
            items=list(data.get("Items") or []),
            last_evaluated_key=data.get("LastEvaluatedKey") or None,
        )

    def _path(self, operation: str) -> str:
        return f"/tables/{self._table_name}/{operation}"
