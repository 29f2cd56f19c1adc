from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from app.services.store import QueryPage

REVIEWS_TABLE_KEY = ("recipeId", "reviewId")
REVIEW_INDEXES = {
    "recipeId-createdAt-index": ("recipeId", "createdAt"),
    "author-createdAt-index": ("author", "createdAt"),
    "isRecent-createdAt-index": ("isRecent", "createdAt"),
}

COMMENTS_TABLE_KEY = ("commentId",)
COMMENT_INDEXES = {
    "reviewId-createdAt-index": ("reviewId", "createdAt"),
}


@dataclass(frozen=True)
class IndexDefinition:
    name: str
    partition_attribute: str
    sort_attribute: str


class InMemoryTable:
    """Single table with secondary indexes, ordered newest first on each index."""

    def __init__(
        self,
        name: str,
        key_attributes: Sequence[str],
        indexes: Dict[str, Tuple[str, str]],
    ) -> None:
        self.name = name
        self._key_attributes = tuple(key_attributes)
        self._indexes = {
            index_name: IndexDefinition(index_name, partition, sort)
            for index_name, (partition, sort) in indexes.items()
        }
        self._items: Dict[Tuple[Any, ...], Dict[str, Any]] = {}

    def _key_of(self, values: Dict[str, Any]) -> Tuple[Any, ...]:
        try:
            return tuple(values[attribute] for attribute in self._key_attributes)
        except KeyError as exc:
            raise ValueError(
                f"Key for table {self.name} requires {', '.join(self._key_attributes)}"
            ) from exc

    async def get_item(self, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        item = self._items.get(self._key_of(key))
        return copy.deepcopy(item) if item is not None else None

    async def put_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        stored = copy.deepcopy(item)
        self._items[self._key_of(stored)] = stored
        return copy.deepcopy(stored)

    async def delete_item(self, key: Dict[str, Any]) -> None:
        self._items.pop(self._key_of(key), None)

    async def query(
        self,
        index_name: str,
        partition_value: Any,
        *,
        limit: int,
        exclusive_start_key: Optional[Dict[str, Any]] = None,
    ) -> QueryPage:
        index = self._indexes.get(index_name)
        if index is None:
            raise ValueError(f"Unknown index '{index_name}' for table {self.name}")
        if limit <= 0:
            raise ValueError("limit must be positive")

        candidates = [
            item
            for item in self._items.values()
            if item.get(index.partition_attribute) == partition_value
            and index.sort_attribute in item
        ]
        candidates.sort(key=lambda item: self._position(index, item), reverse=True)

        if exclusive_start_key:
            start = self._position(index, exclusive_start_key)
            candidates = [item for item in candidates if self._position(index, item) < start]

        page = candidates[:limit]
        last_evaluated_key = None
        if len(candidates) > limit:
            last_evaluated_key = self._evaluated_key(index, page[-1])
        return QueryPage(
            items=[copy.deepcopy(item) for item in page],
            last_evaluated_key=last_evaluated_key,
        )

    def items(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(item) for item in self._items.values()]

    def __len__(self) -> int:
        return len(self._items)

    def _position(self, index: IndexDefinition, values: Dict[str, Any]) -> Tuple[Any, ...]:
        return (values[index.sort_attribute], *self._key_of(values))

    def _evaluated_key(self, index: IndexDefinition, item: Dict[str, Any]) -> Dict[str, Any]:
        attributes: Iterable[str] = (
            *self._key_attributes,
            index.partition_attribute,
            index.sort_attribute,
        )
        return {attribute: item[attribute] for attribute in attributes}


def build_reviews_table(name: str = "Reviews") -> InMemoryTable:
    return InMemoryTable(name, REVIEWS_TABLE_KEY, REVIEW_INDEXES)


def build_comments_table(name: str = "Comments") -> InMemoryTable:
    return InMemoryTable(name, COMMENTS_TABLE_KEY, COMMENT_INDEXES)


@dataclass
class MockDataStore:
    reviews: InMemoryTable
    comments: InMemoryTable


_mock_store: Optional[MockDataStore] = None


def get_mock_store() -> MockDataStore:
    global _mock_store
    if _mock_store is None:
        _mock_store = MockDataStore(
            reviews=build_reviews_table(),
            comments=build_comments_table(),
        )
    return _mock_store


def reset_mock_store() -> None:
    global _mock_store
    _mock_store = None
