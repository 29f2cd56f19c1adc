"""Validation and decoding of ``ExclusiveStartKey`` pagination cursors."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping

from app.schemas.review import RECENT_MARKER
from app.services.exceptions import ArgumentError
from app.services.indexes import IndexStrategy

logger = logging.getLogger(__name__)


def validate_cursor(strategy: IndexStrategy, raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Rebuild a start key for ``strategy`` from caller input.

    Only the fields the index needs are kept. The recency marker is always
    injected for the recency index and never taken from the caller.
    """

    if not isinstance(raw, Mapping):
        raise ArgumentError(
            f"ExclusiveStartKey must be an object when {strategy.description}."
        )

    required = strategy.cursor_fields
    missing = missing_fields(strategy, raw)
    if missing:
        logger.error(
            "Missing ExclusiveStartKey props for %s. Need %s, but ExclusiveStartKey is %s.",
            strategy.description,
            ", ".join(required),
            json.dumps(dict(raw), default=str),
        )
        raise ArgumentError(
            f"ExclusiveStartKey is missing required properties for {strategy.description}.  "
            f"It needs {', '.join(required)}.  Missing: {', '.join(missing)}."
        )

    cursor = {field: raw[field] for field in required}
    if strategy is IndexStrategy.RECENT:
        cursor["isRecent"] = RECENT_MARKER
    return cursor


def decode_cursor(text: str | None) -> Dict[str, Any] | None:
    """Parse a JSON cursor as received in a query string."""

    if text is None or not text.strip():
        return None
    try:
        value = json.loads(text)
    except ValueError as exc:
        raise ArgumentError("ExclusiveStartKey is not valid JSON.", cause=exc) from exc
    if not isinstance(value, dict):
        raise ArgumentError("ExclusiveStartKey must be a JSON object.")
    return value


def missing_fields(strategy: IndexStrategy, raw: Mapping[str, Any]) -> List[str]:
    return [field for field in strategy.cursor_fields if not _has_value(field, raw.get(field))]


def _has_value(field: str, value: Any) -> bool:
    if value is None:
        return False
    if field == "createdAt":
        # zero is a legitimate timestamp
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if isinstance(value, str):
        return value.strip() != ""
    return True
