from __future__ import annotations

import json
import logging
from typing import Any, Mapping

from pydantic import ValidationError

from app.schemas.review import Review, ReviewPage, ReviewQueryRequest
from app.services.cursors import validate_cursor
from app.services.exceptions import ArgumentError, InfrastructureError, ServiceError
from app.services.indexes import partition_value, select_index
from app.services.store import KeyValueTable

logger = logging.getLogger(__name__)

# Hard ceiling on a single page read, whatever the caller asks for.
MAX_LIMIT = 50


def resolve_limit(limit: int | None) -> int:
    if limit is None:
        return MAX_LIMIT
    if limit <= 0 or limit > MAX_LIMIT:
        logger.error("Limit is out of range. Limit is %s.", limit)
        raise ArgumentError(
            f"Argument 'Limit' is outside of allowed range.  Range is 1 to {MAX_LIMIT}."
        )
    return limit


def review_from_store(item: Mapping[str, Any]) -> Review:
    try:
        return Review.model_validate(item)
    except ValidationError as exc:
        logger.exception("Store returned a malformed review: %s", item)
        raise InfrastructureError("Store returned a malformed review", cause=exc) from exc


class ReviewQueryEngine:
    """Routes a review query to one index and reads a single page from it."""

    def __init__(self, table: KeyValueTable) -> None:
        self._table = table

    async def query(self, request: ReviewQueryRequest | Mapping[str, Any]) -> ReviewPage:
        parsed = ReviewQueryRequest.parse(request)
        logger.info(
            "Querying reviews with %s",
            json.dumps(parsed.model_dump(by_alias=True, exclude_none=True), default=str),
        )

        limit = resolve_limit(parsed.limit)
        strategy = select_index(parsed)
        start_key = None
        if parsed.exclusive_start_key is not None:
            start_key = validate_cursor(strategy, parsed.exclusive_start_key)

        try:
            page = await self._table.query(
                strategy.index_name,
                partition_value(strategy, parsed),
                limit=limit,
                exclusive_start_key=start_key,
            )
        except ServiceError:
            raise
        except Exception as exc:
            logger.exception("Store query failed on %s", strategy.index_name)
            raise InfrastructureError("Failed to query reviews", cause=exc) from exc

        result = ReviewPage(
            items=[review_from_store(item) for item in page.items],
            last_evaluated_key=page.last_evaluated_key,
        )
        logger.info(
            "Returning %s reviews from %s (more=%s)",
            len(result.items),
            strategy.index_name,
            result.last_evaluated_key is not None,
        )
        return result
