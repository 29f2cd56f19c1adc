import asyncio
import os
import sys
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.services.exceptions import ArgumentError, DownstreamServiceError, InfrastructureError
from app.services.review_query import MAX_LIMIT, ReviewQueryEngine, resolve_limit
from app.services.store import QueryPage


def _stored_review(index: int, **overrides):
    item = {
        "recipeId": "52772",
        "recipeName": "Teriyaki Chicken",
        "reviewId": f"rev-{index}",
        "author": "alice",
        "rating": 5,
        "content": "great",
        "createdAt": 1700000000000 + index,
        "isRecent": 1,
    }
    item.update(overrides)
    return item


def _table(page: QueryPage | None = None) -> AsyncMock:
    table = AsyncMock()
    table.query.return_value = page or QueryPage()
    return table


def test_limit_defaults_to_fifty() -> None:
    assert resolve_limit(None) == MAX_LIMIT == 50


@pytest.mark.parametrize("limit", [1, 10, 50])
def test_limit_within_range_is_used(limit) -> None:
    assert resolve_limit(limit) == limit


@pytest.mark.parametrize("limit", [0, -1, 51, 100])
def test_limit_out_of_range_fails_without_store_call(limit) -> None:
    table = _table()
    engine = ReviewQueryEngine(table)

    with pytest.raises(ArgumentError) as excinfo:
        asyncio.run(engine.query({"recipeId": "52772", "Limit": limit}))

    assert "outside of allowed range" in str(excinfo.value)
    table.query.assert_not_awaited()


def test_recipe_query_reads_recipe_index() -> None:
    page = QueryPage(
        items=[_stored_review(2), _stored_review(1)],
        last_evaluated_key={"recipeId": "52772", "reviewId": "rev-1", "createdAt": 1700000000001},
    )
    table = _table(page)
    engine = ReviewQueryEngine(table)

    result = asyncio.run(engine.query({"recipeId": "52772", "Limit": 10}))

    table.query.assert_awaited_once_with(
        "recipeId-createdAt-index", "52772", limit=10, exclusive_start_key=None
    )
    assert [item.review_id for item in result.items] == ["rev-2", "rev-1"]
    assert result.last_evaluated_key == page.last_evaluated_key


def test_author_query_forwards_validated_cursor() -> None:
    table = _table()
    engine = ReviewQueryEngine(table)
    cursor = {
        "author": "alice",
        "createdAt": 1700000000005,
        "recipeId": "52772",
        "reviewId": "rev-5",
    }

    asyncio.run(engine.query({"author": "alice", "ExclusiveStartKey": cursor}))

    table.query.assert_awaited_once_with(
        "author-createdAt-index", "alice", limit=50, exclusive_start_key=cursor
    )


def test_recent_query_uses_marker_partition() -> None:
    table = _table()
    engine = ReviewQueryEngine(table)
    cursor = {"recipeId": "52772", "reviewId": "rev-5", "createdAt": 1700000000005}

    asyncio.run(engine.query({"Limit": 5, "ExclusiveStartKey": cursor}))

    table.query.assert_awaited_once_with(
        "isRecent-createdAt-index",
        1,
        limit=5,
        exclusive_start_key={**cursor, "isRecent": 1},
    )


def test_partial_cursor_fails_without_store_call() -> None:
    table = _table()
    engine = ReviewQueryEngine(table)

    with pytest.raises(ArgumentError) as excinfo:
        asyncio.run(
            engine.query(
                {"author": "alice", "ExclusiveStartKey": {"author": "alice", "createdAt": 1}}
            )
        )

    assert "querying by author" in str(excinfo.value)
    table.query.assert_not_awaited()


def test_unknown_request_field_is_rejected() -> None:
    table = _table()
    engine = ReviewQueryEngine(table)

    with pytest.raises(ArgumentError):
        asyncio.run(engine.query({"recipeId": "52772", "sortOrder": "asc"}))

    table.query.assert_not_awaited()


def test_malformed_limit_is_rejected() -> None:
    engine = ReviewQueryEngine(_table())

    with pytest.raises(ArgumentError):
        asyncio.run(engine.query({"Limit": "ten"}))


def test_store_failure_is_wrapped_with_cause() -> None:
    table = AsyncMock()
    failure = ConnectionError("store unavailable")
    table.query.side_effect = failure
    engine = ReviewQueryEngine(table)

    with pytest.raises(InfrastructureError) as excinfo:
        asyncio.run(engine.query({}))

    assert excinfo.value.cause is failure


def test_downstream_error_propagates_unchanged() -> None:
    table = AsyncMock()
    failure = DownstreamServiceError("Store gateway returned an error response", status_code=503)
    table.query.side_effect = failure
    engine = ReviewQueryEngine(table)

    with pytest.raises(DownstreamServiceError) as excinfo:
        asyncio.run(engine.query({"author": "alice"}))

    assert excinfo.value is failure


def test_malformed_store_row_becomes_infrastructure_error() -> None:
    table = _table(QueryPage(items=[{"recipeId": "1", "reviewId": "a"}]))
    engine = ReviewQueryEngine(table)

    with pytest.raises(InfrastructureError) as excinfo:
        asyncio.run(engine.query({"recipeId": "1"}))

    assert isinstance(excinfo.value.cause, ValidationError)


@pytest.mark.parametrize("limit", [True, False])
def test_boolean_limit_is_rejected_without_store_call(limit) -> None:
    table = _table()
    engine = ReviewQueryEngine(table)

    with pytest.raises(ArgumentError):
        asyncio.run(engine.query({"recipeId": "52772", "Limit": limit}))

    table.query.assert_not_awaited()


def test_numeric_string_limit_from_query_string_is_accepted() -> None:
    table = _table()
    engine = ReviewQueryEngine(table)

    asyncio.run(engine.query({"recipeId": "52772", "Limit": "10"}))

    assert table.query.await_args.kwargs["limit"] == 10
