from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from app.clients.store import StoreServiceClient
from app.config import Settings, get_settings
from app.services import CommentCascade, ReviewService
from app.services.comments import COMMENTS_BY_REVIEW_INDEX
from app.services.indexes import IndexStrategy
from app.services.mock_store import get_mock_store
from app.services.reviews import MonotonicClock
from app.services.store import KeyValueTable, RemoteTable


@lru_cache(maxsize=1)
def get_store_client_cached() -> StoreServiceClient:
    settings = get_settings()
    return StoreServiceClient(
        settings.store_service_base_url,
        timeout=settings.store_service_timeout,
        use_mock_data=settings.use_mock_data,
        token=settings.store_service_token,
    )


@lru_cache(maxsize=1)
def get_clock() -> MonotonicClock:
    return MonotonicClock()


def get_store_client() -> StoreServiceClient:
    return get_store_client_cached()


def get_reviews_table(
    client: StoreServiceClient = Depends(get_store_client),
    settings: Settings = Depends(get_settings),
) -> KeyValueTable:
    if client.use_mock_data:
        return get_mock_store().reviews
    return RemoteTable(
        client,
        settings.reviews_table,
        partition_attributes={
            strategy.index_name: strategy.partition_attribute for strategy in IndexStrategy
        },
    )


def get_comments_table(
    client: StoreServiceClient = Depends(get_store_client),
    settings: Settings = Depends(get_settings),
) -> KeyValueTable:
    if client.use_mock_data:
        return get_mock_store().comments
    return RemoteTable(
        client,
        settings.comments_table,
        partition_attributes={COMMENTS_BY_REVIEW_INDEX: "reviewId"},
    )


def get_review_service(
    reviews: KeyValueTable = Depends(get_reviews_table),
    comments: KeyValueTable = Depends(get_comments_table),
) -> ReviewService:
    return ReviewService(
        reviews,
        comments=CommentCascade(comments),
        clock=get_clock(),
    )
