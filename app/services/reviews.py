from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, Mapping, TypeVar

from app.schemas.review import (
    RECENT_MARKER,
    Review,
    ReviewCreateRequest,
    ReviewDeleteRequest,
    ReviewKey,
    ReviewPage,
    ReviewQueryRequest,
)
from app.services.comments import CommentCascade
from app.services.exceptions import (
    ArgumentError,
    AuthorizationError,
    InfrastructureError,
    NotFoundError,
    ServiceError,
)
from app.services.review_query import ReviewQueryEngine, review_from_store
from app.services.store import KeyValueTable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MonotonicClock:
    """Epoch milliseconds that never repeat or go backwards within a process."""

    def __init__(self, source: Callable[[], float] = time.time) -> None:
        self._source = source
        self._last = 0

    def now(self) -> int:
        current = int(self._source() * 1000)
        if current <= self._last:
            current = self._last + 1
        self._last = current
        return current


class ReviewService:
    def __init__(
        self,
        reviews: KeyValueTable,
        *,
        comments: CommentCascade,
        clock: MonotonicClock | None = None,
    ) -> None:
        self._reviews = reviews
        self._comments = comments
        self._clock = clock or MonotonicClock()
        self._query_engine = ReviewQueryEngine(reviews)

    async def create(self, request: ReviewCreateRequest) -> Review:
        logger.info("Creating review of recipe %s by %s", request.recipe_id, request.username)
        review = Review(
            recipe_id=request.recipe_id,
            recipe_name=request.recipe_name,
            review_id=str(uuid.uuid4()),
            author=request.username,
            image_url=request.image_url,
            rating=request.rating,
            content=request.content,
            created_at=self._clock.now(),
            is_recent=RECENT_MARKER,
        )
        stored = await self._call_store(
            "Failed to create review",
            lambda: self._reviews.put_item(review.model_dump(by_alias=True)),
        )
        return review_from_store(stored)

    async def query(self, request: ReviewQueryRequest | Mapping[str, Any]) -> ReviewPage:
        return await self._query_engine.query(request)

    async def get_one(self, request: ReviewKey) -> Review:
        logger.info("Fetching review %s of recipe %s", request.review_id, request.recipe_id)
        if not request.recipe_id or not request.review_id:
            raise ArgumentError("Recipe Id or Review Id must be defined in Parameters")

        item = await self._fetch(request.recipe_id, request.review_id)
        if item is None:
            raise NotFoundError("No Review has this ID")
        return review_from_store(item)

    async def delete(self, request: ReviewDeleteRequest) -> Review:
        """Delete a review owned by the caller, or any review for an admin.

        Comments are removed before the review itself so a failed cascade
        leaves the review in place for a retry.
        """

        logger.info("Deleting review %s of recipe %s", request.review_id, request.recipe_id)
        if not request.recipe_id:
            raise ArgumentError("Recipe Id must be defined in Request Body")
        if not request.review_id:
            raise ArgumentError("Review Id must be defined in Request Body")

        item = await self._fetch(request.recipe_id, request.review_id)
        if item is None:
            raise NotFoundError("No Review has this ID")

        review = review_from_store(item)
        if request.username != review.author and not request.is_admin:
            logger.warning(
                "User %s attempted to delete review %s owned by %s",
                request.username,
                review.review_id,
                review.author,
            )
            raise AuthorizationError("Cannot Delete Another Users Post")

        await self._call_store(
            "Failed to delete comments for review",
            lambda: self._comments.delete_for_review(review.review_id),
        )
        await self._call_store(
            "Failed to delete review",
            lambda: self._reviews.delete_item(_table_key(review.recipe_id, review.review_id)),
        )
        logger.info("Successfully deleted review %s", review.review_id)
        return review

    async def _fetch(self, recipe_id: str, review_id: str) -> Dict[str, Any] | None:
        return await self._call_store(
            "Failed to fetch review",
            lambda: self._reviews.get_item(_table_key(recipe_id, review_id)),
        )

    async def _call_store(self, message: str, operation: Callable[[], Awaitable[T]]) -> T:
        try:
            return await operation()
        except ServiceError:
            raise
        except Exception as exc:
            logger.exception(message)
            raise InfrastructureError(message, cause=exc) from exc


def _table_key(recipe_id: str, review_id: str) -> Dict[str, str]:
    return {"recipeId": recipe_id, "reviewId": review_id}
