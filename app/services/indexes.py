"""Selection of the secondary index that serves a review query."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Tuple

from app.schemas.review import RECENT_MARKER, ReviewQueryRequest

logger = logging.getLogger(__name__)


class IndexStrategy(str, Enum):
    BY_RECIPE = "recipeId-createdAt-index"
    BY_AUTHOR = "author-createdAt-index"
    RECENT = "isRecent-createdAt-index"

    @property
    def index_name(self) -> str:
        return self.value

    @property
    def partition_attribute(self) -> str:
        return _PARTITION_ATTRIBUTES[self]

    @property
    def cursor_fields(self) -> Tuple[str, ...]:
        return _CURSOR_FIELDS[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_PARTITION_ATTRIBUTES = {
    IndexStrategy.BY_RECIPE: "recipeId",
    IndexStrategy.BY_AUTHOR: "author",
    IndexStrategy.RECENT: "isRecent",
}

_CURSOR_FIELDS = {
    IndexStrategy.BY_RECIPE: ("recipeId", "reviewId", "createdAt"),
    IndexStrategy.BY_AUTHOR: ("author", "createdAt", "recipeId", "reviewId"),
    IndexStrategy.RECENT: ("recipeId", "reviewId", "createdAt"),
}

_DESCRIPTIONS = {
    IndexStrategy.BY_RECIPE: "querying by recipe ID",
    IndexStrategy.BY_AUTHOR: "querying by author",
    IndexStrategy.RECENT: "querying recent reviews",
}


def select_index(request: ReviewQueryRequest) -> IndexStrategy:
    """Return the index strategy for ``request``.

    ``recipe_id`` takes precedence over ``author``; with neither present the
    recency index is used.
    """

    if _present(request.recipe_id):
        if _present(request.author):
            logger.warning(
                "Both recipeId '%s' and author '%s' supplied; ignoring author",
                request.recipe_id,
                request.author,
            )
        return IndexStrategy.BY_RECIPE
    if _present(request.author):
        return IndexStrategy.BY_AUTHOR
    return IndexStrategy.RECENT


def partition_value(strategy: IndexStrategy, request: ReviewQueryRequest) -> object:
    if strategy is IndexStrategy.BY_RECIPE:
        return request.recipe_id
    if strategy is IndexStrategy.BY_AUTHOR:
        return request.author
    return RECENT_MARKER


def _present(value: str | None) -> bool:
    return value is not None and value.strip() != ""
