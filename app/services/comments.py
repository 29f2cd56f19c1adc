from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from app.services.store import KeyValueTable

logger = logging.getLogger(__name__)

COMMENTS_BY_REVIEW_INDEX = "reviewId-createdAt-index"


class CommentCascade:
    """Removes the comments that belong to a review."""

    def __init__(self, comments: KeyValueTable, *, page_size: int = 50) -> None:
        self._comments = comments
        self._page_size = page_size

    async def delete_for_review(self, review_id: str) -> int:
        deleted = 0
        start_key: Optional[Dict[str, Any]] = None
        while True:
            page = await self._comments.query(
                COMMENTS_BY_REVIEW_INDEX,
                review_id,
                limit=self._page_size,
                exclusive_start_key=start_key,
            )
            for comment in page.items:
                await self._comments.delete_item({"commentId": comment["commentId"]})
                deleted += 1
            start_key = page.last_evaluated_key
            if start_key is None:
                break
        logger.info("Deleted %s comments for review %s", deleted, review_id)
        return deleted
