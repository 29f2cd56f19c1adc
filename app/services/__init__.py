"""Service package public API definitions.

The store client imports ``app.services.exceptions``, which executes this
module first. Service implementations depend on the client in turn, so they
are imported lazily on first access to avoid a circular import.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "CommentCascade",
    "ReviewQueryEngine",
    "ReviewService",
]

_SERVICE_MODULES = {
    "CommentCascade": "comments",
    "ReviewQueryEngine": "review_query",
    "ReviewService": "reviews",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .comments import CommentCascade as CommentCascade
    from .review_query import ReviewQueryEngine as ReviewQueryEngine
    from .reviews import ReviewService as ReviewService
