# app/mcp_server.py
from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, Literal, Optional

from pydantic import BaseModel, Field, StrictInt
from mcp.server.fastmcp import FastMCP, Context

from app.config import get_settings
from app.dependencies.services import (
    get_clock,
    get_comments_table,
    get_reviews_table,
    get_store_client_cached,
)
from app.schemas.review import (
    ReviewCreateRequest,
    ReviewDeleteRequest,
    ReviewKey,
    parse_model,
)
from app.services import CommentCascade, ReviewService
from app.services.exceptions import (
    ArgumentError,
    AuthorizationError,
    NotFoundError,
    ServiceError,
)

log = logging.getLogger("reviews.mcp")

# Name shown to clients
mcp = FastMCP("recipe_reviews_mcp")

ToolStatus = Literal[
    "ok",
    "argument_error",
    "not_found",
    "unauthorized",
    "infrastructure_error",
]


# --------------------------
# Tool I/O models
# --------------------------
class ToolError(BaseModel):
    message: str


class ReviewToolResult(BaseModel):
    status: ToolStatus
    data: Optional[Dict[str, Any]] = None
    error: Optional[ToolError] = None


class ReviewCreateInput(BaseModel):
    recipeId: str = Field(..., description="Recipe identifier, e.g. '52772'")
    recipeName: str = Field(..., description="Recipe display name")
    username: str = Field(..., description="Identity of the review author")
    imageUrl: Optional[str] = None
    rating: float
    content: str


class ReviewQueryInput(BaseModel):
    recipeId: Optional[str] = Field(None, description="Page reviews of one recipe")
    author: Optional[str] = Field(None, description="Page reviews written by one author")
    Limit: Optional[StrictInt] = Field(None, description="Page size, 1 to 50 (default 50)")
    ExclusiveStartKey: Optional[Dict[str, Any]] = Field(
        None, description="LastEvaluatedKey returned by the previous page"
    )


class ReviewGetInput(BaseModel):
    recipeId: str
    reviewId: str


class ReviewDeleteInput(BaseModel):
    recipeId: str
    reviewId: str
    username: str
    isAdmin: bool = False


def _error_status(exc: ServiceError) -> ToolStatus:
    if isinstance(exc, ArgumentError):
        return "argument_error"
    if isinstance(exc, NotFoundError):
        return "not_found"
    if isinstance(exc, AuthorizationError):
        return "unauthorized"
    return "infrastructure_error"


async def run_tool(operation: Callable[[], Awaitable[BaseModel]]) -> ReviewToolResult:
    """Run a service call and fold its outcome into a tagged result."""
    try:
        value = await operation()
    except ServiceError as exc:
        status = _error_status(exc)
        log.info("tool failed status=%s message=%s", status, exc)
        return ReviewToolResult(status=status, error=ToolError(message=str(exc)))
    return ReviewToolResult(
        status="ok", data=value.model_dump(by_alias=True, exclude_none=True)
    )


def _review_service() -> ReviewService:
    client = get_store_client_cached()
    settings = get_settings()
    reviews = get_reviews_table(client, settings)
    comments = get_comments_table(client, settings)
    return ReviewService(reviews, comments=CommentCascade(comments), clock=get_clock())


# --------------------------
# Tools
# --------------------------
@mcp.tool(name="reviews_create", description="Post a new review for a recipe")
async def reviews_create(input: ReviewCreateInput, ctx: Context) -> ReviewToolResult:
    log.debug("reviews_create input=%s", input.model_dump())
    service = _review_service()
    out = await run_tool(
        lambda: service.create(parse_model(ReviewCreateRequest, input.model_dump()))
    )
    log.debug("reviews_create output=%s", out.model_dump())
    return out


@mcp.tool(name="reviews_query", description="Page reviews by recipe, by author, or most recent first")
async def reviews_query(input: ReviewQueryInput, ctx: Context) -> ReviewToolResult:
    log.debug("reviews_query input=%s", input.model_dump())
    service = _review_service()
    out = await run_tool(lambda: service.query(input.model_dump(exclude_none=True)))
    log.debug("reviews_query output=%s", out.model_dump())
    return out


@mcp.tool(name="reviews_get", description="Fetch one review")
async def reviews_get(input: ReviewGetInput, ctx: Context) -> ReviewToolResult:
    log.debug("reviews_get input=%s", input.model_dump())
    service = _review_service()
    out = await run_tool(
        lambda: service.get_one(ReviewKey(recipe_id=input.recipeId, review_id=input.reviewId))
    )
    log.debug("reviews_get output=%s", out.model_dump())
    return out


@mcp.tool(name="reviews_delete", description="Delete a review and its comments")
async def reviews_delete(input: ReviewDeleteInput, ctx: Context) -> ReviewToolResult:
    log.debug("reviews_delete input=%s", input.model_dump())
    service = _review_service()
    out = await run_tool(
        lambda: service.delete(parse_model(ReviewDeleteRequest, input.model_dump()))
    )
    log.debug("reviews_delete output=%s", out.model_dump())
    return out


@mcp.tool(name="ping", description="Health check")
async def ping(message: str) -> str:
    log.debug("ping %s", message)
    return f"pong: {message}"
