from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from app.services.exceptions import ArgumentError

# Every review shares this partition value on the recency index.
RECENT_MARKER = 1

ModelT = TypeVar("ModelT", bound=BaseModel)


class Review(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipe_id: str = Field(alias="recipeId")
    recipe_name: Optional[str] = Field(default=None, alias="recipeName")
    review_id: str = Field(alias="reviewId")
    author: str
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    rating: Optional[float] = None
    content: Optional[str] = None
    created_at: int = Field(alias="createdAt")
    is_recent: int = Field(default=RECENT_MARKER, alias="isRecent")


class ReviewCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    recipe_id: str = Field(alias="recipeId", min_length=1)
    recipe_name: str = Field(alias="recipeName")
    username: str = Field(min_length=1)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    rating: float
    content: str


class ReviewQueryRequest(BaseModel):
    """Query parameters for paging through reviews.

    At most one of ``recipe_id``/``author`` is used as the partition filter;
    when neither is given the recency index is used.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    recipe_id: Optional[str] = Field(default=None, alias="recipeId")
    author: Optional[str] = None
    exclusive_start_key: Optional[Dict[str, Any]] = Field(
        default=None, alias="ExclusiveStartKey"
    )
    limit: Optional[int] = Field(default=None, alias="Limit")

    @field_validator("limit", mode="before")
    @classmethod
    def _reject_boolean_limit(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("Limit must be an integer")
        return value

    @classmethod
    def parse(cls, raw: "ReviewQueryRequest | Mapping[str, Any]") -> "ReviewQueryRequest":
        return parse_model(cls, raw)


class ReviewPage(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[Review]
    last_evaluated_key: Optional[Dict[str, Any]] = Field(
        default=None, alias="LastEvaluatedKey"
    )


class ReviewKey(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipe_id: Optional[str] = Field(default=None, alias="recipeId")
    review_id: Optional[str] = Field(default=None, alias="reviewId")


class ReviewDeleteRequest(ReviewKey):
    username: Optional[str] = None
    is_admin: bool = Field(default=False, alias="isAdmin")


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "request"
        problems.append(f"{location}: {error.get('msg')}")
    return "Invalid request. " + "; ".join(problems)


def parse_model(model: Type[ModelT], raw: ModelT | Mapping[str, Any]) -> ModelT:
    """Validate loosely typed input, reporting problems as ``ArgumentError``."""

    if isinstance(raw, model):
        return raw
    if not isinstance(raw, Mapping):
        raise ArgumentError("Invalid request. Expected an object.")
    try:
        return model.model_validate(dict(raw))
    except ValidationError as exc:
        raise ArgumentError(_describe_validation_error(exc), cause=exc) from exc
