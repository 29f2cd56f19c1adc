from typing import Any, Dict, NoReturn, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException, Request

from app.dependencies.services import get_review_service
from app.schemas.review import (
    Review,
    ReviewCreateRequest,
    ReviewDeleteRequest,
    ReviewKey,
    ReviewPage,
    parse_model,
)
from app.services import ReviewService
from app.services.cursors import decode_cursor
from app.services.exceptions import (
    ArgumentError,
    AuthorizationError,
    NotFoundError,
    ServiceError,
)

router = APIRouter()


def require_username(x_username: Optional[str] = Header(None)) -> str:
    """Identity resolved upstream from the caller's token."""
    if not x_username:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    return x_username


def _raise_http(exc: ServiceError) -> NoReturn:
    if isinstance(exc, ArgumentError):
        status_code = 400
    elif isinstance(exc, AuthorizationError):
        status_code = 403
    elif isinstance(exc, NotFoundError):
        status_code = 404
    else:
        status_code = 502
    raise HTTPException(status_code=status_code, detail=str(exc)) from exc


@router.post("", response_model=Review, response_model_by_alias=True, status_code=201)
async def create_review(
    body: Dict[str, Any] = Body(...),
    username: str = Depends(require_username),
    service: ReviewService = Depends(get_review_service),
):
    try:
        req = parse_model(ReviewCreateRequest, {**body, "username": username})
        return await service.create(req)
    except ServiceError as exc:
        _raise_http(exc)


@router.get("", response_model=ReviewPage, response_model_by_alias=True, response_model_exclude_none=True)
async def list_reviews(
    request: Request,
    service: ReviewService = Depends(get_review_service),
):
    try:
        params: Dict[str, Any] = dict(request.query_params)
        if "ExclusiveStartKey" in params:
            params["ExclusiveStartKey"] = decode_cursor(params["ExclusiveStartKey"])
        return await service.query(params)
    except ServiceError as exc:
        _raise_http(exc)


@router.get("/{recipe_id}/{review_id}", response_model=Review, response_model_by_alias=True)
async def get_review(
    recipe_id: str,
    review_id: str,
    service: ReviewService = Depends(get_review_service),
):
    try:
        return await service.get_one(ReviewKey(recipe_id=recipe_id, review_id=review_id))
    except ServiceError as exc:
        _raise_http(exc)


@router.delete("", response_model=Review, response_model_by_alias=True)
async def delete_review(
    body: Dict[str, Any] = Body(...),
    username: str = Depends(require_username),
    x_is_admin: bool = Header(False),
    service: ReviewService = Depends(get_review_service),
):
    try:
        req = parse_model(
            ReviewDeleteRequest,
            {
                "recipeId": body.get("recipeId"),
                "reviewId": body.get("reviewId"),
                "username": username,
                "isAdmin": x_is_admin,
            },
        )
        return await service.delete(req)
    except ServiceError as exc:
        _raise_http(exc)
