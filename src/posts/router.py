"""Post API endpoints.

Reads are public; writes require authentication, and updates/deletes
additionally require being the author or an admin.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.auth.dependencies import CurrentUser
from src.core.errors import AppError, to_http_exception
from src.core.query import select_fields
from src.core.schemas import DataResponse

from .schemas import (
    CreatePostRequest,
    LikesResponse,
    PostListResponse,
    PostResponse,
    UpdatePostRequest,
)
from .service import PostService


router = APIRouter(prefix="/posts", tags=["posts"])


async def get_post_service(request: Request) -> PostService:
    """Get post service from app state."""
    service = getattr(request.app.state, "post_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Post service not available",
        )
    return service


PostServiceDep = Annotated[PostService, Depends(get_post_service)]


# ==============================================================================
# Public Endpoints
# ==============================================================================


@router.get(
    "",
    response_model=PostListResponse,
    summary="List posts",
)
async def list_posts(request: Request, post_service: PostServiceDep) -> PostListResponse:
    """List posts.

    Query parameters: ``select``, ``sort``, ``page``, ``limit`` and field
    filters (``field=value`` or ``field[gt|gte|lt|lte|in]=value``).
    """
    try:
        page = await post_service.list_posts(request.query_params)
    except AppError as e:
        raise to_http_exception(e) from e

    return PostListResponse(
        count=len(page.posts),
        pagination=page.pagination,
        data=[select_fields(post, page.select) for post in page.posts],
    )


@router.get("/{post_id}", response_model=DataResponse[PostResponse])
async def get_post(
    post_id: str, post_service: PostServiceDep
) -> DataResponse[PostResponse]:
    """Get a post with its author and comments."""
    try:
        post = await post_service.get_post(post_id)
    except AppError as e:
        raise to_http_exception(e) from e
    return DataResponse(data=post)


# ==============================================================================
# Authenticated Endpoints
# ==============================================================================


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create post",
)
async def create_post(
    data: CreatePostRequest,
    current_user: CurrentUser,
    post_service: PostServiceDep,
) -> dict[str, Any]:
    """Create a post authored by the current user."""
    try:
        post = await post_service.create_post(current_user, data)
    except AppError as e:
        raise to_http_exception(e) from e
    return {
        "success": True,
        "message": "Post created successfully",
        "data": post.model_dump(mode="json", by_alias=True),
    }


@router.put("/{post_id}", response_model=DataResponse[PostResponse])
async def update_post(
    post_id: str,
    data: UpdatePostRequest,
    current_user: CurrentUser,
    post_service: PostServiceDep,
) -> DataResponse[PostResponse]:
    """Update a post (author or admin)."""
    try:
        post = await post_service.update_post(post_id, current_user, data)
    except AppError as e:
        raise to_http_exception(e) from e
    return DataResponse(data=post)


@router.delete("/{post_id}")
async def delete_post(
    post_id: str, current_user: CurrentUser, post_service: PostServiceDep
) -> dict[str, Any]:
    """Delete a post and its comments (author or admin)."""
    try:
        await post_service.delete_post(post_id, current_user)
    except AppError as e:
        raise to_http_exception(e) from e
    return {"success": True, "data": {}}


@router.put("/{post_id}/like", response_model=LikesResponse)
async def like_post(
    post_id: str, current_user: CurrentUser, post_service: PostServiceDep
) -> LikesResponse:
    """Like a post."""
    try:
        likes = await post_service.like(post_id, current_user.id)
    except AppError as e:
        raise to_http_exception(e) from e
    return LikesResponse(data=likes)


@router.put("/{post_id}/unlike", response_model=LikesResponse)
async def unlike_post(
    post_id: str, current_user: CurrentUser, post_service: PostServiceDep
) -> LikesResponse:
    """Remove a like from a post."""
    try:
        likes = await post_service.unlike(post_id, current_user.id)
    except AppError as e:
        raise to_http_exception(e) from e
    return LikesResponse(data=likes)
