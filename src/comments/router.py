"""Comment API endpoints.

- ``/posts/{post_id}/comments``: read a post's thread, add a top-level comment
- ``/comments/{comment_id}``: edit, delete, reply, like, unlike
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.auth.dependencies import CurrentUser
from src.core.errors import AppError, to_http_exception
from src.core.schemas import DataResponse

from .schemas import (
    CommentListResponse,
    CommentResponse,
    CreateCommentRequest,
    UpdateCommentRequest,
)
from .service import CommentService


post_comments_router = APIRouter(prefix="/posts/{post_id}/comments", tags=["comments"])
router = APIRouter(prefix="/comments", tags=["comments"])


async def get_comment_service(request: Request) -> CommentService:
    """Get comment service from app state.

    Args:
        request: FastAPI request

    Returns:
        CommentService instance
    """
    service = getattr(request.app.state, "comment_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comment service not available",
        )
    return service


CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]


# ==============================================================================
# Post threads
# ==============================================================================


@post_comments_router.get("", response_model=CommentListResponse)
async def list_comments(
    post_id: str, comment_service: CommentServiceDep
) -> CommentListResponse:
    """Top-level comments of a post with their replies."""
    try:
        thread = await comment_service.list_top_level(post_id)
    except AppError as e:
        raise to_http_exception(e) from e
    return CommentListResponse(count=len(thread), data=thread)


@post_comments_router.post(
    "",
    response_model=DataResponse[CommentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: str,
    data: CreateCommentRequest,
    current_user: CurrentUser,
    comment_service: CommentServiceDep,
) -> DataResponse[CommentResponse]:
    """Comment on a post."""
    try:
        comment = await comment_service.add_top_level(
            post_id, current_user.id, data.content
        )
    except AppError as e:
        raise to_http_exception(e) from e
    return DataResponse(data=comment)


# ==============================================================================
# Single comment
# ==============================================================================


@router.put("/{comment_id}", response_model=DataResponse[CommentResponse])
async def update_comment(
    comment_id: str,
    data: UpdateCommentRequest,
    current_user: CurrentUser,
    comment_service: CommentServiceDep,
) -> DataResponse[CommentResponse]:
    """Edit a comment (author or admin)."""
    try:
        comment = await comment_service.edit(comment_id, current_user, data.content)
    except AppError as e:
        raise to_http_exception(e) from e
    return DataResponse(data=comment)


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str, current_user: CurrentUser, comment_service: CommentServiceDep
) -> dict[str, Any]:
    """Delete a comment and its direct replies (author or admin)."""
    try:
        await comment_service.remove(comment_id, current_user)
    except AppError as e:
        raise to_http_exception(e) from e
    return {"success": True, "data": {}}


@router.post(
    "/{comment_id}/replies",
    response_model=DataResponse[CommentResponse],
    status_code=status.HTTP_201_CREATED,
)
async def add_reply(
    comment_id: str,
    data: CreateCommentRequest,
    current_user: CurrentUser,
    comment_service: CommentServiceDep,
) -> DataResponse[CommentResponse]:
    """Reply to a comment."""
    try:
        reply = await comment_service.add_reply(comment_id, current_user.id, data.content)
    except AppError as e:
        raise to_http_exception(e) from e
    return DataResponse(data=reply)


@router.put("/{comment_id}/like")
async def like_comment(
    comment_id: str, current_user: CurrentUser, comment_service: CommentServiceDep
) -> dict[str, Any]:
    """Like a comment."""
    try:
        likes = await comment_service.like(comment_id, current_user.id)
    except AppError as e:
        raise to_http_exception(e) from e
    return {"success": True, "data": likes}


@router.put("/{comment_id}/unlike")
async def unlike_comment(
    comment_id: str, current_user: CurrentUser, comment_service: CommentServiceDep
) -> dict[str, Any]:
    """Remove a like from a comment."""
    try:
        likes = await comment_service.unlike(comment_id, current_user.id)
    except AppError as e:
        raise to_http_exception(e) from e
    return {"success": True, "data": likes}
