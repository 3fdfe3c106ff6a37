"""Post service layer.

Business logic for:
- Listing with filters, field selection, sorting and pagination
- Post detail with author and comments populated
- Create / update / delete (owner or admin), deleting a post's comments
- Likes
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from src.auth.models import UserRepository
from src.auth.permissions import Actor, ensure_can_modify
from src.comments.models import CommentRepository
from src.comments.schemas import CommentResponse
from src.core.errors import (
    AlreadyLikedError,
    NotFoundError,
    NotLikedError,
    ValidationFailedError,
)
from src.core.logging import get_logger
from src.core.query import ListQuery, build_pagination
from src.core.schemas import AuthorDetails, AuthorSummary

from .models import PostRepository
from .schemas import CreatePostRequest, PostResponse, UpdatePostRequest


logger = get_logger(__name__)

Post = dict[str, Any]


@dataclass
class PostPage:
    """One page of a post listing."""

    posts: list[PostResponse]
    pagination: dict[str, dict[str, int]]
    select: set[str] | None = None
    total: int = 0


class PostService:
    """Posts and their engagement."""

    def __init__(
        self,
        posts: PostRepository,
        comments: CommentRepository,
        users: UserRepository,
    ):
        """Initialize with injected repositories.

        Args:
            posts: Post repository
            comments: Comment repository (cascade on delete, detail view)
            users: User repository (author population)
        """
        self.posts = posts
        self.comments = comments
        self.users = users

    # ==========================================================================
    # Helpers
    # ==========================================================================

    async def _get_post(self, post_id: Any) -> Post:
        post = await self.posts.find_by_id(post_id)
        if post is None:
            raise NotFoundError(f"Post not found with id of {post_id}")
        return post

    async def _author_summary(self, author_id: Any) -> AuthorSummary | None:
        authors = await self.users.find_by_ids([author_id])
        author = authors.get(str(author_id))
        return AuthorSummary.from_document(author) if author else None

    # ==========================================================================
    # Reads
    # ==========================================================================

    async def list_posts(self, params: Mapping[str, str]) -> PostPage:
        """List posts according to the listing query language.

        ``total`` (and therefore ``pagination.next``) counts the documents
        matching the filter, not the whole collection.

        Raises:
            ValidationFailedError: A filter value cannot be cast
        """
        query = ListQuery.from_params(
            params, PostRepository.filter_fields, PostRepository.sort_fields
        )

        total = await self.posts.count_matching(query.filter)
        posts = await self.posts.find_many(
            query.filter, sort=query.sort, skip=query.skip, limit=query.limit
        )
        authors = await self.users.find_by_ids(p["author"] for p in posts)

        responses = []
        for post in posts:
            author = authors.get(str(post["author"]))
            responses.append(
                PostResponse.from_post(
                    post, AuthorSummary.from_document(author) if author else None
                )
            )

        return PostPage(
            posts=responses,
            pagination=build_pagination(query.page, query.limit, total),
            select=query.select,
            total=total,
        )

    async def get_post(self, post_id: Any) -> PostResponse:
        """Post with its author and its comments (each with author) populated.

        Raises:
            NotFoundError: ``Post not found with id of <id>``
        """
        post = await self._get_post(post_id)

        comment_ids = post.get("comments", [])
        comments = (
            await self.comments.find_many({"_id": {"$in": comment_ids}})
            if comment_ids
            else []
        )
        authors = await self.users.find_by_ids(
            [post["author"]] + [c["author"] for c in comments]
        )

        # Keep the order of the post's comment list
        by_id = {c["_id"]: c for c in comments}
        populated = [
            CommentResponse.from_comment(by_id[cid], authors)
            for cid in comment_ids
            if cid in by_id
        ]

        author = authors.get(str(post["author"]))
        return PostResponse.from_post(
            post,
            AuthorSummary.from_document(author) if author else None,
            populated,
        )

    # ==========================================================================
    # Writes
    # ==========================================================================

    async def create_post(self, actor: Actor, data: CreatePostRequest) -> PostResponse:
        """Create a post authored by the actor.

        Raises:
            ValidationFailedError: Title or content missing, or schema failure
        """
        if not data.title or not data.content:
            raise ValidationFailedError("Title and content are required")

        post = await self.posts.create(
            {
                "title": data.title.strip(),
                "content": data.content.strip(),
                "author": self.posts.object_id(actor.id),
                "tags": data.tags or [],
                "isPublished": data.is_published is not False,
                "featuredImage": data.featured_image,
            }
        )
        logger.info("post_created", post_id=str(post["_id"]))

        authors = await self.users.find_by_ids([post["author"]])
        author = authors.get(str(post["author"]))
        return PostResponse.from_post(
            post, AuthorDetails.from_document(author) if author else None
        )

    async def update_post(
        self, post_id: Any, actor: Actor, data: UpdatePostRequest
    ) -> PostResponse:
        """Apply a partial update; author, likes and comments never change.

        Raises:
            NotFoundError: Post absent
            ForbiddenError: Actor is neither the author nor an admin
            ValidationFailedError: Patched post fails the schema
        """
        post = await self._get_post(post_id)
        ensure_can_modify(actor, post["author"], "update", "post")

        patch = data.model_dump(by_alias=True, exclude_unset=True)
        for protected in ("author", "likes", "comments"):
            patch.pop(protected, None)

        updated = await self.posts.update_by_id(post["_id"], patch)
        if updated is None:
            raise NotFoundError(f"Post not found with id of {post_id}")

        logger.info("post_updated", post_id=str(post["_id"]), fields=sorted(patch))
        return PostResponse.from_post(
            updated, await self._author_summary(updated["author"])
        )

    async def delete_post(self, post_id: Any, actor: Actor) -> int:
        """Delete a post's comments, then the post.

        Returns:
            Number of comments deleted alongside the post
        """
        post = await self._get_post(post_id)
        ensure_can_modify(actor, post["author"], "delete", "post")

        removed_comments = await self.comments.delete_many({"post": post["_id"]})
        await self.posts.delete_by_id(post["_id"])

        logger.info(
            "post_deleted",
            post_id=str(post["_id"]),
            comments_removed=removed_comments,
        )
        return removed_comments

    # ==========================================================================
    # Likes
    # ==========================================================================

    async def like(self, post_id: Any, actor_id: Any) -> list[str]:
        """Add the actor to the post's likes.

        Raises:
            AlreadyLikedError: Actor already likes the post
        """
        post = await self._get_post(post_id)
        actor_oid = self.posts.object_id(actor_id)
        if actor_oid in post.get("likes", []):
            raise AlreadyLikedError("Post already liked")

        updated = await self.posts.add_to_set(post["_id"], "likes", actor_oid)
        return [str(like) for like in (updated or post).get("likes", [])]

    async def unlike(self, post_id: Any, actor_id: Any) -> list[str]:
        """Remove the actor from the post's likes.

        Raises:
            NotLikedError: Actor does not like the post
        """
        post = await self._get_post(post_id)
        actor_oid = self.posts.object_id(actor_id)
        if actor_oid not in post.get("likes", []):
            raise NotLikedError("Post has not been liked")

        updated = await self.posts.pull(post["_id"], "likes", actor_oid)
        return [str(like) for like in (updated or post).get("likes", [])]
