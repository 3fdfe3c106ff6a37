"""Comment system service layer.

Business logic for:
- Comment threads (top-level comments with one level of replies)
- Adding comments and replies
- Editing and removing (owner or admin)
- Likes
"""

from typing import Any

from src.auth.models import UserRepository
from src.auth.permissions import Actor, ensure_can_modify
from src.core.errors import AlreadyLikedError, NotFoundError, NotLikedError
from src.core.logging import get_logger
from src.posts.models import PostRepository

from .models import CommentRepository
from .schemas import CommentResponse, CommentWithRepliesResponse


logger = get_logger(__name__)

Comment = dict[str, Any]

THREAD_SORT = [("createdAt", 1), ("_id", 1)]


class CommentService:
    """Comment tree manager."""

    def __init__(
        self,
        comments: CommentRepository,
        posts: PostRepository,
        users: UserRepository,
    ):
        """Initialize with injected repositories.

        Args:
            comments: Comment repository
            posts: Post repository (comment id lists live on posts)
            users: User repository (author summaries)
        """
        self.comments = comments
        self.posts = posts
        self.users = users

    # ==========================================================================
    # Helpers
    # ==========================================================================

    async def _get_comment(self, comment_id: Any) -> Comment:
        comment = await self.comments.find_by_id(comment_id)
        if comment is None:
            raise NotFoundError(f"No comment with the id of {comment_id}")
        return comment

    async def _respond(self, comment: Comment) -> CommentResponse:
        authors = await self.users.find_by_ids([comment["author"]])
        return CommentResponse.from_comment(comment, authors)

    # ==========================================================================
    # Threads
    # ==========================================================================

    async def list_top_level(self, post_id: Any) -> list[CommentWithRepliesResponse]:
        """Top-level comments of a post, oldest first, each with its replies.

        Replies are one level deep; every comment and reply carries an
        author summary.
        """
        post_oid = self.comments.object_id(post_id)
        top_level = await self.comments.find_many(
            {"post": post_oid, "parentComment": None}, sort=THREAD_SORT
        )
        if not top_level:
            return []

        replies = await self.comments.find_many(
            {"parentComment": {"$in": [c["_id"] for c in top_level]}},
            sort=THREAD_SORT,
        )
        authors = await self.users.find_by_ids(
            [c["author"] for c in top_level] + [r["author"] for r in replies]
        )

        replies_by_parent: dict[str, list[CommentResponse]] = {}
        for reply in replies:
            replies_by_parent.setdefault(str(reply["parentComment"]), []).append(
                CommentResponse.from_comment(reply, authors)
            )

        thread = []
        for comment in top_level:
            item = CommentWithRepliesResponse.from_comment(comment, authors)
            item.replies = replies_by_parent.get(item.id, [])
            thread.append(item)
        return thread

    async def add_top_level(
        self, post_id: Any, author_id: Any, content: str | None
    ) -> CommentResponse:
        """Comment on a post and append the comment to the post's list.

        Raises:
            NotFoundError: ``No post with the id of <id>``
            ValidationFailedError: Content missing or too long
        """
        post = await self.posts.find_by_id(post_id)
        if post is None:
            raise NotFoundError(f"No post with the id of {post_id}")

        comment = await self.comments.create(
            {
                "content": content,
                "author": self.comments.object_id(author_id),
                "post": post["_id"],
            }
        )
        await self.posts.push(post["_id"], "comments", comment["_id"])

        logger.info(
            "comment_created",
            comment_id=str(comment["_id"]),
            post_id=str(post["_id"]),
        )
        return await self._respond(comment)

    async def add_reply(
        self, parent_comment_id: Any, author_id: Any, content: str | None
    ) -> CommentResponse:
        """Reply to a comment; the reply belongs to the parent's post.

        Raises:
            NotFoundError: ``No comment with the id of <id>``
        """
        parent = await self._get_comment(parent_comment_id)

        reply = await self.comments.create(
            {
                "content": content,
                "author": self.comments.object_id(author_id),
                "post": parent["post"],
                "parentComment": parent["_id"],
            }
        )

        logger.info(
            "comment_reply_created",
            comment_id=str(reply["_id"]),
            parent_comment_id=str(parent["_id"]),
        )
        return await self._respond(reply)

    async def edit(
        self, comment_id: Any, actor: Actor, content: str | None
    ) -> CommentResponse:
        """Replace a comment's content and mark it edited.

        Raises:
            NotFoundError: Comment absent
            ForbiddenError: Actor is neither the author nor an admin
        """
        comment = await self._get_comment(comment_id)
        ensure_can_modify(actor, comment["author"], "update", "comment")

        updated = await self.comments.update_by_id(
            comment["_id"], {"content": content, "isEdited": True}
        )
        if updated is None:
            raise NotFoundError(f"No comment with the id of {comment_id}")
        return await self._respond(updated)

    async def remove(self, comment_id: Any, actor: Actor) -> int:
        """Delete a comment and its direct replies.

        The comment id is also pulled from its post's comment list. Replies
        of replies are not visited.

        Returns:
            Number of comment documents deleted
        """
        comment = await self._get_comment(comment_id)
        ensure_can_modify(actor, comment["author"], "delete", "comment")

        await self.posts.pull(comment["post"], "comments", comment["_id"])
        deleted = await self.comments.delete_many(
            {"$or": [{"_id": comment["_id"]}, {"parentComment": comment["_id"]}]}
        )

        logger.info(
            "comment_removed",
            comment_id=str(comment["_id"]),
            deleted_count=deleted,
        )
        return deleted

    # ==========================================================================
    # Likes
    # ==========================================================================

    async def like(self, comment_id: Any, actor_id: Any) -> list[str]:
        """Add the actor to the comment's likes.

        Raises:
            AlreadyLikedError: Actor already likes the comment
        """
        comment = await self._get_comment(comment_id)
        actor_oid = self.comments.object_id(actor_id)
        if actor_oid in comment.get("likes", []):
            raise AlreadyLikedError("Comment already liked")

        updated = await self.comments.add_to_set(comment["_id"], "likes", actor_oid)
        return [str(like) for like in (updated or comment).get("likes", [])]

    async def unlike(self, comment_id: Any, actor_id: Any) -> list[str]:
        """Remove the actor from the comment's likes.

        Raises:
            NotLikedError: Actor does not like the comment
        """
        comment = await self._get_comment(comment_id)
        actor_oid = self.comments.object_id(actor_id)
        if actor_oid not in comment.get("likes", []):
            raise NotLikedError("Comment has not been liked")

        updated = await self.comments.pull(comment["_id"], "likes", actor_oid)
        return [str(like) for like in (updated or comment).get("likes", [])]
