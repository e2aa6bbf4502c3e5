"""Thread store: comments, replies and the two-level thread structure.

Every mutation runs in one transaction and publishes a thread event on the
bus; the activity counters and the notification aggregator react inside the
same transaction.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from forum_engine.core.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationFailed,
)
from forum_engine.core.settings import settings
from forum_engine.db.time import utcnow
from forum_engine.db.unit_of_work import atomic
from forum_engine.models import Comment, CommentRead, Post, User
from forum_engine.repositories.comment_repo import CommentRepository
from forum_engine.repositories.post_repo import PostRepository
from forum_engine.services.events import (
    CommentAdded,
    CommentRemoved,
    EventBus,
    ReplyAdded,
    get_event_bus,
)

logger = logging.getLogger(__name__)


@dataclass
class ThreadNode:
    """A top-level comment together with all of its replies."""

    comment: Comment
    replies: list[Comment] = field(default_factory=list)


@dataclass
class ThreadPage:
    """One page of a post's thread; pagination counts top-level comments only."""

    nodes: list[ThreadNode]
    current_page: int
    total_pages: int
    total_top_level: int


def validate_page(page: int, limit: int) -> tuple[int, int]:
    """Check page parameters and return ``(offset, capped_limit)``.

    Raises:
        ValidationFailed: If ``page`` or ``limit`` is not positive.
    """
    if limit <= 0:
        raise ValidationFailed("Invalid limit value. Must be a positive number.")
    if page <= 0:
        raise ValidationFailed("Invalid page value. Must be a positive number.")
    limit = min(limit, settings.max_page_size)
    return (page - 1) * limit, limit


def _require_text(text: str | None, what: str) -> str:
    if text is None or not text.strip():
        raise ValidationFailed(f"{what} text is required")
    return text


def _load_post(db: Session, post_id: int) -> Post:
    post = PostRepository(db).get_by_id(post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


def _require_user(db: Session, user_id: int) -> None:
    if db.get(User, user_id) is None:
        raise NotFoundError("User not found")


def add_comment(
    db: Session,
    post_id: int,
    user_id: int,
    text: str,
    media_url: str | None = None,
    *,
    bus: EventBus | None = None,
) -> Comment:
    """Attach a top-level comment to a post.

    Args:
        db: Database session.
        post_id: Post being commented on.
        user_id: Author of the comment.
        text: Comment body.
        media_url: Optional already-stored media reference.
        bus: Event bus; defaults to the shared one.

    Returns:
        The new comment.

    Raises:
        NotFoundError: If the post or the user does not exist.
        ValidationFailed: If ``text`` is empty.
    """
    _require_text(text, "Comment")
    bus = bus or get_event_bus()
    with atomic(db):
        post = _load_post(db, post_id)
        _require_user(db, user_id)
        comment = Comment(
            post_id=post.id,
            author_id=user_id,
            text=text,
            media_url=media_url,
            parent_id=None,
            created_at=utcnow(),
        )
        db.add(comment)
        db.flush()
        bus.publish(
            db,
            CommentAdded(
                post_id=post.id,
                comment_id=comment.id,
                author_id=user_id,
                post_author_id=post.author_id,
                text=text,
                occurred_at=comment.created_at,
            ),
        )
    logger.info("User %s commented on post %s (comment %s)", user_id, post_id, comment.id)
    return comment


def add_reply(
    db: Session,
    post_id: int,
    parent_comment_id: int,
    user_id: int,
    text: str,
    media_url: str | None = None,
    *,
    bus: EventBus | None = None,
) -> Comment:
    """Reply to a top-level comment.

    Raises:
        NotFoundError: If the post, the parent comment or the user is missing.
        InvalidStateError: If the parent is itself a reply or belongs to
            another post.
        ValidationFailed: If ``text`` is empty.
    """
    _require_text(text, "Reply")
    bus = bus or get_event_bus()
    with atomic(db):
        post = _load_post(db, post_id)
        parent = CommentRepository(db).get_by_id(parent_comment_id)
        if parent is None:
            raise NotFoundError("Parent comment not found")
        if parent.is_reply:
            raise InvalidStateError("Replies cannot be nested below a reply")
        if parent.post_id != post.id:
            raise InvalidStateError("Parent comment belongs to a different post")
        _require_user(db, user_id)

        reply = Comment(
            post_id=post.id,
            author_id=user_id,
            text=text,
            media_url=media_url,
            parent_id=parent.id,
            created_at=utcnow(),
        )
        db.add(reply)
        db.flush()
        bus.publish(
            db,
            ReplyAdded(
                post_id=post.id,
                parent_comment_id=parent.id,
                parent_author_id=parent.author_id,
                reply_id=reply.id,
                author_id=user_id,
                post_author_id=post.author_id,
                text=text,
                occurred_at=reply.created_at,
            ),
        )
    logger.info("User %s replied to comment %s (reply %s)", user_id, parent_comment_id, reply.id)
    return reply


def _purge(db: Session, comment_ids: list[int]) -> None:
    if not comment_ids:
        return
    db.execute(delete(CommentRead).where(CommentRead.comment_id.in_(comment_ids)))
    # Replies first so no row ever references a deleted parent.
    db.execute(delete(Comment).where(Comment.id.in_(comment_ids), Comment.parent_id.is_not(None)))
    db.execute(delete(Comment).where(Comment.id.in_(comment_ids)))


def delete_comment(
    db: Session,
    comment_id: int,
    requester_id: int,
    *,
    post_id: int | None = None,
    bus: EventBus | None = None,
) -> None:
    """Delete a comment or a reply.

    Deleting a top-level comment takes all of its replies with it.

    Args:
        db: Database session.
        comment_id: Comment or reply to delete.
        requester_id: Caller; must be the comment's author.
        post_id: When given, the comment must belong to this post.
        bus: Event bus; defaults to the shared one.

    Raises:
        NotFoundError: If the comment does not exist (on ``post_id``).
        ForbiddenError: If the requester is not the author.
    """
    bus = bus or get_event_bus()
    with atomic(db):
        comments = CommentRepository(db)
        comment = comments.get_by_id(comment_id)
        if comment is None or (post_id is not None and comment.post_id != post_id):
            raise NotFoundError("Comment not found")
        if comment.author_id != requester_id:
            raise ForbiddenError("You are not authorized to delete this comment.")

        reply_ids = [] if comment.is_reply else comments.reply_ids(comment.id)
        event = CommentRemoved(
            post_id=comment.post_id,
            comment_id=comment.id,
            parent_comment_id=comment.parent_id,
            reply_count=len(reply_ids),
            removed_ids=(comment.id, *reply_ids),
        )
        _purge(db, reply_ids)
        db.execute(delete(CommentRead).where(CommentRead.comment_id == comment.id))
        # ORM delete keeps the version check on the comment row itself.
        db.delete(comment)
        db.flush()
        bus.publish(db, event)
    logger.info(
        "User %s deleted comment %s with %d repl(y/ies)",
        requester_id,
        comment_id,
        event.reply_count,
    )


def purge_post_comments(db: Session, post_id: int) -> list[int]:
    """Remove every comment, reply and read receipt on a post.

    Part of the post deletion cascade; must run inside the caller's
    transaction. No events are published since the post goes away too.

    Returns:
        Identifiers of the removed comments and replies.
    """
    ids = CommentRepository(db).ids_for_post(post_id)
    _purge(db, ids)
    return ids


def get_thread(db: Session, post_id: int, page: int = 1, limit: int | None = None) -> ThreadPage:
    """Return one page of a post's thread.

    Top-level comments are newest first and paginated; each one carries all
    of its replies in conversation order.

    Raises:
        NotFoundError: If the post does not exist.
        ValidationFailed: If the page parameters are not positive.
    """
    if limit is None:
        limit = settings.comments_page_size
    offset, limit = validate_page(page, limit)
    if not PostRepository(db).exists(post_id):
        raise NotFoundError("Post not found")

    comments = CommentRepository(db)
    top_level = comments.list_top_level(post_id, offset=offset, limit=limit)
    nodes = {comment.id: ThreadNode(comment) for comment in top_level}
    for reply in comments.list_replies(list(nodes)):
        nodes[reply.parent_id].replies.append(reply)

    total = comments.count_top_level(post_id)
    return ThreadPage(
        nodes=list(nodes.values()),
        current_page=page,
        total_pages=math.ceil(total / limit),
        total_top_level=total,
    )


def list_replies(db: Session, comment_id: int) -> list[Comment]:
    """Return the replies to one comment, oldest first.

    Raises:
        NotFoundError: If the comment does not exist.
    """
    comments = CommentRepository(db)
    if comments.get_by_id(comment_id) is None:
        raise NotFoundError("Comment not found")
    return comments.list_replies([comment_id])


def mark_reply_read(db: Session, reply_id: int, user_id: int) -> None:
    """Record that ``user_id`` has seen a reply; repeating it is a no-op.

    Raises:
        NotFoundError: If the reply or the user does not exist.
        InvalidStateError: If ``reply_id`` names a top-level comment.
    """
    try:
        with atomic(db):
            reply = CommentRepository(db).get_by_id(reply_id)
            if reply is None:
                raise NotFoundError("Reply not found")
            if not reply.is_reply:
                raise InvalidStateError("Only replies carry read receipts")
            _require_user(db, user_id)
            if db.get(CommentRead, (reply_id, user_id)) is None:
                db.add(CommentRead(comment_id=reply_id, user_id=user_id, read_at=utcnow()))
    except ConflictError:
        # A concurrent request stored the same receipt first.
        if db.get(CommentRead, (reply_id, user_id)) is None:
            raise
        logger.debug("Reply %s was already marked read by user %s", reply_id, user_id)


def read_by(db: Session, reply_id: int) -> set[int]:
    """Return the ids of the users who have seen a reply."""
    result = db.execute(select(CommentRead.user_id).where(CommentRead.comment_id == reply_id))
    return set(result.scalars())
