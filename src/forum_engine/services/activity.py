"""Activity counters: ``total_comments`` and ``last_activity`` on posts."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from forum_engine.core.errors import InvariantViolation, NotFoundError
from forum_engine.db.unit_of_work import atomic
from forum_engine.models.post import Post
from forum_engine.repositories.comment_repo import CommentRepository
from forum_engine.services.events import CommentAdded, CommentRemoved, EventBus, ReplyAdded

logger = logging.getLogger(__name__)


def _load_post(db: Session, post_id: int) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


def touch(post: Post, when: datetime) -> None:
    """Move ``last_activity`` forward to ``when``; never backwards."""
    if post.last_activity is None or when > post.last_activity:
        post.last_activity = when


def on_comment_added(db: Session, event: CommentAdded | ReplyAdded) -> None:
    """Count a new comment or reply and mark the post as active."""
    post = _load_post(db, event.post_id)
    post.total_comments += 1
    touch(post, event.occurred_at)


def on_comment_removed(db: Session, event: CommentRemoved) -> None:
    """Subtract a removed comment and the replies that went with it."""
    post = _load_post(db, event.post_id)
    remaining = post.total_comments - (1 + event.reply_count)
    if remaining < 0:
        logger.error(
            "Post %s total_comments would drop below zero (%s - %s)",
            post.id,
            post.total_comments,
            1 + event.reply_count,
        )
        raise InvariantViolation(f"total_comments underflow on post {post.id}")
    post.total_comments = remaining


def audit_post_activity(db: Session, post_id: int) -> int:
    """Verify that ``total_comments`` matches the stored comments and replies.

    Returns:
        The actual number of comments and replies on the post.

    Raises:
        NotFoundError: If the post does not exist.
        InvariantViolation: If the counter disagrees with the rows.
    """
    post = _load_post(db, post_id)
    actual = CommentRepository(db).count_for_post(post_id)
    if actual != post.total_comments:
        logger.error(
            "total_comments on post %s drifted: stored %s, actual %s",
            post_id,
            post.total_comments,
            actual,
        )
        raise InvariantViolation(f"total_comments out of sync on post {post_id}")
    return actual


def recount_post_activity(db: Session, post_id: int) -> Post:
    """Recompute ``total_comments`` from the stored comment rows.

    This is the repair path for drift; ``last_activity`` is raised to the
    newest comment's creation time when it lags behind.

    Args:
        db: Database session.
        post_id: Post to repair.

    Returns:
        The repaired post.

    Raises:
        NotFoundError: If the post does not exist.
    """
    with atomic(db):
        db.flush()
        post = _load_post(db, post_id)
        comments = CommentRepository(db)
        actual = comments.count_for_post(post_id)
        if actual != post.total_comments:
            logger.warning(
                "Repairing total_comments on post %s: stored %s, actual %s",
                post_id,
                post.total_comments,
                actual,
            )
            post.total_comments = actual
        latest = comments.latest_created_at(post_id)
        if latest is not None:
            touch(post, latest)
    return post


def register(bus: EventBus) -> None:
    """Subscribe the activity counters to thread events."""
    bus.subscribe(CommentAdded, on_comment_added)
    bus.subscribe(ReplyAdded, on_comment_added)
    bus.subscribe(CommentRemoved, on_comment_removed)
