"""Notification aggregator.

Turns thread events into per-recipient notification records and keeps
``User.unread_notifications`` in step with them.

The unread records are the source of truth. The counter is a cache that is
only changed in the transaction that changes the records it summarizes:
an atomic ``+1`` when a record is inserted, ``-k`` when ``k`` unread records
are pruned, and ``0`` on reset. ``recount_unread`` rebuilds it from the
records if it ever drifts.
"""

from __future__ import annotations

import logging
from collections import Counter

from sqlalchemy import ColumnElement, delete, func, or_, select, update
from sqlalchemy.orm import Session

from forum_engine.core.errors import InvariantViolation, NotFoundError, ValidationFailed
from forum_engine.core.settings import settings
from forum_engine.db.time import utcnow
from forum_engine.db.unit_of_work import atomic
from forum_engine.models import (
    NOTIFICATION_KIND_COMMENT,
    NOTIFICATION_KIND_REPLY,
    Comment,
    CommentRead,
    Notification,
    User,
)
from forum_engine.services.events import CommentAdded, CommentRemoved, EventBus, ReplyAdded

logger = logging.getLogger(__name__)


def _load_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _adjust_unread(db: Session, user_id: int, delta: int) -> None:
    # Single UPDATE so concurrent writers never lose an increment; bumping the
    # version makes any in-flight read-modify-write of the same user conflict.
    db.execute(
        update(User)
        .where(User.id == user_id)
        .values(
            unread_notifications=User.unread_notifications + delta,
            version=User.version + 1,
        )
    )


def _notify(
    db: Session,
    *,
    recipient_id: int,
    kind: str,
    post_id: int,
    comment_id: int,
    source_user_id: int,
    text: str,
    parent_comment_id: int | None = None,
) -> Notification:
    record = Notification(
        recipient_id=recipient_id,
        kind=kind,
        post_id=post_id,
        comment_id=comment_id,
        parent_comment_id=parent_comment_id,
        source_user_id=source_user_id,
        text=text,
        read=False,
        created_at=utcnow(),
    )
    db.add(record)
    _adjust_unread(db, recipient_id, 1)
    logger.debug("Queued %s notification for user %s on post %s", kind, recipient_id, post_id)
    return record


def on_comment_added(db: Session, event: CommentAdded) -> None:
    """Tell the post author about a new top-level comment by someone else."""
    if event.post_author_id == event.author_id:
        return
    _notify(
        db,
        recipient_id=event.post_author_id,
        kind=NOTIFICATION_KIND_COMMENT,
        post_id=event.post_id,
        comment_id=event.comment_id,
        source_user_id=event.author_id,
        text=event.text,
    )


def reply_recipients(event: ReplyAdded) -> list[int]:
    """Return who hears about a reply: the parent's author, then the post's author.

    The replier never notifies themselves and nobody is notified twice.
    """
    recipients: list[int] = []
    if event.parent_author_id != event.author_id:
        recipients.append(event.parent_author_id)
    if event.post_author_id not in (event.author_id, event.parent_author_id):
        recipients.append(event.post_author_id)
    return recipients


def on_reply_added(db: Session, event: ReplyAdded) -> None:
    """Fan a reply notification out to the parent and post authors."""
    for recipient_id in reply_recipients(event):
        _notify(
            db,
            recipient_id=recipient_id,
            kind=NOTIFICATION_KIND_REPLY,
            post_id=event.post_id,
            comment_id=event.reply_id,
            parent_comment_id=event.parent_comment_id,
            source_user_id=event.author_id,
            text=event.text,
        )


def _prune(db: Session, condition: ColumnElement[bool]) -> int:
    unread = Counter(
        db.execute(
            select(Notification.recipient_id).where(condition, Notification.read.is_(False))
        ).scalars()
    )
    result = db.execute(delete(Notification).where(condition))
    for recipient_id, count in unread.items():
        _adjust_unread(db, recipient_id, -count)
    return result.rowcount or 0


def on_comment_removed(db: Session, event: CommentRemoved) -> None:
    """Drop notifications about comments and replies that no longer exist."""
    ids = list(event.removed_ids)
    removed = _prune(
        db,
        or_(Notification.comment_id.in_(ids), Notification.parent_comment_id.in_(ids)),
    )
    if removed:
        logger.info("Pruned %d notification(s) for removed comment %s", removed, event.comment_id)


def forget_post(db: Session, post_id: int) -> int:
    """Drop every notification about ``post_id``; part of the post deletion cascade."""
    return _prune(db, Notification.post_id == post_id)


def list_notifications(
    db: Session,
    user_id: int,
    limit: int | None = None,
    *,
    include_read: bool = False,
) -> list[Notification]:
    """Return a user's notifications, most recent first.

    Read-only: listing never changes read state.

    Args:
        db: Database session.
        user_id: Recipient whose notifications are listed.
        limit: Maximum number of records; defaults to the configured page size.
        include_read: Also return records already acknowledged by a reset.

    Returns:
        Notification records ordered newest first.

    Raises:
        NotFoundError: If the user does not exist.
        ValidationFailed: If ``limit`` is not positive.
    """
    if limit is None:
        limit = settings.notifications_page_size
    if limit <= 0:
        raise ValidationFailed("Invalid limit value. Must be a positive number.")
    limit = min(limit, settings.max_page_size)

    _load_user(db, user_id)
    stmt = select(Notification).where(Notification.recipient_id == user_id)
    if not include_read:
        stmt = stmt.where(Notification.read.is_(False))
    stmt = stmt.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit)
    return list(db.execute(stmt).scalars())


def _mark_thread_replies_read(db: Session, user_id: int) -> int:
    own_threads = select(Comment.id).where(
        Comment.author_id == user_id,
        Comment.parent_id.is_(None),
    )
    already_read = select(CommentRead.comment_id).where(CommentRead.user_id == user_id)
    reply_ids = db.execute(
        select(Comment.id).where(
            Comment.parent_id.in_(own_threads),
            Comment.id.not_in(already_read),
        )
    ).scalars().all()
    now = utcnow()
    db.add_all(CommentRead(comment_id=reply_id, user_id=user_id, read_at=now) for reply_id in reply_ids)
    return len(reply_ids)


def reset_notifications(db: Session, user_id: int) -> User:
    """Acknowledge everything: zero the counter and mark all records read.

    Replies to the user's comments are also marked as read by the user.
    Calling this twice with no new activity leaves the same zero state.

    Raises:
        NotFoundError: If the user does not exist.
    """
    with atomic(db):
        user = _load_user(db, user_id)
        db.execute(
            update(Notification)
            .where(Notification.recipient_id == user_id, Notification.read.is_(False))
            .values(read=True)
        )
        marked = _mark_thread_replies_read(db, user_id)
        user.unread_notifications = 0
        # Always written so the reset is a compare-and-set on the user row.
        user.notifications_read_at = utcnow()
    logger.info("Reset notifications for user %s (%d replies marked read)", user_id, marked)
    return user


def _count_unread(db: Session, user_id: int) -> int:
    return db.execute(
        select(func.count(Notification.id)).where(
            Notification.recipient_id == user_id,
            Notification.read.is_(False),
        )
    ).scalar_one()


def audit_unread(db: Session, user_id: int) -> int:
    """Verify that ``unread_notifications`` matches the unread records.

    Raises:
        NotFoundError: If the user does not exist.
        InvariantViolation: If the counter disagrees with the records.
    """
    user = _load_user(db, user_id)
    actual = _count_unread(db, user_id)
    if actual != user.unread_notifications:
        logger.error(
            "unread_notifications for user %s drifted: stored %s, actual %s",
            user_id,
            user.unread_notifications,
            actual,
        )
        raise InvariantViolation(f"unread counter out of sync for user {user_id}")
    return actual


def recount_unread(db: Session, user_id: int) -> int:
    """Rebuild ``unread_notifications`` from the unread records.

    Returns:
        The repaired counter value.
    """
    with atomic(db):
        db.flush()
        user = _load_user(db, user_id)
        actual = _count_unread(db, user_id)
        if actual != user.unread_notifications:
            logger.warning(
                "Repairing unread_notifications for user %s: stored %s, actual %s",
                user_id,
                user.unread_notifications,
                actual,
            )
            user.unread_notifications = actual
    return actual


def register(bus: EventBus) -> None:
    """Subscribe the aggregator to thread events."""
    bus.subscribe(CommentAdded, on_comment_added)
    bus.subscribe(ReplyAdded, on_reply_added)
    bus.subscribe(CommentRemoved, on_comment_removed)
