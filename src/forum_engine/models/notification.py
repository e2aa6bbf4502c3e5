"""Models for per-recipient activity notifications."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_engine.db.session import Base
from forum_engine.db.time import UTCDateTime, utcnow

NOTIFICATION_KIND_COMMENT = "comment"
NOTIFICATION_KIND_REPLY = "reply"


class Notification(Base):
    """A record of new activity addressed to one recipient.

    ``kind = "comment"``: someone commented on the recipient's post.
    ``kind = "reply"``: someone replied to the recipient's comment, or inside a
    thread on the recipient's post; ``parent_comment_id`` names the thread.

    Post and comment ids are plain references; the thread cascade prunes
    records whose subject is deleted.
    """

    __tablename__ = "notification"
    __table_args__ = (
        CheckConstraint("kind IN ('comment', 'reply')", name="ck_notification_kind"),
        Index("ix_notification_recipient_read", "recipient_id", "read"),
        Index("ix_notification_post_id", "post_id"),
        Index("ix_notification_comment_id", "comment_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient_id: Mapped[int] = mapped_column(Integer, ForeignKey("forum_user.id"), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)

    post_id: Mapped[int] = mapped_column(Integer, nullable=False)
    comment_id: Mapped[int] = mapped_column(Integer, nullable=False)
    parent_comment_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    source_user_id: Mapped[int] = mapped_column(Integer, ForeignKey("forum_user.id"), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)

    read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
