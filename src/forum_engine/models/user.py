"""SQLAlchemy model for forum users."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from forum_engine.db.session import Base
from forum_engine.db.time import UTCDateTime, utcnow


class User(Base):
    """Registered forum member.

    Credentials are issued and verified outside the engine; only the stored
    hash is kept here. ``unread_notifications`` caches the number of unread
    notification records and ``pinned_posts`` holds the ids of the posts this
    user currently pins.
    """

    __tablename__ = "forum_user"
    __table_args__ = (
        CheckConstraint("unread_notifications >= 0", name="ck_forum_user_unread_non_negative"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    profile_picture: Mapped[str | None] = mapped_column(Text, nullable=True)

    unread_notifications: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    # Last time the user acknowledged their notifications.
    notifications_read_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    pinned_posts: Mapped[list[int]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    # Optimistic concurrency: every UPDATE is a compare-and-set on this column.
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}
