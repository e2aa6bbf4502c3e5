"""SQLAlchemy models for posts and related attributes."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, CheckConstraint, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from forum_engine.db.session import Base
from forum_engine.db.time import UTCDateTime, utcnow
from forum_engine.models.user import User


class Post(Base):
    """Primary content entity produced by users.

    ``upvotes``/``downvotes`` mirror the ``post_vote`` rows, ``total_comments``
    mirrors the comment rows and ``pinned`` mirrors membership in the author's
    ``pinned_posts``. The services keep each copy in step inside one
    transaction.
    """

    __tablename__ = "post"
    __table_args__ = (
        CheckConstraint("upvotes >= 0", name="ck_post_upvotes_non_negative"),
        CheckConstraint("downvotes >= 0", name="ck_post_downvotes_non_negative"),
        CheckConstraint("total_comments >= 0", name="ck_post_total_comments_non_negative"),
        Index("ix_post_listing", "pinned", "last_activity"),
        Index("ix_post_author_id", "author_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("forum_user.id"), nullable=False)

    title: Mapped[str] = mapped_column(String(300), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Already-persisted media references (image and video URLs).
    media_urls: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    upvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_comments: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
    # Never moves backwards; bumped by new comments and replies.
    last_activity: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    author: Mapped[User] = relationship(lazy="joined")

    __mapper_args__ = {"version_id_col": version}
