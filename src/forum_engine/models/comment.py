"""Models for comments, replies and reply read receipts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from forum_engine.db.session import Base
from forum_engine.db.time import UTCDateTime, utcnow
from forum_engine.models.user import User


class Comment(Base):
    """A top-level comment on a post or a reply to one.

    Top-level comments have ``parent_id = NULL``. Replies point at a
    top-level comment of the same post and never carry replies themselves.
    """

    __tablename__ = "comment"
    __table_args__ = (
        Index("ix_comment_post_parent", "post_id", "parent_id"),
        Index("ix_comment_parent_id", "parent_id"),
        Index("ix_comment_author_id", "author_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(Integer, ForeignKey("post.id"), nullable=False)
    author_id: Mapped[int] = mapped_column(Integer, ForeignKey("forum_user.id"), nullable=False)
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("comment.id"),
        nullable=True,
    )

    text: Mapped[str] = mapped_column(Text, nullable=False)
    media_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    author: Mapped[User] = relationship(lazy="joined")

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_reply(self) -> bool:
        """Return True when this comment answers another comment."""
        return self.parent_id is not None


class CommentRead(Base):
    """Read receipt: ``user_id`` has seen the reply ``comment_id``."""

    __tablename__ = "comment_read"

    comment_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("comment.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum_user.id"),
        primary_key=True,
    )
    read_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
