"""Models capturing voting interactions on posts."""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, SmallInteger
from sqlalchemy.orm import Mapped, mapped_column

from forum_engine.db.session import Base
from forum_engine.db.time import UTCDateTime, utcnow


class VoteDirection(IntEnum):
    """Direction of a vote as stored in ``post_vote.direction``."""

    UP = 1
    DOWN = -1


class PostVote(Base):
    """Per-user vote on a post.

    The rows with ``direction = 1`` form the post's upvoter set and the rows
    with ``direction = -1`` its downvoter set.
    """

    __tablename__ = "post_vote"
    __table_args__ = (
        CheckConstraint("direction IN (1, -1)", name="ck_post_vote_direction"),
        Index("ix_post_vote_post_id", "post_id"),
    )

    post_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("post.id", ondelete="CASCADE"),
        primary_key=True,
    )

    voter_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum_user.id"),
        primary_key=True,
    )

    # Composite primary key prevents a user from holding both an up and a down vote.

    # 1 = upvote, -1 = downvote.
    direction: Mapped[int] = mapped_column(SmallInteger, nullable=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, default=utcnow)
