"""Data access helpers for comments and replies."""
from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from forum_engine.models.comment import Comment

__all__ = ["CommentRepository"]


class CommentRepository:
    """Queries over the two-level comment tree."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, comment_id: int) -> Comment | None:
        """Return a comment or reply by identifier."""
        return self.session.get(Comment, comment_id)

    def count_top_level(self, post_id: int) -> int:
        """Return the number of top-level comments on a post."""
        return self.session.execute(
            select(func.count(Comment.id)).where(
                Comment.post_id == post_id,
                Comment.parent_id.is_(None),
            )
        ).scalar_one()

    def count_for_post(self, post_id: int) -> int:
        """Return the number of comments and replies on a post."""
        return self.session.execute(
            select(func.count(Comment.id)).where(Comment.post_id == post_id)
        ).scalar_one()

    def latest_created_at(self, post_id: int) -> datetime | None:
        """Return the creation time of the newest comment on a post, if any."""
        return self.session.execute(
            select(func.max(Comment.created_at)).where(Comment.post_id == post_id)
        ).scalar_one()

    def list_top_level(self, post_id: int, *, offset: int, limit: int) -> list[Comment]:
        """Return one page of top-level comments, newest first."""
        result = self.session.execute(
            select(Comment)
            .where(Comment.post_id == post_id, Comment.parent_id.is_(None))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars())

    def list_replies(self, parent_ids: list[int]) -> list[Comment]:
        """Return every reply under ``parent_ids`` in conversation order."""
        if not parent_ids:
            return []
        result = self.session.execute(
            select(Comment)
            .where(Comment.parent_id.in_(parent_ids))
            .order_by(Comment.created_at, Comment.id)
        )
        return list(result.scalars())

    def reply_ids(self, parent_id: int) -> list[int]:
        """Return the identifiers of the replies under one comment."""
        result = self.session.execute(
            select(Comment.id).where(Comment.parent_id == parent_id).order_by(Comment.id)
        )
        return list(result.scalars())

    def ids_for_post(self, post_id: int) -> list[int]:
        """Return the identifiers of every comment and reply on a post."""
        result = self.session.execute(select(Comment.id).where(Comment.post_id == post_id))
        return list(result.scalars())
