"""Data access helpers for working with posts."""
from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from forum_engine.models.post import Post

__all__ = ["PostRepository"]


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, post_id: int) -> Post | None:
        """Return a post by identifier."""
        return self.session.get(Post, post_id)

    def exists(self, post_id: int) -> bool:
        """Return True if a post with this identifier is stored."""
        result = self.session.execute(select(Post.id).where(Post.id == post_id))
        return result.first() is not None

    def count(self) -> int:
        """Return the total number of posts."""
        return self.session.execute(select(func.count(Post.id))).scalar_one()

    def list_page(self, *, offset: int, limit: int) -> list[Post]:
        """Return one page of the front-page listing.

        Pinned posts come first, then the most recently active ones.
        """
        result = self.session.execute(
            select(Post)
            .order_by(Post.pinned.desc(), Post.last_activity.desc(), Post.id.desc())
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars())

    def list_by_author(self, author_id: int) -> list[Post]:
        """Return every post written by ``author_id``, newest first."""
        result = self.session.execute(
            select(Post)
            .where(Post.author_id == author_id)
            .order_by(Post.created_at.desc(), Post.id.desc())
        )
        return list(result.scalars())

    def existing_ids(self, post_ids: list[int]) -> set[int]:
        """Return the subset of ``post_ids`` that still exist."""
        if not post_ids:
            return set()
        result = self.session.execute(select(Post.id).where(Post.id.in_(post_ids)))
        return set(result.scalars())
