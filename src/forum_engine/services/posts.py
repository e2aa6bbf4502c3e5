"""Service-level helpers for the post lifecycle and post listings."""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from sqlalchemy import delete
from sqlalchemy.orm import Session

from forum_engine.core.errors import ForbiddenError, NotFoundError, ValidationFailed
from forum_engine.core.settings import settings
from forum_engine.db.time import utcnow
from forum_engine.db.unit_of_work import atomic
from forum_engine.models import Post, PostVote, User
from forum_engine.repositories.post_repo import PostRepository
from forum_engine.services import notifications, pins, threads
from forum_engine.services.threads import ThreadPage

logger = logging.getLogger(__name__)


@dataclass
class PostPage:
    """One page of the front-page listing."""

    posts: list[Post]
    total_pages: int
    current_page: int
    total_posts: int


@dataclass
class PostDetail:
    """A post with one page of its thread."""

    post: Post
    thread: ThreadPage

    @property
    def total_comments(self) -> int:
        return self.post.total_comments


def _get_post_or_404(db: Session, post_id: int) -> Post:
    post = PostRepository(db).get_by_id(post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


def _get_owned_post(db: Session, post_id: int, requester_id: int, action: str) -> Post:
    post = _get_post_or_404(db, post_id)
    if post.author_id != requester_id:
        raise ForbiddenError(f"You are not authorized to {action} this post.")
    return post


def create_post(
    db: Session,
    *,
    author_id: int,
    title: str,
    content: str,
    media_urls: list[str] | None = None,
) -> Post:
    """Create a post.

    Args:
        db: Database session.
        author_id: Author of the post.
        title: Post title.
        content: Post body.
        media_urls: Already-stored media references.

    Returns:
        The persisted post.

    Raises:
        ValidationFailed: If the title or content is empty.
        NotFoundError: If the author does not exist.
    """
    if not title or not title.strip() or not content or not content.strip():
        raise ValidationFailed("Title and content are required.")
    with atomic(db):
        if db.get(User, author_id) is None:
            raise NotFoundError("User not found")
        now = utcnow()
        post = Post(
            author_id=author_id,
            title=title,
            content=content,
            media_urls=list(media_urls or []),
            upvotes=0,
            downvotes=0,
            total_comments=0,
            pinned=False,
            created_at=now,
            updated_at=now,
            last_activity=now,
        )
        db.add(post)
    logger.info("User %s created post %s", author_id, post.id)
    return post


def update_post(
    db: Session,
    post_id: int,
    requester_id: int,
    *,
    title: str | None = None,
    content: str | None = None,
    media_urls: list[str] | None = None,
) -> Post:
    """Edit a post; fields left as ``None`` keep their value.

    Raises:
        ValidationFailed: If a new title or content is blank.
        NotFoundError: If the post does not exist.
        ForbiddenError: If the requester is not the author.
    """
    for value in (title, content):
        if value is not None and not value.strip():
            raise ValidationFailed("Title and content cannot be blank.")
    with atomic(db):
        post = _get_owned_post(db, post_id, requester_id, "update")
        if title is not None:
            post.title = title
        if content is not None:
            post.content = content
        if media_urls is not None:
            post.media_urls = list(media_urls)
        post.updated_at = utcnow()
    return post


def delete_post(db: Session, post_id: int, requester_id: int) -> None:
    """Delete a post and everything hanging off it.

    The cascade removes comments, replies and their read receipts, the
    post's votes and the notifications about it, and drops the post from its
    author's pins, all in one transaction.

    Raises:
        NotFoundError: If the post does not exist.
        ForbiddenError: If the requester is not the author.
    """
    with atomic(db):
        post = _get_owned_post(db, post_id, requester_id, "delete")
        removed = threads.purge_post_comments(db, post.id)
        db.execute(delete(PostVote).where(PostVote.post_id == post.id))
        notifications.forget_post(db, post.id)
        pins.release_post(db, post)
        db.delete(post)
    logger.info(
        "User %s deleted post %s (%d comment(s) and replies removed)",
        requester_id,
        post_id,
        len(removed),
    )


def list_posts(db: Session, page: int = 1, limit: int | None = None) -> PostPage:
    """Return one page of posts, pinned first, then by latest activity.

    Raises:
        ValidationFailed: If the page parameters are not positive.
    """
    if limit is None:
        limit = settings.posts_page_size
    offset, limit = threads.validate_page(page, limit)
    repo = PostRepository(db)
    total = repo.count()
    return PostPage(
        posts=repo.list_page(offset=offset, limit=limit),
        total_pages=math.ceil(total / limit),
        current_page=page,
        total_posts=total,
    )


def list_user_posts(db: Session, user_id: int, requester_id: int) -> list[Post]:
    """Return a user's own posts, newest first.

    Raises:
        ForbiddenError: If the requester asks for someone else's posts.
    """
    if user_id != requester_id:
        raise ForbiddenError("You are not authorized to get posts of this user.")
    return PostRepository(db).list_by_author(user_id)


def get_post(db: Session, post_id: int, page: int = 1, limit: int | None = None) -> PostDetail:
    """Return a post with one page of its comment thread.

    Raises:
        NotFoundError: If the post does not exist.
        ValidationFailed: If the page parameters are not positive.
    """
    post = _get_post_or_404(db, post_id)
    return PostDetail(post=post, thread=threads.get_thread(db, post_id, page, limit))
