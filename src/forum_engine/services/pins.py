"""Pin manager: authors may pin a capped number of their own posts.

Membership in ``User.pinned_posts`` is the fact; ``Post.pinned`` is a cached
copy of it. Both are always written in the same transaction, and both rows
are version-checked, so concurrent toggles by one user cannot exceed the cap.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from forum_engine.core.errors import ForbiddenError, LimitExceededError, NotFoundError
from forum_engine.core.settings import settings
from forum_engine.db.unit_of_work import atomic
from forum_engine.models import Post, User
from forum_engine.repositories.post_repo import PostRepository

logger = logging.getLogger(__name__)


def _live_pins(db: Session, user: User, *, exclude: int | None = None) -> list[int]:
    # Drop ids of posts that no longer exist so a stale reference never
    # counts against the cap.
    pinned = [post_id for post_id in user.pinned_posts if post_id != exclude]
    existing = PostRepository(db).existing_ids(pinned)
    return [post_id for post_id in pinned if post_id in existing]


def toggle_pin(db: Session, post_id: int, requester_id: int, *, cap: int | None = None) -> bool:
    """Pin an unpinned post or unpin a pinned one.

    Args:
        db: Database session.
        post_id: Post to toggle.
        requester_id: Caller; must be the post's author.
        cap: Maximum pins per user; defaults to ``settings.max_pinned_posts``.

    Returns:
        The post's pinned state after the toggle.

    Raises:
        NotFoundError: If the post or the requester does not exist.
        ForbiddenError: If the requester is not the post's author.
        LimitExceededError: If pinning would exceed the cap.
    """
    if cap is None:
        cap = settings.max_pinned_posts
    with atomic(db):
        post = PostRepository(db).get_by_id(post_id)
        if post is None:
            raise NotFoundError("Post not found")
        if post.author_id != requester_id:
            raise ForbiddenError("You can only pin your own posts")
        user = db.get(User, requester_id)
        if user is None:
            raise NotFoundError("User not found")

        currently_pinned = post_id in user.pinned_posts
        others = _live_pins(db, user, exclude=post_id)
        if currently_pinned:
            user.pinned_posts = others
            post.pinned = False
        else:
            if len(others) >= cap:
                raise LimitExceededError(
                    f"You can pin at most {cap} post{'s' if cap != 1 else ''}"
                )
            user.pinned_posts = [*others, post_id]
            post.pinned = True
        pinned = post.pinned
    logger.info("User %s %s post %s", requester_id, "pinned" if pinned else "unpinned", post_id)
    return pinned


def release_post(db: Session, post: Post) -> None:
    """Remove a post from its author's pins, whatever its ``pinned`` flag says.

    Part of the post deletion cascade; runs inside the caller's transaction.
    """
    author = db.get(User, post.author_id)
    if author is not None and post.id in author.pinned_posts:
        author.pinned_posts = [pid for pid in author.pinned_posts if pid != post.id]
        logger.info("Released pin on deleted post %s for user %s", post.id, author.id)


def pinned_posts(db: Session, user_id: int) -> list[int]:
    """Return the ids of the posts a user currently pins.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return _live_pins(db, user)
