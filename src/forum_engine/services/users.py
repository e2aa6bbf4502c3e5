"""User registry used by the forum services."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from forum_engine.core.errors import ConflictError, NotFoundError, ValidationFailed
from forum_engine.db.time import utcnow
from forum_engine.db.unit_of_work import atomic
from forum_engine.models import User

logger = logging.getLogger(__name__)


def register_user(
    db: Session,
    *,
    username: str,
    password_hash: str,
    profile_picture: str | None = None,
) -> User:
    """Store a new user.

    Password hashing happens before this call; only the hash is stored.

    Raises:
        ValidationFailed: If the username or hash is empty.
        ConflictError: If the username is taken.
    """
    if not username or not username.strip() or not password_hash:
        raise ValidationFailed("Username and password are required")
    with atomic(db):
        taken = db.execute(select(User.id).where(User.username == username)).first()
        if taken is not None:
            raise ConflictError("Username already exists")
        user = User(
            username=username,
            password_hash=password_hash,
            profile_picture=profile_picture,
            unread_notifications=0,
            pinned_posts=[],
            created_at=utcnow(),
        )
        db.add(user)
    logger.info("Registered user %s (%s)", user.id, username)
    return user


def get_user(db: Session, user_id: int) -> User:
    """Return a user by identifier.

    Raises:
        NotFoundError: If the user does not exist.
    """
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user
