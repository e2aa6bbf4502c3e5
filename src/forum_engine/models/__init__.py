"""SQLAlchemy models for the forum engine."""

from .comment import Comment, CommentRead
from .notification import (
    NOTIFICATION_KIND_COMMENT,
    NOTIFICATION_KIND_REPLY,
    Notification,
)
from .post import Post
from .user import User
from .vote import PostVote, VoteDirection

__all__ = [
    "Comment", "CommentRead",
    "Notification", "NOTIFICATION_KIND_COMMENT", "NOTIFICATION_KIND_REPLY",
    "Post",
    "PostVote", "VoteDirection",
    "User",
]
