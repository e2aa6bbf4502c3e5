"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentResponse, ThreadCommentResponse
from .common import AuthorSummary
from .notification import (
    CommentNotification,
    NotificationListResponse,
    NotificationRecord,
    ReplyNotification,
)
from .post import (
    PinResponse,
    PostCreate,
    PostDetailResponse,
    PostPageResponse,
    PostResponse,
    PostUpdate,
)
from .user import UserResponse
from .vote import MyVoteResponse, VoteTallyResponse

__all__ = [
    "AuthorSummary",
    "CommentCreate", "CommentResponse", "ThreadCommentResponse",
    "CommentNotification", "NotificationListResponse", "NotificationRecord", "ReplyNotification",
    "PinResponse", "PostCreate", "PostDetailResponse", "PostPageResponse", "PostResponse",
    "PostUpdate",
    "UserResponse",
    "MyVoteResponse", "VoteTallyResponse",
]
