"""Notification Pydantic schemas.

Records are a tagged union on ``kind``; each tag has a fixed field set.
"""

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class CommentNotification(BaseModel):
    """Someone commented on the recipient's post."""

    kind: Literal["comment"]
    id: int
    post_id: int
    comment_id: int
    source_user_id: int
    text: str
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReplyNotification(BaseModel):
    """Someone replied to the recipient's comment or inside their post."""

    kind: Literal["reply"]
    id: int
    post_id: int
    comment_id: int
    parent_comment_id: int
    source_user_id: int
    text: str
    read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


NotificationRecord = Annotated[
    CommentNotification | ReplyNotification,
    Field(discriminator="kind"),
]


class NotificationListResponse(BaseModel):
    """Unread counter plus the listed records."""

    unread_notifications: int
    notifications: list[NotificationRecord]
