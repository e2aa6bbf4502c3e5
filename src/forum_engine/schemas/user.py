"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserResponse(BaseModel):
    """The caller's own profile and forum state."""

    id: int
    username: str
    profile_picture: str | None
    unread_notifications: int
    pinned_posts: list[int]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
