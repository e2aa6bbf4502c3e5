"""Comment and reply Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .common import AuthorSummary


class CommentCreate(BaseModel):
    """Schema for a new comment or reply."""

    text: str = Field(..., min_length=1, description="Comment text")
    media_url: str | None = Field(None, description="Stored media URL")


class CommentResponse(BaseModel):
    """Schema for a comment or reply returned by the API."""

    id: int
    post_id: int
    parent_id: int | None
    author: AuthorSummary
    text: str
    media_url: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ThreadCommentResponse(CommentResponse):
    """A top-level comment with its replies."""

    replies: list[CommentResponse] = Field(default_factory=list)
