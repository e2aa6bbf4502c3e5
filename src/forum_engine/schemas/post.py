"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .comment import ThreadCommentResponse
from .common import AuthorSummary


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=300, description="Post title")
    content: str = Field(..., min_length=1, description="Post body")
    media_urls: list[str] = Field(default_factory=list, max_length=5, description="Stored media URLs")


class PostUpdate(BaseModel):
    """Schema for editing a post; omitted fields keep their value."""

    title: str | None = Field(None, max_length=300)
    content: str | None = None
    media_urls: list[str] | None = Field(None, max_length=5)


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    title: str
    content: str
    media_urls: list[str]
    author: AuthorSummary
    upvotes: int
    downvotes: int
    total_comments: int
    pinned: bool
    created_at: datetime
    updated_at: datetime
    last_activity: datetime

    model_config = ConfigDict(from_attributes=True)


class PostPageResponse(BaseModel):
    """One page of the front-page listing."""

    posts: list[PostResponse]
    total_pages: int
    current_page: int
    total_posts: int


class PostDetailResponse(BaseModel):
    """A post with one page of its thread."""

    post: PostResponse
    comments: list[ThreadCommentResponse]
    total_pages: int
    current_page: int
    total_comments: int


class PinResponse(BaseModel):
    """Pinned state of a post after a toggle."""

    pinned: bool
