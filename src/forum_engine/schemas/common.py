"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AuthorSummary(BaseModel):
    """Public view of a content author."""

    id: int
    username: str
    profile_picture: str | None = None

    model_config = ConfigDict(from_attributes=True)
