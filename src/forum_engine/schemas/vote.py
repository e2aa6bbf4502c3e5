"""Vote-related Pydantic schemas."""

from typing import Literal

from pydantic import BaseModel, Field


class VoteTallyResponse(BaseModel):
    """Vote counters of a post."""

    upvotes: int
    downvotes: int


class MyVoteResponse(BaseModel):
    """The caller's vote on a post."""

    direction: Literal[-1, 0, 1] = Field(..., description="1 up, -1 down, 0 no vote")
