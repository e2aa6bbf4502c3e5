# src/forum_engine/api/v1/endpoints/users.py
"""User profile endpoints."""

from fastapi import APIRouter

from forum_engine.models import User
from forum_engine.schemas.user import UserResponse

from ..dependencies import CurrentUserDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
async def read_me(current_user: CurrentUserDep) -> User:
    """Return the caller's profile, unread counter and pins."""
    return current_user
