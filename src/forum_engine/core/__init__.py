"""Core configuration and error types."""

from .errors import (
    AlreadyVotedError,
    ConflictError,
    ForbiddenError,
    ForumError,
    InvalidStateError,
    InvariantViolation,
    LimitExceededError,
    NotFoundError,
    ValidationFailed,
)
from .settings import Settings, settings

__all__ = [
    "AlreadyVotedError",
    "ConflictError",
    "ForbiddenError",
    "ForumError",
    "InvalidStateError",
    "InvariantViolation",
    "LimitExceededError",
    "NotFoundError",
    "Settings",
    "ValidationFailed",
    "settings",
]
