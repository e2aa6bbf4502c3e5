"""Error taxonomy for forum operations.

Every failure a core operation can report is one of the ``ForumError``
subclasses below. Each carries the HTTP status the transport layer should
answer with; the core itself never deals in responses.

``InvariantViolation`` is not a ``ForumError``: it signals corrupted
denormalized state and is never mapped to a client response.
"""

from __future__ import annotations

from http import HTTPStatus


class ForumError(RuntimeError):
    """Base exception for user-facing forum failures."""

    status_code: int = HTTPStatus.BAD_REQUEST
    default_detail: str = "Request could not be processed"

    def __init__(self, detail: str | None = None) -> None:
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(ForumError):
    """Raised when a referenced post, comment or user does not exist."""

    status_code = HTTPStatus.NOT_FOUND
    default_detail = "Not found"


class ForbiddenError(ForumError):
    """Raised when the requester is not the author of the target entity."""

    status_code = HTTPStatus.FORBIDDEN
    default_detail = "You are not authorized to modify this resource"


class InvalidStateError(ForumError):
    """Raised on structural violations such as replying to a reply."""

    default_detail = "Invalid thread structure"


class ValidationFailed(ForumError):
    """Raised when a command carries malformed input."""

    default_detail = "Invalid input"


class AlreadyVotedError(ForumError):
    """Raised when a user repeats the vote they already hold."""

    default_detail = "You have already voted on this post"


class LimitExceededError(ForumError):
    """Raised when an author tries to pin beyond the configured cap."""

    default_detail = "Pinned post limit reached"


class ConflictError(ForumError):
    """Raised when a concurrent update won the race for the same entity."""

    status_code = HTTPStatus.CONFLICT
    default_detail = "The resource was modified concurrently; retry the request"


class InvariantViolation(RuntimeError):
    """Raised when denormalized counters disagree with their source rows."""
