"""Thread mutation events and the in-process bus that delivers them.

The thread store publishes an event for every comment or reply it creates or
removes. Subscribers (activity counters, notifications) run synchronously in
the publisher's transaction, so a failing subscriber rolls the whole command
back.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session

from forum_engine.db.time import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommentAdded:
    """A top-level comment was attached to a post."""

    post_id: int
    comment_id: int
    author_id: int
    post_author_id: int
    text: str
    occurred_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class ReplyAdded:
    """A reply was attached to a top-level comment."""

    post_id: int
    parent_comment_id: int
    parent_author_id: int
    reply_id: int
    author_id: int
    post_author_id: int
    text: str
    occurred_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class CommentRemoved:
    """A comment (with its replies) or a single reply was deleted.

    ``reply_count`` is the number of replies removed along with a top-level
    comment; it is zero when the removed node is itself a reply.
    """

    post_id: int
    comment_id: int
    parent_comment_id: int | None
    reply_count: int
    removed_ids: tuple[int, ...]
    occurred_at: datetime = field(default_factory=utcnow)


ThreadEvent = CommentAdded | ReplyAdded | CommentRemoved
Handler = Callable[[Session, Any], None]


class EventBus:
    """Synchronous publish/subscribe dispatcher keyed by event type."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        """Register ``handler`` to run for every published ``event_type``."""
        self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: type) -> list[Handler]:
        """Return the handlers registered for ``event_type``."""
        return list(self._handlers.get(event_type, ()))

    def publish(self, db: Session, event: ThreadEvent) -> None:
        """Deliver ``event`` to its subscribers inside the caller's transaction."""
        handlers = self._handlers.get(type(event), ())
        logger.debug("Publishing %s to %d handler(s)", type(event).__name__, len(handlers))
        for handler in handlers:
            handler(db, event)


_default_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Return the shared bus with the activity and notification subscribers wired."""
    global _default_bus
    if _default_bus is None:
        # Local imports: both subscriber modules import this one.
        from forum_engine.services import activity, notifications

        bus = EventBus()
        activity.register(bus)
        notifications.register(bus)
        _default_bus = bus
    return _default_bus
