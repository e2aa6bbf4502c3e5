# src/forum_engine/services/__init__.py
"""Business logic services for the forum engine."""

from .activity import recount_post_activity
from .events import CommentAdded, CommentRemoved, EventBus, ReplyAdded, get_event_bus
from .notifications import list_notifications, recount_unread, reset_notifications
from .pins import toggle_pin
from .posts import create_post, delete_post, get_post, list_posts, list_user_posts, update_post
from .threads import (
    add_comment,
    add_reply,
    delete_comment,
    get_thread,
    list_replies,
    mark_reply_read,
)
from .users import get_user, register_user
from .votes import VoteTally, audit_votes, cast_vote, recount_votes

__all__ = [
    "CommentAdded", "CommentRemoved", "EventBus", "ReplyAdded", "get_event_bus",
    "VoteTally", "audit_votes", "cast_vote", "recount_votes",
    "add_comment", "add_reply", "delete_comment", "get_thread", "list_replies", "mark_reply_read",
    "recount_post_activity",
    "toggle_pin",
    "list_notifications", "recount_unread", "reset_notifications",
    "create_post", "delete_post", "get_post", "list_posts", "list_user_posts", "update_post",
    "get_user", "register_user",
]
