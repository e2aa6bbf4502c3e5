# src/forum_engine/api/v1/endpoints/notifications.py
"""Notification endpoints."""

from fastapi import APIRouter, Query

from forum_engine.core.settings import settings
from forum_engine.models import NOTIFICATION_KIND_COMMENT, Notification
from forum_engine.schemas.notification import (
    CommentNotification,
    NotificationListResponse,
    NotificationRecord,
    ReplyNotification,
)
from forum_engine.services import notifications

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/notifications", tags=["notifications"])


def to_notification_record(record: Notification) -> NotificationRecord:
    """Convert a Notification ORM instance to its tagged API schema."""
    if record.kind == NOTIFICATION_KIND_COMMENT:
        return CommentNotification.model_validate(record)
    return ReplyNotification.model_validate(record)


@router.get("/", response_model=NotificationListResponse)
async def list_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
    limit: int = Query(settings.notifications_page_size, description="Maximum records"),
    include_read: bool = Query(False, description="Also return acknowledged records"),
) -> NotificationListResponse:
    """List the caller's notifications, most recent first."""
    records = notifications.list_notifications(
        db,
        current_user.id,
        limit,
        include_read=include_read,
    )
    return NotificationListResponse(
        unread_notifications=current_user.unread_notifications,
        notifications=[to_notification_record(record) for record in records],
    )


@router.post("/reset", response_model=NotificationListResponse)
async def reset_notifications(
    current_user: CurrentUserDep,
    db: SessionDep,
) -> NotificationListResponse:
    """Acknowledge all of the caller's notifications."""
    user = notifications.reset_notifications(db, current_user.id)
    return NotificationListResponse(unread_notifications=user.unread_notifications, notifications=[])
