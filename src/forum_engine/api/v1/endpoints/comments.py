# src/forum_engine/api/v1/endpoints/comments.py
"""Comment, reply and read-receipt endpoints."""

from fastapi import APIRouter, status

from forum_engine.models import Comment
from forum_engine.schemas.comment import CommentCreate, CommentResponse
from forum_engine.services import threads

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(tags=["comments"])


@router.post(
    "/posts/{post_id}/comments",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    post_id: int,
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Comment:
    """Add a top-level comment to a post."""
    return threads.add_comment(
        db,
        post_id,
        current_user.id,
        comment_data.text,
        comment_data.media_url,
    )


@router.post(
    "/posts/{post_id}/comments/{comment_id}/replies",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_reply(
    post_id: int,
    comment_id: int,
    reply_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Comment:
    """Reply to a top-level comment."""
    return threads.add_reply(
        db,
        post_id,
        comment_id,
        current_user.id,
        reply_data.text,
        reply_data.media_url,
    )


@router.delete("/posts/{post_id}/comments/{comment_id}")
async def delete_comment(
    post_id: int,
    comment_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Delete one of the caller's comments (with its replies) or replies."""
    threads.delete_comment(db, comment_id, current_user.id, post_id=post_id)
    return {"message": "Comment deleted successfully."}


@router.get("/comments/{comment_id}/replies", response_model=list[CommentResponse])
async def list_replies(comment_id: int, db: SessionDep) -> list[Comment]:
    """Get replies to a comment, oldest first."""
    return threads.list_replies(db, comment_id)


@router.post("/replies/{reply_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_reply_read(
    reply_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> None:
    """Mark a reply as seen by the caller."""
    threads.mark_reply_read(db, reply_id, current_user.id)
