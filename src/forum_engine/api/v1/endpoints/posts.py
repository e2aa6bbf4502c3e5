# src/forum_engine/api/v1/endpoints/posts.py
"""Post-related endpoints: listing, lifecycle, votes and pins."""

from fastapi import APIRouter, Query, status

from forum_engine.core.settings import settings
from forum_engine.models import Post, VoteDirection
from forum_engine.schemas.comment import CommentResponse, ThreadCommentResponse
from forum_engine.schemas.post import (
    PinResponse,
    PostCreate,
    PostDetailResponse,
    PostPageResponse,
    PostResponse,
    PostUpdate,
)
from forum_engine.schemas.vote import MyVoteResponse, VoteTallyResponse
from forum_engine.services import pins, posts, votes
from forum_engine.services.threads import ThreadNode

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/posts", tags=["posts"])


def _thread_comment(node: ThreadNode) -> ThreadCommentResponse:
    base = CommentResponse.model_validate(node.comment)
    return ThreadCommentResponse(
        **base.model_dump(),
        replies=[CommentResponse.model_validate(reply) for reply in node.replies],
    )


@router.get("/", response_model=PostPageResponse)
async def list_posts(
    db: SessionDep,
    page: int = Query(1, description="1-based page number"),
    limit: int = Query(settings.posts_page_size, description="Posts per page"),
) -> PostPageResponse:
    """List posts, pinned first and then by most recent activity.

    Args:
        db: Database session
        page: Page to return
        limit: Page size (capped by configuration)

    Returns:
        The page of posts with pagination totals
    """
    result = posts.list_posts(db, page, limit)
    return PostPageResponse(
        posts=[PostResponse.model_validate(post) for post in result.posts],
        total_pages=result.total_pages,
        current_page=result.current_page,
        total_posts=result.total_posts,
    )


@router.get("/user/{user_id}", response_model=list[PostResponse])
async def list_user_posts(
    user_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[Post]:
    """List the caller's own posts, newest first."""
    return posts.list_user_posts(db, user_id, current_user.id)


@router.get("/{post_id}", response_model=PostDetailResponse)
async def get_post(
    post_id: int,
    db: SessionDep,
    page: int = Query(1, description="Page of top-level comments"),
    limit: int = Query(settings.comments_page_size, description="Top-level comments per page"),
) -> PostDetailResponse:
    """Get a post with one page of its comment thread.

    Raises:
        NotFoundError: If the post does not exist
    """
    detail = posts.get_post(db, post_id, page, limit)
    return PostDetailResponse(
        post=PostResponse.model_validate(detail.post),
        comments=[_thread_comment(node) for node in detail.thread.nodes],
        total_pages=detail.thread.total_pages,
        current_page=detail.thread.current_page,
        total_comments=detail.total_comments,
    )


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Post:
    """Create a new post authored by the caller."""
    return posts.create_post(
        db,
        author_id=current_user.id,
        title=post_data.title,
        content=post_data.content,
        media_urls=post_data.media_urls,
    )


@router.put("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    post_data: PostUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Post:
    """Edit one of the caller's posts."""
    return posts.update_post(
        db,
        post_id,
        current_user.id,
        title=post_data.title,
        content=post_data.content,
        media_urls=post_data.media_urls,
    )


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str]:
    """Delete one of the caller's posts with its whole thread."""
    posts.delete_post(db, post_id, current_user.id)
    return {"message": "Post deleted successfully."}


@router.post("/{post_id}/upvote", response_model=VoteTallyResponse)
async def upvote_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> VoteTallyResponse:
    """Upvote a post, flipping an existing downvote."""
    tally = votes.cast_vote(db, post_id, current_user.id, VoteDirection.UP)
    return VoteTallyResponse(upvotes=tally.upvotes, downvotes=tally.downvotes)


@router.post("/{post_id}/downvote", response_model=VoteTallyResponse)
async def downvote_post(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> VoteTallyResponse:
    """Downvote a post, flipping an existing upvote."""
    tally = votes.cast_vote(db, post_id, current_user.id, VoteDirection.DOWN)
    return VoteTallyResponse(upvotes=tally.upvotes, downvotes=tally.downvotes)


@router.get("/{post_id}/my-vote", response_model=MyVoteResponse)
async def get_my_vote(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MyVoteResponse:
    """Get current user's vote on a specific post."""
    return MyVoteResponse(direction=votes.get_user_vote(db, post_id, current_user.id))


@router.post("/{post_id}/pin", response_model=PinResponse)
async def toggle_pin(
    post_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PinResponse:
    """Pin or unpin one of the caller's posts."""
    return PinResponse(pinned=pins.toggle_pin(db, post_id, current_user.id))
