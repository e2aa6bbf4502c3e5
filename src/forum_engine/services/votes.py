"""Vote ledger: one up or down vote per user per post."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from forum_engine.core.errors import AlreadyVotedError, InvariantViolation, NotFoundError, ValidationFailed
from forum_engine.db.time import utcnow
from forum_engine.db.unit_of_work import atomic
from forum_engine.models import Post, PostVote, User, VoteDirection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VoteTally:
    """Vote counters of a post after an operation."""

    upvotes: int
    downvotes: int


def _get_post_or_404(db: Session, post_id: int) -> Post:
    post = db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    return post


def _coerce_direction(direction: int | str | VoteDirection) -> VoteDirection:
    if isinstance(direction, str):
        try:
            return VoteDirection[direction.upper()]
        except KeyError as exc:
            raise ValidationFailed("Vote direction must be 'up' or 'down'") from exc
    try:
        return VoteDirection(direction)
    except ValueError as exc:
        raise ValidationFailed("Vote direction must be 1 or -1") from exc


def _bump(post: Post, direction: int, delta: int) -> None:
    if direction == VoteDirection.UP:
        post.upvotes += delta
    else:
        post.downvotes += delta


def cast_vote(
    db: Session,
    post_id: int,
    user_id: int,
    direction: int | str | VoteDirection,
) -> VoteTally:
    """Cast or flip a vote on a post.

    A user holding the opposite vote has it moved in one step: the old
    counter goes down by one and the new one up by one.

    Args:
        db: Database session.
        post_id: Post being voted on.
        user_id: Voter.
        direction: ``VoteDirection``, ``1``/``-1`` or ``"up"``/``"down"``.

    Returns:
        The post's counters after the vote.

    Raises:
        NotFoundError: If the post or user does not exist.
        AlreadyVotedError: If the user already holds a vote in ``direction``.
        ValidationFailed: If ``direction`` is not a vote direction.
    """
    wanted = _coerce_direction(direction)
    with atomic(db):
        post = _get_post_or_404(db, post_id)
        if db.get(User, user_id) is None:
            raise NotFoundError("User not found")

        existing = db.get(PostVote, (post_id, user_id))
        if existing is not None and existing.direction == wanted:
            raise AlreadyVotedError()

        if existing is not None:
            _bump(post, existing.direction, -1)
            existing.direction = int(wanted)
            existing.created_at = utcnow()
            logger.info("User %s flipped vote on post %s to %s", user_id, post_id, wanted.name)
        else:
            db.add(
                PostVote(
                    post_id=post_id,
                    voter_id=user_id,
                    direction=int(wanted),
                    created_at=utcnow(),
                )
            )
            logger.info("User %s voted %s on post %s", user_id, wanted.name, post_id)
        _bump(post, wanted, 1)
        tally = VoteTally(upvotes=post.upvotes, downvotes=post.downvotes)
    return tally


def get_user_vote(db: Session, post_id: int, user_id: int) -> int:
    """Return the caller's vote on a post: ``1``, ``-1`` or ``0`` for none."""
    vote = db.get(PostVote, (post_id, user_id))
    if vote is None:
        return 0
    return vote.direction


def get_voters(db: Session, post_id: int) -> tuple[set[int], set[int]]:
    """Return ``(upvoted_by, downvoted_by)`` for a post.

    Raises:
        NotFoundError: If the post does not exist.
    """
    _get_post_or_404(db, post_id)
    rows = db.execute(
        select(PostVote.voter_id, PostVote.direction).where(PostVote.post_id == post_id)
    ).all()
    upvoted_by = {voter for voter, direction in rows if direction == VoteDirection.UP}
    downvoted_by = {voter for voter, direction in rows if direction == VoteDirection.DOWN}
    return upvoted_by, downvoted_by


def _count_rows(db: Session, post_id: int) -> VoteTally:
    counts = dict(
        db.execute(
            select(PostVote.direction, func.count())
            .where(PostVote.post_id == post_id)
            .group_by(PostVote.direction)
        ).all()
    )
    return VoteTally(
        upvotes=counts.get(int(VoteDirection.UP), 0),
        downvotes=counts.get(int(VoteDirection.DOWN), 0),
    )


def audit_votes(db: Session, post_id: int) -> VoteTally:
    """Verify that the post's counters match its vote rows.

    Raises:
        NotFoundError: If the post does not exist.
        InvariantViolation: If a counter disagrees with the rows.
    """
    post = _get_post_or_404(db, post_id)
    actual = _count_rows(db, post_id)
    if (post.upvotes, post.downvotes) != (actual.upvotes, actual.downvotes):
        logger.error(
            "Vote counters on post %s drifted: stored %s/%s, rows %s/%s",
            post_id,
            post.upvotes,
            post.downvotes,
            actual.upvotes,
            actual.downvotes,
        )
        raise InvariantViolation(f"vote counters out of sync on post {post_id}")
    return actual


def recount_votes(db: Session, post_id: int) -> VoteTally:
    """Rewrite the post's counters from its vote rows."""
    with atomic(db):
        db.flush()
        post = _get_post_or_404(db, post_id)
        actual = _count_rows(db, post_id)
        if (post.upvotes, post.downvotes) != (actual.upvotes, actual.downvotes):
            logger.warning("Repairing vote counters on post %s", post_id)
            post.upvotes = actual.upvotes
            post.downvotes = actual.downvotes
    return actual
