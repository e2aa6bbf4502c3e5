"""Concurrent writers: stale sessions must conflict instead of losing updates.

Every session below preloads the rows it will touch, then the writers run one
after another. Only the first writer sees current data; the others hold
outdated versions and must be rejected.
"""

import pytest

from forum_engine.core.errors import ConflictError
from forum_engine.models import CommentRead, Post, PostVote, User, VoteDirection
from forum_engine.services.notifications import list_notifications, reset_notifications
from forum_engine.services.pins import toggle_pin
from forum_engine.services.posts import create_post
from forum_engine.services.threads import add_comment, add_reply, mark_reply_read, read_by
from forum_engine.services.users import register_user
from forum_engine.services.votes import audit_votes, cast_vote


@pytest.fixture()
def seeded(file_sessions):
    db = file_sessions()
    alice = register_user(db, username="alice", password_hash="x")
    bob = register_user(db, username="bob", password_hash="x")
    carol = register_user(db, username="carol", password_hash="x")
    posts = [
        create_post(db, author_id=alice.id, title=f"post {n}", content="body")
        for n in range(3)
    ]
    return {
        "alice": alice.id,
        "bob": bob.id,
        "carol": carol.id,
        "posts": [post.id for post in posts],
    }


def _preload(db, *entities) -> list:
    # The identity map holds weak references; callers keep the returned
    # objects alive so the session keeps serving the outdated rows.
    return [db.get(model, key) for model, key in entities]


def test_concurrent_pins_respect_the_cap(file_sessions, seeded) -> None:
    alice = seeded["alice"]
    sessions = []
    for post_id in seeded["posts"]:
        db = file_sessions()
        held = _preload(db, (User, alice), (Post, post_id))
        assert all(held)
        sessions.append((db, post_id, held))

    results = []
    for db, post_id, _held in sessions:
        try:
            results.append(toggle_pin(db, post_id, alice, cap=1))
        except ConflictError:
            results.append("conflict")

    assert results.count(True) == 1
    assert results.count("conflict") == len(sessions) - 1

    check = file_sessions()
    user = check.get(User, alice)
    assert len(user.pinned_posts) == 1
    pinned = [post_id for post_id in seeded["posts"] if check.get(Post, post_id).pinned]
    assert pinned == user.pinned_posts


def test_concurrent_votes_keep_counters_consistent(file_sessions, seeded) -> None:
    post_id = seeded["posts"][0]
    first, second = file_sessions(), file_sessions()
    held = _preload(first, (Post, post_id)) + _preload(second, (Post, post_id))
    assert all(held)

    cast_vote(first, post_id, seeded["bob"], VoteDirection.UP)
    with pytest.raises(ConflictError):
        cast_vote(second, post_id, seeded["carol"], VoteDirection.UP)

    # A retry re-reads the post and goes through.
    tally = cast_vote(second, post_id, seeded["carol"], VoteDirection.UP)
    assert (tally.upvotes, tally.downvotes) == (2, 0)

    check = file_sessions()
    assert audit_votes(check, post_id).upvotes == 2
    assert check.get(PostVote, (post_id, seeded["carol"])) is not None


def test_reset_racing_a_new_comment_does_not_lose_it(file_sessions, seeded) -> None:
    alice, post_id = seeded["alice"], seeded["posts"][0]
    resetter = file_sessions()
    held = _preload(resetter, (User, alice))
    assert all(held)

    add_comment(file_sessions(), post_id, seeded["bob"], "arrived mid-reset")
    with pytest.raises(ConflictError):
        reset_notifications(resetter, alice)

    check = file_sessions()
    assert check.get(User, alice).unread_notifications == 1
    assert len(list_notifications(check, alice)) == 1


def test_concurrent_read_receipts_collapse_to_one(file_sessions, seeded, mocker) -> None:
    db = file_sessions()
    post_id = seeded["posts"][0]
    comment = add_comment(db, post_id, seeded["bob"], "question")
    reply_id = add_reply(db, post_id, comment.id, seeded["carol"], "answer").id

    first, second = file_sessions(), file_sessions()
    original_get = first.get
    misses = []

    def get_before_second_commit(entity, ident, **kwargs):
        # The first lookup sees the table as it was before the other writer.
        if entity is CommentRead and not misses:
            misses.append(ident)
            return None
        return original_get(entity, ident, **kwargs)

    mocker.patch.object(first, "get", side_effect=get_before_second_commit)

    mark_reply_read(second, reply_id, seeded["alice"])
    mark_reply_read(first, reply_id, seeded["alice"])

    assert misses == [(reply_id, seeded["alice"])]
    assert read_by(file_sessions(), reply_id) == {seeded["alice"]}
