"""Tests for the post lifecycle and listings."""

import pytest
from sqlalchemy import func, select

from forum_engine.core.errors import ForbiddenError, NotFoundError, ValidationFailed
from forum_engine.models import Comment, Post, PostVote, User, VoteDirection
from forum_engine.services.notifications import list_notifications
from forum_engine.services.pins import toggle_pin
from forum_engine.services.posts import (
    create_post,
    delete_post,
    get_post,
    list_posts,
    list_user_posts,
    update_post,
)
from forum_engine.services.threads import add_comment, add_reply
from forum_engine.services.votes import cast_vote


def test_create_post_starts_with_zero_counters(db_session, alice) -> None:
    post = create_post(
        db_session,
        author_id=alice.id,
        title="Hello",
        content="World",
        media_urls=["https://cdn.example/1.png"],
    )

    assert (post.upvotes, post.downvotes, post.total_comments) == (0, 0, 0)
    assert post.pinned is False
    assert post.media_urls == ["https://cdn.example/1.png"]
    assert post.last_activity == post.created_at


def test_create_post_requires_title(db_session, alice) -> None:
    with pytest.raises(ValidationFailed):
        create_post(db_session, author_id=alice.id, title=" ", content="body")


def test_create_post_for_missing_author(db_session) -> None:
    with pytest.raises(NotFoundError):
        create_post(db_session, author_id=9999, title="t", content="c")


def test_update_keeps_omitted_fields(db_session, alice, alice_post) -> None:
    post = update_post(db_session, alice_post.id, alice.id, title="Renamed")

    assert post.title == "Renamed"
    assert post.content == "Test post content"


@pytest.mark.parametrize("field", ["title", "content"])
def test_update_rejects_blank_text(db_session, alice, alice_post, field) -> None:
    with pytest.raises(ValidationFailed):
        update_post(db_session, alice_post.id, alice.id, **{field: "   "})

    db_session.refresh(alice_post)
    assert alice_post.title == "Test post"
    assert alice_post.content == "Test post content"


def test_update_by_someone_else(db_session, alice_post, bob) -> None:
    with pytest.raises(ForbiddenError):
        update_post(db_session, alice_post.id, bob.id, title="Hijacked")


def test_listing_puts_pinned_first_then_active(db_session, alice, bob, make_post) -> None:
    old = make_post(alice, "old")
    middle = make_post(alice, "middle")
    newest = make_post(alice, "newest")
    add_comment(db_session, middle.id, bob.id, "revive")
    toggle_pin(db_session, old.id, alice.id)

    page = list_posts(db_session, page=1, limit=10)

    assert [post.id for post in page.posts] == [old.id, middle.id, newest.id]
    assert page.total_posts == 3
    assert page.total_pages == 1


def test_listing_pages(db_session, alice, make_post) -> None:
    for n in range(5):
        make_post(alice, f"post {n}")

    page = list_posts(db_session, page=3, limit=2)

    assert len(page.posts) == 1
    assert page.total_pages == 3
    assert page.current_page == 3


def test_listing_rejects_bad_page(db_session) -> None:
    with pytest.raises(ValidationFailed):
        list_posts(db_session, page=0)


def test_user_posts_are_private(db_session, alice, alice_post, bob) -> None:
    assert [post.id for post in list_user_posts(db_session, alice.id, alice.id)] == [alice_post.id]

    with pytest.raises(ForbiddenError):
        list_user_posts(db_session, alice.id, bob.id)


def test_get_post_includes_thread(db_session, alice_post, bob, carol) -> None:
    comment = add_comment(db_session, alice_post.id, bob.id, "hi")
    add_reply(db_session, alice_post.id, comment.id, carol.id, "hello")

    detail = get_post(db_session, alice_post.id)

    assert detail.post.id == alice_post.id
    assert detail.total_comments == 2
    assert [node.comment.id for node in detail.thread.nodes] == [comment.id]
    assert len(detail.thread.nodes[0].replies) == 1


def test_get_missing_post(db_session) -> None:
    with pytest.raises(NotFoundError):
        get_post(db_session, 9999)


def test_delete_post_cascades(db_session, alice, alice_post, bob, carol) -> None:
    comment = add_comment(db_session, alice_post.id, bob.id, "hi")
    add_reply(db_session, alice_post.id, comment.id, carol.id, "hello")
    cast_vote(db_session, alice_post.id, bob.id, VoteDirection.UP)
    post_id = alice_post.id

    delete_post(db_session, post_id, alice.id)

    assert db_session.get(Post, post_id) is None
    comments = db_session.execute(
        select(func.count(Comment.id)).where(Comment.post_id == post_id)
    ).scalar_one()
    votes = db_session.execute(
        select(func.count()).select_from(PostVote).where(PostVote.post_id == post_id)
    ).scalar_one()
    assert comments == 0
    assert votes == 0


def test_delete_post_by_someone_else(db_session, alice_post, bob) -> None:
    with pytest.raises(ForbiddenError):
        delete_post(db_session, alice_post.id, bob.id)


def test_failed_post_cascade_leaves_everything_in_place(
    db_session, alice, alice_post, bob, carol, mocker
) -> None:
    comment = add_comment(db_session, alice_post.id, bob.id, "hi")
    for n in range(3):
        add_reply(db_session, alice_post.id, comment.id, carol.id, f"reply {n}")
    cast_vote(db_session, alice_post.id, bob.id, VoteDirection.UP)
    unread_before = db_session.get(User, alice.id).unread_notifications
    mocker.patch(
        "forum_engine.services.pins.release_post",
        side_effect=RuntimeError("cancelled"),
    )

    with pytest.raises(RuntimeError, match="cancelled"):
        delete_post(db_session, alice_post.id, alice.id)

    post = db_session.get(Post, alice_post.id)
    assert post is not None
    assert post.total_comments == 4
    comments = db_session.execute(
        select(func.count(Comment.id)).where(Comment.post_id == alice_post.id)
    ).scalar_one()
    votes = db_session.execute(
        select(func.count()).select_from(PostVote).where(PostVote.post_id == alice_post.id)
    ).scalar_one()
    assert comments == 4
    assert votes == 1
    assert len(list_notifications(db_session, alice.id)) == 4
    assert db_session.get(User, alice.id).unread_notifications == unread_before == 4
