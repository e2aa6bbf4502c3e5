"""Tests for post, vote and pin endpoints."""

from fastapi import status


def test_create_and_get_post(client, alice_auth) -> None:
    response = client.post(
        "/api/v1/posts/",
        json={"title": "Hello", "content": "First post", "media_urls": []},
        headers=alice_auth,
    )
    assert response.status_code == status.HTTP_201_CREATED
    post = response.json()
    assert post["author"]["username"] == "alice"
    assert post["total_comments"] == 0

    detail = client.get(f"/api/v1/posts/{post['id']}")
    assert detail.status_code == status.HTTP_200_OK
    body = detail.json()
    assert body["post"]["title"] == "Hello"
    assert body["comments"] == []
    assert body["total_comments"] == 0


def test_create_post_requires_auth(client) -> None:
    response = client.post("/api/v1/posts/", json={"title": "t", "content": "c"})
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)


def test_invalid_token_is_rejected(client) -> None:
    response = client.post(
        "/api/v1/posts/",
        json={"title": "t", "content": "c"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_list_posts(client, alice_post) -> None:
    response = client.get("/api/v1/posts/", params={"page": 1, "limit": 5})

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["total_posts"] == 1
    assert body["posts"][0]["id"] == alice_post.id


def test_list_posts_bad_page(client) -> None:
    response = client.get("/api/v1/posts/", params={"page": 0})

    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_get_missing_post(client) -> None:
    response = client.get("/api/v1/posts/9999")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Post not found"


def test_update_post_forbidden_for_others(client, alice_post, bob_auth) -> None:
    response = client.put(
        f"/api/v1/posts/{alice_post.id}",
        json={"title": "Mine now"},
        headers=bob_auth,
    )

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_update_post_rejects_blank_title(client, alice_post, alice_auth) -> None:
    response = client.put(
        f"/api/v1/posts/{alice_post.id}",
        json={"title": "  "},
        headers=alice_auth,
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["detail"] == "Title and content cannot be blank."


def test_update_and_delete_post(client, alice_post, alice_auth) -> None:
    updated = client.put(
        f"/api/v1/posts/{alice_post.id}",
        json={"content": "Edited"},
        headers=alice_auth,
    )
    assert updated.status_code == status.HTTP_200_OK
    assert updated.json()["content"] == "Edited"

    deleted = client.delete(f"/api/v1/posts/{alice_post.id}", headers=alice_auth)
    assert deleted.status_code == status.HTTP_200_OK
    assert client.get(f"/api/v1/posts/{alice_post.id}").status_code == status.HTTP_404_NOT_FOUND


def test_user_posts_only_for_self(client, alice, alice_post, alice_auth, bob_auth) -> None:
    own = client.get(f"/api/v1/posts/user/{alice.id}", headers=alice_auth)
    other = client.get(f"/api/v1/posts/user/{alice.id}", headers=bob_auth)

    assert [post["id"] for post in own.json()] == [alice_post.id]
    assert other.status_code == status.HTTP_403_FORBIDDEN


def test_upvote_then_downvote(client, alice_post, bob_auth) -> None:
    up = client.post(f"/api/v1/posts/{alice_post.id}/upvote", headers=bob_auth)
    assert up.json() == {"upvotes": 1, "downvotes": 0}

    down = client.post(f"/api/v1/posts/{alice_post.id}/downvote", headers=bob_auth)
    assert down.json() == {"upvotes": 0, "downvotes": 1}

    mine = client.get(f"/api/v1/posts/{alice_post.id}/my-vote", headers=bob_auth)
    assert mine.json() == {"direction": -1}


def test_repeat_vote_is_bad_request(client, alice_post, bob_auth) -> None:
    client.post(f"/api/v1/posts/{alice_post.id}/upvote", headers=bob_auth)
    again = client.post(f"/api/v1/posts/{alice_post.id}/upvote", headers=bob_auth)

    assert again.status_code == status.HTTP_400_BAD_REQUEST
    assert again.json()["detail"] == "You have already voted on this post"


def test_pin_cap(client, alice, alice_post, alice_auth, make_post) -> None:
    second = make_post(alice, "Second")

    first_pin = client.post(f"/api/v1/posts/{alice_post.id}/pin", headers=alice_auth)
    assert first_pin.json() == {"pinned": True}

    blocked = client.post(f"/api/v1/posts/{second.id}/pin", headers=alice_auth)
    assert blocked.status_code == status.HTTP_400_BAD_REQUEST

    client.post(f"/api/v1/posts/{alice_post.id}/pin", headers=alice_auth)
    swapped = client.post(f"/api/v1/posts/{second.id}/pin", headers=alice_auth)
    assert swapped.json() == {"pinned": True}


def test_pin_someone_elses_post(client, alice_post, bob_auth) -> None:
    response = client.post(f"/api/v1/posts/{alice_post.id}/pin", headers=bob_auth)

    assert response.status_code == status.HTTP_403_FORBIDDEN
