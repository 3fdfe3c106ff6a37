"""Tests for the comment endpoints."""

from fastapi.testclient import TestClient

from tests.helpers import API, bearer, register


def setup_post(client: TestClient) -> tuple[dict, dict, str]:
    alice = register(client, "alice")
    bob = register(client, "bob")
    response = client.post(
        f"{API}/posts",
        json={"title": "T", "content": "C"},
        headers=bearer(alice["token"]),
    )
    return alice, bob, response.json()["data"]["_id"]


class TestPostComments:
    """GET/POST /posts/{id}/comments."""

    def test_comment_and_list(self, client: TestClient) -> None:
        alice, bob, post_id = setup_post(client)

        created = client.post(
            f"{API}/posts/{post_id}/comments",
            json={"content": "Nice post"},
            headers=bearer(bob["token"]),
        )
        comment_id = created.json()["data"]["_id"]
        client.post(
            f"{API}/comments/{comment_id}/replies",
            json={"content": "Thanks"},
            headers=bearer(alice["token"]),
        )

        response = client.get(f"{API}/posts/{post_id}/comments")

        assert created.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 1
        top = body["data"][0]
        assert top["content"] == "Nice post"
        assert top["author"]["username"] == "bob"
        assert top["parentComment"] is None
        assert [r["content"] for r in top["replies"]] == ["Thanks"]
        assert top["replies"][0]["parentComment"] == comment_id

    def test_post_detail_counts_top_level_comments(self, client: TestClient) -> None:
        alice, bob, post_id = setup_post(client)
        created = client.post(
            f"{API}/posts/{post_id}/comments",
            json={"content": "one"},
            headers=bearer(bob["token"]),
        )
        client.post(
            f"{API}/comments/{created.json()['data']['_id']}/replies",
            json={"content": "reply"},
            headers=bearer(alice["token"]),
        )

        data = client.get(f"{API}/posts/{post_id}").json()["data"]

        assert data["commentCount"] == 1
        assert data["comments"][0]["author"]["username"] == "bob"

    def test_comment_on_missing_post(self, client: TestClient) -> None:
        alice = register(client, "alice")
        missing = "64b000000000000000000001"

        response = client.post(
            f"{API}/posts/{missing}/comments",
            json={"content": "hello"},
            headers=bearer(alice["token"]),
        )

        assert response.status_code == 404
        assert response.json()["error"] == f"No post with the id of {missing}"

    def test_requires_authentication(self, client: TestClient) -> None:
        _, _, post_id = setup_post(client)
        response = client.post(
            f"{API}/posts/{post_id}/comments", json={"content": "hello"}
        )
        assert response.status_code == 401


class TestSingleComment:
    """PUT/DELETE /comments/{id} and likes."""

    def test_edit_delete_and_like(self, client: TestClient) -> None:
        alice, bob, post_id = setup_post(client)
        comment_id = client.post(
            f"{API}/posts/{post_id}/comments",
            json={"content": "typo"},
            headers=bearer(bob["token"]),
        ).json()["data"]["_id"]
        url = f"{API}/comments/{comment_id}"

        forbidden = client.put(
            url, json={"content": "hijack"}, headers=bearer(alice["token"])
        )
        edited = client.put(url, json={"content": "fixed"}, headers=bearer(bob["token"]))
        liked = client.put(f"{url}/like", headers=bearer(alice["token"]))
        unliked_twice = [
            client.put(f"{url}/unlike", headers=bearer(alice["token"]))
            for _ in range(2)
        ]
        deleted = client.delete(url, headers=bearer(bob["token"]))

        assert forbidden.status_code == 401
        assert edited.json()["data"]["content"] == "fixed"
        assert edited.json()["data"]["isEdited"] is True
        assert liked.json() == {"success": True, "data": [alice["user"]["id"]]}
        assert unliked_twice[0].json() == {"success": True, "data": []}
        assert unliked_twice[1].status_code == 400
        assert unliked_twice[1].json()["error"] == "Comment has not been liked"
        assert deleted.json() == {"success": True, "data": {}}
        assert client.get(f"{API}/posts/{post_id}/comments").json()["count"] == 0

    def test_missing_comment(self, client: TestClient) -> None:
        alice = register(client, "alice")
        missing = "64b000000000000000000001"

        response = client.delete(
            f"{API}/comments/{missing}", headers=bearer(alice["token"])
        )

        assert response.status_code == 404
        assert response.json()["error"] == f"No comment with the id of {missing}"
