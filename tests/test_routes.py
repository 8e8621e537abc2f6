"""
Tests for the HTTP surface over the forum service.
"""

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from forum.main import create_app
from forum.services.summary import ActivitySummarizer


@pytest.fixture
def client(service):
    """Create test client over the seeded, latency-free service."""
    return TestClient(create_app(service=service, summarizer=ActivitySummarizer(api_key="")))


class TestForumEndpoints:
    """Read and write endpoints used by regular users."""

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_list_topics(self, client):
        response = client.get("/topics")

        assert response.status_code == 200
        data = response.json()
        assert [t["id"] for t in data] == [5, 1, 3, 2, 4]
        assert data[1]["reply_count"] == 4
        assert data[1]["author"]["username"] == "react_guru"
        assert data[1]["category"]["slug"] == "react"

    def test_list_topics_by_category(self, client):
        response = client.get("/topics", params={"category_id": 2})

        assert [t["id"] for t in response.json()] == [2]

    def test_get_missing_topic(self, client):
        assert client.get("/topics/999").status_code == 404

    def test_login(self, client):
        response = client.post("/login", json={"username": "REACT_GURU"})

        assert response.status_code == 200
        assert response.json()["is_admin"] is True

    def test_login_unknown_user(self, client):
        response = client.post("/login", json={"username": "nonexistent"})

        assert response.status_code == 404
        assert response.json() == {"error_code": "NOT_FOUND", "message": "User not found"}

    def test_create_topic_and_reply(self, client):
        created = client.post(
            "/topics", json={"title": "Hello", "content": "World", "category_id": 1, "author_id": "1"}
        )
        assert created.status_code == 201
        topic_id = created.json()["id"]

        reply = client.post(f"/topics/{topic_id}/posts", json={"content": "reply", "author_id": "2"})
        assert reply.status_code == 201
        assert reply.json()["post_number"] == 2

        posts = client.get(f"/topics/{topic_id}/posts").json()
        assert [p["content"] for p in posts] == ["World", "reply"]
        assert client.get(f"/topics/{topic_id}").json()["reply_count"] == 1

    def test_create_topic_unknown_author(self, client):
        response = client.post(
            "/topics", json={"title": "Hello", "content": "World", "category_id": 1, "author_id": "nobody"}
        )

        assert response.status_code == 404

    def test_create_topic_blank_title_rejected(self, client):
        response = client.post(
            "/topics", json={"title": "", "content": "World", "category_id": 1, "author_id": "1"}
        )

        assert response.status_code == 422

    def test_reply_to_missing_topic(self, client):
        response = client.post("/topics/999/posts", json={"content": "reply", "author_id": "2"})

        assert response.status_code == 404

    def test_user_profile(self, client):
        assert client.get("/users/3").json()["username"] == "ts_master"
        assert client.get("/users/nobody").status_code == 404
        assert [t["id"] for t in client.get("/users/1/topics").json()] == [5, 1]

        replies = client.get("/users/1/replies").json()
        assert [r["topic_id"] for r in replies] == [2, 4]
        assert replies[0]["post"]["author"]["id"] == "1"


class TestAdminEndpoints:
    """Admin console endpoints."""

    def test_overview(self, client):
        data = client.get("/admin/overview").json()

        assert data == {"category_count": 4, "topic_count": 5, "post_count": 13, "user_count": 4}

    def test_delete_category_in_use(self, client):
        response = client.delete("/admin/categories/1")

        assert response.status_code == 409
        assert response.json()["error_code"] == "CONFLICT"

    def test_category_crud(self, client):
        created = client.post("/admin/categories", json={"name": "Rust", "color": "#DEA584"})
        assert created.status_code == 201
        category_id = created.json()["id"]
        assert created.json()["color"] == "DEA584"

        edited = client.put(f"/admin/categories/{category_id}", json={"description": "Crabs."})
        assert edited.json()["description"] == "Crabs."
        assert edited.json()["name"] == "Rust"

        assert client.delete(f"/admin/categories/{category_id}").status_code == 204
        assert category_id not in [c["id"] for c in client.get("/categories").json()]

    def test_delete_topic_cascades(self, client):
        assert client.delete("/admin/topics/1").status_code == 204
        assert client.get("/topics/1/posts").json() == []
        assert client.delete("/admin/topics/1").status_code == 404

    def test_admin_create_topic(self, client):
        response = client.post(
            "/admin/topics", json={"title": "Rules", "content": "Be nice.", "category_id": 3, "author_id": "4"}
        )

        assert response.status_code == 201
        assert response.json()["author"]["username"] == "ux_designer"

    def test_user_management(self, client):
        created = client.post("/admin/users", json={"username": "newbie", "name": "Eve"})
        assert created.status_code == 201
        user_id = created.json()["id"]

        assert client.post(f"/admin/users/{user_id}/toggle-admin").json()["is_admin"] is True
        assert client.delete(f"/admin/users/{user_id}").status_code == 403
        assert client.post(f"/admin/users/{user_id}/toggle-admin").json()["is_admin"] is False
        assert client.delete(f"/admin/users/{user_id}").status_code == 204

    def test_duplicate_user(self, client):
        response = client.post("/admin/users", json={"username": "React_Guru", "name": "Copy"})

        assert response.status_code == 409

    def test_root_admin_protected(self, client):
        assert client.delete("/admin/users/1").status_code == 403
        response = client.post("/admin/users/1/toggle-admin")
        assert response.status_code == 403
        assert response.json()["error_code"] == "FORBIDDEN"

    def test_summary_not_configured(self, client):
        response = client.post("/admin/summary")

        assert response.status_code == 503
        assert response.json()["message"] == "API key is not configured."

    def test_summary(self, client):
        with patch.object(ActivitySummarizer, "summarize", return_value="All quiet.") as mock_summarize:
            response = client.post("/admin/summary")

        assert response.status_code == 200
        assert response.json() == {"summary": "All quiet."}
        categories, topics, posts = mock_summarize.call_args.args
        assert (len(categories), len(topics), len(posts)) == (4, 5, 13)


class TestEnforcedAdminEndpoints:
    """Admin routes when the service re-checks the acting user."""

    @pytest.fixture
    def strict_client(self, service):
        service.enforce_admin = True
        return TestClient(create_app(service=service, summarizer=ActivitySummarizer(api_key="")))

    def test_requires_actor_header(self, strict_client):
        assert strict_client.delete("/admin/topics/1").status_code == 403

    def test_non_admin_actor(self, strict_client):
        response = strict_client.delete("/admin/topics/1", headers={"X-User-Id": "2"})

        assert response.status_code == 403

    def test_admin_actor(self, strict_client):
        response = strict_client.delete("/admin/topics/1", headers={"X-User-Id": "1"})

        assert response.status_code == 204
