# Copyright 2025 thestill.me
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Unit tests for the admin, cron and health endpoints.

Tests cover:
- GET / POST / PATCH /api/listeners - listener roster
- GET /api/dashboard/stats - dashboard counts
- GET|POST /api/cron/publish-scheduled - scheduled-publish sweep and its secret
- GET / and GET /health
- Unexpected errors still answer with the failure envelope
"""

import sqlite3

import pytest
from fastapi.testclient import TestClient

from vial.web.app import create_app


class TestListenersApi:
    def test_create_and_list(self, admin_client):
        created = admin_client.post(
            "/api/listeners",
            json={"name": "Grace Hopper", "email": "grace@example.com", "password": "secret123"},
        )

        assert created.status_code == 201
        assert created.json()["message"] == "Listener created"
        assert "password_hash" not in created.json()["data"]
        assert created.json()["data"]["username"] == "grace"

        body = admin_client.get("/api/listeners", params={"search": "grace"}).json()
        assert body["count"] == 1
        assert body["data"][0]["email"] == "grace@example.com"

    def test_create_duplicate(self, admin_client):
        response = admin_client.post(
            "/api/listeners",
            json={"name": "Another Admin", "email": "admin@example.com", "password": "secret123"},
        )

        assert response.status_code == 409

    def test_no_welcome_email_for_admin_created_listener(self, admin_client, mailer):
        sent_before = list(mailer.sent)

        admin_client.post(
            "/api/listeners",
            json={"name": "Grace", "email": "grace@example.com", "password": "secret123"},
        )

        assert mailer.sent == sent_before

    def test_deactivate_listener(self, admin_client):
        listener_id = admin_client.post(
            "/api/listeners",
            json={"name": "Grace", "email": "grace@example.com", "password": "secret123"},
        ).json()["data"]["id"]

        response = admin_client.patch(f"/api/listeners/{listener_id}", json={"status": "inactive", "total_time": 90})

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "inactive"
        assert response.json()["data"]["total_time"] == 90
        inactive = admin_client.get("/api/listeners", params={"status": "inactive"}).json()
        assert [listener["id"] for listener in inactive["data"]] == [listener_id]

    def test_patch_unknown_listener(self, admin_client):
        response = admin_client.patch("/api/listeners/missing", json={"status": "inactive"})

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "Listener not found"}

    def test_listener_cannot_see_roster(self, listener_client):
        assert listener_client.get("/api/listeners").status_code == 403


class TestDashboardApi:
    def test_stats(self, admin_client, listener_client, upload_episode):
        upload_episode(admin_client, publish_date="2025-05-01")
        upload_episode(admin_client, publish_date="2025-07-01")
        upload_episode(admin_client)

        data = admin_client.get("/api/dashboard/stats").json()["data"]

        assert data["total_listeners"] == 2
        assert data["active_listeners"] == 2
        assert data["total_episodes"] == 3
        assert data["published_episodes"] == 1
        assert data["scheduled_episodes"] == 1
        assert data["draft_episodes"] == 1
        assert data["hidden_episodes"] == 0
        assert data["total_listens"] == 0
        assert data["last_update"] > 0


class TestCronApi:
    def test_publishes_due_episodes(self, admin_client, client, upload_episode, clock):
        episode_id = upload_episode(admin_client, publish_date="2025-06-01", publish_time="13:00").json()["data"]["id"]

        nothing_due = client.post("/api/cron/publish-scheduled").json()
        assert nothing_due["data"]["published"] == []
        assert nothing_due["message"] == "Published 0 episodes"

        clock.advance(hours=1)
        body = client.get("/api/cron/publish-scheduled").json()

        assert body["success"] is True
        assert body["data"]["published"] == [episode_id]
        assert body["data"]["checked"] == 1
        assert body["message"] == "Published 1 episode"
        assert client.get("/api/episodes/public").json()["count"] == 1

        again = client.post("/api/cron/publish-scheduled").json()
        assert again["data"]["published"] == []

    @pytest.fixture
    def secured_client(self, config, media_store, mailer, clock):
        config.cron_secret = "cron-secret"
        return TestClient(create_app(config, media_store=media_store, mailer=mailer, clock=clock))

    def test_secret_required_when_configured(self, secured_client):
        missing = secured_client.post("/api/cron/publish-scheduled")
        wrong = secured_client.post("/api/cron/publish-scheduled", headers={"Authorization": "Bearer nope"})
        right = secured_client.post("/api/cron/publish-scheduled", headers={"Authorization": "Bearer cron-secret"})

        assert missing.status_code == 401
        assert missing.json() == {"success": False, "error": "Unauthorized"}
        assert wrong.status_code == 401
        assert right.status_code == 200


class TestHealth:
    def test_root(self, client):
        assert client.get("/").json() == {"service": "vial", "status": "ok"}

    def test_health(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        assert "timestamp" in body

    def test_request_id_header(self, client):
        generated = client.get("/health")
        echoed = client.get("/health", headers={"X-Request-ID": "abc123"})

        assert len(generated.headers["X-Request-ID"]) == 8
        assert echoed.headers["X-Request-ID"] == "abc123"


class TestUnexpectedErrors:
    def test_database_error_uses_failure_envelope(self, app, admin_client, monkeypatch):
        def locked(**filters):
            raise sqlite3.OperationalError("database is locked")

        monkeypatch.setattr(app.state.app_state.episode_service.repository, "list", locked)
        token = admin_client.cookies.get("vial_token")
        client = TestClient(app, raise_server_exceptions=False)

        response = client.get("/api/episodes", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 500
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"success": False, "error": "Internal server error"}
