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
Unit tests for the auth API.

Tests cover:
- POST /api/auth/signup - cookie, welcome email, 409 on duplicate, rollback on mail failure
- POST /api/auth/login - cookie max-age with and without remember_me
- POST /api/auth/logout
- GET / PATCH / DELETE /api/auth/me
"""

import smtplib

from fastapi.testclient import TestClient

from vial.web.app import create_app

SEVEN_DAYS = 7 * 24 * 60 * 60
THIRTY_DAYS = 30 * 24 * 60 * 60


def _signup(client, email="grace@example.com", password="secret123", name="Grace Hopper"):
    return client.post("/api/auth/signup", json={"name": name, "email": email, "password": password})


def _cookie_header(response) -> str:
    return response.headers.get("set-cookie", "")


class TestSignup:
    def test_signup_sets_session_cookie(self, client, mailer):
        response = _signup(client)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["email"] == "grace@example.com"
        assert body["data"]["username"] == "grace"
        assert body["data"]["is_admin"] is False
        assert "password_hash" not in body["data"]

        cookie = _cookie_header(response)
        assert "vial_token=" in cookie
        assert f"Max-Age={SEVEN_DAYS}" in cookie
        assert "HttpOnly" in cookie
        assert mailer.sent == [("grace@example.com", "Grace Hopper")]

    def test_admin_email_is_flagged(self, client):
        response = _signup(client, email="ADMIN@example.com")

        assert response.json()["data"]["is_admin"] is True

    def test_duplicate_email(self, client):
        _signup(client)

        response = _signup(TestClient(client.app), email="Grace@Example.com")

        assert response.status_code == 409
        assert response.json() == {"success": False, "error": "Email already registered"}

    def test_invalid_payload(self, client):
        response = client.post("/api/auth/signup", json={"name": "Grace", "email": "grace", "password": "secret123"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_welcome_email_failure_rolls_back(self, client, mailer):
        mailer.error = smtplib.SMTPServerDisconnected("Connection unexpectedly closed")

        response = _signup(client)

        assert response.status_code == 502
        assert response.json()["success"] is False
        assert "vial_token" not in _cookie_header(response)

        mailer.error = None
        assert _signup(client).status_code == 201

    def test_email_with_line_break_is_rejected(self, config, media_store, clock):
        # Real MailService, SMTP not configured
        app = create_app(config, media_store=media_store, clock=clock)
        client = TestClient(app)

        response = _signup(client, email="grace@example.com\nbcc: someone@example.org")

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert app.state.app_state.repositories.listener.count() == 0

    def test_unusable_address_rolls_back(self, client, mailer):
        mailer.error = ValueError("Header values may not contain linefeed or carriage return characters")

        response = _signup(client)

        assert response.status_code == 502
        assert response.json()["success"] is False
        fresh = TestClient(client.app)
        login = fresh.post("/api/auth/login", json={"email": "grace@example.com", "password": "secret123"})
        assert login.status_code == 401


class TestLogin:
    def test_login(self, client):
        _signup(client)
        fresh = TestClient(client.app)

        response = fresh.post("/api/auth/login", json={"email": "grace@example.com", "password": "secret123"})

        assert response.status_code == 200
        assert response.json()["data"]["login_count"] == 1
        assert f"Max-Age={SEVEN_DAYS}" in _cookie_header(response)
        assert fresh.get("/api/auth/me").status_code == 200

    def test_remember_me(self, client):
        _signup(client)

        response = client.post(
            "/api/auth/login",
            json={"email": "grace@example.com", "password": "secret123", "remember_me": True},
        )

        assert f"Max-Age={THIRTY_DAYS}" in _cookie_header(response)

    def test_wrong_password(self, client):
        _signup(client)

        response = TestClient(client.app).post(
            "/api/auth/login",
            json={"email": "grace@example.com", "password": "not-it"},
        )

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid email or password"}


class TestSession:
    def test_me_requires_session(self, client):
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "Authentication required"

    def test_logout_clears_cookie(self, client):
        _signup(client)

        response = client.post("/api/auth/logout")

        assert response.status_code == 200
        assert response.json()["message"] == "Logged out successfully"
        assert client.get("/api/auth/me").status_code == 401

    def test_update_profile(self, client):
        _signup(client)

        response = client.patch("/api/auth/me", json={"bio": "Listening slowly", "favorite_topic": "Stillness"})

        assert response.status_code == 200
        assert response.json()["data"]["bio"] == "Listening slowly"
        assert response.json()["data"]["favorite_topic"] == "Stillness"

    def test_blank_name_is_rejected(self, client):
        _signup(client)

        response = client.patch("/api/auth/me", json={"name": "   "})

        assert response.status_code == 400
        assert response.json()["success"] is False
        assert client.get("/api/auth/me").json()["data"]["name"] == "Grace Hopper"

    def test_delete_account(self, client):
        _signup(client)

        response = client.delete("/api/auth/me")

        assert response.status_code == 200
        assert client.get("/api/auth/me").status_code == 401
        fresh = TestClient(client.app)
        assert fresh.post(
            "/api/auth/login",
            json={"email": "grace@example.com", "password": "secret123"},
        ).status_code == 401
