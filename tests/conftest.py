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
Shared fixtures for Vial tests.

Provides a fixed clock, an in-memory media store and a fake mailer so tests
never touch the network, plus app/client fixtures for the web API.
"""

import itertools
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from vial.media.store import MediaStore
from vial.models.episode import AudioReference
from vial.repositories.sqlite_episode_repository import SqliteEpisodeRepository
from vial.repositories.sqlite_listener_repository import SqliteListenerRepository
from vial.utils.config import Config
from vial.utils.exceptions import MediaStoreError, MediaUploadError
from vial.web.app import create_app

FIXED_NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password"
LISTENER_EMAIL = "listener@example.com"
LISTENER_PASSWORD = "listener-password"


class FixedClock:
    """Callable clock that only moves when a test moves it."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class InMemoryMediaStore(MediaStore):
    """
    Media store keeping objects in a dict.

    Set fail_upload / fail_delete to simulate backend outages.
    """

    def __init__(self):
        self.objects: Dict[str, bytes] = {}
        self.deleted: List[str] = []
        self.fail_upload = False
        self.fail_delete = False
        self._ids = itertools.count(1)

    def upload(self, content: bytes, file_name: str, content_type: str) -> AudioReference:
        if self.fail_upload:
            raise MediaUploadError("Upload failed, please try again")
        key = f"audio/{next(self._ids)}_{file_name}"
        self.objects[key] = content
        return AudioReference(
            url=f"https://cdn.example.com/{key}",
            provider_id=key,
            file_name=file_name,
            size=len(content),
            format="mp3",
        )

    def delete(self, provider_id: str) -> None:
        if self.fail_delete:
            raise MediaStoreError("Remote delete failed", provider_id=provider_id)
        self.objects.pop(provider_id, None)
        self.deleted.append(provider_id)


class FakeMailer:
    """Records welcome emails instead of sending them."""

    def __init__(self):
        self.sent: List[Tuple[str, Optional[str]]] = []
        self.error: Optional[Exception] = None

    def send_welcome_email(self, email: str, name: Optional[str] = None) -> bool:
        if self.error is not None:
            raise self.error
        self.sent.append((email, name))
        return True


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def media_store():
    return InMemoryMediaStore()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def config(tmp_path):
    """Config isolated to a temp directory with one admin email."""
    return Config(
        storage_path=tmp_path / "data",
        database_path=str(tmp_path / "data" / "vial.db"),
        admin_emails=[ADMIN_EMAIL],
        jwt_secret_key="test-secret-key",
    )


@pytest.fixture
def episode_repository(tmp_path):
    return SqliteEpisodeRepository(str(tmp_path / "episodes.db"))


@pytest.fixture
def listener_repository(tmp_path):
    return SqliteListenerRepository(str(tmp_path / "listeners.db"))


@pytest.fixture
def app(config, media_store, mailer, clock):
    return create_app(config, media_store=media_store, mailer=mailer, clock=clock)


@pytest.fixture
def client(app):
    """Anonymous client."""
    return TestClient(app)


def _signup(client: TestClient, email: str, password: str, name: str = "Test Listener"):
    response = client.post(
        "/api/auth/signup",
        json={"name": name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response


@pytest.fixture
def admin_client(app):
    """Client holding an admin session cookie."""
    client = TestClient(app)
    _signup(client, ADMIN_EMAIL, ADMIN_PASSWORD, name="Ada Admin")
    return client


@pytest.fixture
def listener_client(app):
    """Client holding a regular listener session cookie."""
    client = TestClient(app)
    _signup(client, LISTENER_EMAIL, LISTENER_PASSWORD, name="Lee Listener")
    return client


def _upload_episode(client: TestClient, audio=("episode.mp3", b"ID3-audio-bytes", "audio/mpeg"), **fields):
    data = {
        "title": "Quiet Forces",
        "description": "An episode about stillness",
        "duration": "42:10",
        "topic": "Inner Order",
    }
    data.update(fields)
    files = {"audio": audio} if audio else None
    return client.post("/api/episodes", data=data, files=files)


@pytest.fixture
def upload_episode():
    """POST /api/episodes with sensible default metadata; keyword args override form fields."""
    return _upload_episode
