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
Unit tests for SQLite episode repository.

Tests CRUD operations, filters, guarded updates and the change stamp.
"""

import pytest

from vial.models.episode import AudioReference, Episode, EpisodeStatus
from vial.repositories import sqlite_episode_repository
from vial.repositories.sqlite_episode_repository import SqliteEpisodeRepository


@pytest.fixture
def repo(tmp_path):
    return SqliteEpisodeRepository(str(tmp_path / "test.db"))


@pytest.fixture
def audio():
    return AudioReference(
        url="https://cdn.example.com/audio/1_quiet.mp3",
        provider_id="audio/1_quiet.mp3",
        file_name="quiet.mp3",
        size=1024,
        duration=2530.5,
        format="mp3",
    )


def make_episode(**overrides) -> Episode:
    fields = {
        "title": "Quiet Forces",
        "description": "An episode about stillness",
        "topic": "Inner Order",
        "duration": "42:10",
        "upload_date": "2025-06-01",
    }
    fields.update(overrides)
    return Episode(**fields)


class TestSaveAndGet:
    def test_roundtrip_with_audio(self, repo, audio):
        episode = make_episode(audio=audio, cover_image="https://cdn.example.com/cover.jpg", publish_date="2025-06-02")
        repo.save(episode)

        loaded = repo.get(episode.id)

        assert loaded == episode
        assert loaded.audio.duration == 2530.5

    def test_get_missing(self, repo):
        assert repo.get("missing") is None

    def test_roundtrip_without_audio(self, repo):
        episode = make_episode()
        repo.save(episode)

        assert repo.get(episode.id).audio is None


class TestListing:
    def test_newest_upload_first(self, repo):
        older = repo.save(make_episode(title="Older", upload_date="2025-05-01"))
        newer = repo.save(make_episode(title="Newer", upload_date="2025-06-01"))

        assert [e.id for e in repo.list()] == [newer.id, older.id]

    def test_filters(self, repo):
        repo.save(make_episode(title="Morning Stillness", topic="Calm"))
        repo.save(make_episode(title="Evening Pages", description="Notes on STILLNESS", topic="Craft"))
        repo.save(make_episode(title="Scheduled One", status=EpisodeStatus.SCHEDULED, publish_date="2025-07-01"))

        assert {e.title for e in repo.list(search="stillness")} == {"Morning Stillness", "Evening Pages"}
        assert [e.title for e in repo.list(topic="Craft")] == ["Evening Pages"]
        assert [e.title for e in repo.list(status=EpisodeStatus.SCHEDULED)] == ["Scheduled One"]

    def test_list_public_requires_published_and_public(self, repo):
        listed = repo.save(make_episode(status=EpisodeStatus.PUBLISHED, is_public=True))
        repo.save(make_episode(status=EpisodeStatus.PUBLISHED, is_public=False))
        repo.save(make_episode(status=EpisodeStatus.DRAFT, is_public=True))

        assert [e.id for e in repo.list_public()] == [listed.id]
        assert repo.list_public(topic="Elsewhere") == []

    def test_counts(self, repo):
        repo.save(make_episode(status=EpisodeStatus.PUBLISHED, is_public=True, listens=3))
        repo.save(make_episode(status=EpisodeStatus.PUBLISHED, is_public=False, listens=4))
        repo.save(make_episode())

        counts = repo.count_by_status()

        assert counts == {"draft": 1, "scheduled": 0, "published": 2, "hidden": 1}
        assert repo.total_listens() == 7


class TestUpdates:
    def test_update_fields(self, repo):
        episode = repo.save(make_episode())

        assert repo.update(episode.id, {"title": "Renamed", "status": EpisodeStatus.PUBLISHED, "is_public": True})

        loaded = repo.get(episode.id)
        assert loaded.title == "Renamed"
        assert loaded.status == EpisodeStatus.PUBLISHED
        assert loaded.is_public is True
        assert loaded.updated_at >= episode.updated_at

    def test_update_unknown_fields_only(self, repo):
        episode = repo.save(make_episode())

        assert repo.update(episode.id, {"id": "hijack"}) is False

    def test_update_missing_episode(self, repo):
        assert repo.update("missing", {"title": "Renamed"}) is False

    def test_replace_and_clear_audio(self, repo, audio):
        episode = repo.save(make_episode())

        repo.update(episode.id, {"audio": audio})
        assert repo.get(episode.id).audio == audio

        repo.update(episode.id, {"audio": None})
        assert repo.get(episode.id).audio is None

    def test_increment_listens_only_for_listed(self, repo):
        listed = repo.save(make_episode(status=EpisodeStatus.PUBLISHED, is_public=True))
        hidden = repo.save(make_episode(status=EpisodeStatus.PUBLISHED, is_public=False))

        assert repo.increment_listens(listed.id) == 1
        assert repo.increment_listens(listed.id) == 2
        assert repo.increment_listens(hidden.id) is None
        assert repo.increment_listens("missing") is None

    def test_mark_published_is_guarded(self, repo):
        episode = repo.save(make_episode(status=EpisodeStatus.SCHEDULED, publish_date="2025-06-01"))
        draft = repo.save(make_episode())

        assert repo.mark_published(episode.id) is True
        assert repo.mark_published(episode.id) is False
        assert repo.mark_published(draft.id) is False

        loaded = repo.get(episode.id)
        assert loaded.status == EpisodeStatus.PUBLISHED
        assert loaded.is_public is True
        assert repo.get(draft.id).status == EpisodeStatus.DRAFT

    def test_find_by_status(self, repo):
        scheduled = repo.save(make_episode(status=EpisodeStatus.SCHEDULED, publish_date="2025-06-01"))
        repo.save(make_episode())

        assert [e.id for e in repo.find_by_status(EpisodeStatus.SCHEDULED)] == [scheduled.id]

    def test_delete(self, repo):
        episode = repo.save(make_episode())

        assert repo.delete(episode.id) is True
        assert repo.delete(episode.id) is False
        assert repo.get(episode.id) is None


class TestChangeStamp:
    def test_starts_at_zero(self, repo):
        assert repo.last_modified() == 0

    def test_every_mutation_advances_the_stamp(self, repo):
        stamps = [repo.last_modified()]

        episode = repo.save(make_episode(status=EpisodeStatus.SCHEDULED, publish_date="2025-06-01"))
        stamps.append(repo.last_modified())
        repo.update(episode.id, {"title": "Renamed"})
        stamps.append(repo.last_modified())
        repo.mark_published(episode.id)
        stamps.append(repo.last_modified())
        repo.increment_listens(episode.id)
        stamps.append(repo.last_modified())
        repo.delete(episode.id)
        stamps.append(repo.last_modified())

        assert stamps == sorted(set(stamps))

    def test_stamp_is_strictly_increasing_within_one_millisecond(self, repo, monkeypatch):
        monkeypatch.setattr(sqlite_episode_repository, "_now_ms", lambda: 1_000)

        first = repo.save(make_episode())
        a = repo.last_modified()
        repo.update(first.id, {"title": "Renamed"})
        b = repo.last_modified()
        repo.delete(first.id)
        c = repo.last_modified()

        assert a == 1_000
        assert a < b < c

    def test_stamp_never_goes_backwards_with_the_clock(self, repo, monkeypatch):
        monkeypatch.setattr(sqlite_episode_repository, "_now_ms", lambda: 5_000)
        repo.save(make_episode())
        monkeypatch.setattr(sqlite_episode_repository, "_now_ms", lambda: 1_000)
        repo.save(make_episode())

        assert repo.last_modified() == 5_001

    def test_no_op_writes_leave_the_stamp_alone(self, repo):
        episode = repo.save(make_episode())
        stamp = repo.last_modified()

        repo.update("missing", {"title": "Renamed"})
        repo.delete("missing")
        repo.mark_published(episode.id)
        repo.increment_listens(episode.id)

        assert repo.last_modified() == stamp
