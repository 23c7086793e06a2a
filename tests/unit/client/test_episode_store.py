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
Unit tests for the optimistic EpisodeStore.

Tests cover:
- Optimistic apply followed by the server's version
- Rollback plus refetch when the server rejects a command
- Commands on unknown episodes
- Wiring the store to a ChangePoller
"""

from unittest.mock import MagicMock

import pytest

from vial.client.api_client import VialClient, VialClientError
from vial.client.episode_store import EpisodeStore
from vial.models.episode import Episode, EpisodeStatus


def make_episode(title: str, **overrides) -> Episode:
    fields = {
        "title": title,
        "topic": "Inner Order",
        "duration": "42:10",
        "upload_date": "2025-06-01",
        "status": EpisodeStatus.PUBLISHED,
        "is_public": True,
        "publish_date": "2025-06-01",
    }
    fields.update(overrides)
    return Episode(**fields)


@pytest.fixture
def episodes():
    return [make_episode("First Episode"), make_episode("Second Episode")]


@pytest.fixture
def api(episodes):
    client = MagicMock(spec=VialClient)
    client.fetch_episodes.return_value = (list(episodes), 1000)
    client.check_updates.return_value = 1000
    return client


@pytest.fixture
def store(api):
    store = EpisodeStore(api)
    store.load()
    return store


class TestLoad:
    def test_load_snapshot(self, store, episodes):
        assert store.episodes == episodes
        assert store.last_update == 1000

    def test_refresh_swallows_errors(self, store, api):
        api.fetch_episodes.side_effect = VialClientError("Request failed")

        assert store.refresh() is False
        assert len(store.episodes) == 2


class TestUpdate:
    def test_optimistic_update_then_server_version(self, store, api, episodes):
        target = episodes[0]
        seen_during_send = {}

        def server_update(episode_id, changes):
            seen_during_send["is_public"] = store.get(episode_id).is_public
            return target.model_copy(update={"is_public": False, "listens": 7})

        api.update_episode.side_effect = server_update

        result = store.update_episode(target.id, is_public=False)

        assert result.ok is True
        assert seen_during_send["is_public"] is False
        assert store.get(target.id).listens == 7
        api.update_episode.assert_called_once_with(target.id, {"is_public": False})

    def test_rejected_update_rolls_back_and_refetches(self, store, api, episodes):
        target = episodes[0]
        api.update_episode.side_effect = VialClientError("Scheduled episodes need a publish date", status_code=400)

        result = store.update_episode(target.id, title="Changed Title")

        assert result.ok is False
        assert result.error == "Scheduled episodes need a publish date"
        assert store.get(target.id).title == "First Episode"
        assert api.fetch_episodes.call_count == 2

    def test_rollback_survives_failed_refetch(self, store, api, episodes):
        target = episodes[0]
        api.update_episode.side_effect = VialClientError("Request failed")
        api.fetch_episodes.side_effect = VialClientError("Request failed")

        result = store.update_episode(target.id, title="Changed Title")

        assert result.ok is False
        assert store.get(target.id) == target

    def test_unknown_episode(self, store, api):
        result = store.update_episode("missing", title="Changed Title")

        assert result.ok is False
        assert result.error == "Episode not found"
        api.update_episode.assert_not_called()

    def test_invalid_local_change_is_not_sent(self, store, api, episodes):
        result = store.update_episode(episodes[0].id, title="x")

        assert result.ok is False
        api.update_episode.assert_not_called()
        assert store.get(episodes[0].id).title == "First Episode"


class TestDelete:
    def test_optimistic_delete(self, store, api, episodes):
        result = store.delete_episode(episodes[0].id)

        assert result.ok is True
        assert [e.id for e in store.episodes] == [episodes[1].id]
        api.delete_episode.assert_called_once_with(episodes[0].id)

    def test_failed_delete_restores_position(self, store, api, episodes):
        api.delete_episode.side_effect = VialClientError("Request failed")
        api.fetch_episodes.side_effect = VialClientError("Request failed")

        result = store.delete_episode(episodes[0].id)

        assert result.ok is False
        assert [e.id for e in store.episodes] == [episodes[0].id, episodes[1].id]

    def test_delete_unknown_episode(self, store, api):
        assert store.delete_episode("missing").ok is False
        api.delete_episode.assert_not_called()


class TestWatch:
    def test_poller_reloads_on_change(self, store, api, episodes):
        poller = store.watch(interval=30)
        assert poller.last_seen == 1000

        assert poller.poll_once() is False

        newer = [make_episode("Third Episode")] + list(episodes)
        api.check_updates.return_value = 2000
        api.fetch_episodes.return_value = (newer, 2000)

        assert poller.poll_once() is True
        assert [e.title for e in store.episodes][0] == "Third Episode"
        assert store.last_update == 2000
