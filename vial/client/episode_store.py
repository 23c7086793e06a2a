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
Client-side episode snapshot with optimistic updates.

Edits are expressed as commands. A command changes the local snapshot right
away, then sends the change to the server. If the server call fails the
command undoes its local change and the store refetches, so the snapshot ends
up equal to what the server holds. Callers get a CommandResult back; nothing
is raised.

Example:
    store = EpisodeStore(client)
    store.load()
    result = store.update_episode(episode_id, is_public=False)
    if not result.ok:
        print(result.error)
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from structlog import get_logger

from ..models.episode import Episode
from .api_client import VialClient, VialClientError
from .poller import DEFAULT_POLL_INTERVAL, ChangePoller

logger = get_logger(__name__)


@dataclass
class CommandResult:
    ok: bool
    error: Optional[str] = None


class EpisodeCommand(ABC):
    """A reversible edit of the episode snapshot."""

    episode_id: str

    @abstractmethod
    def apply(self, store: "EpisodeStore") -> None:
        """Change the local snapshot."""

    @abstractmethod
    def send(self, client: VialClient, store: "EpisodeStore") -> None:
        """Send the change to the server. Raises VialClientError on failure."""

    @abstractmethod
    def undo(self, store: "EpisodeStore") -> None:
        """Restore the snapshot to how it was before apply()."""


class UpdateEpisodeCommand(EpisodeCommand):
    def __init__(self, episode_id: str, changes: Dict[str, Any]):
        self.episode_id = episode_id
        self.changes = dict(changes)
        self._previous: Optional[Episode] = None

    def apply(self, store: "EpisodeStore") -> None:
        current = store.get(self.episode_id)
        if current is None:
            raise KeyError(self.episode_id)
        self._previous = current
        optimistic = Episode.model_validate({**current.model_dump(), **self.changes})
        store._replace(optimistic)

    def send(self, client: VialClient, store: "EpisodeStore") -> None:
        # The server may derive more than we changed (status from a new schedule)
        store._replace(client.update_episode(self.episode_id, self.changes))

    def undo(self, store: "EpisodeStore") -> None:
        if self._previous is not None:
            store._replace(self._previous)


class DeleteEpisodeCommand(EpisodeCommand):
    def __init__(self, episode_id: str):
        self.episode_id = episode_id
        self._previous: Optional[Episode] = None
        self._index = 0

    def apply(self, store: "EpisodeStore") -> None:
        self._index, self._previous = store._remove(self.episode_id)

    def send(self, client: VialClient, store: "EpisodeStore") -> None:
        client.delete_episode(self.episode_id)

    def undo(self, store: "EpisodeStore") -> None:
        if self._previous is not None:
            store._insert(self._index, self._previous)


class EpisodeStore:
    """
    The client's view of the admin episode list.

    Attributes:
        client: API client used for fetches and commands
        last_update: Change stamp the snapshot was read at
    """

    def __init__(self, client: VialClient):
        self.client = client
        self.last_update = 0
        self._episodes: List[Episode] = []
        self._lock = threading.RLock()

    @property
    def episodes(self) -> List[Episode]:
        with self._lock:
            return list(self._episodes)

    def get(self, episode_id: str) -> Optional[Episode]:
        with self._lock:
            for episode in self._episodes:
                if episode.id == episode_id:
                    return episode
        return None

    def load(self) -> None:
        """
        Replace the snapshot with the server's list.

        Raises:
            VialClientError: If the fetch failed
        """
        episodes, last_update = self.client.fetch_episodes()
        with self._lock:
            self._episodes = episodes
            self.last_update = last_update

    def refresh(self) -> bool:
        """load(), but failures are logged and reported instead of raised."""
        try:
            self.load()
            return True
        except VialClientError as e:
            logger.warning("Episode refresh failed", error=str(e))
            return False

    def dispatch(self, command: EpisodeCommand) -> CommandResult:
        """Apply a command optimistically and confirm it with the server."""
        with self._lock:
            try:
                command.apply(self)
            except KeyError:
                return CommandResult(ok=False, error="Episode not found")
            except ValidationError as e:
                return CommandResult(ok=False, error=str(e))

        try:
            command.send(self.client, self)
        except VialClientError as e:
            logger.warning(
                "Episode command failed, rolling back",
                command=type(command).__name__,
                episode_id=command.episode_id,
                error=str(e),
            )
            with self._lock:
                command.undo(self)
            self.refresh()
            return CommandResult(ok=False, error=e.message)

        return CommandResult(ok=True)

    def update_episode(self, episode_id: str, **changes: Any) -> CommandResult:
        return self.dispatch(UpdateEpisodeCommand(episode_id, changes))

    def delete_episode(self, episode_id: str) -> CommandResult:
        return self.dispatch(DeleteEpisodeCommand(episode_id))

    def watch(self, interval: float = DEFAULT_POLL_INTERVAL) -> ChangePoller:
        """A poller (not yet started) that reloads this store when the server changes."""
        return ChangePoller(
            check=self.client.check_updates,
            on_change=lambda server_ts: self.load(),
            interval=interval,
            last_seen=self.last_update,
        )

    # Snapshot mutation helpers used by commands

    def _replace(self, episode: Episode) -> None:
        with self._lock:
            for index, existing in enumerate(self._episodes):
                if existing.id == episode.id:
                    self._episodes[index] = episode
                    return

    def _remove(self, episode_id: str):
        with self._lock:
            for index, existing in enumerate(self._episodes):
                if existing.id == episode_id:
                    return index, self._episodes.pop(index)
        raise KeyError(episode_id)

    def _insert(self, index: int, episode: Episode) -> None:
        with self._lock:
            self._episodes.insert(min(index, len(self._episodes)), episode)
