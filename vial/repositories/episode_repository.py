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
Abstract repository interface for episode persistence.

Every mutating method advances the collection's change stamp (see
last_modified), which clients poll to decide when to refetch.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.episode import Episode, EpisodeStatus


class EpisodeRepository(ABC):
    """Abstract repository for episode persistence operations."""

    @abstractmethod
    def get(self, episode_id: str) -> Optional[Episode]:
        """
        Get episode by internal UUID.

        Returns:
            Episode if found, None otherwise
        """
        pass

    @abstractmethod
    def list(
        self,
        status: Optional[EpisodeStatus] = None,
        topic: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Episode]:
        """
        List episodes, newest upload first.

        Args:
            status: Only episodes in this lifecycle state
            topic: Only episodes with this exact topic
            search: Case-insensitive match on title, description or topic
        """
        pass

    @abstractmethod
    def list_public(self, topic: Optional[str] = None) -> List[Episode]:
        """List episodes that are published AND public, newest upload first."""
        pass

    @abstractmethod
    def find_by_status(self, status: EpisodeStatus) -> List[Episode]:
        pass

    @abstractmethod
    def save(self, episode: Episode) -> Episode:
        """
        Insert a new episode.

        Returns:
            The saved episode
        """
        pass

    @abstractmethod
    def update(self, episode_id: str, updates: Dict[str, Any]) -> bool:
        """
        Update specific episode fields.

        Args:
            episode_id: Internal UUID of the episode
            updates: Field name to new value. Unknown fields are ignored.
                An audio key takes an AudioReference or None.

        Returns:
            True if the episode was found and updated, False otherwise
        """
        pass

    @abstractmethod
    def increment_listens(self, episode_id: str) -> Optional[int]:
        """
        Add one listen to a published, public episode.

        Returns:
            The new listen count, or None if no listed episode has this id
        """
        pass

    @abstractmethod
    def mark_published(self, episode_id: str) -> bool:
        """
        Flip a scheduled episode to published and public.

        Only applies while the episode is still scheduled, so running it twice
        (or racing an admin edit) never overwrites a newer state.

        Returns:
            True if the episode was flipped, False otherwise
        """
        pass

    @abstractmethod
    def delete(self, episode_id: str) -> bool:
        """
        Delete episode by ID.

        Returns:
            True if the episode was deleted, False if not found
        """
        pass

    @abstractmethod
    def count_by_status(self) -> Dict[str, int]:
        """Episode counts keyed by status value, plus hidden (published, not public)."""
        pass

    @abstractmethod
    def total_listens(self) -> int:
        pass

    @abstractmethod
    def last_modified(self) -> int:
        """
        Change stamp of the episode collection in epoch milliseconds.

        Strictly increases with every mutation, deletions included.
        Returns 0 if nothing was ever written.
        """
        pass
