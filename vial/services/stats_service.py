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
Stats service - dashboard counts for the admin view
"""

import logging
from datetime import datetime, timezone

from pydantic import BaseModel

from ..models.episode import EpisodeStatus
from ..models.listener import ListenerStatus
from ..repositories.episode_repository import EpisodeRepository
from ..repositories.listener_repository import ListenerRepository

logger = logging.getLogger(__name__)


class DashboardStats(BaseModel):
    """Admin dashboard statistics"""

    total_listeners: int
    active_listeners: int

    total_episodes: int
    # Episode counts by status
    published_episodes: int
    scheduled_episodes: int
    draft_episodes: int
    hidden_episodes: int  # Published but not public

    total_listens: int
    last_update: int  # Episode change stamp (ms)
    generated_at: datetime


class StatsService:
    """
    Service for dashboard statistics.

    Attributes:
        episode_repository: Episode persistence
        listener_repository: Listener persistence
    """

    def __init__(
        self,
        episode_repository: EpisodeRepository,
        listener_repository: ListenerRepository,
    ) -> None:
        self.episode_repository = episode_repository
        self.listener_repository = listener_repository

    def get_stats(self) -> DashboardStats:
        logger.debug("Gathering dashboard statistics")

        counts = self.episode_repository.count_by_status()
        published = counts.get(EpisodeStatus.PUBLISHED.value, 0)
        scheduled = counts.get(EpisodeStatus.SCHEDULED.value, 0)
        drafts = counts.get(EpisodeStatus.DRAFT.value, 0)

        return DashboardStats(
            total_listeners=self.listener_repository.count(),
            active_listeners=self.listener_repository.count(ListenerStatus.ACTIVE),
            total_episodes=published + scheduled + drafts,
            published_episodes=published,
            scheduled_episodes=scheduled,
            draft_episodes=drafts,
            hidden_episodes=counts.get("hidden", 0),
            total_listens=self.episode_repository.total_listens(),
            last_update=self.episode_repository.last_modified(),
            generated_at=datetime.now(timezone.utc),
        )
