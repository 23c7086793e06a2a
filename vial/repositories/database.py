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
Database factory for creating repository instances.

Usage:
    from vial.repositories.database import create_repositories

    repos = create_repositories(config)
    episode_repo = repos.episode
    listener_repo = repos.listener
"""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .episode_repository import EpisodeRepository
from .listener_repository import ListenerRepository

if TYPE_CHECKING:
    from ..utils.config import Config

logger = logging.getLogger(__name__)


@dataclass
class Repositories:
    """Container for all repository instances."""

    episode: EpisodeRepository
    listener: ListenerRepository


def create_repositories(config: "Config") -> Repositories:
    """
    Create repository instances based on configuration.

    Both collections share one SQLite file (config.database_path).
    """
    from .sqlite_episode_repository import SqliteEpisodeRepository
    from .sqlite_listener_repository import SqliteListenerRepository

    episode_repo = SqliteEpisodeRepository(db_path=config.database_path)
    listener_repo = SqliteListenerRepository(db_path=config.database_path)

    logger.info(f"Using SQLite database: {config.database_path}")

    return Repositories(episode=episode_repo, listener=listener_repo)
