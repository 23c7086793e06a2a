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
Repository layer for data persistence.

This module provides abstract interfaces and concrete implementations
for data access, following the Repository Pattern to separate
business logic from persistence concerns.
"""

from .database import Repositories, create_repositories
from .episode_repository import EpisodeRepository
from .listener_repository import ListenerRepository
from .sqlite_episode_repository import SqliteEpisodeRepository
from .sqlite_listener_repository import SqliteListenerRepository

__all__ = [
    "EpisodeRepository",
    "ListenerRepository",
    "SqliteEpisodeRepository",
    "SqliteListenerRepository",
    "Repositories",
    "create_repositories",
]
