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
Service layer for Vial

This package contains business logic services shared by the web API and the CLI.
"""

from .auth_service import AuthService, AuthSession
from .episode_service import EpisodeService, SweepResult
from .listener_service import ListenerService
from .mail_service import MailService
from .publishing import determine_episode_status
from .stats_service import DashboardStats, StatsService

__all__ = [
    "AuthService",
    "AuthSession",
    "DashboardStats",
    "EpisodeService",
    "ListenerService",
    "MailService",
    "StatsService",
    "SweepResult",
    "determine_episode_status",
]
