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

"""Abstract repository interface for listener (subscriber) persistence."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.listener import Listener, ListenerStatus


class ListenerRepository(ABC):
    """Abstract repository for listener persistence operations."""

    @abstractmethod
    def get_by_id(self, listener_id: str) -> Optional[Listener]:
        pass

    @abstractmethod
    def get_by_email(self, email: str) -> Optional[Listener]:
        """
        Get listener by email address (case-insensitive).

        Returns:
            Listener if found, None otherwise
        """
        pass

    @abstractmethod
    def list(self, status: Optional[ListenerStatus] = None, search: Optional[str] = None) -> List[Listener]:
        """
        List listeners, newest first.

        Args:
            status: Only listeners with this status
            search: Case-insensitive match on name, email or username
        """
        pass

    @abstractmethod
    def create(self, listener: Listener) -> Listener:
        """
        Insert a new listener.

        Raises:
            EmailAlreadyRegisteredError: If the email is already taken
        """
        pass

    @abstractmethod
    def update(self, listener_id: str, updates: Dict[str, Any]) -> bool:
        """
        Update specific listener fields.

        Returns:
            True if the listener was found and updated, False otherwise
        """
        pass

    @abstractmethod
    def record_login(self, listener_id: str) -> bool:
        """Set last_login to now and add one to login_count."""
        pass

    @abstractmethod
    def delete(self, listener_id: str) -> bool:
        """
        Delete listener by ID.

        Returns:
            True if the listener was deleted, False if not found
        """
        pass

    @abstractmethod
    def count(self, status: Optional[ListenerStatus] = None) -> int:
        pass
