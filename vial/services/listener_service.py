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
Listener service - the admin roster of listener accounts.
"""

from typing import List, Optional

from structlog import get_logger

from ..models.listener import Listener, ListenerAdminPatch, ListenerStatus, SignupRequest
from ..repositories.listener_repository import ListenerRepository
from ..utils.exceptions import EmailAlreadyRegisteredError, ListenerNotFoundError
from ..utils.passwords import hash_password

logger = get_logger(__name__)


class ListenerService:
    """Admin-side listener management. No welcome email, no session."""

    def __init__(self, repository: ListenerRepository) -> None:
        self.repository = repository

    def list_listeners(
        self,
        status: Optional[ListenerStatus] = None,
        search: Optional[str] = None,
    ) -> List[Listener]:
        return self.repository.list(status=status, search=search or None)

    def get_listener(self, listener_id: str) -> Listener:
        listener = self.repository.get_by_id(listener_id)
        if listener is None:
            raise ListenerNotFoundError(listener_id)
        return listener

    def create_listener(self, request: SignupRequest) -> Listener:
        """
        Add a listener from the admin roster.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken
        """
        if self.repository.get_by_email(request.email):
            raise EmailAlreadyRegisteredError("Email already registered", email=request.email)

        listener = Listener(
            name=request.name,
            email=request.email,
            password_hash=hash_password(request.password),
            username=request.default_username(),
        )
        self.repository.create(listener)
        logger.info("Listener added by admin", listener_id=listener.id)
        return listener

    def update_listener(self, listener_id: str, patch: ListenerAdminPatch) -> Listener:
        """
        Change status, episodes_completed or total_time.

        Raises:
            ListenerNotFoundError: If no listener has this id
        """
        fields = patch.model_dump(exclude_none=True)
        if fields and not self.repository.update(listener_id, fields):
            raise ListenerNotFoundError(listener_id)

        listener = self.get_listener(listener_id)
        logger.info("Listener updated by admin", listener_id=listener_id, fields=sorted(fields))
        return listener
