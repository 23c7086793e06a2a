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
HTTP client for the Vial API.

Wraps httpx with the response envelope: successful calls return the
envelope's data; failures raise VialClientError carrying the server's
error message and status code.

Example:
    with VialClient("http://localhost:8000") as client:
        client.login("admin@example.com", "secret")
        stamp = client.check_updates()
        episodes = client.list_episodes(status="scheduled")
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx
from structlog import get_logger

from ..models.episode import Episode
from ..utils.exceptions import VialError

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 10.0


class VialClientError(VialError):
    """Raised when an API call fails (transport error or failure envelope)."""

    def __init__(self, message: str, status_code: Optional[int] = None, **context):
        super().__init__(message, **context)
        # Instance attribute shadows VialError.status_code (None for transport errors)
        self.status_code = status_code


class VialClient:
    """
    Synchronous Vial API client.

    The session cookie set by login() is kept by the underlying httpx client.
    A bearer token can be passed instead for non-browser use.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._http = http_client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout)
        self._http.headers.update(headers)

    def __enter__(self) -> "VialClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """Send a request and return the decoded success envelope."""
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.warning("Vial API request failed", method=method, path=path, error=str(e))
            raise VialClientError(f"Request failed: {e}", path=path) from e

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error or not body.get("success", False):
            message = body.get("error") or f"HTTP {response.status_code}"
            raise VialClientError(message, status_code=response.status_code, path=path)

        return body

    # ============================================================================
    # Auth
    # ============================================================================

    def login(self, email: str, password: str, remember_me: bool = False) -> Dict[str, Any]:
        body = self._request(
            "POST",
            "/api/auth/login",
            json={"email": email, "password": password, "remember_me": remember_me},
        )
        return body["data"]

    def logout(self) -> None:
        self._request("POST", "/api/auth/logout")

    # ============================================================================
    # Episodes
    # ============================================================================

    def check_updates(self) -> int:
        """Current change stamp of the episode collection (ms)."""
        body = self._request("GET", "/api/episodes", params={"check_only": "true"})
        return int(body.get("last_update", 0))

    def fetch_episodes(self, **filters: Optional[str]) -> Tuple[List[Episode], int]:
        """
        Admin episode list plus the change stamp it was read at.

        Returns:
            (episodes, last_update)
        """
        params = {key: value for key, value in filters.items() if value}
        body = self._request("GET", "/api/episodes", params=params)
        episodes = [Episode.model_validate(item) for item in body.get("data", [])]
        return episodes, int(body.get("last_update", 0))

    def list_episodes(self, **filters: Optional[str]) -> List[Episode]:
        episodes, _ = self.fetch_episodes(**filters)
        return episodes

    def check_public_updates(self) -> int:
        """Change stamp as seen by the listener feed. Needs no admin session."""
        body = self._request("GET", "/api/episodes/public", params={"check_only": "true"})
        return int(body.get("last_update", 0))

    def fetch_public_episodes(self, topic: Optional[str] = None) -> Tuple[List[Dict[str, Any]], int]:
        """
        Listener feed plus the change stamp it was read at.

        Returns:
            (episodes, last_update)
        """
        params = {"topic": topic} if topic else {}
        body = self._request("GET", "/api/episodes/public", params=params)
        return body.get("data", []), int(body.get("last_update", 0))

    def list_public_episodes(self, topic: Optional[str] = None) -> List[Dict[str, Any]]:
        episodes, _ = self.fetch_public_episodes(topic)
        return episodes

    def update_episode(self, episode_id: str, changes: Dict[str, Any]) -> Episode:
        body = self._request("PATCH", f"/api/episodes/{episode_id}", json=changes)
        return Episode.model_validate(body["data"])

    def delete_episode(self, episode_id: str) -> None:
        self._request("DELETE", f"/api/episodes/{episode_id}")

    def record_listen(self, episode_id: str) -> int:
        return int(self._request("POST", f"/api/episodes/{episode_id}/listen")["data"]["listens"])

    # ============================================================================
    # Admin
    # ============================================================================

    def publish_scheduled(self, cron_secret: Optional[str] = None) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {cron_secret}"} if cron_secret else None
        return self._request("POST", "/api/cron/publish-scheduled", headers=headers)["data"]

    def get_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/api/dashboard/stats")["data"]
