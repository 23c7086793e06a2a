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
FastAPI dependency injection for the Vial web server.

This module provides dependency functions and the AppState class for
injecting services into route handlers.

Usage:
    from fastapi import Depends
    from vial.web.dependencies import get_app_state, AppState

    @router.get("/episodes/public")
    async def public_feed(state: AppState = Depends(get_app_state)):
        return state.episode_service.list_public()
"""

import hmac
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from fastapi import Depends, HTTPException, Request

from .responses import forbidden

if TYPE_CHECKING:
    from ..media.store import MediaStore
    from ..models.listener import Listener
    from ..repositories.database import Repositories
    from ..services import AuthService, EpisodeService, ListenerService, MailService, StatsService
    from ..utils.config import Config


@dataclass
class AppState:
    """
    Application state container for dependency injection.

    Mirrors the CLI context: every collaborator is built once by the app
    factory and shared by all requests.

    Attributes:
        config: Application configuration
        repositories: Episode and listener repositories
        media_store: Audio storage backend
        episode_service: Episode management and the publish sweep
        listener_service: Admin listener roster
        auth_service: Accounts and sessions
        stats_service: Dashboard statistics
        mail_service: Outgoing mail
    """

    config: "Config"
    repositories: "Repositories"
    media_store: "MediaStore"
    episode_service: "EpisodeService"
    listener_service: "ListenerService"
    auth_service: "AuthService"
    stats_service: "StatsService"
    mail_service: "MailService"


def get_app_state(request: Request) -> AppState:
    """
    FastAPI dependency to get the application state.

    Example:
        @router.get("/stats")
        async def get_stats(state: AppState = Depends(get_app_state)):
            return state.stats_service.get_stats()
    """
    return request.app.state.app_state


# Cookie name for the session token
AUTH_COOKIE_NAME = "vial_token"


def get_token_from_request(request: Request) -> Optional[str]:
    """Extract the session token from the cookie or the Authorization header."""
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if token:
        return token

    # Fall back to Authorization header (for API clients)
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header[7:]

    return None


def require_auth(
    request: Request,
    state: AppState = Depends(get_app_state),
) -> "Listener":
    """
    FastAPI dependency that requires a signed-in listener.

    Raises:
        HTTPException: 401 if there is no valid session
    """
    token = get_token_from_request(request)
    listener = state.auth_service.get_current_listener(token)

    if not listener:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return listener


def require_admin(
    listener: "Listener" = Depends(require_auth),
    state: AppState = Depends(get_app_state),
) -> "Listener":
    """
    FastAPI dependency that requires an admin (email listed in ADMIN_EMAILS).

    Raises:
        HTTPException: 401 without a session, 403 for non-admins
    """
    if not state.auth_service.is_admin(listener):
        forbidden()
    return listener


def verify_cron_secret(request: Request, state: AppState = Depends(get_app_state)) -> None:
    """
    Guard for the scheduled-publish endpoint.

    With CRON_SECRET set, the request must carry Authorization: Bearer <secret>.
    Without it the endpoint is open.

    Raises:
        HTTPException: 401 on a missing or wrong secret
    """
    secret = state.config.cron_secret
    if not secret:
        return

    auth_header = request.headers.get("Authorization", "")
    supplied = auth_header[7:] if auth_header.startswith("Bearer ") else ""
    if not hmac.compare_digest(supplied.encode(), secret.encode()):
        raise HTTPException(status_code=401, detail="Unauthorized")
