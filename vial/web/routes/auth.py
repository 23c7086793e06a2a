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
Authentication API routes for the Vial web server.

Routes:
- POST /api/auth/signup - Create an account and start a session
- POST /api/auth/login - Verify credentials and start a session
- POST /api/auth/logout - Clear the session cookie
- GET /api/auth/me - Current listener
- PATCH /api/auth/me - Edit own profile
- DELETE /api/auth/me - Delete own account
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from structlog import get_logger

from ...models.listener import Listener, LoginRequest, ProfileUpdate, SignupRequest
from ...services.auth_service import AuthSession
from ..dependencies import AUTH_COOKIE_NAME, AppState, get_app_state, require_auth
from ..responses import api_response

logger = get_logger(__name__)

router = APIRouter()


def _set_auth_cookie(response: Response, session: AuthSession, secure: bool) -> None:
    """Set the session cookie. Its max-age matches the token expiry."""
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=session.token,
        max_age=session.max_age,
        httponly=True,
        samesite="lax",
        secure=secure,
        path="/",
    )


def _clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=AUTH_COOKIE_NAME, path="/")


def _listener_payload(state: AppState, listener: Listener) -> Dict[str, Any]:
    return {**listener.public_dict(), "is_admin": state.auth_service.is_admin(listener)}


@router.post("/signup", status_code=201)
async def signup(request: SignupRequest, response: Response, state: AppState = Depends(get_app_state)):
    """
    Create an account.

    Sends the welcome email; if that fails the account is removed again and
    the request fails with 502.
    """
    session = state.auth_service.signup(request)
    _set_auth_cookie(response, session, state.config.secure_cookies)
    logger.info("Listener signed up", listener_id=session.listener.id)
    return api_response(_listener_payload(state, session.listener), message="Account created")


@router.post("/login")
async def login(request: LoginRequest, response: Response, state: AppState = Depends(get_app_state)):
    """Sign in. remember_me extends the session from 7 to 30 days."""
    session = state.auth_service.login(request)
    _set_auth_cookie(response, session, state.config.secure_cookies)
    return api_response(_listener_payload(state, session.listener), message="Logged in")


@router.post("/logout")
async def logout(response: Response):
    _clear_auth_cookie(response)
    logger.info("Listener logged out")
    return api_response(message="Logged out successfully")


@router.get("/me")
async def get_me(listener: Listener = Depends(require_auth), state: AppState = Depends(get_app_state)):
    return api_response(_listener_payload(state, listener))


@router.patch("/me")
async def update_me(
    update: ProfileUpdate,
    listener: Listener = Depends(require_auth),
    state: AppState = Depends(get_app_state),
):
    updated = state.auth_service.update_profile(listener.id, update)
    return api_response(_listener_payload(state, updated), message="Profile updated")


@router.delete("/me")
async def delete_me(
    response: Response,
    listener: Listener = Depends(require_auth),
    state: AppState = Depends(get_app_state),
):
    state.auth_service.delete_account(listener.id)
    _clear_auth_cookie(response)
    return api_response(message="Account deleted")
