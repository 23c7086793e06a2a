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
Admin listener roster API.

Routes:
- GET /api/listeners - List listeners (filters: status, search)
- POST /api/listeners - Add a listener
- PATCH /api/listeners/{listener_id} - Change status or engagement counters
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ...models.listener import Listener, ListenerAdminPatch, ListenerStatus, SignupRequest
from ..dependencies import AppState, get_app_state, require_admin
from ..responses import api_response

router = APIRouter()


@router.get("")
async def list_listeners(
    status: Optional[ListenerStatus] = Query(None, description="active or inactive"),
    search: Optional[str] = Query(None, description="Match on name, email or username"),
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    listeners = state.listener_service.list_listeners(status=status, search=search)
    return api_response([listener.public_dict() for listener in listeners], count=len(listeners))


@router.post("", status_code=201)
async def create_listener(
    request: SignupRequest,
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    """
    Add a listener account.

    Returns 409 if the email is already registered.
    """
    listener = state.listener_service.create_listener(request)
    return api_response(listener.public_dict(), message="Listener created")


@router.patch("/{listener_id}")
async def update_listener(
    listener_id: str,
    patch: ListenerAdminPatch,
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    listener = state.listener_service.update_listener(listener_id, patch)
    return api_response(listener.public_dict(), message="Listener updated")
