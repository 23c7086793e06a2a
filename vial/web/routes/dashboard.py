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
Dashboard API endpoints.

Provides the counts shown on the admin overview.
"""

from fastapi import APIRouter, Depends

from ...models.listener import Listener
from ..dependencies import AppState, get_app_state, require_admin
from ..responses import api_response

router = APIRouter()


@router.get("/stats")
async def get_dashboard_stats(
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    """
    Get dashboard statistics.

    Returns:
        Listener and episode counts, total listens and the episode change stamp.
    """
    stats = state.stats_service.get_stats()
    return api_response(stats.model_dump(mode="json"))
