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
Scheduled-publish trigger.

An external scheduler (cron, a hosting platform's cron jobs) calls this
endpoint periodically. GET and POST behave the same.
"""

from fastapi import APIRouter, Depends
from structlog import get_logger

from ..dependencies import AppState, get_app_state, verify_cron_secret
from ..responses import api_response

logger = get_logger(__name__)

router = APIRouter()


@router.api_route("/publish-scheduled", methods=["GET", "POST"], dependencies=[Depends(verify_cron_secret)])
async def publish_scheduled(state: AppState = Depends(get_app_state)):
    """
    Publish every scheduled episode whose publish moment has passed.

    Returns:
        Ids of published episodes, failures and how many were checked.
    """
    result = state.episode_service.publish_scheduled()
    count = len(result.published)
    return api_response(
        result.model_dump(mode="json"),
        message=f"Published {count} episode{'s' if count != 1 else ''}",
    )
