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
Direct media store access for admins.

Routes:
- POST /api/audio/upload - Store an audio file, returns its AudioReference
- POST /api/audio/delete - Delete a stored object by provider_id
"""

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel, Field
from structlog import get_logger

from ...media.store import validate_audio
from ...models.listener import Listener
from ...utils.exceptions import MediaValidationError
from ..dependencies import AppState, get_app_state, require_admin
from ..responses import api_response

logger = get_logger(__name__)

router = APIRouter()


class DeleteAudioRequest(BaseModel):
    provider_id: str = Field(min_length=1)


@router.post("/upload", status_code=201)
async def upload_audio(
    audio: Optional[UploadFile] = File(None),
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    """
    Validate and store an audio file without creating an episode.

    Link the returned reference with POST /api/episodes/{id}/audio/link.
    """
    if audio is None or not audio.filename:
        raise MediaValidationError("No audio file provided")

    content = await audio.read()
    content_type = audio.content_type or ""
    validate_audio(len(content), content_type, state.config.max_audio_bytes)

    reference = state.media_store.upload(content, audio.filename, content_type)
    logger.info("Audio uploaded", provider_id=reference.provider_id, size=reference.size)
    return api_response(reference.model_dump(mode="json"), message="Audio uploaded successfully")


@router.post("/delete")
async def delete_audio(
    request: DeleteAudioRequest,
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    """Delete a stored object. Media store failures answer 502."""
    state.media_store.delete(request.provider_id)
    return api_response({"provider_id": request.provider_id}, message="Audio deleted")
