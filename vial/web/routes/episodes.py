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
Episode API endpoints.

Admin routes (require an admin session):
- GET /api/episodes - List episodes (filters: status, topic, search)
- GET /api/episodes?check_only=true - Change stamp only, for polling
- GET /api/episodes/{episode_id} - Single episode
- POST /api/episodes - Multipart upload: metadata + audio file
- PATCH /api/episodes/{episode_id} - Partial update
- POST /api/episodes/{episode_id}/audio - Replace audio with an uploaded file
- POST /api/episodes/{episode_id}/audio/link - Attach an already uploaded object
- DELETE /api/episodes/{episode_id} - Delete episode and its audio

Listener routes:
- GET /api/episodes/public - Published and public episodes (no session needed)
- GET /api/episodes/public?check_only=true - Change stamp only, for listener polling
- POST /api/episodes/{episode_id}/listen - Count a listen (session required)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from ...models.episode import AudioReference, Episode, EpisodePatch, EpisodeStatus, NewEpisode
from ...models.listener import Listener
from ...utils.exceptions import MediaValidationError
from ..dependencies import AppState, get_app_state, require_admin, require_auth
from ..responses import api_response

router = APIRouter()


def episode_to_dict(episode: Episode) -> Dict[str, Any]:
    return episode.model_dump(mode="json")


def public_episode_to_dict(episode: Episode) -> Dict[str, Any]:
    """Listener view: visibility is implied, so is_public is left out."""
    return episode.model_dump(mode="json", exclude={"is_public"})


async def _read_audio(audio: Optional[UploadFile]) -> bytes:
    if audio is None or not audio.filename:
        raise MediaValidationError("Audio file is required")
    return await audio.read()


@router.get("")
async def list_episodes(
    check_only: bool = Query(False, description="Return only the change stamp"),
    status: Optional[EpisodeStatus] = Query(None),
    topic: Optional[str] = Query(None),
    search: Optional[str] = Query(None, description="Match on title, description or topic"),
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    """
    List episodes for the admin view.

    With check_only=true only ``last_update`` is returned. Clients poll that
    and refetch the list when it grows.
    """
    last_update = state.episode_service.last_update()
    if check_only:
        return api_response(last_update=last_update)

    episodes = state.episode_service.list_episodes(status=status, topic=topic, search=search)
    return api_response(
        [episode_to_dict(episode) for episode in episodes],
        count=len(episodes),
        last_update=last_update,
    )


@router.get("/public")
async def list_public_episodes(
    check_only: bool = Query(False, description="Return only the change stamp"),
    topic: Optional[str] = Query(None, description='Topic filter ("all" or "null" for every topic)'),
    state: AppState = Depends(get_app_state),
):
    """
    Listener feed: published AND public episodes, newest upload first.

    Carries the same ``last_update`` stamp as the admin list, so listener
    views poll with check_only=true and refetch when it grows.
    """
    last_update = state.episode_service.last_update()
    if check_only:
        return api_response(last_update=last_update)

    episodes = state.episode_service.list_public(topic=topic)
    return api_response(
        [public_episode_to_dict(episode) for episode in episodes],
        count=len(episodes),
        last_update=last_update,
    )


@router.get("/{episode_id}")
async def get_episode(
    episode_id: str,
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    episode = state.episode_service.get_episode(episode_id)
    return api_response(episode_to_dict(episode))


@router.post("", status_code=201)
async def create_episode(
    title: str = Form(""),
    description: str = Form(""),
    duration: str = Form(""),
    topic: str = Form(""),
    publish_date: Optional[str] = Form(None),
    publish_time: Optional[str] = Form(None),
    cover_image: Optional[str] = Form(None),
    audio: Optional[UploadFile] = File(None),
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    """
    Upload an episode.

    Status is decided from publish_date/publish_time:
    no date is a draft, a past moment is published, a future one is scheduled.
    """
    metadata = NewEpisode(
        title=title,
        description=description,
        duration=duration,
        topic=topic,
        publish_date=publish_date,
        publish_time=publish_time,
        cover_image=cover_image,
    )
    content = await _read_audio(audio)

    episode = state.episode_service.create_episode(
        metadata,
        content,
        file_name=audio.filename,
        content_type=audio.content_type or "",
    )
    return api_response(episode_to_dict(episode), message="Episode uploaded successfully")


@router.patch("/{episode_id}")
async def update_episode(
    episode_id: str,
    patch: EpisodePatch,
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    episode = state.episode_service.update_episode(episode_id, patch)
    return api_response(episode_to_dict(episode), message="Episode updated")


@router.post("/{episode_id}/audio")
async def replace_episode_audio(
    episode_id: str,
    audio: Optional[UploadFile] = File(None),
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    content = await _read_audio(audio)
    episode = state.episode_service.replace_audio(
        episode_id,
        content,
        file_name=audio.filename,
        content_type=audio.content_type or "",
    )
    return api_response(episode_to_dict(episode), message="Audio replaced")


@router.post("/{episode_id}/audio/link")
async def link_episode_audio(
    episode_id: str,
    audio: AudioReference,
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    """Attach audio previously stored through POST /api/audio/upload."""
    episode = state.episode_service.link_audio(episode_id, audio)
    return api_response(episode_to_dict(episode), message="Audio linked")


@router.post("/{episode_id}/listen")
async def record_listen(
    episode_id: str,
    state: AppState = Depends(get_app_state),
    listener: Listener = Depends(require_auth),
):
    """Count one listen. Only published, public episodes can be listened to."""
    listens = state.episode_service.record_listen(episode_id)
    return api_response({"id": episode_id, "listens": listens})


@router.delete("/{episode_id}")
async def delete_episode(
    episode_id: str,
    state: AppState = Depends(get_app_state),
    admin: Listener = Depends(require_admin),
):
    """
    Delete an episode.

    The audio object is removed first. If the media store fails, the episode
    is still deleted and the orphaned object is logged.
    """
    episode = state.episode_service.delete_episode(episode_id)
    return api_response({"id": episode.id}, message="Episode deleted")
