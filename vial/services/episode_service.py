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
Episode service - upload, schedule, edit, delete and the scheduled-publish sweep.

The media store and the database are never written in one transaction. The
service orders the two writes so that a failure leaves at most an orphaned
media object, which it then tries to delete.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field
from structlog import get_logger

from ..media.store import DEFAULT_MAX_AUDIO_BYTES, MediaStore, validate_audio
from ..models.episode import AudioReference, Episode, EpisodePatch, EpisodeStatus, NewEpisode
from ..repositories.episode_repository import EpisodeRepository
from ..utils.exceptions import EpisodeNotFoundError, EpisodePersistError, InvalidScheduleError
from .publishing import determine_episode_status, local_date, parse_publish_moment

logger = get_logger(__name__)

# Topic filter values that mean "every topic"
ALL_TOPICS = {"", "all", "null"}

# Patch fields that can't be cleared by sending null
REQUIRED_FIELDS = ("title", "description", "topic", "duration", "listens")


class SweepFailure(BaseModel):
    episode_id: str
    error: str


class SweepResult(BaseModel):
    """Outcome of one scheduled-publish sweep."""

    checked: int = 0
    published: List[str] = Field(default_factory=list)
    failed: List[SweepFailure] = Field(default_factory=list)
    ran_at: datetime


class EpisodeService:
    """
    Business logic for episodes.

    Attributes:
        repository: Episode persistence
        media_store: Where audio files live
        timezone: IANA timezone that publish dates and times are expressed in
        clock: Callable returning the current aware datetime
        max_audio_bytes: Upload size limit
    """

    def __init__(
        self,
        repository: EpisodeRepository,
        media_store: MediaStore,
        timezone: str = "UTC",
        clock: Optional[Callable[[], datetime]] = None,
        max_audio_bytes: int = DEFAULT_MAX_AUDIO_BYTES,
    ) -> None:
        self.repository = repository
        self.media_store = media_store
        self.timezone = timezone
        self.clock = clock or _utcnow
        self.max_audio_bytes = max_audio_bytes

    # ============================================================================
    # Reads
    # ============================================================================

    def list_episodes(
        self,
        status: Optional[EpisodeStatus] = None,
        topic: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Episode]:
        return self.repository.list(status=status, topic=topic or None, search=search or None)

    def list_public(self, topic: Optional[str] = None) -> List[Episode]:
        """Listener feed: published AND public episodes, optionally for one topic."""
        if topic is not None and topic.strip().lower() in ALL_TOPICS:
            topic = None
        return self.repository.list_public(topic=topic)

    def get_episode(self, episode_id: str) -> Episode:
        """
        Raises:
            EpisodeNotFoundError: If no episode has this id
        """
        episode = self.repository.get(episode_id)
        if episode is None:
            raise EpisodeNotFoundError(episode_id)
        return episode

    def last_update(self) -> int:
        """Change stamp clients compare against to decide whether to refetch."""
        return self.repository.last_modified()

    # ============================================================================
    # Writes
    # ============================================================================

    def create_episode(
        self,
        metadata: NewEpisode,
        audio_content: bytes,
        file_name: str,
        content_type: str,
    ) -> Episode:
        """
        Upload audio and create the episode that points at it.

        Status comes from the publish date/time against the current time.
        If the episode can't be saved, the uploaded audio is deleted again
        (best effort) and EpisodePersistError is raised.

        Raises:
            InvalidScheduleError: Malformed publish date/time
            MediaValidationError: Audio missing, too large or wrong type
            MediaUploadError: The media store failed the upload
            EpisodePersistError: The episode could not be saved
        """
        now = self.clock()
        decision = determine_episode_status(metadata.publish_date, metadata.publish_time, now, self.timezone)

        validate_audio(len(audio_content), content_type, self.max_audio_bytes)
        audio = self.media_store.upload(audio_content, file_name, content_type)

        episode = Episode(
            title=metadata.title,
            description=metadata.description,
            topic=metadata.topic,
            duration=metadata.duration,
            upload_date=local_date(now, self.timezone).isoformat(),
            status=decision.status,
            is_public=decision.is_public,
            publish_date=metadata.publish_date,
            publish_time=metadata.publish_time,
            cover_image=metadata.cover_image,
            audio=audio,
        )

        try:
            self.repository.save(episode)
        except Exception as e:
            logger.error("Failed to save episode, removing uploaded audio", provider_id=audio.provider_id, error=str(e))
            self.media_store.try_delete(audio.provider_id)
            raise EpisodePersistError(f"Failed to save episode: {e}", provider_id=audio.provider_id) from e

        logger.info("Episode created", episode_id=episode.id, status=episode.status.value)
        return episode

    def update_episode(self, episode_id: str, patch: EpisodePatch) -> Episode:
        """
        Apply a partial update.

        Rules for the publish fields:
        - Changing publish_date/publish_time without a status re-derives status
          and visibility from the new schedule.
        - An explicit status wins. Its visibility follows it (public only when
          published) unless is_public is also given.
        - An explicit is_public always wins, which is how a published episode
          gets hidden from listeners.
        - Scheduled needs a publish date.

        Raises:
            EpisodeNotFoundError: If no episode has this id
            InvalidScheduleError: If the schedule is malformed or inconsistent
        """
        episode = self.get_episode(episode_id)
        updates = self._normalize_patch(patch)

        publish_date = updates.get("publish_date", episode.publish_date)
        publish_time = updates.get("publish_time", episode.publish_time)
        schedule_changed = "publish_date" in updates or "publish_time" in updates

        if "status" in updates:
            status = EpisodeStatus(updates["status"])
            if status == EpisodeStatus.SCHEDULED and not publish_date:
                raise InvalidScheduleError("Scheduled episodes need a publish date", episode_id=episode_id)
            if publish_date:
                parse_publish_moment(publish_date, publish_time, self.timezone)
            updates.setdefault("is_public", status == EpisodeStatus.PUBLISHED)
        elif schedule_changed:
            decision = determine_episode_status(publish_date, publish_time, self.clock(), self.timezone)
            updates["status"] = decision.status
            updates.setdefault("is_public", decision.is_public)

        if not updates:
            return episode

        if not self.repository.update(episode_id, updates):
            raise EpisodeNotFoundError(episode_id)

        logger.info("Episode updated", episode_id=episode_id, fields=sorted(updates))
        return self.get_episode(episode_id)

    def replace_audio(self, episode_id: str, audio_content: bytes, file_name: str, content_type: str) -> Episode:
        """
        Upload new audio, attach it, then delete the old object (best effort).

        Raises:
            EpisodeNotFoundError: If no episode has this id
            MediaValidationError / MediaUploadError: As for create_episode
        """
        episode = self.get_episode(episode_id)
        validate_audio(len(audio_content), content_type, self.max_audio_bytes)
        audio = self.media_store.upload(audio_content, file_name, content_type)
        return self._attach_audio(episode, audio)

    def link_audio(self, episode_id: str, audio: AudioReference) -> Episode:
        """Attach an already uploaded audio object, replacing the previous one."""
        return self._attach_audio(self.get_episode(episode_id), audio)

    def _attach_audio(self, episode: Episode, audio: AudioReference) -> Episode:
        try:
            updated = self.repository.update(episode.id, {"audio": audio})
        except Exception as e:
            self.media_store.try_delete(audio.provider_id)
            raise EpisodePersistError(f"Failed to update episode audio: {e}", episode_id=episode.id) from e

        if not updated:
            self.media_store.try_delete(audio.provider_id)
            raise EpisodeNotFoundError(episode.id)

        if episode.audio and episode.audio.provider_id != audio.provider_id:
            self.media_store.try_delete(episode.audio.provider_id)

        logger.info("Episode audio replaced", episode_id=episode.id, provider_id=audio.provider_id)
        return self.get_episode(episode.id)

    def delete_episode(self, episode_id: str) -> Episode:
        """
        Delete an episode and its audio.

        The media object is deleted first. If that fails the failure is logged
        and the episode is deleted anyway.

        Returns:
            The deleted episode

        Raises:
            EpisodeNotFoundError: If no episode has this id
        """
        episode = self.get_episode(episode_id)

        if episode.audio and episode.audio.provider_id:
            if not self.media_store.try_delete(episode.audio.provider_id):
                logger.warning(
                    "Deleting episode with orphaned audio",
                    episode_id=episode_id,
                    provider_id=episode.audio.provider_id,
                )

        if not self.repository.delete(episode_id):
            raise EpisodeNotFoundError(episode_id)

        logger.info("Episode deleted", episode_id=episode_id)
        return episode

    def record_listen(self, episode_id: str) -> int:
        """
        Count one listen of a listed episode.

        Returns:
            The new listen count

        Raises:
            EpisodeNotFoundError: If the episode doesn't exist or isn't published and public
        """
        listens = self.repository.increment_listens(episode_id)
        if listens is None:
            raise EpisodeNotFoundError(episode_id)
        return listens

    # ============================================================================
    # Scheduled-publish sweep
    # ============================================================================

    def publish_scheduled(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Publish every scheduled episode whose publish moment has passed.

        Each episode is flipped in its own update, guarded on the episode
        still being scheduled. A failure on one episode is logged and
        reported without stopping the rest. Running the sweep twice changes
        nothing the second time.
        """
        now = now or self.clock()
        result = SweepResult(ran_at=now)

        for episode in self.repository.find_by_status(EpisodeStatus.SCHEDULED):
            result.checked += 1
            try:
                decision = determine_episode_status(
                    episode.publish_date, episode.publish_time, now, self.timezone
                )
                if decision.status != EpisodeStatus.PUBLISHED:
                    continue
                if self.repository.mark_published(episode.id):
                    result.published.append(episode.id)
                    logger.info("Published scheduled episode", episode_id=episode.id, title=episode.title)
            except Exception as e:
                logger.error("Failed to publish scheduled episode", episode_id=episode.id, error=str(e))
                result.failed.append(SweepFailure(episode_id=episode.id, error=str(e)))

        logger.info(
            "Scheduled publish sweep finished",
            checked=result.checked,
            published=len(result.published),
            failed=len(result.failed),
        )
        return result

    @staticmethod
    def _normalize_patch(patch: EpisodePatch) -> Dict[str, Any]:
        updates = patch.model_dump(exclude_unset=True)
        for field in REQUIRED_FIELDS + ("status", "is_public"):
            if field in updates and updates[field] is None:
                del updates[field]
        return updates


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
