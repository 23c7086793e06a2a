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
Media store interface for episode audio.

A media store accepts an uploaded audio file, keeps it somewhere clients can
stream it from, and hands back an AudioReference. The reference's provider_id
is all that's needed to delete the object again.

Usage:
    store = LocalMediaStore(base_path="./data/media")
    audio = store.upload(content, "episode-12.mp3", "audio/mpeg")
    store.delete(audio.provider_id)
"""

from abc import ABC, abstractmethod
from typing import FrozenSet

from structlog import get_logger

from ..models.episode import AudioReference
from ..utils.exceptions import MediaValidationError

logger = get_logger(__name__)

ALLOWED_AUDIO_TYPES: FrozenSet[str] = frozenset(
    {
        "audio/mpeg",
        "audio/mp3",
        "audio/wav",
        "audio/aac",
        "audio/ogg",
        "audio/flac",
    }
)

DEFAULT_MAX_AUDIO_BYTES = 200 * 1024 * 1024


def normalize_content_type(content_type: str) -> str:
    """Drop parameters and case: "Audio/MPEG; charset=x" -> "audio/mpeg"."""
    return (content_type or "").split(";", 1)[0].strip().lower()


def validate_audio(size: int, content_type: str, max_bytes: int = DEFAULT_MAX_AUDIO_BYTES) -> None:
    """
    Reject audio that is empty, too large, or not an accepted audio type.

    Raises:
        MediaValidationError: With a message suitable for showing to the uploader
    """
    if size <= 0:
        raise MediaValidationError("No audio file provided")

    if size > max_bytes:
        max_mb = max_bytes // (1024 * 1024)
        raise MediaValidationError(f"File too large. Maximum size is {max_mb}MB", size=size)

    if normalize_content_type(content_type) not in ALLOWED_AUDIO_TYPES:
        raise MediaValidationError(
            "Invalid file type. Please upload MP3, WAV, AAC, OGG, or FLAC files",
            content_type=content_type,
        )


class MediaStore(ABC):
    """Abstract storage backend for episode audio."""

    @abstractmethod
    def upload(self, content: bytes, file_name: str, content_type: str) -> AudioReference:
        """
        Store an audio file.

        Args:
            content: Raw file bytes (already validated)
            file_name: Original file name as sent by the client
            content_type: MIME type as sent by the client

        Returns:
            Reference to the stored object

        Raises:
            MediaUploadError: If the backend refused or failed the write
        """
        pass

    @abstractmethod
    def delete(self, provider_id: str) -> None:
        """
        Delete a stored object (idempotent).

        Raises:
            MediaStoreError: If the backend failed the delete
        """
        pass

    def try_delete(self, provider_id: str) -> bool:
        """
        Best-effort delete. Failures are logged, never raised.

        Returns:
            True if the delete went through, False otherwise
        """
        if not provider_id:
            return False
        try:
            self.delete(provider_id)
            return True
        except Exception as e:
            logger.warning("Media delete failed", provider_id=provider_id, error=str(e))
            return False
