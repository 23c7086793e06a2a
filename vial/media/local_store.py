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

"""Local filesystem media store, served by the web app under /media."""

import uuid
from pathlib import Path

from structlog import get_logger

from ..models.episode import AudioReference
from ..utils.exceptions import MediaStoreError, MediaUploadError
from ..utils.slug import split_file_name
from .store import MediaStore

logger = get_logger(__name__)

MEDIA_URL_PATH = "/media"


class LocalMediaStore(MediaStore):
    """
    Stores audio under a base directory.

    Objects are keyed audio/<uuid>_<slug>.<ext>; the key doubles as the
    provider_id and as the path below the /media mount.
    """

    def __init__(self, base_path: str, public_base_url: str = ""):
        """
        Initialize local media store.

        Args:
            base_path: Base directory for stored media
            public_base_url: Origin prepended to /media URLs ("" = relative URLs)
        """
        self.base_path = Path(base_path).resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/")

    def _resolve_path(self, key: str) -> Path:
        """Resolve a key to an absolute path under the base directory."""
        normalized = key.replace("\\", "/")
        resolved = (self.base_path / normalized).resolve()

        try:
            resolved.relative_to(self.base_path)
        except ValueError:
            raise MediaStoreError("Media path escapes base directory", provider_id=key)

        return resolved

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}{MEDIA_URL_PATH}/{key}"

    def upload(self, content: bytes, file_name: str, content_type: str) -> AudioReference:
        stem, extension = split_file_name(file_name)
        key = f"audio/{uuid.uuid4().hex}_{stem}"
        if extension:
            key = f"{key}.{extension}"

        file_path = self._resolve_path(key)
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_bytes(content)
        except OSError as e:
            raise MediaUploadError(f"Upload failed, please try again: {e}", file_name=file_name) from e

        logger.info("Stored audio", provider_id=key, size=len(content))
        return AudioReference(
            url=self.url_for(key),
            provider_id=key,
            file_name=file_name,
            size=len(content),
            format=extension or None,
        )

    def delete(self, provider_id: str) -> None:
        file_path = self._resolve_path(provider_id)
        try:
            file_path.unlink(missing_ok=True)
        except OSError as e:
            raise MediaStoreError(f"Failed to delete media: {e}", provider_id=provider_id) from e
        logger.debug("Deleted audio", provider_id=provider_id)
