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
Media storage for episode audio.

Backends:
- local: files under STORAGE_PATH/media, served by the web app at /media
- s3: AWS S3 or any S3-compatible service
"""

from typing import TYPE_CHECKING

from .local_store import LocalMediaStore
from .s3_store import S3MediaStore
from .store import ALLOWED_AUDIO_TYPES, MediaStore, validate_audio

if TYPE_CHECKING:
    from ..utils.config import Config


def create_media_store(config: "Config") -> MediaStore:
    """Build the media store selected by MEDIA_BACKEND."""
    if config.media_backend == "s3":
        return S3MediaStore(
            bucket=config.s3_bucket,
            region=config.s3_region,
            prefix=config.s3_prefix,
            endpoint_url=config.s3_endpoint_url,
            access_key_id=config.aws_access_key_id,
            secret_access_key=config.aws_secret_access_key,
            public_base_url=config.media_public_base_url,
        )
    return LocalMediaStore(
        base_path=str(config.media_path),
        public_base_url=config.media_public_base_url,
    )


__all__ = [
    "ALLOWED_AUDIO_TYPES",
    "MediaStore",
    "LocalMediaStore",
    "S3MediaStore",
    "create_media_store",
    "validate_audio",
]
