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

"""S3 media store. Works with AWS S3 and S3-compatible services (R2, MinIO)."""

import uuid
from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from structlog import get_logger

from ..models.episode import AudioReference
from ..utils.exceptions import MediaStoreError, MediaUploadError
from ..utils.slug import split_file_name
from .store import MediaStore, normalize_content_type

logger = get_logger(__name__)


class S3MediaStore(MediaStore):
    """
    Stores audio objects in an S3 bucket.

    Usage:
        store = S3MediaStore(
            bucket="my-bucket",
            region="us-east-1",
            prefix="vial/audio",
            endpoint_url="http://localhost:9000",  # MinIO
        )
    """

    def __init__(
        self,
        bucket: str,
        region: str = "us-east-1",
        prefix: str = "",
        endpoint_url: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        public_base_url: str = "",
        client: Any = None,
    ):
        """
        Initialize S3 media store.

        Args:
            bucket: S3 bucket name
            region: AWS region (default: us-east-1)
            prefix: Optional prefix for all keys (e.g., "vial/audio")
            endpoint_url: Custom endpoint for S3-compatible services
            access_key_id: AWS access key (uses environment/IAM if not provided)
            secret_access_key: AWS secret key (uses environment/IAM if not provided)
            public_base_url: Public origin for object URLs (CDN or bucket website)
            client: Pre-built boto3 S3 client
        """
        self.bucket_name = bucket
        self.prefix = prefix.strip("/") + "/" if prefix else ""
        self.region = region
        self.endpoint_url = endpoint_url
        self.public_base_url = public_base_url.rstrip("/")

        if client is None:
            client_kwargs = {
                "service_name": "s3",
                "region_name": region,
                "config": BotoConfig(signature_version="s3v4"),
            }
            if endpoint_url:
                client_kwargs["endpoint_url"] = endpoint_url
            if access_key_id and secret_access_key:
                client_kwargs["aws_access_key_id"] = access_key_id
                client_kwargs["aws_secret_access_key"] = secret_access_key
            client = boto3.client(**client_kwargs)

        self._client = client

    def url_for(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        if self.endpoint_url:
            return f"{self.endpoint_url.rstrip('/')}/{self.bucket_name}/{key}"
        return f"https://{self.bucket_name}.s3.{self.region}.amazonaws.com/{key}"

    def upload(self, content: bytes, file_name: str, content_type: str) -> AudioReference:
        stem, extension = split_file_name(file_name)
        key = f"{self.prefix}{uuid.uuid4().hex}_{stem}"
        if extension:
            key = f"{key}.{extension}"

        logger.info("Uploading audio to S3", bucket=self.bucket_name, key=key, size=len(content))

        try:
            self._client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=content,
                ContentType=normalize_content_type(content_type),
            )
        except (ClientError, BotoCoreError) as e:
            raise MediaUploadError(f"Upload failed, please try again: {e}", file_name=file_name) from e

        return AudioReference(
            url=self.url_for(key),
            provider_id=key,
            file_name=file_name,
            size=len(content),
            format=extension or None,
        )

    def delete(self, provider_id: str) -> None:
        """Delete an object from S3 (idempotent, S3 ignores missing keys)."""
        try:
            self._client.delete_object(Bucket=self.bucket_name, Key=provider_id)
        except (ClientError, BotoCoreError) as e:
            raise MediaStoreError(f"Failed to delete media: {e}", provider_id=provider_id) from e
        logger.debug("Deleted S3 object", bucket=self.bucket_name, key=provider_id)
