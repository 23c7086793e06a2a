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

import re
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

PUBLISH_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
PUBLISH_TIME_PATTERN = re.compile(r"^\d{2}:\d{2}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EpisodeStatus(str, Enum):
    """
    Episode publish lifecycle.

    - DRAFT: No publish date yet, never visible to listeners
    - SCHEDULED: Publish date/time is in the future
    - PUBLISHED: Publish date/time has passed (visible when is_public is set)
    """

    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


def _check_publish_date(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if not PUBLISH_DATE_PATTERN.match(value):
        raise ValueError("Publish date must be in YYYY-MM-DD format")
    return value


def _check_publish_time(value: Optional[str]) -> Optional[str]:
    if value is None or value == "":
        return None
    if not PUBLISH_TIME_PATTERN.match(value):
        raise ValueError("Publish time must be in HH:MM format")
    return value


class AudioReference(BaseModel):
    """Pointer to an audio object held by the media store."""

    url: str
    provider_id: str  # Key needed to delete the object later
    file_name: str
    size: int = Field(ge=0)
    duration: Optional[float] = None  # Seconds, when the store reports it
    format: Optional[str] = None  # File extension, e.g. "mp3"


class Episode(BaseModel):
    # Internal identifiers (auto-generated)
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    # Episode metadata
    title: str = Field(min_length=3)
    description: str = ""
    topic: str = Field(min_length=1)
    duration: str = Field(min_length=1)  # Display string, e.g. "42:10"
    upload_date: str  # YYYY-MM-DD, in the configured timezone

    # Publish lifecycle
    status: EpisodeStatus = EpisodeStatus.DRAFT
    is_public: bool = False
    publish_date: Optional[str] = None  # YYYY-MM-DD
    publish_time: Optional[str] = None  # HH:MM, defaults to 00:00 when evaluated

    # Engagement
    listens: int = Field(default=0, ge=0)

    # Media
    audio: Optional[AudioReference] = None
    cover_image: Optional[str] = None  # URL or data URL

    @field_validator("title", "description", "topic", "duration", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("publish_date")
    @classmethod
    def check_publish_date(cls, value: Optional[str]) -> Optional[str]:
        return _check_publish_date(value)

    @field_validator("publish_time")
    @classmethod
    def check_publish_time(cls, value: Optional[str]) -> Optional[str]:
        return _check_publish_time(value)

    @property
    def is_hidden(self) -> bool:
        """Published but withheld from the listener feed."""
        return self.status == EpisodeStatus.PUBLISHED and not self.is_public

    @property
    def is_listed(self) -> bool:
        """Visible in the public listener feed."""
        return self.status == EpisodeStatus.PUBLISHED and self.is_public


class NewEpisode(BaseModel):
    """Metadata submitted with an episode upload."""

    title: str = Field(min_length=3)
    description: str = ""
    topic: str = Field(min_length=1)
    duration: str = Field(min_length=1)
    publish_date: Optional[str] = None
    publish_time: Optional[str] = None
    cover_image: Optional[str] = None

    @field_validator("title", "description", "topic", "duration", mode="before")
    @classmethod
    def strip_text(cls, value):
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("publish_date")
    @classmethod
    def check_publish_date(cls, value: Optional[str]) -> Optional[str]:
        return _check_publish_date(value)

    @field_validator("publish_time")
    @classmethod
    def check_publish_time(cls, value: Optional[str]) -> Optional[str]:
        return _check_publish_time(value)

    @field_validator("cover_image")
    @classmethod
    def empty_cover_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class EpisodePatch(BaseModel):
    """
    Partial update for an episode.

    Only fields explicitly present in the request are applied; use
    ``model_dump(exclude_unset=True)`` to read them.
    """

    title: Optional[str] = Field(default=None, min_length=3)
    description: Optional[str] = None
    topic: Optional[str] = Field(default=None, min_length=1)
    duration: Optional[str] = Field(default=None, min_length=1)
    status: Optional[EpisodeStatus] = None
    is_public: Optional[bool] = None
    publish_date: Optional[str] = None
    publish_time: Optional[str] = None
    listens: Optional[int] = Field(default=None, ge=0)
    cover_image: Optional[str] = None

    @field_validator("title", "description", "topic", "duration", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("publish_date")
    @classmethod
    def check_publish_date(cls, value: Optional[str]) -> Optional[str]:
        return _check_publish_date(value)

    @field_validator("publish_time")
    @classmethod
    def check_publish_time(cls, value: Optional[str]) -> Optional[str]:
        return _check_publish_time(value)


class PublishDecision(BaseModel):
    """Outcome of evaluating a publish date/time against the clock."""

    status: EpisodeStatus
    is_public: bool
    publish_at: Optional[datetime] = None
