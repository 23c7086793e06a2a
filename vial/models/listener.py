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

"""Listener accounts, profile edits and session token claims."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_BIO = "Intentional listener exploring quiet forces."
DEFAULT_FAVORITE_TOPIC = "Inner Order"


class ListenerStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Listener(BaseModel):
    """
    Registered listener (subscriber) account.

    Attributes:
        id: Internal UUID for the listener
        name: Display name
        email: Login email, stored lower-cased (unique)
        password_hash: bcrypt hash, never sent to clients
        username: Handle, defaults to the first word of the name
        bio, favorite_topic, avatar_id, avatar_url: Profile fields
        notifications, newsletter: Mail preferences
        episodes_completed: Engagement counter maintained by admins/clients
        total_time: Total listening time in seconds
        status: active or inactive (toggled by admins)
        join_date: When the account was created
        last_login: Most recent successful login
        login_count: Number of successful logins
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    email: str
    password_hash: str
    username: Optional[str] = None
    bio: str = DEFAULT_BIO
    favorite_topic: str = DEFAULT_FAVORITE_TOPIC
    avatar_id: int = 1
    avatar_url: Optional[str] = None
    notifications: bool = True
    newsletter: bool = True
    episodes_completed: int = Field(default=0, ge=0)
    total_time: int = Field(default=0, ge=0)
    status: ListenerStatus = ListenerStatus.ACTIVE
    join_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_login: Optional[datetime] = None
    login_count: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    def public_dict(self) -> Dict[str, Any]:
        """Serializable view without the password hash."""
        return self.model_dump(mode="json", exclude={"password_hash"})


class ProfileUpdate(BaseModel):
    """Fields a listener may change on their own profile."""

    name: Optional[str] = Field(default=None, min_length=1)
    username: Optional[str] = None
    bio: Optional[str] = None
    favorite_topic: Optional[str] = None
    avatar_id: Optional[int] = Field(default=None, ge=1)
    avatar_url: Optional[str] = None
    notifications: Optional[bool] = None
    newsletter: Optional[bool] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class ListenerAdminPatch(BaseModel):
    """Fields an admin may change from the roster."""

    status: Optional[ListenerStatus] = None
    episodes_completed: Optional[int] = Field(default=None, ge=0)
    total_time: Optional[int] = Field(default=None, ge=0)


class TokenPayload(BaseModel):
    """
    JWT token payload claims.

    Attributes:
        sub: Subject - the listener ID
        exp: Expiration time
        iat: Issued at time
    """

    sub: str  # listener_id
    exp: datetime
    iat: datetime


class SignupRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=6)
    username: Optional[str] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            value = value.strip().lower()
            if "@" not in value or value.startswith("@") or value.endswith("@"):
                raise ValueError("A valid email address is required")
            if any(char.isspace() for char in value):
                raise ValueError("Email address must not contain whitespace")
        return value

    def default_username(self) -> Optional[str]:
        """The given username, else the first word of the name, lower-cased."""
        if self.username:
            return self.username
        words = self.name.split()
        return words[0].lower() if words else None


class LoginRequest(BaseModel):
    email: str
    password: str
    remember_me: bool = False

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        return value.strip().lower() if isinstance(value, str) else value
