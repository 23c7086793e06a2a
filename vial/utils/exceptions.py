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
Custom exception classes for the Vial application.

Every application error derives from VialError and carries the HTTP status
code the web layer should answer with, so services can raise without knowing
about FastAPI and routes don't need to translate errors one by one.

Example:
    try:
        episode_service.delete_episode(episode_id)
    except EpisodeNotFoundError as e:
        logger.warning(f"Nothing to delete: {e}")
"""


class VialError(Exception):
    """
    Base exception for all Vial application errors.

    Attributes:
        message: Human-readable error message
        context: Optional dict of additional error context (episode_id, email, ...)
        status_code: HTTP status code used by the web exception handler

    Example:
        raise VialError("Failed to save episode", episode_id="abc123")

        # Chain with original exception
        try:
            store.upload(content, name, content_type)
        except Exception as e:
            raise MediaUploadError(f"Audio upload failed: {e}") from e
    """

    status_code = 500

    def __init__(self, message: str, **context):
        """
        Initialize VialError.

        Args:
            message: Human-readable error message
            **context: Optional keyword arguments for error context
        """
        super().__init__(message)
        self.message = message
        self.context = context if context else {}

    def __str__(self):
        """Return string representation of error."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    def __repr__(self):
        """Return detailed representation for debugging."""
        name = type(self).__name__
        if self.context:
            return f"{name}(message={self.message!r}, context={self.context!r})"
        return f"{name}(message={self.message!r})"


class EpisodeNotFoundError(VialError):
    """Raised when an episode id does not exist."""

    status_code = 404

    def __init__(self, episode_id: str):
        super().__init__("Episode not found", episode_id=episode_id)


class ListenerNotFoundError(VialError):
    """Raised when a listener id does not exist."""

    status_code = 404

    def __init__(self, listener_id: str):
        super().__init__("Listener not found", listener_id=listener_id)


class EmailAlreadyRegisteredError(VialError):
    """Raised when signing up (or creating a listener) with a taken email."""

    status_code = 409


class InvalidCredentialsError(VialError):
    """Raised on a failed login. The message never says which part was wrong."""

    status_code = 401

    def __init__(self):
        super().__init__("Invalid email or password")


class InvalidScheduleError(VialError):
    """Raised when a publish date/time is malformed or inconsistent with the status."""

    status_code = 400


class MediaStoreError(VialError):
    """Base class for media store failures."""

    status_code = 502


class MediaValidationError(MediaStoreError):
    """Raised when an audio file is rejected before upload (size or type)."""

    status_code = 400


class MediaUploadError(MediaStoreError):
    """Raised when the media store fails to accept an upload. The caller should retry manually."""

    status_code = 502


class EpisodePersistError(VialError):
    """Raised when the episode document could not be written after a successful upload."""

    status_code = 500


class WelcomeEmailError(VialError):
    """Raised when the welcome email fails and the signup was rolled back."""

    status_code = 502


__all__ = [
    "VialError",
    "EpisodeNotFoundError",
    "ListenerNotFoundError",
    "EmailAlreadyRegisteredError",
    "InvalidCredentialsError",
    "InvalidScheduleError",
    "MediaStoreError",
    "MediaValidationError",
    "MediaUploadError",
    "EpisodePersistError",
    "WelcomeEmailError",
]
