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
Authentication service: email/password accounts with JWT session tokens.

Sessions last SESSION_DAYS (7 by default) or REMEMBER_ME_DAYS (30) when the
listener ticks "remember me". The token expiry and the cookie max-age are
always the same value.
"""

import logging
import secrets
import smtplib
from typing import Optional

from pydantic import BaseModel

from ..models.listener import Listener, LoginRequest, ProfileUpdate, SignupRequest
from ..repositories.listener_repository import ListenerRepository
from ..utils.config import Config
from ..utils.exceptions import (
    EmailAlreadyRegisteredError,
    InvalidCredentialsError,
    ListenerNotFoundError,
    WelcomeEmailError,
)
from ..utils.jwt import create_access_token, decode_token
from ..utils.passwords import hash_password, verify_password
from .mail_service import MailService

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

NULLABLE_PROFILE_FIELDS = ("username", "avatar_url")


class AuthSession(BaseModel):
    """A signed-in listener plus the token to hand back as a cookie."""

    listener: Listener
    token: str
    max_age: int  # Seconds


class AuthService:
    """
    Email/password authentication and profile management.

    Attributes:
        config: Application configuration
        listener_repository: Listener persistence
        mailer: Sends the welcome email (None = no mail)
    """

    def __init__(
        self,
        config: Config,
        listener_repository: ListenerRepository,
        mailer: Optional[MailService] = None,
    ):
        self.config = config
        self.listener_repository = listener_repository
        self.mailer = mailer

        self.jwt_secret_key = config.jwt_secret_key
        self.jwt_algorithm = config.jwt_algorithm

        if not self.jwt_secret_key:
            # Sessions won't survive a restart
            logger.warning("JWT_SECRET_KEY not set, generating random key for this session")
            self.jwt_secret_key = secrets.token_hex(32)

    def is_admin(self, listener: Listener) -> bool:
        return listener.email.lower() in self.config.admin_emails

    def create_session(self, listener: Listener, remember_me: bool = False) -> AuthSession:
        days = self.config.remember_me_days if remember_me else self.config.session_days
        token = create_access_token(
            listener_id=listener.id,
            secret_key=self.jwt_secret_key,
            algorithm=self.jwt_algorithm,
            expires_days=days,
        )
        return AuthSession(listener=listener, token=token, max_age=days * SECONDS_PER_DAY)

    def signup(self, request: SignupRequest) -> AuthSession:
        """
        Create an account, send the welcome email and open a session.

        If the welcome email fails the new account is deleted again.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken
            WelcomeEmailError: If the welcome email could not be sent
        """
        if self.listener_repository.get_by_email(request.email):
            raise EmailAlreadyRegisteredError("Email already registered", email=request.email)

        listener = Listener(
            name=request.name,
            email=request.email,
            password_hash=hash_password(request.password),
            username=request.default_username(),
        )
        self.listener_repository.create(listener)
        logger.info(f"Created listener account: {listener.email}")

        if self.mailer is not None:
            try:
                self.mailer.send_welcome_email(listener.email, listener.name)
            except (smtplib.SMTPException, OSError, ValueError) as e:
                logger.error(f"Welcome email to {listener.email} failed, rolling back signup: {e}")
                self.listener_repository.delete(listener.id)
                raise WelcomeEmailError(
                    "Account could not be created because the welcome email failed. Please try again.",
                    email=listener.email,
                ) from e

        return self.create_session(listener)

    def login(self, request: LoginRequest) -> AuthSession:
        """
        Verify credentials and open a session.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
        """
        listener = self.listener_repository.get_by_email(request.email)
        if listener is None or not verify_password(request.password, listener.password_hash):
            logger.info(f"Failed login for {request.email}")
            raise InvalidCredentialsError()

        self.listener_repository.record_login(listener.id)
        listener = self.listener_repository.get_by_id(listener.id) or listener

        logger.info(f"Listener logged in: {listener.email}")
        return self.create_session(listener, remember_me=request.remember_me)

    def get_current_listener(self, token: Optional[str]) -> Optional[Listener]:
        """
        Resolve a session token to its listener.

        Returns:
            Listener if the token is valid and the account still exists, None otherwise
        """
        if not token:
            return None

        payload = decode_token(token, self.jwt_secret_key, self.jwt_algorithm)
        if payload is None:
            return None

        listener = self.listener_repository.get_by_id(payload.sub)
        if listener is None:
            logger.warning(f"Token references unknown listener: {payload.sub}")
        return listener

    def update_profile(self, listener_id: str, update: ProfileUpdate) -> Listener:
        """
        Raises:
            ListenerNotFoundError: If the account no longer exists
        """
        fields = {
            key: value
            for key, value in update.model_dump(exclude_unset=True).items()
            if value is not None or key in NULLABLE_PROFILE_FIELDS
        }
        if fields and not self.listener_repository.update(listener_id, fields):
            raise ListenerNotFoundError(listener_id)

        listener = self.listener_repository.get_by_id(listener_id)
        if listener is None:
            raise ListenerNotFoundError(listener_id)
        return listener

    def delete_account(self, listener_id: str) -> None:
        """
        Raises:
            ListenerNotFoundError: If the account no longer exists
        """
        if not self.listener_repository.delete(listener_id):
            raise ListenerNotFoundError(listener_id)
        logger.info(f"Deleted listener account: {listener_id}")
