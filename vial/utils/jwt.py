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
JWT utilities for session token encoding and decoding.

Uses PyJWT. The token expiry always equals the session cookie max-age.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from ..models.listener import TokenPayload

logger = logging.getLogger(__name__)


def create_access_token(
    listener_id: str,
    secret_key: str,
    algorithm: str = "HS256",
    expires_days: int = 7,
) -> str:
    """
    Create a signed JWT access token.

    Args:
        listener_id: The listener's unique identifier (UUID)
        secret_key: Secret key for signing the token
        algorithm: JWT signing algorithm (default: HS256)
        expires_days: Token expiration in days (default: 7)

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(days=expires_days)

    payload = {
        "sub": listener_id,
        "iat": now,
        "exp": expire,
    }

    token = jwt.encode(payload, secret_key, algorithm=algorithm)
    logger.debug(f"Created access token for listener {listener_id}, expires {expire.isoformat()}")
    return token


def decode_token(
    token: str,
    secret_key: str,
    algorithm: str = "HS256",
) -> Optional[TokenPayload]:
    """
    Decode and validate a JWT token.

    Returns:
        TokenPayload if valid, None if invalid or expired
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])

        return TokenPayload(
            sub=payload["sub"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
        )
    except jwt.ExpiredSignatureError:
        logger.debug("Token has expired")
        return None
    except (jwt.InvalidTokenError, KeyError) as e:
        logger.debug(f"Invalid token: {e}")
        return None
