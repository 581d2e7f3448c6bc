"""
Signed bearer tokens.

Tokens are itsdangerous URL-safe timed payloads ({"sub": <user id>,
"exp": <expiry>}), HMAC-signed with the configured secret key. A token is
valid while the clock reads strictly before exp.
There is no server-side revocation: a token dies when it expires or when
the secret key changes.
"""

from __future__ import annotations

import time
from typing import Callable

from itsdangerous import BadData, TimestampSigner, URLSafeTimedSerializer

from ..utils.exceptions import InvalidToken
from ..utils.logger import get_logger

logger = get_logger(__name__)

TOKEN_SALT = "melos-pizza-bearer"
DEFAULT_TOKEN_TTL_SECONDS = 60 * 60  # 1 hour


class _ClockedSigner(TimestampSigner):
    """TimestampSigner that reads time from an injectable clock."""

    def __init__(self, *args, clock: Callable[[], float] = time.time, **kwargs):
        super().__init__(*args, **kwargs)
        self._clock = clock

    def get_timestamp(self) -> int:
        return int(self._clock())


class TokenService:
    """Issues and verifies bearer tokens. Immutable once built."""

    def __init__(
        self,
        secret_key: str,
        ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._serializer = URLSafeTimedSerializer(
            secret_key,
            salt=TOKEN_SALT,
            signer=_ClockedSigner,
            signer_kwargs={"clock": clock},
        )

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, user_id: str) -> str:
        return self._serializer.dumps({"sub": user_id, "exp": self._clock() + self._ttl_seconds})

    def verify(self, token: str) -> str:
        """Return the user id carried by a valid token, else raise InvalidToken."""
        if not token:
            raise InvalidToken()
        try:
            data = self._serializer.loads(token)
        except BadData:
            logger.info("Token rejected", reason="bad_signature")
            raise InvalidToken()
        if not isinstance(data, dict) or not isinstance(data.get("sub"), str) or not data["sub"]:
            logger.info("Token rejected", reason="bad_payload")
            raise InvalidToken()
        expires_at = data.get("exp")
        if isinstance(expires_at, bool) or not isinstance(expires_at, (int, float)):
            logger.info("Token rejected", reason="bad_payload")
            raise InvalidToken()
        if self._clock() >= expires_at:
            logger.info("Token rejected", reason="expired", user_id=data["sub"])
            raise InvalidToken()
        return data["sub"]
