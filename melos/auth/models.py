"""
User identity models.

UserRecord is what the credential store persists. Only the bcrypt hash
of the password is ever stored.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

USERNAME_MIN_LENGTH = 3
PASSWORD_MIN_LENGTH = 6
# bcrypt only looks at the first 72 bytes
PASSWORD_MAX_BYTES = 72
EMAIL_PATTERN = re.compile(r".+@.+\..+")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRecord(BaseModel):
    """Persisted user (username + email login, bcrypt password hash)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    username: str
    email: str
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


def normalize_identifier(value: str) -> str:
    """Usernames and emails are stored and compared trimmed and lowercased."""
    return (value or "").strip().lower()
