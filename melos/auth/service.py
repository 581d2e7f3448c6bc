"""
Credential store.

Persists users with bcrypt password hashes in <data_dir>/users.json and
enforces that usernames and emails are unique (case-insensitive). The
uniqueness check and the write run under one store lock, so two racing
registrations for the same username produce exactly one user and one
Conflict.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import bcrypt

from ..core.locks import LOCK_TIMEOUT_SECONDS, acquire_lock, lock_key_store
from ..core.storage import load_collection, save_collection
from ..utils.exceptions import Conflict, StorageError, ValidationError
from ..utils.logger import get_logger
from .models import (
    EMAIL_PATTERN,
    PASSWORD_MAX_BYTES,
    PASSWORD_MIN_LENGTH,
    USERNAME_MIN_LENGTH,
    UserRecord,
    normalize_identifier,
    utcnow,
)

logger = get_logger(__name__)

USERS_FILENAME = "users.json"
DEFAULT_BCRYPT_ROUNDS = 12


def hash_password(password: str, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> str:
    """Hash a password with bcrypt and a fresh salt."""
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def check_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash or over-long candidate
        return False


def _password_errors(password: str) -> List[str]:
    errors = []
    if len(password or "") < PASSWORD_MIN_LENGTH:
        errors.append(f"password must be at least {PASSWORD_MIN_LENGTH} characters")
    elif len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        errors.append(f"password must be at most {PASSWORD_MAX_BYTES} bytes")
    return errors


class CredentialStore:
    """JSON-backed user store."""

    def __init__(
        self,
        data_dir: Path,
        bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
        lock_timeout_seconds: float = LOCK_TIMEOUT_SECONDS,
    ):
        self.data_dir = Path(data_dir)
        self.users_path = self.data_dir / USERS_FILENAME
        self.locks_dir = self.data_dir / "locks"
        self.bcrypt_rounds = bcrypt_rounds
        self.lock_timeout_seconds = lock_timeout_seconds

    def _load(self) -> List[UserRecord]:
        try:
            return [UserRecord(**item) for item in load_collection(self.users_path, "users")]
        except ValueError as e:
            raise StorageError(f"Corrupt user record in {self.users_path}: {e}")

    def _save(self, users: List[UserRecord]) -> None:
        save_collection(self.users_path, "users", [u.model_dump(mode="json") for u in users])

    def _lock(self):
        return acquire_lock(self.locks_dir, lock_key_store("users"), self.lock_timeout_seconds)

    def register(self, username: str, email: str, password: str) -> str:
        """
        Create a user and return its id.

        - username: lowercased, at least 3 characters
        - email: lowercased, must look like an address
        - password: 6+ characters, stored only as a bcrypt hash

        Raises ValidationError listing every violated constraint, or
        Conflict naming the field that is already registered.
        """
        username = normalize_identifier(username)
        email = normalize_identifier(email)

        errors = []
        if len(username) < USERNAME_MIN_LENGTH:
            errors.append(f"username must be at least {USERNAME_MIN_LENGTH} characters")
        if not EMAIL_PATTERN.fullmatch(email):
            errors.append("email must be a valid email address")
        errors.extend(_password_errors(password))
        if errors:
            raise ValidationError("Validation failed: " + ", ".join(errors), errors)

        password_hash = hash_password(password, self.bcrypt_rounds)

        with self._lock():
            users = self._load()
            for field, value in (("username", username), ("email", email)):
                if any(getattr(u, field) == value for u in users):
                    raise Conflict(f"The {field} is already registered", field=field)
            user = UserRecord(username=username, email=email, password_hash=password_hash)
            users.append(user)
            self._save(users)

        logger.info("User registered", user_id=user.id, username=username)
        return user.id

    def find_by_username_or_email(self, value: str) -> Optional[UserRecord]:
        """Case-insensitive lookup on either login identifier."""
        needle = normalize_identifier(value)
        if not needle:
            return None
        return next(
            (u for u in self._load() if u.username == needle or u.email == needle),
            None,
        )

    def get_by_id(self, user_id: str) -> Optional[UserRecord]:
        return next((u for u in self._load() if u.id == user_id), None)

    def verify_password(self, user: UserRecord, candidate: str) -> bool:
        return check_password(candidate or "", user.password_hash)

    def set_password(self, user_id: str, new_password: str) -> None:
        """Re-hash and store a new password for an existing user."""
        errors = _password_errors(new_password)
        if errors:
            raise ValidationError("Validation failed: " + ", ".join(errors), errors)
        password_hash = hash_password(new_password, self.bcrypt_rounds)

        with self._lock():
            users = self._load()
            for i, u in enumerate(users):
                if u.id == user_id:
                    users[i] = u.model_copy(
                        update={"password_hash": password_hash, "updated_at": utcnow()}
                    )
                    break
            else:
                raise ValidationError("Unknown user", [f"user {user_id} does not exist"])
            self._save(users)

        logger.info("Password changed", user_id=user_id)

    def list_users(self) -> List[UserRecord]:
        return self._load()
