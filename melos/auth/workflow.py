"""
Registration and login orchestration.

The workflow trims input, delegates to the credential store and token
service, and translates store failures into the caller-facing error
taxonomy. Login failures are always reported as "Invalid credentials";
only the log line says whether the user was unknown or the password
was wrong.
"""

from __future__ import annotations

from typing import Dict

from ..utils.exceptions import Conflict, InternalError, StorageError, Unauthorized, ValidationError
from ..utils.logger import get_logger
from .service import CredentialStore
from .tokens import TokenService

logger = get_logger(__name__)


def _require_fields(**fields: str) -> Dict[str, str]:
    cleaned = {name: (value or "").strip() for name, value in fields.items()}
    missing = [name for name, value in cleaned.items() if not value]
    if missing:
        raise ValidationError(
            "Missing required fields: " + ", ".join(missing),
            [f"{name} is required" for name in missing],
        )
    return cleaned


class AuthWorkflow:
    def __init__(self, credentials: CredentialStore, tokens: TokenService):
        self.credentials = credentials
        self.tokens = tokens

    def handle_register(self, username: str, email: str, password: str) -> Dict[str, str]:
        # password is checked for emptiness only; surrounding spaces are kept
        fields = _require_fields(username=username, email=email)
        if not password or not password.strip():
            raise ValidationError("Missing required fields: password", ["password is required"])

        try:
            user_id = self.credentials.register(fields["username"], fields["email"], password)
        except Conflict as e:
            logger.info("Registration rejected", reason="conflict", field=e.field)
            raise Conflict(f"{e.field} is already taken", field=e.field)
        except ValidationError as e:
            logger.info("Registration rejected", reason="validation", errors=e.errors)
            raise
        except StorageError as e:
            logger.error("Registration failed", error=str(e))
            raise InternalError("Error registering user")

        return {"user_id": user_id}

    def handle_login(self, username_or_email: str, password: str) -> Dict[str, str]:
        fields = _require_fields(username_or_email=username_or_email)
        if not password:
            raise ValidationError("Missing required fields: password", ["password is required"])

        try:
            user = self.credentials.find_by_username_or_email(fields["username_or_email"])
        except StorageError as e:
            logger.error("Login failed", error=str(e))
            raise InternalError("Internal server error while logging in")

        if user is None:
            logger.info("Login rejected", reason="unknown_user")
            raise Unauthorized("Invalid credentials")
        if not self.credentials.verify_password(user, password):
            logger.info("Login rejected", reason="bad_password", user_id=user.id)
            raise Unauthorized("Invalid credentials")

        token = self.tokens.issue(user.id)
        logger.info("Login succeeded", user_id=user.id)
        return {"token": token, "user_id": user.id, "username": user.username}
