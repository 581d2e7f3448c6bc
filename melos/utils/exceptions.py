"""Custom exceptions for the Melo's Pizza ordering backend"""

from typing import Iterable, List, Optional


class MelosError(Exception):
    """Base exception for Melo's Pizza"""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_payload(self) -> dict:
        return {"message": self.message}


class ValidationError(MelosError):
    """Malformed or missing input"""

    status_code = 400

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        super().__init__(message)

    def to_payload(self) -> dict:
        payload = super().to_payload()
        if self.errors:
            payload["errors"] = self.errors
        return payload


class Conflict(MelosError):
    """Uniqueness violation on a user field"""

    status_code = 409

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class Unauthorized(MelosError):
    """Missing credentials, bad credentials or an unusable token"""

    status_code = 401


class InvalidToken(Unauthorized):
    """Token is malformed, badly signed or expired"""

    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message)


class Forbidden(MelosError):
    """Authenticated caller is not entitled to the resource"""

    status_code = 403


class InternalError(MelosError):
    """Unexpected store or service failure"""

    status_code = 500


class StorageError(MelosError):
    """Persistence layer failure (I/O, corrupt file, lock timeout)"""

    status_code = 500


class ConfigError(MelosError):
    """Configuration error"""

    pass


def describe_errors(errors: Iterable[dict]) -> List[str]:
    """Flatten pydantic-style error dicts into "field.path: message" strings."""
    described = []
    for err in errors:
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        msg = err.get("msg", "invalid value")
        described.append(f"{loc}: {msg}" if loc else msg)
    return described
