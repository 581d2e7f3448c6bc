"""Client-side login state: the bearer token and the logged-in user."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional

from .storage import LocalStorage

TOKEN_KEY = "authToken"
USER_KEY = "currentUser"


class ClientSession:
    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def save_login(self, login_response: Dict[str, Any]) -> None:
        """Store the token and user from a /api/login response."""
        self.storage.set_item(TOKEN_KEY, login_response["token"])
        self.storage.set_item(
            USER_KEY,
            json.dumps(
                {
                    "userId": login_response["userId"],
                    "username": login_response["username"],
                }
            ),
        )

    @property
    def token(self) -> Optional[str]:
        return self.storage.get_item(TOKEN_KEY)

    @property
    def current_user(self) -> Optional[Dict[str, str]]:
        raw = self.storage.get_item(USER_KEY)
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except json.JSONDecodeError:
            return None
        return user if isinstance(user, dict) else None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token and self.current_user)

    def logout(self) -> None:
        """Forget the token locally. The server keeps no session to revoke."""
        self.storage.remove_item(TOKEN_KEY)
        self.storage.remove_item(USER_KEY)
