"""
File-backed stand-in for the browser's localStorage.

Keys map to strings, like the browser API, and the whole map is one JSON
file rewritten atomically on every change.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Optional

from ..core.storage import atomic_write
from ..utils.exceptions import StorageError


class LocalStorage:
    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                raw = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise StorageError(f"Failed to load {self.path}: {e}")
        return raw if isinstance(raw, dict) else {}

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        atomic_write(self.path, data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            atomic_write(self.path, data)
