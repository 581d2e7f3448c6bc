"""
JSON file persistence shared by the credential and order stores.

Each store owns one file shaped {"<collection>": [records...]}. Writes go
to a temp file in the same directory and are moved into place, so readers
never see a half-written file.
"""

from __future__ import annotations

import json
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List

from ..utils.exceptions import StorageError


def atomic_write(path: Path, payload: Dict[str, Any]) -> None:
    """Atomically write JSON to the target path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w", dir=str(path.parent), delete=False, encoding="utf-8"
    ) as tf:
        json.dump(payload, tf, indent=2, ensure_ascii=False, default=str)
        temp_path = Path(tf.name)
    try:
        shutil.move(str(temp_path), str(path))
    except OSError as e:
        if temp_path.exists():
            temp_path.unlink()
        raise StorageError(f"Failed to save {path}: {e}")


def load_collection(path: Path, collection: str) -> List[Dict[str, Any]]:
    """Return the records stored under `collection`, or [] if the file is absent."""
    if not path.exists():
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        raise StorageError(f"Failed to load {path}: {e}")
    if not isinstance(raw, dict):
        raise StorageError(f"Unexpected content in {path}")
    items = raw.get(collection, [])
    if not isinstance(items, list):
        raise StorageError(f"Unexpected '{collection}' content in {path}")
    return items


def save_collection(path: Path, collection: str, items: List[Dict[str, Any]]) -> None:
    atomic_write(path, {collection: items})
