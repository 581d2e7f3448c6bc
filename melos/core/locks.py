"""
Named file locks guarding read-modify-write cycles on the JSON stores.

Keys look like lock:store:users. A lock is an O_EXCL lock file under
<data_dir>/locks, so it holds across threads and worker processes that
share the data directory.
"""

from __future__ import annotations

import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from ..utils.exceptions import StorageError

LOCK_TIMEOUT_SECONDS = 10.0
LOCK_POLL_INTERVAL = 0.05


def _lock_path(locks_dir: Path, key: str) -> Path:
    safe = "".join(c if c.isalnum() or c in "-_" else "_" for c in key)
    locks_dir.mkdir(parents=True, exist_ok=True)
    return locks_dir / f"{safe}.lock"


@contextmanager
def acquire_lock(
    locks_dir: Path, key: str, timeout_seconds: float = LOCK_TIMEOUT_SECONDS
) -> Generator[None, None, None]:
    """
    Acquire a named lock, blocking until acquired or timeout.

    Raises StorageError when the lock cannot be taken in time.
    """
    path = _lock_path(locks_dir, key)
    deadline = time.monotonic() + timeout_seconds
    while True:
        try:
            fd = os.open(str(path), os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            if time.monotonic() >= deadline:
                raise StorageError(f"Could not acquire lock {key} within {timeout_seconds}s")
            time.sleep(LOCK_POLL_INTERVAL)
            continue
        try:
            os.write(fd, str(os.getpid()).encode())
        finally:
            os.close(fd)
        break

    try:
        yield
    finally:
        try:
            path.unlink()
        except FileNotFoundError:
            pass


def lock_key_store(name: str) -> str:
    return f"lock:store:{name}"
