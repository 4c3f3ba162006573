"""Access to the component lock file in a workspace."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import IO

from filelock import FileLock, Timeout

LOCK_FILE_NAME = "Cargo-component.lock"

_log = logging.getLogger(__name__)


class LockFileHandle:
    """An open lock file guarded by an inter-process lock."""

    def __init__(self, path: Path, file: IO[str], guard: FileLock) -> None:
        self.path = path
        self.file = file
        self._guard = guard

    def close(self) -> None:
        """Close the file and release the lock."""
        try:
            self.file.close()
        finally:
            if self._guard.is_locked:
                self._guard.release()

    def __enter__(self) -> LockFileHandle:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _status(action: str, message: str) -> None:
    print(f"{action:>12} {message}", file=sys.stderr)


def _acquire_guard(path: Path) -> FileLock:
    guard = FileLock(str(path.with_suffix(".lock.guard")))
    try:
        guard.acquire(timeout=0)
    except Timeout:
        _status("Blocking", f"on access to lock file `{path}`")
        guard.acquire()
    return guard


def _open_locked(path: Path, writable: bool) -> LockFileHandle:
    guard = _acquire_guard(path)
    try:
        if writable:
            descriptor = os.open(path, os.O_RDWR | os.O_CREAT, 0o666)
            file = open(descriptor, "r+", encoding="utf-8")
        else:
            file = open(path, "r", encoding="utf-8")
    except BaseException:
        guard.release()
        raise
    return LockFileHandle(path, file, guard)


def acquire_lock_file_ro(workspace_root: str | os.PathLike) -> LockFileHandle | None:
    """Open the workspace lock file for reading, or return None if absent."""
    path = Path(workspace_root) / LOCK_FILE_NAME
    if not path.exists():
        return None
    _log.info("opening lock file `%s`", path)
    return _open_locked(path, writable=False)


def acquire_lock_file_rw(
    workspace_root: str | os.PathLike, lock_update_allowed: bool, locked: bool
) -> LockFileHandle:
    """Open (creating if needed) the workspace lock file for writing."""
    path = Path(workspace_root) / LOCK_FILE_NAME
    if not lock_update_allowed:
        flag = "--locked" if locked else "--frozen"
        raise RuntimeError(
            f"the lock file {path} needs to be updated but {flag} was passed "
            "to prevent this\n"
            "If you want to try to generate the lock file without accessing "
            f"the network, remove the {flag} flag and use --offline instead."
        )
    _log.info("creating lock file `%s`", path)
    return _open_locked(path, writable=True)