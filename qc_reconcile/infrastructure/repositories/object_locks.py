"""Per-object locks shared by every process using the same workspace."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import hashlib
from pathlib import Path
import re
from typing import override

from filelock import FileLock, Timeout

from ...application.ports.repositories import ObjectLockPort
from ...constants import Files
from ...domain.errors import ConcurrentTransitionError

_UNSAFE_CHARACTERS = re.compile(r"[^A-Za-z0-9_.-]")


def lock_file_name(object_name: str) -> str:
    # readable prefix plus a digest so distinct names never share a file
    digest = hashlib.sha256(object_name.encode("utf-8")).hexdigest()[:12]
    readable = _UNSAFE_CHARACTERS.sub("_", object_name)[:40]
    return f"{readable}-{digest}{Files.LOCK_SUFFIX}"


class WorkspaceObjectLocks(ObjectLockPort):
    """Lock files under ``directory``, one per validation object.

    Acquisition never waits: a lock held by another process or thread raises
    ``ConcurrentTransitionError`` immediately.
    """

    def __init__(self, directory: Path) -> None:
        super().__init__()
        self.directory = Path(directory)

    def path_for(self, object_name: str) -> Path:
        return self.directory / lock_file_name(object_name)

    @override
    @contextmanager
    def hold(self, object_name: str) -> Iterator[None]:
        self.directory.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.path_for(object_name))
        try:
            lock.acquire(timeout=0)
        except Timeout as e:
            raise ConcurrentTransitionError(object_name) from e
        try:
            yield
        finally:
            lock.release()
