"""Append-only audit trail stores.

Both stores number entries per object (1, 2, ...) and keep each object's
timestamps strictly increasing. Nothing is ever updated or removed.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import timedelta
import json
import os
from pathlib import Path
import threading
from typing import TYPE_CHECKING, override

from filelock import FileLock, Timeout

from ...application.ports.repositories import AuditTrailPort
from ...constants import Defaults, Files
from ...domain.entities.audit import AuditEntry
from ...domain.errors import AuditAppendError, IntegrityError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

TIMESTAMP_STEP = timedelta(microseconds=1)


def _stamp(entry: AuditEntry, history: Sequence[AuditEntry]) -> AuditEntry:
    if not entry.object_name:
        raise AuditAppendError("Audit entry has no object name")
    if not history:
        return replace(entry, sequence=1)
    last = history[-1]
    timestamp = entry.timestamp
    if timestamp <= last.timestamp:
        timestamp = last.timestamp + TIMESTAMP_STEP
    return replace(entry, sequence=last.sequence + 1, timestamp=timestamp)


class InMemoryAuditTrail(AuditTrailPort):
    pass

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self._entries: dict[str, list[AuditEntry]] = {}

    @override
    def append(self, entry: AuditEntry) -> AuditEntry:
        with self._lock:
            history = self._entries.setdefault(entry.object_name, [])
            stored = _stamp(entry, history)
            history.append(stored)
            return stored

    @override
    def query_by_object(self, object_name: str) -> tuple[AuditEntry, ...]:
        with self._lock:
            return tuple(self._entries.get(object_name, ()))

    def all_entries(self) -> list[AuditEntry]:
        with self._lock:
            entries = [e for history in self._entries.values() for e in history]
        return sorted(entries, key=lambda e: (e.timestamp, e.object_name, e.sequence))


class JsonlAuditTrail(AuditTrailPort):
    """Audit trail kept as one JSON document per line.

    Every append is flushed and fsynced before it returns, so an entry that
    was acknowledged survives a crash. A lock file next to the trail makes
    the read, number and append step exclusive across processes.
    """

    def __init__(self, path: Path, *, lock_timeout: float = Defaults.LOCK_TIMEOUT) -> None:
        super().__init__()
        self.path = Path(path)
        self._lock = threading.Lock()
        self._file_lock = FileLock(
            self.path.with_name(self.path.name + Files.LOCK_SUFFIX),
            timeout=lock_timeout,
        )

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._file_lock.acquire()
            except (Timeout, OSError) as e:
                raise AuditAppendError(
                    f"Could not lock audit trail {self.path}: {e}"
                ) from e
            try:
                yield
            finally:
                self._file_lock.release()

    @override
    def append(self, entry: AuditEntry) -> AuditEntry:
        with self._exclusive():
            stored = _stamp(entry, self._read(entry.object_name))
            line = json.dumps(stored.to_dict(), sort_keys=True)
            try:
                with self.path.open("a", encoding="utf-8") as handle:
                    handle.write(line + "\n")
                    handle.flush()
                    os.fsync(handle.fileno())
            except OSError as e:
                raise AuditAppendError(
                    f"Could not append to audit trail {self.path}: {e}"
                ) from e
            return stored

    @override
    def query_by_object(self, object_name: str) -> tuple[AuditEntry, ...]:
        with self._lock:
            return tuple(self._read(object_name))

    def all_entries(self) -> list[AuditEntry]:
        with self._lock:
            return list(self._iter_entries())

    def _read(self, object_name: str) -> list[AuditEntry]:
        return [e for e in self._iter_entries() if e.object_name == object_name]

    def _iter_entries(self) -> Iterator[AuditEntry]:
        if not self.path.exists():
            return
        with self.path.open(encoding="utf-8") as handle:
            for number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    yield AuditEntry.from_dict(json.loads(line))
                except (ValueError, KeyError) as e:
                    raise IntegrityError(
                        f"Audit trail {self.path} is corrupt at line {number}: {e}"
                    ) from e
