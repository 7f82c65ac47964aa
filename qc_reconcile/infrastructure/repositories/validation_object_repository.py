from __future__ import annotations

import json
import os
from pathlib import Path
import threading
from typing import override

from filelock import FileLock, Timeout

from ...application.ports.repositories import ValidationObjectRepositoryPort
from ...constants import Defaults, Files
from ...domain.entities.validation_object import ValidationObject
from ...domain.errors import IntegrityError


class InMemoryValidationObjectRepository(ValidationObjectRepositoryPort):
    pass

    def __init__(self) -> None:
        super().__init__()
        self._lock = threading.Lock()
        self._objects: dict[str, ValidationObject] = {}

    @override
    def get(self, name: str) -> ValidationObject | None:
        with self._lock:
            return self._objects.get(name)

    @override
    def save(self, obj: ValidationObject) -> None:
        with self._lock:
            self._objects[obj.name] = obj

    @override
    def list_all(self) -> list[ValidationObject]:
        with self._lock:
            return list(self._objects.values())


class JsonValidationObjectRepository(ValidationObjectRepositoryPort):
    """Validation objects kept in a single JSON document.

    Saves replace the whole file atomically (temporary file + ``os.replace``)
    while holding a lock file, so processes saving different objects do not
    overwrite each other.
    """

    def __init__(self, path: Path, *, lock_timeout: float = Defaults.LOCK_TIMEOUT) -> None:
        super().__init__()
        self.path = Path(path)
        self._lock = threading.Lock()
        self._file_lock = FileLock(
            self.path.with_name(self.path.name + Files.LOCK_SUFFIX),
            timeout=lock_timeout,
        )

    @override
    def get(self, name: str) -> ValidationObject | None:
        with self._lock:
            return self._load().get(name)

    @override
    def save(self, obj: ValidationObject) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            try:
                self._file_lock.acquire()
            except Timeout as e:
                raise IntegrityError(
                    f"Validation object store {self.path} is locked: {e}"
                ) from e
            try:
                objects = self._load()
                objects[obj.name] = obj
                self._write(objects)
            finally:
                self._file_lock.release()

    @override
    def list_all(self) -> list[ValidationObject]:
        with self._lock:
            return list(self._load().values())

    def _load(self) -> dict[str, ValidationObject]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            raw_objects = data.get("objects", [])
            objects = [ValidationObject.from_dict(item) for item in raw_objects]
        except (ValueError, KeyError, AttributeError, TypeError) as e:
            raise IntegrityError(
                f"Validation object store {self.path} is unreadable: {e}"
            ) from e
        return {obj.name: obj for obj in objects}

    def _write(self, objects: dict[str, ValidationObject]) -> None:
        document = {
            "objects": [objects[name].to_dict() for name in sorted(objects)],
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as handle:
            json.dump(document, handle, indent=2, sort_keys=True)
            handle.write("\n")
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, self.path)
