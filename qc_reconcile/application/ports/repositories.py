from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Collection
    from contextlib import AbstractContextManager
    from pathlib import Path

    from ...domain.entities.audit import AuditEntry
    from ...domain.entities.snapshot import DatasetSnapshot
    from ...domain.entities.validation_object import ValidationObject


@runtime_checkable
class AuditTrailPort(Protocol):
    pass

    def append(self, entry: AuditEntry) -> AuditEntry: ...

    def query_by_object(self, object_name: str) -> tuple[AuditEntry, ...]: ...


@runtime_checkable
class ValidationObjectRepositoryPort(Protocol):
    pass

    def get(self, name: str) -> ValidationObject | None: ...

    def save(self, obj: ValidationObject) -> None: ...

    def list_all(self) -> list[ValidationObject]: ...


@runtime_checkable
class SnapshotRepositoryPort(Protocol):
    pass

    def load(
        self,
        path: Path,
        name: str | None = None,
        *,
        text_columns: Collection[str] = (),
    ) -> DatasetSnapshot: ...


@runtime_checkable
class ObjectLockPort(Protocol):
    """Exclusive, non-blocking locks on single validation objects.

    ``hold`` raises ``ConcurrentTransitionError`` when another caller already
    holds the object's lock.
    """

    def hold(self, object_name: str) -> AbstractContextManager[None]: ...
