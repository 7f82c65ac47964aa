"""Repository implementations.

Snapshot ingestion, audit trail stores, validation object stores and
workspace object locks.
"""

from .audit_trail import InMemoryAuditTrail, JsonlAuditTrail
from .object_locks import WorkspaceObjectLocks
from .snapshot_repository import SnapshotRepository
from .validation_object_repository import (
    InMemoryValidationObjectRepository,
    JsonValidationObjectRepository,
)

__all__ = [
    "InMemoryAuditTrail",
    "InMemoryValidationObjectRepository",
    "JsonValidationObjectRepository",
    "JsonlAuditTrail",
    "SnapshotRepository",
    "WorkspaceObjectLocks",
]
