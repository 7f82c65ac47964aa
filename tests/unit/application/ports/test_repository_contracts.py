"""Contract tests for repository port interfaces.

Every store adapter must satisfy its port; the file-backed and in-memory
stores must behave the same through the port.
"""

from datetime import UTC, datetime

import pytest

from qc_reconcile.application.ports.repositories import (
    AuditTrailPort,
    ObjectLockPort,
    SnapshotRepositoryPort,
    ValidationObjectRepositoryPort,
)
from qc_reconcile.application.validation_workflow_use_case import ObjectLocks
from qc_reconcile.domain.entities.audit import AuditAction, AuditEntry, AuditStatus
from qc_reconcile.domain.entities.validation_object import (
    ValidationObject,
    ValidationState,
)
from qc_reconcile.domain.errors import ConcurrentTransitionError
from qc_reconcile.infrastructure.repositories import (
    InMemoryAuditTrail,
    InMemoryValidationObjectRepository,
    JsonlAuditTrail,
    JsonValidationObjectRepository,
    SnapshotRepository,
    WorkspaceObjectLocks,
)

WHEN = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)


@pytest.fixture(params=["memory", "jsonl"])
def audit_trail(request, tmp_path):
    if request.param == "memory":
        return InMemoryAuditTrail()
    return JsonlAuditTrail(tmp_path / "audit.jsonl")


@pytest.fixture(params=["memory", "json"])
def object_repository(request, tmp_path):
    if request.param == "memory":
        return InMemoryValidationObjectRepository()
    return JsonValidationObjectRepository(tmp_path / "objects.json")


@pytest.fixture(params=["memory", "files"])
def object_locks(request, tmp_path):
    if request.param == "memory":
        return ObjectLocks()
    return WorkspaceObjectLocks(tmp_path / "locks")


def _entry(name="ADSL", when=WHEN, action=AuditAction.REGISTER):
    return AuditEntry(
        object_name=name,
        action=action,
        actor="tester",
        timestamp=when,
        status=AuditStatus.OK,
        to_state="registered",
    )


class TestAuditTrailContract:
    def test_implements_port(self, audit_trail):
        assert isinstance(audit_trail, AuditTrailPort)

    def test_entries_are_numbered_per_object(self, audit_trail):
        audit_trail.append(_entry("ADSL"))
        audit_trail.append(_entry("ADAE"))
        stored = audit_trail.append(_entry("ADSL"))

        assert stored.sequence == 2
        assert [e.sequence for e in audit_trail.query_by_object("ADAE")] == [1]

    def test_timestamps_strictly_increase(self, audit_trail):
        first = audit_trail.append(_entry(when=WHEN))
        second = audit_trail.append(_entry(when=WHEN))
        assert second.timestamp > first.timestamp

    def test_unknown_object_has_empty_history(self, audit_trail):
        assert audit_trail.query_by_object("ADXX") == ()


class TestValidationObjectRepositoryContract:
    def test_implements_port(self, object_repository):
        assert isinstance(object_repository, ValidationObjectRepositoryPort)

    def test_save_replaces_previous_version(self, object_repository):
        obj = ValidationObject(
            name="ADSL",
            key=("USUBJID",),
            tolerance=1e-5,
            state=ValidationState.REGISTERED,
            registered_at=WHEN,
        )
        object_repository.save(obj)
        object_repository.save(obj.evolve(state=ValidationState.LEAD_PRODUCED))

        assert object_repository.get("ADSL").state is ValidationState.LEAD_PRODUCED
        assert len(object_repository.list_all()) == 1
        assert object_repository.get("ADAE") is None


def test_snapshot_repository_implements_port():
    assert isinstance(SnapshotRepository(), SnapshotRepositoryPort)


class TestObjectLockContract:
    def test_implements_port(self, object_locks):
        assert isinstance(object_locks, ObjectLockPort)

    def test_held_lock_refuses_without_waiting(self, object_locks):
        with object_locks.hold("ADSL"):
            with pytest.raises(ConcurrentTransitionError):
                with object_locks.hold("ADSL"):
                    pass
            with object_locks.hold("ADAE"):
                pass
        with object_locks.hold("ADSL"):
            pass
