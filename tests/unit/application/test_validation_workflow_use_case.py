"""Tests for the validation workflow use case.

The workflow runs against in-memory stores; failure injection is done by
subclassing those stores.
"""

# pyright: reportPrivateUsage=false

import threading

import pytest

from qc_reconcile.application.validation_workflow_use_case import (
    ValidationWorkflowUseCase,
    WorkflowDependencies,
)
from qc_reconcile.domain.entities.audit import AuditAction, AuditStatus
from qc_reconcile.domain.entities.comparison import (
    ComparisonStatus,
    build_comparison_config,
)
from qc_reconcile.domain.entities.context import RunContext
from qc_reconcile.domain.entities.validation_object import ValidationState
from qc_reconcile.domain.errors import (
    AuditAppendError,
    ConcurrentTransitionError,
    ConfigurationError,
    IntegrityError,
    InvalidTransitionError,
)
from qc_reconcile.infrastructure.logging import NullLogger
from qc_reconcile.infrastructure.repositories import (
    InMemoryAuditTrail,
    InMemoryValidationObjectRepository,
)


class FlakyAuditTrail(InMemoryAuditTrail):
    """Audit trail whose appends fail while ``failing`` is set."""

    def __init__(self):
        super().__init__()
        self.failing = False

    def append(self, entry):
        if self.failing:
            raise OSError("disk full")
        return super().append(entry)


class FlakyRepository(InMemoryValidationObjectRepository):
    """Object store whose saves fail while ``failing`` is set."""

    def __init__(self):
        super().__init__()
        self.failing = False

    def save(self, obj):
        if self.failing:
            raise OSError("read-only file system")
        super().save(obj)


class BlockingRepository(InMemoryValidationObjectRepository):
    """Object store that parks ``get`` calls until released."""

    def __init__(self):
        super().__init__()
        self.blocking = False
        self.entered = threading.Event()
        self.release = threading.Event()

    def get(self, name):
        if self.blocking:
            self.entered.set()
            self.release.wait(timeout=5)
        return super().get(name)


@pytest.fixture
def context():
    return RunContext(study_id="STUDY01", actor="tester")


@pytest.fixture
def audit_trail():
    return FlakyAuditTrail()


@pytest.fixture
def repository():
    return FlakyRepository()


@pytest.fixture
def use_case(audit_trail, repository):
    return ValidationWorkflowUseCase(
        WorkflowDependencies(
            logger=NullLogger(),
            audit_trail=audit_trail,
            object_repository=repository,
        )
    )


def _produced(use_case, context, name="ADSL"):
    use_case.register(context, name, ["USUBJID"], 1e-5)
    use_case.mark_lead_produced(context, name, actor="lead")
    use_case.mark_independent_produced(context, name, actor="qc")
    return use_case.get(name)


def _mismatching_pair(adsl_pair, build_snapshot):
    left, _ = adsl_pair
    right = build_snapshot(
        "QC_ADSL",
        [("USUBJID", "char", 10), ("AGE", "num"), ("SEX", "char", 1)],
        [
            {"USUBJID": "01-001", "AGE": 34, "SEX": "F"},
            {"USUBJID": "01-002", "AGE": 52, "SEX": "M"},
            {"USUBJID": "01-003", "AGE": 47, "SEX": "F"},
        ],
    )
    return left, right


class TestRegistration:
    def test_register_creates_object_and_first_audit_entry(self, use_case, context):
        obj = use_case.register(context, "ADSL", ["STUDYID", "USUBJID"], 1e-6)

        assert obj.state is ValidationState.REGISTERED
        assert obj.key == ("STUDYID", "USUBJID")
        assert obj.tolerance == 1e-6
        history = use_case.history("ADSL")
        assert len(history) == 1
        entry = history[0]
        assert entry.action is AuditAction.REGISTER
        assert entry.sequence == 1
        assert entry.from_state is None
        assert entry.to_state == "registered"
        assert entry.actor == "tester"
        assert entry.study_id == "STUDY01"
        assert obj.registered_at == entry.timestamp

    def test_duplicate_registration(self, use_case, context):
        use_case.register(context, "ADSL", ["USUBJID"])
        with pytest.raises(ConfigurationError, match="already registered"):
            use_case.register(context, "ADSL", ["USUBJID"])

    def test_invalid_key(self, use_case, context):
        with pytest.raises(ConfigurationError):
            use_case.register(context, "ADSL", [])
        assert use_case.list_objects() == []

    def test_orphaned_audit_history_blocks_registration(
        self, use_case, context, audit_trail
    ):
        use_case.register(context, "ADSL", ["USUBJID"])
        other = ValidationWorkflowUseCase(
            WorkflowDependencies(
                logger=NullLogger(),
                audit_trail=audit_trail,
                object_repository=InMemoryValidationObjectRepository(),
            )
        )
        with pytest.raises(IntegrityError, match="manual reconciliation"):
            other.register(context, "ADSL", ["USUBJID"])

    def test_unknown_object(self, use_case):
        with pytest.raises(ConfigurationError, match="not registered"):
            use_case.get("ADAE")


class TestProduction:
    def test_marks_advance_in_order(self, use_case, context):
        obj = _produced(use_case, context)
        assert obj.state is ValidationState.INDEPENDENT_PRODUCED
        assert obj.lead_programmer == "lead"
        assert obj.independent_programmer == "qc"
        assert obj.lead_produced_at is not None
        assert obj.independent_produced_at is not None

    def test_independent_before_lead_is_rejected(self, use_case, context):
        use_case.register(context, "ADSL", ["USUBJID"])
        with pytest.raises(InvalidTransitionError):
            use_case.mark_independent_produced(context, "ADSL")
        assert use_case.get("ADSL").state is ValidationState.REGISTERED
        assert len(use_case.history("ADSL")) == 1

    def test_declared_programmer_is_kept(self, use_case, context):
        use_case.register(context, "ADSL", ["USUBJID"], lead_programmer="alice")
        obj = use_case.mark_lead_produced(context, "ADSL", actor="bob")
        assert obj.lead_programmer == "alice"
        assert use_case.history("ADSL")[-1].actor == "bob"


class TestCompare:
    """Comparison and routing of the result."""

    def test_passing_comparison_closes(self, use_case, context, adsl_pair):
        _produced(use_case, context)
        left, right = adsl_pair
        summary = use_case.compare(context, "ADSL", left, right)

        assert summary.status is ComparisonStatus.PASS
        obj = use_case.get("ADSL")
        assert obj.state is ValidationState.CLOSED
        assert obj.closed_by == "tester"
        assert obj.comparison_count == 1
        assert obj.last_summary == summary
        actions = [entry.action for entry in use_case.history("ADSL")]
        assert actions == [
            AuditAction.REGISTER,
            AuditAction.MARK_LEAD_PRODUCED,
            AuditAction.MARK_INDEPENDENT_PRODUCED,
            AuditAction.COMPARE,
            AuditAction.AUTO_CLOSE,
        ]
        assert use_case.history("ADSL")[-1].status is AuditStatus.PASS

    def test_failing_comparison_opens_discrepancy(
        self, use_case, context, adsl_pair, build_snapshot
    ):
        _produced(use_case, context)
        left, right = _mismatching_pair(adsl_pair, build_snapshot)
        summary = use_case.compare(context, "ADSL", left, right)

        assert summary.status is ComparisonStatus.FAIL
        obj = use_case.get("ADSL")
        assert obj.state is ValidationState.DISCREPANCY_OPEN
        assert obj.discrepancy_opened_at is not None
        compare_entry, open_entry = use_case.history("ADSL")[-2:]
        assert compare_entry.status is AuditStatus.FAIL
        assert "fail=1" in compare_entry.detail
        assert open_entry.action is AuditAction.OPEN_DISCREPANCY

    def test_override_closes_with_note(
        self, use_case, context, adsl_pair, build_snapshot
    ):
        _produced(use_case, context)
        left, right = _mismatching_pair(adsl_pair, build_snapshot)
        use_case.compare(
            context, "ADSL", left, right, override_note="AGE derivation agreed with sponsor"
        )

        obj = use_case.get("ADSL")
        assert obj.state is ValidationState.CLOSED
        assert obj.override_note == "AGE derivation agreed with sponsor"
        last = use_case.history("ADSL")[-1]
        assert last.action is AuditAction.AUTO_CLOSE
        assert last.status is AuditStatus.OVERRIDDEN
        assert "AGE derivation" in last.detail

    def test_compare_before_production_is_rejected(self, use_case, context, adsl_pair):
        use_case.register(context, "ADSL", ["USUBJID"])
        left, right = adsl_pair
        with pytest.raises(InvalidTransitionError):
            use_case.compare(context, "ADSL", left, right)

    def test_configuration_error_is_audited_without_state_change(
        self, use_case, context, build_snapshot
    ):
        _produced(use_case, context)
        left = build_snapshot("L", [("SUBJID", "char")], [{"SUBJID": "1"}])
        right = build_snapshot("R", [("SUBJID", "char")], [{"SUBJID": "1"}])
        with pytest.raises(ConfigurationError, match="USUBJID"):
            use_case.compare(context, "ADSL", left, right)

        assert use_case.get("ADSL").state is ValidationState.INDEPENDENT_PRODUCED
        last = use_case.history("ADSL")[-1]
        assert last.status is AuditStatus.ERROR
        assert last.from_state == last.to_state == "independent_produced"
        use_case.verify_integrity("ADSL")

    def test_explicit_config_is_used(self, use_case, context, adsl_pair, build_snapshot):
        _produced(use_case, context)
        left, right = _mismatching_pair(adsl_pair, build_snapshot)
        config = build_comparison_config(key=["USUBJID"], compare_fields=["SEX"])
        result = use_case.compare_with_result(context, "ADSL", left, right, config)
        assert result.summary.passed
        assert result.job.config.compare_fields == ("SEX",)


class TestResolutionAndSignOff:
    @pytest.fixture
    def open_discrepancy(self, use_case, context, adsl_pair, build_snapshot):
        _produced(use_case, context)
        left, right = _mismatching_pair(adsl_pair, build_snapshot)
        use_case.compare(context, "ADSL", left, right)
        return left, right

    def test_sign_off_requires_resolution(self, use_case, context, open_discrepancy):
        with pytest.raises(ConfigurationError, match="record a resolution"):
            use_case.close(context, "ADSL")

    def test_resolve_then_close(self, use_case, context, open_discrepancy):
        resolved = use_case.resolve_discrepancy(
            context, "ADSL", "Lead fixed AGE rounding", actor="reviewer"
        )
        assert resolved.state is ValidationState.DISCREPANCY_OPEN
        assert resolved.resolved_by == "reviewer"

        closed = use_case.close(context, "ADSL", actor="reviewer")
        assert closed.state is ValidationState.CLOSED
        assert closed.closed_by == "reviewer"
        last = use_case.history("ADSL")[-1]
        assert last.action is AuditAction.SIGN_OFF
        assert "Lead fixed AGE rounding" in last.detail

    def test_empty_resolution_note(self, use_case, context, open_discrepancy):
        with pytest.raises(ConfigurationError, match="resolution note"):
            use_case.resolve_discrepancy(context, "ADSL", "   ")

    def test_recompare_clears_resolution(
        self, use_case, context, open_discrepancy, adsl_pair
    ):
        use_case.resolve_discrepancy(context, "ADSL", "fixed")
        left, right = adsl_pair
        use_case.compare(context, "ADSL", left, right)
        obj = use_case.get("ADSL")
        assert obj.state is ValidationState.CLOSED
        assert obj.resolution_note is None
        assert obj.comparison_count == 2

    def test_closed_object_rejects_everything(
        self, use_case, context, open_discrepancy
    ):
        left, right = open_discrepancy
        use_case.resolve_discrepancy(context, "ADSL", "fixed")
        use_case.close(context, "ADSL")
        with pytest.raises(InvalidTransitionError):
            use_case.compare(context, "ADSL", left, right)
        with pytest.raises(InvalidTransitionError):
            use_case.resolve_discrepancy(context, "ADSL", "again")


class TestAuditTrailIntegrity:
    """The audit trail is linear and always agrees with stored state."""

    def test_history_is_linear(self, use_case, context, adsl_pair, build_snapshot):
        _produced(use_case, context)
        left, right = _mismatching_pair(adsl_pair, build_snapshot)
        use_case.compare(context, "ADSL", left, right)
        use_case.resolve_discrepancy(context, "ADSL", "fixed")
        use_case.compare(context, "ADSL", *adsl_pair)

        history = use_case.history("ADSL")
        assert [e.sequence for e in history] == list(range(1, len(history) + 1))
        for previous, current in zip(history, history[1:]):
            assert current.timestamp > previous.timestamp
            assert current.from_state == previous.to_state
        assert history[-1].to_state == str(use_case.get("ADSL").state)

    def test_audit_failure_leaves_state_unchanged(
        self, use_case, context, audit_trail
    ):
        use_case.register(context, "ADSL", ["USUBJID"])
        audit_trail.failing = True
        with pytest.raises(AuditAppendError, match="disk full"):
            use_case.mark_lead_produced(context, "ADSL")

        audit_trail.failing = False
        assert use_case.get("ADSL").state is ValidationState.REGISTERED
        assert len(use_case.history("ADSL")) == 1
        use_case.verify_integrity("ADSL")

    def test_save_failure_after_audit_requires_reconciliation(
        self, use_case, context, repository
    ):
        use_case.register(context, "ADSL", ["USUBJID"])
        repository.failing = True
        with pytest.raises(IntegrityError, match="manual reconciliation"):
            use_case.mark_lead_produced(context, "ADSL")

        repository.failing = False
        with pytest.raises(IntegrityError, match="audit trail ends in lead_produced"):
            use_case.verify_integrity("ADSL")
        with pytest.raises(IntegrityError):
            use_case.mark_lead_produced(context, "ADSL")


class TestConcurrency:
    def test_concurrent_transition_is_rejected(self, context):
        repository = BlockingRepository()
        use_case = ValidationWorkflowUseCase(
            WorkflowDependencies(
                logger=NullLogger(),
                audit_trail=InMemoryAuditTrail(),
                object_repository=repository,
            )
        )
        use_case.register(context, "ADSL", ["USUBJID"])
        repository.blocking = True
        errors: list[Exception] = []

        def mark() -> None:
            try:
                use_case.mark_lead_produced(context, "ADSL")
            except Exception as e:  # pragma: no cover - reported below
                errors.append(e)

        worker = threading.Thread(target=mark)
        worker.start()
        assert repository.entered.wait(timeout=5)
        with pytest.raises(ConcurrentTransitionError):
            use_case.mark_lead_produced(context, "ADSL")
        repository.blocking = False
        repository.release.set()
        worker.join(timeout=5)

        assert errors == []
        assert use_case.get("ADSL").state is ValidationState.LEAD_PRODUCED
        marks = [
            e for e in use_case.history("ADSL") if e.action is AuditAction.MARK_LEAD_PRODUCED
        ]
        assert len(marks) == 1

    def test_other_objects_are_not_blocked(self, use_case, context):
        use_case.register(context, "ADSL", ["USUBJID"])
        with use_case._locks.hold("ADSL"):
            use_case.register(context, "ADAE", ["USUBJID", "AESEQ"])
        assert [o.name for o in use_case.list_objects()] == ["ADAE", "ADSL"]
