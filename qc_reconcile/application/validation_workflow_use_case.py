"""Validation workflow for independently programmed artifacts.

Each tracked object moves through registered -> lead_produced ->
independent_produced -> compared -> closed | discrepancy_open. Every change is
written to the audit trail before the new object version is saved, and all
changes to one object are serialised by a per-object lock. The lock is
in-process unless the dependencies supply one shared between processes.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
import threading
from typing import TYPE_CHECKING

from ..domain.entities.audit import AuditAction, AuditEntry, AuditStatus
from ..domain.entities.comparison import (
    DEFAULT_TOLERANCE,
    ComparisonJob,
    ComparisonResult,
    ComparisonStatus,
    build_comparison_config,
)
from ..domain.entities.validation_object import ValidationObject, ValidationState
from ..domain.errors import (
    AuditAppendError,
    ConcurrentTransitionError,
    ConfigurationError,
    IntegrityError,
)
from ..domain.services.comparison_engine import run_comparison
from ..domain.services.lifecycle import (
    ensure_in_place_allowed,
    next_state,
    routing_action,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..domain.entities.comparison import ComparisonConfig, ComparisonSummary
    from ..domain.entities.context import RunContext
    from ..domain.entities.snapshot import DatasetSnapshot
    from .ports.repositories import (
        AuditTrailPort,
        ObjectLockPort,
        ValidationObjectRepositoryPort,
    )
    from .ports.services import LoggerPort


def utc_now() -> datetime:
    return datetime.now(UTC)


def _empty_defaults() -> dict[str, object]:
    return {}


_STATUS_BY_RESULT = {
    ComparisonStatus.PASS: AuditStatus.PASS,
    ComparisonStatus.WARNING: AuditStatus.WARNING,
    ComparisonStatus.FAIL: AuditStatus.FAIL,
}


@dataclass(slots=True)
class WorkflowDependencies:
    logger: LoggerPort
    audit_trail: AuditTrailPort
    object_repository: ValidationObjectRepositoryPort
    clock: Callable[[], datetime] = utc_now
    comparison_defaults: Mapping[str, object] = field(default_factory=_empty_defaults)
    # defaults to locks that only exclude callers in this process
    object_locks: ObjectLockPort | None = None


class ObjectLocks:
    pass

    def __init__(self) -> None:
        super().__init__()
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    @contextmanager
    def hold(self, object_name: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(object_name, threading.Lock())
        if not lock.acquire(blocking=False):
            raise ConcurrentTransitionError(object_name)
        try:
            yield
        finally:
            lock.release()


class ValidationWorkflowUseCase:
    pass

    def __init__(self, dependencies: WorkflowDependencies) -> None:
        super().__init__()
        self._deps = dependencies
        self.logger = dependencies.logger
        self._locks = dependencies.object_locks or ObjectLocks()

    def register(
        self,
        context: RunContext,
        name: str,
        key: Sequence[str],
        tolerance: float = DEFAULT_TOLERANCE,
        *,
        lead_programmer: str | None = None,
        independent_programmer: str | None = None,
        reviewer: str | None = None,
    ) -> ValidationObject:
        name = (name or "").strip()
        if not name:
            raise ConfigurationError("Validation object name must not be empty")
        settings = build_comparison_config(key=list(key), tolerance=tolerance)
        with self._locks.hold(name):
            if self._deps.object_repository.get(name) is not None:
                raise ConfigurationError(f"'{name}' is already registered")
            if self._deps.audit_trail.query_by_object(name):
                raise IntegrityError(
                    f"Audit trail already holds entries for unregistered '{name}'; "
                    + "manual reconciliation required"
                )
            registered = ValidationObject(
                name=name,
                key=settings.key,
                tolerance=settings.tolerance,
                state=ValidationState.REGISTERED,
                registered_at=self._deps.clock(),
                lead_programmer=lead_programmer,
                independent_programmer=independent_programmer,
                reviewer=reviewer,
            )
            return self._commit(
                context,
                previous=None,
                updated=registered,
                action=AuditAction.REGISTER,
                status=AuditStatus.OK,
                detail=f"key={','.join(settings.key)} tolerance={settings.tolerance:g}",
                stamp="registered_at",
            )

    def mark_lead_produced(
        self, context: RunContext, name: str, *, actor: str | None = None
    ) -> ValidationObject:
        return self._advance(
            context,
            name,
            AuditAction.MARK_LEAD_PRODUCED,
            actor=actor,
            stamp="lead_produced_at",
            producer_field="lead_programmer",
        )

    def mark_independent_produced(
        self, context: RunContext, name: str, *, actor: str | None = None
    ) -> ValidationObject:
        return self._advance(
            context,
            name,
            AuditAction.MARK_INDEPENDENT_PRODUCED,
            actor=actor,
            stamp="independent_produced_at",
            producer_field="independent_programmer",
        )

    def compare(
        self,
        context: RunContext,
        name: str,
        left: DatasetSnapshot,
        right: DatasetSnapshot,
        config: ComparisonConfig | None = None,
        *,
        override_note: str | None = None,
        actor: str | None = None,
    ) -> ComparisonSummary:
        result = self.compare_with_result(
            context,
            name,
            left,
            right,
            config,
            override_note=override_note,
            actor=actor,
        )
        return result.summary

    def compare_with_result(
        self,
        context: RunContext,
        name: str,
        left: DatasetSnapshot,
        right: DatasetSnapshot,
        config: ComparisonConfig | None = None,
        *,
        override_note: str | None = None,
        actor: str | None = None,
    ) -> ComparisonResult:
        with self._locks.hold(name):
            current = self._load_checked(name)
            next_state(name, current.state, AuditAction.COMPARE)
            result = self._run_job(context, current, left, right, config, actor)
            summary = result.summary
            compared = self._commit(
                context,
                previous=current,
                updated=current.evolve(
                    state=ValidationState.COMPARED,
                    last_summary=summary,
                    comparison_count=current.comparison_count + 1,
                    resolution_note=None,
                    resolved_by=None,
                    override_note=None,
                ),
                action=AuditAction.COMPARE,
                status=_STATUS_BY_RESULT[summary.status],
                detail=_summary_detail(summary),
                stamp="compared_at",
                actor=actor,
            )
            route = routing_action(summary, override_note=override_note)
            target = next_state(name, compared.state, route)
            if target is ValidationState.CLOSED:
                overridden = not summary.passed
                self._commit(
                    context,
                    previous=compared,
                    updated=compared.evolve(
                        state=target,
                        override_note=override_note if overridden else None,
                        closed_by=context.resolve_actor(actor),
                    ),
                    action=route,
                    status=AuditStatus.OVERRIDDEN if overridden else AuditStatus.PASS,
                    detail=f"override: {override_note}"
                    if overridden
                    else "comparison passed",
                    stamp="closed_at",
                    actor=actor,
                )
            else:
                self._commit(
                    context,
                    previous=compared,
                    updated=compared.evolve(state=target),
                    action=route,
                    status=_STATUS_BY_RESULT[summary.status],
                    detail=f"{summary.total_findings} finding(s) require resolution",
                    stamp="discrepancy_opened_at",
                    actor=actor,
                )
            return result

    def resolve_discrepancy(
        self,
        context: RunContext,
        name: str,
        note: str,
        actor: str | None = None,
    ) -> ValidationObject:
        note = (note or "").strip()
        if not note:
            raise ConfigurationError("A resolution note is required")
        with self._locks.hold(name):
            current = self._load_checked(name)
            ensure_in_place_allowed(
                name, current.state, AuditAction.RESOLVE_DISCREPANCY
            )
            return self._commit(
                context,
                previous=current,
                updated=current.evolve(
                    resolution_note=note,
                    resolved_by=context.resolve_actor(actor),
                ),
                action=AuditAction.RESOLVE_DISCREPANCY,
                status=AuditStatus.OK,
                detail=note,
                actor=actor,
            )

    def close(
        self, context: RunContext, name: str, actor: str | None = None
    ) -> ValidationObject:
        with self._locks.hold(name):
            current = self._load_checked(name)
            target = next_state(name, current.state, AuditAction.SIGN_OFF)
            if (
                current.state is ValidationState.DISCREPANCY_OPEN
                and not current.has_resolution
            ):
                raise ConfigurationError(
                    f"'{name}' has an open discrepancy; record a resolution before sign-off"
                )
            signer = context.resolve_actor(actor)
            detail = f"signed off by {signer}"
            if current.resolution_note:
                detail += f" after resolution: {current.resolution_note}"
            return self._commit(
                context,
                previous=current,
                updated=current.evolve(state=target, closed_by=signer),
                action=AuditAction.SIGN_OFF,
                status=AuditStatus.OK,
                detail=detail,
                stamp="closed_at",
                actor=actor,
            )

    def get(self, name: str) -> ValidationObject:
        obj = self._deps.object_repository.get(name)
        if obj is None:
            raise ConfigurationError(f"'{name}' is not registered for validation")
        return obj

    def list_objects(self) -> list[ValidationObject]:
        return sorted(self._deps.object_repository.list_all(), key=lambda o: o.name)

    def history(self, name: str) -> tuple[AuditEntry, ...]:
        return self._deps.audit_trail.query_by_object(name)

    def verify_integrity(self, name: str) -> ValidationObject:
        obj = self.get(name)
        self._check_integrity(obj)
        return obj

    def _advance(
        self,
        context: RunContext,
        name: str,
        action: AuditAction,
        *,
        actor: str | None,
        stamp: str,
        producer_field: str,
    ) -> ValidationObject:
        with self._locks.hold(name):
            current = self._load_checked(name)
            target = next_state(name, current.state, action)
            changes: dict[str, object] = {"state": target}
            if getattr(current, producer_field) is None:
                changes[producer_field] = context.resolve_actor(actor)
            return self._commit(
                context,
                previous=current,
                updated=current.evolve(**changes),
                action=action,
                status=AuditStatus.OK,
                detail=f"produced by {context.resolve_actor(actor)}",
                stamp=stamp,
                actor=actor,
            )

    def _run_job(
        self,
        context: RunContext,
        current: ValidationObject,
        left: DatasetSnapshot,
        right: DatasetSnapshot,
        config: ComparisonConfig | None,
        actor: str | None,
    ) -> ComparisonResult:
        try:
            job_config = config or build_comparison_config(
                **{
                    **self._deps.comparison_defaults,
                    "key": list(current.key),
                    "tolerance": current.tolerance,
                }
            )
            self.logger.log_comparison_start(
                current.name,
                left_name=left.name,
                left_rows=left.row_count,
                right_name=right.name,
                right_rows=right.row_count,
            )
            result = run_comparison(
                ComparisonJob(
                    object_name=current.name, left=left, right=right, config=job_config
                )
            )
        except ConfigurationError as e:
            self.logger.error(f"{current.name}: comparison could not run: {e}")
            self._append(
                context,
                AuditEntry(
                    object_name=current.name,
                    action=AuditAction.COMPARE,
                    actor=context.resolve_actor(actor),
                    timestamp=self._deps.clock(),
                    status=AuditStatus.ERROR,
                    detail=str(e),
                    from_state=str(current.state),
                    to_state=str(current.state),
                    study_id=context.study_id,
                    session_id=context.session_id,
                ),
            )
            raise
        self.logger.log_comparison_complete(result.summary)
        return result

    def _load_checked(self, name: str) -> ValidationObject:
        current = self.get(name)
        self._check_integrity(current)
        return current

    def _check_integrity(self, obj: ValidationObject) -> None:
        history = self._deps.audit_trail.query_by_object(obj.name)
        if not history:
            raise IntegrityError(
                f"'{obj.name}' has no audit history; manual reconciliation required"
            )
        recorded = history[-1].to_state
        if recorded != str(obj.state):
            raise IntegrityError(
                f"'{obj.name}' is stored as {obj.state} but the audit trail ends in "
                + f"{recorded} (entry #{history[-1].sequence}); manual reconciliation required"
            )

    def _append(self, context: RunContext, entry: AuditEntry) -> AuditEntry:
        try:
            return self._deps.audit_trail.append(entry)
        except AuditAppendError:
            raise
        except OSError as e:
            raise AuditAppendError(
                f"Could not append audit entry for '{entry.object_name}': {e}"
            ) from e

    def _commit(
        self,
        context: RunContext,
        *,
        previous: ValidationObject | None,
        updated: ValidationObject,
        action: AuditAction,
        status: AuditStatus,
        detail: str,
        stamp: str | None = None,
        actor: str | None = None,
    ) -> ValidationObject:
        from_state = str(previous.state) if previous is not None else None
        entry = self._append(
            context,
            AuditEntry(
                object_name=updated.name,
                action=action,
                actor=context.resolve_actor(actor),
                timestamp=self._deps.clock(),
                status=status,
                detail=detail,
                from_state=from_state,
                to_state=str(updated.state),
                study_id=context.study_id,
                session_id=context.session_id,
            ),
        )
        if stamp is not None:
            updated = updated.evolve(**{stamp: entry.timestamp})
        try:
            self._deps.object_repository.save(updated)
        except Exception as e:
            raise IntegrityError(
                f"Audit entry #{entry.sequence} for '{updated.name}' was written but "
                + f"the object could not be saved: {e}; manual reconciliation required"
            ) from e
        self.logger.log_transition(
            updated.name, from_state, str(updated.state), str(action)
        )
        return updated


def _summary_detail(summary: ComparisonSummary) -> str:
    stats = summary.statistics
    return (
        f"status={summary.status} findings={summary.total_findings} "
        + f"fail={summary.fail_count} warning={summary.warning_count} "
        + f"info={summary.info_count} matched={stats.matched_pairs} "
        + f"left={stats.left_records} right={stats.right_records}"
    )
