from __future__ import annotations

from typing import TYPE_CHECKING

from ..entities.audit import AuditAction
from ..entities.validation_object import ValidationState
from ..errors import InvalidTransitionError

if TYPE_CHECKING:
    from ..entities.comparison import ComparisonSummary

TRANSITIONS: dict[tuple[ValidationState, AuditAction], ValidationState] = {
    (ValidationState.REGISTERED, AuditAction.MARK_LEAD_PRODUCED): (
        ValidationState.LEAD_PRODUCED
    ),
    (ValidationState.LEAD_PRODUCED, AuditAction.MARK_INDEPENDENT_PRODUCED): (
        ValidationState.INDEPENDENT_PRODUCED
    ),
    (ValidationState.INDEPENDENT_PRODUCED, AuditAction.COMPARE): (
        ValidationState.COMPARED
    ),
    (ValidationState.DISCREPANCY_OPEN, AuditAction.COMPARE): ValidationState.COMPARED,
    (ValidationState.COMPARED, AuditAction.OPEN_DISCREPANCY): (
        ValidationState.DISCREPANCY_OPEN
    ),
    (ValidationState.COMPARED, AuditAction.AUTO_CLOSE): ValidationState.CLOSED,
    (ValidationState.COMPARED, AuditAction.SIGN_OFF): ValidationState.CLOSED,
    # only once a resolution has been recorded for the latest comparison
    (ValidationState.DISCREPANCY_OPEN, AuditAction.SIGN_OFF): ValidationState.CLOSED,
}

# Actions that are recorded without changing state.
IN_PLACE_ACTIONS: dict[AuditAction, frozenset[ValidationState]] = {
    AuditAction.RESOLVE_DISCREPANCY: frozenset({ValidationState.DISCREPANCY_OPEN}),
}


def next_state(
    object_name: str, state: ValidationState, action: AuditAction
) -> ValidationState:
    target = TRANSITIONS.get((state, action))
    if target is None:
        raise InvalidTransitionError(object_name, str(state), str(action))
    return target


def ensure_in_place_allowed(
    object_name: str, state: ValidationState, action: AuditAction
) -> None:
    if state not in IN_PLACE_ACTIONS.get(action, frozenset()):
        raise InvalidTransitionError(object_name, str(state), str(action))


def allowed_actions(state: ValidationState) -> list[AuditAction]:
    actions = [action for (source, action) in TRANSITIONS if source is state]
    actions.extend(
        action for action, states in IN_PLACE_ACTIONS.items() if state in states
    )
    return actions


def routing_action(
    summary: ComparisonSummary, *, override_note: str | None = None
) -> AuditAction:
    if summary.passed or (override_note and override_note.strip()):
        return AuditAction.AUTO_CLOSE
    return AuditAction.OPEN_DISCREPANCY
