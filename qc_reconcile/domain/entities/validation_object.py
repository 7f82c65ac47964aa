from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from .comparison import ComparisonSummary

if TYPE_CHECKING:
    from collections.abc import Mapping


class ValidationState(StrEnum):
    REGISTERED = "registered"
    LEAD_PRODUCED = "lead_produced"
    INDEPENDENT_PRODUCED = "independent_produced"
    COMPARED = "compared"
    DISCREPANCY_OPEN = "discrepancy_open"
    CLOSED = "closed"

    @property
    def is_terminal(self) -> bool:
        return self is ValidationState.CLOSED


@dataclass(frozen=True, slots=True)
class ValidationObject:
    name: str
    key: tuple[str, ...]
    tolerance: float
    state: ValidationState
    registered_at: datetime
    lead_produced_at: datetime | None = None
    independent_produced_at: datetime | None = None
    compared_at: datetime | None = None
    discrepancy_opened_at: datetime | None = None
    closed_at: datetime | None = None
    lead_programmer: str | None = None
    independent_programmer: str | None = None
    reviewer: str | None = None
    last_summary: ComparisonSummary | None = None
    comparison_count: int = 0
    resolution_note: str | None = None
    resolved_by: str | None = None
    override_note: str | None = None
    closed_by: str | None = None

    @property
    def is_closed(self) -> bool:
        return self.state.is_terminal

    @property
    def has_resolution(self) -> bool:
        return self.resolution_note is not None

    def evolve(self, **changes: object) -> ValidationObject:
        return replace(self, **changes)  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "key": list(self.key),
            "tolerance": self.tolerance,
            "state": str(self.state),
            "registered_at": _iso(self.registered_at),
            "lead_produced_at": _iso(self.lead_produced_at),
            "independent_produced_at": _iso(self.independent_produced_at),
            "compared_at": _iso(self.compared_at),
            "discrepancy_opened_at": _iso(self.discrepancy_opened_at),
            "closed_at": _iso(self.closed_at),
            "lead_programmer": self.lead_programmer,
            "independent_programmer": self.independent_programmer,
            "reviewer": self.reviewer,
            "last_summary": self.last_summary.to_dict()
            if self.last_summary is not None
            else None,
            "comparison_count": self.comparison_count,
            "resolution_note": self.resolution_note,
            "resolved_by": self.resolved_by,
            "override_note": self.override_note,
            "closed_by": self.closed_by,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ValidationObject:
        summary_raw = data.get("last_summary")
        registered_at = _parse_dt(data.get("registered_at"))
        if registered_at is None:
            raise ValueError(f"Validation object {data.get('name')} has no registered_at")
        key_raw = data.get("key") or []
        return cls(
            name=str(data["name"]),
            key=tuple(str(k) for k in key_raw) if isinstance(key_raw, list) else (),
            tolerance=float(str(data.get("tolerance", 0.0))),
            state=ValidationState(str(data["state"])),
            registered_at=registered_at,
            lead_produced_at=_parse_dt(data.get("lead_produced_at")),
            independent_produced_at=_parse_dt(data.get("independent_produced_at")),
            compared_at=_parse_dt(data.get("compared_at")),
            discrepancy_opened_at=_parse_dt(data.get("discrepancy_opened_at")),
            closed_at=_parse_dt(data.get("closed_at")),
            lead_programmer=_opt_str(data.get("lead_programmer")),
            independent_programmer=_opt_str(data.get("independent_programmer")),
            reviewer=_opt_str(data.get("reviewer")),
            last_summary=ComparisonSummary.from_dict(summary_raw)
            if isinstance(summary_raw, dict)
            else None,
            comparison_count=int(str(data.get("comparison_count", 0))),
            resolution_note=_opt_str(data.get("resolution_note")),
            resolved_by=_opt_str(data.get("resolved_by")),
            override_note=_opt_str(data.get("override_note")),
            closed_by=_opt_str(data.get("closed_by")),
        )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: object) -> datetime | None:
    if value is None or value == "":
        return None
    return datetime.fromisoformat(str(value))


def _opt_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
