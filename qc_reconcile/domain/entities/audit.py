from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


class AuditAction(StrEnum):
    REGISTER = "register"
    MARK_LEAD_PRODUCED = "mark_lead_produced"
    MARK_INDEPENDENT_PRODUCED = "mark_independent_produced"
    COMPARE = "compare"
    OPEN_DISCREPANCY = "open_discrepancy"
    AUTO_CLOSE = "auto_close"
    RESOLVE_DISCREPANCY = "resolve_discrepancy"
    SIGN_OFF = "sign_off"


class AuditStatus(StrEnum):
    OK = "ok"
    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"
    OVERRIDDEN = "overridden"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class AuditEntry:
    object_name: str
    action: AuditAction
    actor: str
    timestamp: datetime
    status: AuditStatus
    detail: str = ""
    from_state: str | None = None
    to_state: str | None = None
    study_id: str = ""
    session_id: str = ""
    sequence: int = 0

    @property
    def is_transition(self) -> bool:
        return self.to_state is not None and self.to_state != self.from_state

    def to_dict(self) -> dict[str, object]:
        return {
            "object": self.object_name,
            "sequence": self.sequence,
            "action": str(self.action),
            "actor": self.actor,
            "timestamp": self.timestamp.isoformat(),
            "status": str(self.status),
            "detail": self.detail,
            "from_state": self.from_state,
            "to_state": self.to_state,
            "study_id": self.study_id,
            "session_id": self.session_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> AuditEntry:
        return cls(
            object_name=str(data["object"]),
            sequence=int(str(data.get("sequence", 0))),
            action=AuditAction(str(data["action"])),
            actor=str(data.get("actor", "")),
            timestamp=datetime.fromisoformat(str(data["timestamp"])),
            status=AuditStatus(str(data["status"])),
            detail=str(data.get("detail") or ""),
            from_state=_opt_str(data.get("from_state")),
            to_state=_opt_str(data.get("to_state")),
            study_id=str(data.get("study_id") or ""),
            session_id=str(data.get("session_id") or ""),
        )


def _opt_str(value: object) -> str | None:
    return None if value is None else str(value)
