from __future__ import annotations

from dataclasses import dataclass, field
import getpass
import uuid

DEFAULT_ACTOR = "system"


def _new_session_id() -> str:
    return uuid.uuid4().hex[:12]


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return DEFAULT_ACTOR


@dataclass(frozen=True, slots=True)
class RunContext:
    study_id: str = ""
    actor: str = DEFAULT_ACTOR
    session_id: str = field(default_factory=_new_session_id)

    def resolve_actor(self, actor: str | None) -> str:
        cleaned = (actor or "").strip()
        return cleaned or self.actor

    @classmethod
    def for_current_user(cls, study_id: str = "") -> RunContext:
        return cls(study_id=study_id, actor=_current_user())
