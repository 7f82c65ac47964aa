from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from types import MappingProxyType
from typing import TYPE_CHECKING

from .typed_value import MISSING, TypedValue

if TYPE_CHECKING:
    from collections.abc import Mapping


class Severity(IntEnum):
    INFO = 0
    WARNING = 1
    FAIL = 2

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Side(StrEnum):
    LEFT = "left"
    RIGHT = "right"

    def other(self) -> Side:
        return Side.RIGHT if self is Side.LEFT else Side.LEFT


class SchemaKind(StrEnum):
    LEFT_ONLY = "left-only"
    RIGHT_ONLY = "right-only"
    TYPE_MISMATCH = "type-mismatch"
    WIDTH_MISMATCH = "width-mismatch"
    LABEL_MISMATCH = "label-mismatch"
    POSITION_MISMATCH = "position-mismatch"
    MISSING_COMPARISON_FIELD = "missing-comparison-field"


class PresenceKind(StrEnum):
    LEFT_ONLY = "left-only"
    RIGHT_ONLY = "right-only"
    DUPLICATE_KEY = "duplicate-key"


class ValueKind(StrEnum):
    VALUE_MISMATCH = "value-mismatch"
    MISSING_PATTERN = "missing-pattern"
    TYPE_MISMATCH = "type-mismatch"


def _empty_key_values() -> Mapping[str, TypedValue]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class SchemaDifference:
    object_name: str
    column: str
    kind: SchemaKind
    severity: Severity
    reason: str
    left: str | None = None
    right: str | None = None

    @property
    def category(self) -> str:
        return "schema"

    @property
    def identifier(self) -> str:
        return self.column

    def to_dict(self) -> dict[str, object]:
        return {
            "category": self.category,
            "object": self.object_name,
            "column": self.column,
            "kind": str(self.kind),
            "severity": self.severity.label,
            "reason": self.reason,
            "left": self.left,
            "right": self.right,
        }


@dataclass(frozen=True, slots=True)
class RecordPresenceDifference:
    object_name: str
    key: str
    kind: PresenceKind
    side: Side
    severity: Severity
    reason: str
    key_values: Mapping[str, TypedValue] = field(default_factory=_empty_key_values)
    occurrence: int | None = None

    @property
    def category(self) -> str:
        return "presence"

    @property
    def identifier(self) -> str:
        return self.key

    def to_dict(self) -> dict[str, object]:
        return {
            "category": self.category,
            "object": self.object_name,
            "key": self.key,
            "key_values": {k: v.to_json() for k, v in self.key_values.items()},
            "kind": str(self.kind),
            "side": str(self.side),
            "severity": self.severity.label,
            "reason": self.reason,
            "occurrence": self.occurrence,
        }


@dataclass(frozen=True, slots=True)
class FieldValueDifference:
    object_name: str
    key: str
    column: str
    kind: ValueKind
    severity: Severity
    reason: str
    left: TypedValue = MISSING
    right: TypedValue = MISSING
    delta: float | None = None
    key_values: Mapping[str, TypedValue] = field(default_factory=_empty_key_values)

    @property
    def category(self) -> str:
        return "value"

    @property
    def identifier(self) -> str:
        return f"{self.key} / {self.column}"

    def to_dict(self) -> dict[str, object]:
        return {
            "category": self.category,
            "object": self.object_name,
            "key": self.key,
            "key_values": {k: v.to_json() for k, v in self.key_values.items()},
            "column": self.column,
            "kind": str(self.kind),
            "severity": self.severity.label,
            "reason": self.reason,
            "left": self.left.to_json(),
            "right": self.right.to_json(),
            "delta": self.delta,
        }


type Finding = SchemaDifference | RecordPresenceDifference | FieldValueDifference


def finding_kind(finding: Finding) -> str:
    return f"{finding.category}:{finding.kind}"
