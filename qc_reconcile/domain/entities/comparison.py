from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from ..errors import ConfigurationError
from .findings import Severity

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .findings import Finding
    from .snapshot import DatasetSnapshot

DEFAULT_TOLERANCE = 1e-5
DEFAULT_CHUNK_SIZE = 1000
RESULT_SCHEMA = "qc-reconcile.comparison-result"
RESULT_SCHEMA_VERSION = 1


class TrimPolicy(StrEnum):
    NONE = "none"
    TRAILING = "trailing"
    BOTH = "both"

    def apply(self, text: str) -> str:
        if self is TrimPolicy.TRAILING:
            return text.rstrip()
        if self is TrimPolicy.BOTH:
            return text.strip()
        return text


class ToleranceMethod(StrEnum):
    ABSOLUTE = "absolute"
    RELATIVE = "relative"


class ComparisonStatus(StrEnum):
    PASS = "Pass"
    WARNING = "Warning"
    FAIL = "Fail"


class ComparisonConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: tuple[str, ...]
    compare_fields: tuple[str, ...] | None = None
    tolerance: float = Field(default=DEFAULT_TOLERANCE, ge=0.0)
    tolerance_method: ToleranceMethod = ToleranceMethod.ABSOLUTE
    trim: TrimPolicy = TrimPolicy.TRAILING
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, ge=1)
    max_workers: int = Field(default=1, ge=1)

    @field_validator("key")
    @classmethod
    def _key_not_empty(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        cleaned = tuple(name.strip() for name in value)
        if not cleaned:
            raise ValueError("key tuple must name at least one column")
        if any(not name for name in cleaned):
            raise ValueError("key tuple contains an empty column name")
        upper = [name.upper() for name in cleaned]
        if len(set(upper)) != len(upper):
            raise ValueError(f"key tuple repeats a column: {list(cleaned)}")
        return cleaned

    @field_validator("compare_fields")
    @classmethod
    def _strip_fields(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        return tuple(dict.fromkeys(name.strip() for name in value if name.strip()))

    @model_validator(mode="after")
    def _finite_tolerance(self) -> ComparisonConfig:
        if self.tolerance == float("inf"):
            raise ValueError("tolerance must be finite")
        return self

    def with_overrides(self, **changes: object) -> ComparisonConfig:
        data = self.model_dump()
        data.update({k: v for k, v in changes.items() if v is not None})
        return build_comparison_config(**data)

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json")


def build_comparison_config(**values: object) -> ComparisonConfig:
    try:
        return ComparisonConfig.model_validate(values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'config'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid comparison configuration: {problems}") from e


@dataclass(frozen=True, slots=True)
class ComparisonJob:
    object_name: str
    left: DatasetSnapshot
    right: DatasetSnapshot
    config: ComparisonConfig

    def swapped(self) -> ComparisonJob:
        return ComparisonJob(
            object_name=self.object_name,
            left=self.right,
            right=self.left,
            config=self.config,
        )


@dataclass(frozen=True, slots=True)
class MatchStatistics:
    left_records: int = 0
    right_records: int = 0
    matched_pairs: int = 0
    compared_fields: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, object]:
        return {
            "left_records": self.left_records,
            "right_records": self.right_records,
            "matched_pairs": self.matched_pairs,
            "compared_fields": list(self.compared_fields),
        }


@dataclass(frozen=True, slots=True)
class FieldStatistics:
    column: str
    differences: int = 0
    max_delta: float | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "column": self.column,
            "differences": self.differences,
            "max_delta": self.max_delta,
        }


def _empty_counts() -> dict[str, int]:
    return {}


def _empty_field_stats() -> dict[str, FieldStatistics]:
    return {}


@dataclass(frozen=True, slots=True)
class ComparisonSummary:
    object_name: str
    status: ComparisonStatus
    severity_counts: Mapping[str, int] = field(default_factory=_empty_counts)
    kind_counts: Mapping[str, int] = field(default_factory=_empty_counts)
    field_statistics: Mapping[str, FieldStatistics] = field(
        default_factory=_empty_field_stats
    )
    statistics: MatchStatistics = field(default_factory=MatchStatistics)

    @property
    def total_findings(self) -> int:
        return sum(self.severity_counts.values())

    @property
    def fail_count(self) -> int:
        return self.severity_counts.get(Severity.FAIL.label, 0)

    @property
    def warning_count(self) -> int:
        return self.severity_counts.get(Severity.WARNING.label, 0)

    @property
    def info_count(self) -> int:
        return self.severity_counts.get(Severity.INFO.label, 0)

    @property
    def passed(self) -> bool:
        return self.status is ComparisonStatus.PASS

    def to_dict(self) -> dict[str, object]:
        return {
            "object": self.object_name,
            "status": str(self.status),
            "total_findings": self.total_findings,
            "severity_counts": dict(sorted(self.severity_counts.items())),
            "kind_counts": dict(sorted(self.kind_counts.items())),
            "fields": [
                self.field_statistics[name].to_dict()
                for name in sorted(self.field_statistics)
            ],
            "statistics": self.statistics.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> ComparisonSummary:
        stats = _as_mapping(data.get("statistics"))
        fields_raw = data.get("fields") or []
        field_stats: dict[str, FieldStatistics] = {}
        if isinstance(fields_raw, list):
            for item in fields_raw:
                entry = _as_mapping(item)
                name = str(entry.get("column", ""))
                max_delta = entry.get("max_delta")
                field_stats[name] = FieldStatistics(
                    column=name,
                    differences=_as_int(entry.get("differences")),
                    max_delta=float(max_delta)
                    if isinstance(max_delta, (int, float))
                    else None,
                )
        compared = stats.get("compared_fields") or []
        return cls(
            object_name=str(data.get("object", "")),
            status=ComparisonStatus(str(data.get("status", "Pass"))),
            severity_counts={
                str(k): _as_int(v)
                for k, v in _as_mapping(data.get("severity_counts")).items()
            },
            kind_counts={
                str(k): _as_int(v)
                for k, v in _as_mapping(data.get("kind_counts")).items()
            },
            field_statistics=field_stats,
            statistics=MatchStatistics(
                left_records=_as_int(stats.get("left_records")),
                right_records=_as_int(stats.get("right_records")),
                matched_pairs=_as_int(stats.get("matched_pairs")),
                compared_fields=tuple(str(c) for c in compared)
                if isinstance(compared, list)
                else (),
            ),
        )


def _as_mapping(value: object) -> Mapping[str, object]:
    if isinstance(value, dict):
        return value
    return {}


def _as_int(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str) and value.strip():
        return int(value)
    return 0


@dataclass(frozen=True, slots=True)
class ComparisonResult:
    job: ComparisonJob
    findings: tuple[Finding, ...]
    summary: ComparisonSummary
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def status(self) -> ComparisonStatus:
        return self.summary.status

    def findings_of(self, category: str) -> list[Finding]:
        return [f for f in self.findings if f.category == category]

    def to_dict(self) -> dict[str, object]:
        return {
            "schema": RESULT_SCHEMA,
            "schema_version": RESULT_SCHEMA_VERSION,
            "generated_at": self.generated_at.isoformat(),
            "object": self.job.object_name,
            "left": {
                "name": self.job.left.name,
                "columns": [c.to_dict() for c in self.job.left.columns],
            },
            "right": {
                "name": self.job.right.name,
                "columns": [c.to_dict() for c in self.job.right.columns],
            },
            "config": self.job.config.to_dict(),
            "summary": self.summary.to_dict(),
            "findings": [finding.to_dict() for finding in self.findings],
        }
