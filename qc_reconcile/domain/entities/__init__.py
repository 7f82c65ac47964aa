"""Domain entities.

Typed values, dataset snapshots, findings, comparison settings and results,
validation objects and audit entries.
"""

from .audit import AuditAction, AuditEntry, AuditStatus
from .comparison import (
    ComparisonConfig,
    ComparisonJob,
    ComparisonResult,
    ComparisonStatus,
    ComparisonSummary,
    FieldStatistics,
    MatchStatistics,
    ToleranceMethod,
    TrimPolicy,
    build_comparison_config,
)
from .context import RunContext
from .findings import (
    FieldValueDifference,
    Finding,
    PresenceKind,
    RecordPresenceDifference,
    SchemaDifference,
    SchemaKind,
    Severity,
    Side,
    ValueKind,
)
from .snapshot import ColumnDefinition, ColumnType, DatasetSnapshot, Record
from .typed_value import MISSING, Missing, Number, Text, TypedValue, to_typed_value
from .validation_object import ValidationObject, ValidationState

__all__ = [
    # Values and snapshots
    "MISSING",
    "Missing",
    "Number",
    "Text",
    "TypedValue",
    "to_typed_value",
    "ColumnDefinition",
    "ColumnType",
    "DatasetSnapshot",
    "Record",
    # Findings
    "Finding",
    "FieldValueDifference",
    "PresenceKind",
    "RecordPresenceDifference",
    "SchemaDifference",
    "SchemaKind",
    "Severity",
    "Side",
    "ValueKind",
    # Comparison
    "ComparisonConfig",
    "ComparisonJob",
    "ComparisonResult",
    "ComparisonStatus",
    "ComparisonSummary",
    "FieldStatistics",
    "MatchStatistics",
    "ToleranceMethod",
    "TrimPolicy",
    "build_comparison_config",
    # Workflow
    "AuditAction",
    "AuditEntry",
    "AuditStatus",
    "RunContext",
    "ValidationObject",
    "ValidationState",
]
