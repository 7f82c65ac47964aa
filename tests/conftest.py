import pytest

from qc_reconcile.domain.entities.snapshot import (
    ColumnDefinition,
    ColumnType,
    DatasetSnapshot,
)

QC_ENV_VARS = (
    "QC_DEFAULT_TOLERANCE",
    "QC_TOLERANCE_METHOD",
    "QC_TRIM",
    "QC_CHUNK_SIZE",
    "QC_MAX_WORKERS",
    "QC_WORKSPACE_DIR",
    "QC_BLANK_TEXT_IS_MISSING",
    "QC_DEFAULT_ACTOR",
)


@pytest.fixture(autouse=True)
def _isolated_qc_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep QC_* settings from the developer's shell out of the tests."""
    for name in QC_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _column(entry: object) -> ColumnDefinition:
    if isinstance(entry, ColumnDefinition):
        return entry
    name, kind, *rest = entry  # type: ignore[misc]
    column_type = ColumnType.NUMERIC if kind == "num" else ColumnType.TEXT
    width = rest[0] if rest else (8 if column_type is ColumnType.NUMERIC else 20)
    label = rest[1] if len(rest) > 1 else None
    return ColumnDefinition(name=name, type=column_type, width=width, label=label)


def _build_snapshot(name, columns, rows=()):
    return DatasetSnapshot.build(name, [_column(c) for c in columns], rows)


@pytest.fixture
def build_snapshot():
    """Build a snapshot from ``(name, "num"|"char"[, width[, label]])`` tuples."""
    return _build_snapshot


@pytest.fixture
def adsl_pair():
    """A small ADSL production/QC pair that matches exactly."""
    columns = [("USUBJID", "char", 10), ("AGE", "num"), ("SEX", "char", 1)]
    rows = [
        {"USUBJID": "01-001", "AGE": 34, "SEX": "F"},
        {"USUBJID": "01-002", "AGE": 51, "SEX": "M"},
        {"USUBJID": "01-003", "AGE": 47, "SEX": "F"},
    ]
    return _build_snapshot("ADSL", columns, rows), _build_snapshot("QC_ADSL", columns, rows)
