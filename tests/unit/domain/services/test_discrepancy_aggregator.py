"""Tests for rolling findings up into a comparison summary."""

from qc_reconcile.domain.entities.comparison import ComparisonStatus, MatchStatistics
from qc_reconcile.domain.entities.findings import (
    FieldValueDifference,
    SchemaDifference,
    SchemaKind,
    Severity,
    ValueKind,
)
from qc_reconcile.domain.services.discrepancy_aggregator import status_for, summarize


def _schema(severity, kind=SchemaKind.LABEL_MISMATCH):
    return SchemaDifference(
        object_name="ADSL", column="AGE", kind=kind, severity=severity, reason="r"
    )


def _value(column, delta):
    return FieldValueDifference(
        object_name="ADSL",
        key="USUBJID='1'",
        column=column,
        kind=ValueKind.VALUE_MISMATCH,
        severity=Severity.FAIL,
        reason="r",
        delta=delta,
    )


class TestStatusFor:
    def test_no_findings_pass(self):
        assert status_for([]) is ComparisonStatus.PASS

    def test_info_only_pass(self):
        assert status_for([Severity.INFO, Severity.INFO]) is ComparisonStatus.PASS

    def test_warning(self):
        assert status_for([Severity.INFO, Severity.WARNING]) is ComparisonStatus.WARNING

    def test_fail_wins(self):
        assert (
            status_for([Severity.WARNING, Severity.FAIL, Severity.INFO])
            is ComparisonStatus.FAIL
        )


class TestSummarize:
    def test_counts_by_severity_and_kind(self):
        findings = [
            _schema(Severity.INFO),
            _schema(Severity.WARNING, SchemaKind.RIGHT_ONLY),
            _value("AGE", 2.0),
            _value("AGE", 5.0),
            _value("WEIGHT", None),
        ]
        summary = summarize(
            "ADSL", findings, statistics=MatchStatistics(matched_pairs=4)
        )
        assert summary.status is ComparisonStatus.FAIL
        assert summary.severity_counts == {"Info": 1, "Warning": 1, "Fail": 3}
        assert summary.kind_counts["value:value-mismatch"] == 3
        assert summary.kind_counts["schema:right-only"] == 1
        assert summary.field_statistics["AGE"].differences == 2
        assert summary.field_statistics["AGE"].max_delta == 5.0
        assert summary.field_statistics["WEIGHT"].max_delta is None
        assert summary.statistics.matched_pairs == 4

    def test_order_independent(self):
        findings = [_schema(Severity.WARNING), _value("AGE", 1.0), _value("AGE", 3.0)]
        assert summarize("ADSL", findings) == summarize("ADSL", list(reversed(findings)))
