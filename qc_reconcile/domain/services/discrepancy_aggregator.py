from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from ..entities.comparison import (
    ComparisonStatus,
    ComparisonSummary,
    FieldStatistics,
    MatchStatistics,
)
from ..entities.findings import FieldValueDifference, Severity, finding_kind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..entities.findings import Finding


def status_for(severities: Iterable[Severity]) -> ComparisonStatus:
    worst = max(severities, default=Severity.INFO)
    if worst is Severity.FAIL:
        return ComparisonStatus.FAIL
    if worst is Severity.WARNING:
        return ComparisonStatus.WARNING
    return ComparisonStatus.PASS


def _merge_field(
    current: FieldStatistics | None, finding: FieldValueDifference
) -> FieldStatistics:
    if current is None:
        current = FieldStatistics(column=finding.column)
    max_delta = current.max_delta
    if finding.delta is not None:
        max_delta = finding.delta if max_delta is None else max(max_delta, finding.delta)
    return FieldStatistics(
        column=current.column,
        differences=current.differences + 1,
        max_delta=max_delta,
    )


def summarize(
    object_name: str,
    findings: Iterable[Finding],
    *,
    statistics: MatchStatistics | None = None,
) -> ComparisonSummary:
    severity_counts: Counter[str] = Counter()
    kind_counts: Counter[str] = Counter()
    field_stats: dict[str, FieldStatistics] = {}
    severities: list[Severity] = []
    for finding in findings:
        severities.append(finding.severity)
        severity_counts[finding.severity.label] += 1
        kind_counts[finding_kind(finding)] += 1
        if isinstance(finding, FieldValueDifference):
            field_stats[finding.column] = _merge_field(
                field_stats.get(finding.column), finding
            )
    return ComparisonSummary(
        object_name=object_name,
        status=status_for(severities),
        severity_counts=dict(severity_counts),
        kind_counts=dict(kind_counts),
        field_statistics=field_stats,
        statistics=statistics or MatchStatistics(),
    )
