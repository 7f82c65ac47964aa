from __future__ import annotations

from typing import TYPE_CHECKING

from ..entities.comparison import ComparisonJob, ComparisonResult, MatchStatistics
from .discrepancy_aggregator import summarize
from .record_matcher import match_records, validate_key
from .schema_comparator import compare_schemas, resolve_comparison_fields
from .value_differencer import diff_record_pairs

if TYPE_CHECKING:
    from ..entities.comparison import ComparisonConfig
    from ..entities.findings import Finding
    from ..entities.snapshot import DatasetSnapshot


def run_comparison(job: ComparisonJob) -> ComparisonResult:
    config = job.config
    left, right = job.left, job.right
    validate_key(left, right, config.key)

    findings: list[Finding] = []
    findings.extend(
        compare_schemas(
            left,
            right,
            object_name=job.object_name,
            compare_fields=config.compare_fields,
        )
    )
    fields = resolve_comparison_fields(
        left, right, key=config.key, compare_fields=config.compare_fields
    )
    right_fields = [right.require_column(name).name for name in fields]

    match = match_records(left, right, config.key, object_name=job.object_name)
    findings.extend(match.findings)
    findings.extend(
        diff_record_pairs(
            match.pairs,
            fields,
            object_name=job.object_name,
            tolerance=config.tolerance,
            method=config.tolerance_method,
            trim=config.trim,
            right_fields=right_fields,
            chunk_size=config.chunk_size,
            max_workers=config.max_workers,
        )
    )
    statistics = MatchStatistics(
        left_records=left.row_count,
        right_records=right.row_count,
        matched_pairs=len(match.pairs),
        compared_fields=fields,
    )
    summary = summarize(job.object_name, findings, statistics=statistics)
    return ComparisonResult(job=job, findings=tuple(findings), summary=summary)


def compare_snapshots(
    left: DatasetSnapshot,
    right: DatasetSnapshot,
    config: ComparisonConfig,
    *,
    object_name: str | None = None,
) -> ComparisonResult:
    job = ComparisonJob(
        object_name=object_name or left.name,
        left=left,
        right=right,
        config=config,
    )
    return run_comparison(job)
