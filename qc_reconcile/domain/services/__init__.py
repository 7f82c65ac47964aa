"""Domain services.

Pure comparison logic (schema, records, values, aggregation) and the
validation lifecycle transition table.
"""

from .comparison_engine import compare_snapshots, run_comparison
from .discrepancy_aggregator import status_for, summarize
from .lifecycle import allowed_actions, next_state, routing_action
from .record_matcher import MatchResult, RecordPair, match_records, validate_key
from .schema_comparator import compare_schemas, resolve_comparison_fields
from .value_differencer import compare_values, diff_record_pairs, within_tolerance

__all__ = [
    "MatchResult",
    "RecordPair",
    "allowed_actions",
    "compare_schemas",
    "compare_snapshots",
    "compare_values",
    "diff_record_pairs",
    "match_records",
    "next_state",
    "resolve_comparison_fields",
    "routing_action",
    "run_comparison",
    "status_for",
    "summarize",
    "validate_key",
    "within_tolerance",
]
