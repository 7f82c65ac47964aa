from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from itertools import batched
import math
from typing import TYPE_CHECKING

from ..entities.comparison import ToleranceMethod, TrimPolicy
from ..entities.findings import FieldValueDifference, Severity, ValueKind
from ..entities.typed_value import MISSING, Missing, Number, Text

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..entities.typed_value import TypedValue
    from .record_matcher import RecordPair


def within_tolerance(
    left: float,
    right: float,
    tolerance: float,
    method: ToleranceMethod = ToleranceMethod.ABSOLUTE,
) -> bool:
    if left == right:
        return True
    if math.isinf(left) or math.isinf(right):
        return False
    # Values are compared as the decimals they print as, so 10.00001 - 10.0
    # is exactly 1e-05 and no binary rounding slack is needed.
    left_exact = _exact(left)
    right_exact = _exact(right)
    allowed = _exact(tolerance)
    if method is ToleranceMethod.RELATIVE:
        allowed *= max(abs(left_exact), abs(right_exact))
    return abs(left_exact - right_exact) <= allowed


def _exact(value: float) -> Decimal:
    return Decimal(repr(value))


def compare_values(
    left: TypedValue,
    right: TypedValue,
    *,
    tolerance: float,
    method: ToleranceMethod = ToleranceMethod.ABSOLUTE,
    trim: TrimPolicy = TrimPolicy.TRAILING,
) -> tuple[ValueKind, str, float | None] | None:
    left_missing = isinstance(left, Missing)
    right_missing = isinstance(right, Missing)
    if left_missing and right_missing:
        return None
    if left_missing or right_missing:
        return ValueKind.MISSING_PATTERN, "missing-value pattern mismatch", None
    if isinstance(left, Number) and isinstance(right, Number):
        if within_tolerance(left.value, right.value, tolerance, method):
            return None
        delta = abs(left.value - right.value)
        if math.isinf(delta):
            return ValueKind.VALUE_MISMATCH, "numeric values differ (infinite)", None
        return (
            ValueKind.VALUE_MISMATCH,
            f"numeric difference {delta:.6g} exceeds {method} tolerance {tolerance:g}",
            delta,
        )
    if isinstance(left, Text) and isinstance(right, Text):
        if trim.apply(left.value) == trim.apply(right.value):
            return None
        return ValueKind.VALUE_MISMATCH, f"text differs (trim={trim})", None
    return (
        ValueKind.TYPE_MISMATCH,
        f"type mismatch: {type(left).__name__} vs {type(right).__name__}",
        None,
    )


def diff_record_pair(
    pair: RecordPair,
    fields: Sequence[str],
    *,
    object_name: str,
    tolerance: float,
    method: ToleranceMethod = ToleranceMethod.ABSOLUTE,
    trim: TrimPolicy = TrimPolicy.TRAILING,
    right_fields: Sequence[str] | None = None,
) -> list[FieldValueDifference]:
    right_names = right_fields if right_fields is not None else fields
    differences: list[FieldValueDifference] = []
    for name, right_name in zip(fields, right_names, strict=True):
        left_value = pair.left.get(name, MISSING)
        right_value = pair.right.get(right_name, MISSING)
        outcome = compare_values(
            left_value, right_value, tolerance=tolerance, method=method, trim=trim
        )
        if outcome is None:
            continue
        kind, reason, delta = outcome
        differences.append(
            FieldValueDifference(
                object_name=object_name,
                key=pair.label,
                column=name,
                kind=kind,
                severity=Severity.FAIL,
                reason=reason,
                left=left_value,
                right=right_value,
                delta=delta,
                key_values=pair.key_values,
            )
        )
    return differences


def diff_record_pairs(
    pairs: Sequence[RecordPair],
    fields: Sequence[str],
    *,
    object_name: str,
    tolerance: float,
    method: ToleranceMethod = ToleranceMethod.ABSOLUTE,
    trim: TrimPolicy = TrimPolicy.TRAILING,
    right_fields: Sequence[str] | None = None,
    chunk_size: int = 1000,
    max_workers: int = 1,
) -> list[FieldValueDifference]:
    if not pairs or not fields:
        return []

    def diff_batch(batch: tuple[RecordPair, ...]) -> list[FieldValueDifference]:
        out: list[FieldValueDifference] = []
        for pair in batch:
            out.extend(
                diff_record_pair(
                    pair,
                    fields,
                    object_name=object_name,
                    tolerance=tolerance,
                    method=method,
                    trim=trim,
                    right_fields=right_fields,
                )
            )
        return out

    batches = list(batched(pairs, chunk_size))
    differences: list[FieldValueDifference] = []
    if max_workers <= 1 or len(batches) == 1:
        for batch in batches:
            differences.extend(diff_batch(batch))
        return differences
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        # map() yields in submission order, so output order is deterministic
        for batch_result in executor.map(diff_batch, batches):
            differences.extend(batch_result)
    return differences
