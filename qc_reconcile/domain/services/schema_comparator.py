from __future__ import annotations

from typing import TYPE_CHECKING

from ..entities.findings import SchemaDifference, SchemaKind, Severity
from ..entities.snapshot import normalize_name

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..entities.snapshot import ColumnDefinition, DatasetSnapshot

ABSENT = "absent"


def _describe_type(column: ColumnDefinition) -> str:
    return f"{column.type} width={column.width}"


def _shared_columns(
    left: DatasetSnapshot, right: DatasetSnapshot
) -> list[tuple[ColumnDefinition, ColumnDefinition]]:
    pairs: list[tuple[ColumnDefinition, ColumnDefinition]] = []
    for column in left.columns:
        other = right.column(column.name)
        if other is not None:
            pairs.append((column, other))
    return pairs


def compare_schemas(
    left: DatasetSnapshot,
    right: DatasetSnapshot,
    *,
    object_name: str,
    compare_fields: Sequence[str] | None = None,
) -> list[SchemaDifference]:
    declared = (
        {normalize_name(name) for name in compare_fields}
        if compare_fields is not None
        else set()
    )
    differences: list[SchemaDifference] = []
    differences.extend(_presence_differences(left, right, object_name, declared))
    differences.extend(_missing_field_differences(left, right, object_name, declared))
    for left_col, right_col in _shared_columns(left, right):
        differences.extend(_attribute_differences(left_col, right_col, object_name))
    differences.extend(_position_differences(left, right, object_name))
    return differences


def _presence_differences(
    left: DatasetSnapshot,
    right: DatasetSnapshot,
    object_name: str,
    declared: set[str],
) -> list[SchemaDifference]:
    differences: list[SchemaDifference] = []
    for column in left.columns:
        if right.has_column(column.name) or column.normalized_name in declared:
            continue
        differences.append(
            SchemaDifference(
                object_name=object_name,
                column=column.name,
                kind=SchemaKind.LEFT_ONLY,
                severity=Severity.WARNING,
                reason=f"Column {column.name} exists only in {left.name}",
                left=_describe_type(column),
                right=ABSENT,
            )
        )
    for column in right.columns:
        if left.has_column(column.name) or column.normalized_name in declared:
            continue
        differences.append(
            SchemaDifference(
                object_name=object_name,
                column=column.name,
                kind=SchemaKind.RIGHT_ONLY,
                severity=Severity.WARNING,
                reason=f"Column {column.name} exists only in {right.name}",
                left=ABSENT,
                right=_describe_type(column),
            )
        )
    return differences


def _missing_field_differences(
    left: DatasetSnapshot,
    right: DatasetSnapshot,
    object_name: str,
    declared: set[str],
) -> list[SchemaDifference]:
    differences: list[SchemaDifference] = []
    for name in sorted(declared):
        left_col = left.column(name)
        right_col = right.column(name)
        if left_col is not None and right_col is not None:
            continue
        missing_from = [
            snap.name
            for snap, col in ((left, left_col), (right, right_col))
            if col is None
        ]
        display = (left_col or right_col).name if (left_col or right_col) else name
        differences.append(
            SchemaDifference(
                object_name=object_name,
                column=display,
                kind=SchemaKind.MISSING_COMPARISON_FIELD,
                severity=Severity.FAIL,
                reason=f"Comparison field {display} is missing from {' and '.join(missing_from)}",
                left=_describe_type(left_col) if left_col else ABSENT,
                right=_describe_type(right_col) if right_col else ABSENT,
            )
        )
    return differences


def _attribute_differences(
    left_col: ColumnDefinition, right_col: ColumnDefinition, object_name: str
) -> list[SchemaDifference]:
    differences: list[SchemaDifference] = []
    if left_col.type != right_col.type:
        differences.append(
            SchemaDifference(
                object_name=object_name,
                column=left_col.name,
                kind=SchemaKind.TYPE_MISMATCH,
                severity=Severity.FAIL,
                reason=f"Column {left_col.name} is {left_col.type} on the left and {right_col.type} on the right",
                left=_describe_type(left_col),
                right=_describe_type(right_col),
            )
        )
    elif left_col.width != right_col.width:
        differences.append(
            SchemaDifference(
                object_name=object_name,
                column=left_col.name,
                kind=SchemaKind.WIDTH_MISMATCH,
                severity=Severity.FAIL,
                reason=f"Column {left_col.name} has declared width {left_col.width} on the left and {right_col.width} on the right",
                left=_describe_type(left_col),
                right=_describe_type(right_col),
            )
        )
    left_label = (left_col.label or "").strip()
    right_label = (right_col.label or "").strip()
    if left_label and right_label and left_label != right_label:
        differences.append(
            SchemaDifference(
                object_name=object_name,
                column=left_col.name,
                kind=SchemaKind.LABEL_MISMATCH,
                severity=Severity.INFO,
                reason=f"Column {left_col.name} carries different labels",
                left=left_label,
                right=right_label,
            )
        )
    return differences


def _position_differences(
    left: DatasetSnapshot, right: DatasetSnapshot, object_name: str
) -> list[SchemaDifference]:
    left_order = [c.normalized_name for c in left.columns if right.has_column(c.name)]
    right_order = [c.normalized_name for c in right.columns if left.has_column(c.name)]
    right_positions = {name: i for i, name in enumerate(right_order)}
    differences: list[SchemaDifference] = []
    for left_position, name in enumerate(left_order):
        right_position = right_positions[name]
        if left_position == right_position:
            continue
        column = left.require_column(name)
        differences.append(
            SchemaDifference(
                object_name=object_name,
                column=column.name,
                kind=SchemaKind.POSITION_MISMATCH,
                severity=Severity.INFO,
                reason=f"Column {column.name} is in a different position among shared columns",
                left=f"#{left_position + 1}",
                right=f"#{right_position + 1}",
            )
        )
    return differences


def resolve_comparison_fields(
    left: DatasetSnapshot,
    right: DatasetSnapshot,
    *,
    key: Sequence[str],
    compare_fields: Sequence[str] | None = None,
) -> tuple[str, ...]:
    key_names = {normalize_name(name) for name in key}
    if compare_fields is None:
        candidates = [c.name for c in left.columns if right.has_column(c.name)]
    else:
        candidates = list(compare_fields)
    resolved: list[str] = []
    for name in candidates:
        if normalize_name(name) in key_names:
            continue
        left_col = left.column(name)
        right_col = right.column(name)
        if left_col is None or right_col is None:
            continue
        if left_col.type != right_col.type:
            continue
        if left_col.name not in resolved:
            resolved.append(left_col.name)
    return tuple(resolved)
