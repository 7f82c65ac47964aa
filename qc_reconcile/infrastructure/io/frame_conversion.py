"""Conversion of pandas frames into dataset snapshots.

Column types are taken from the frame's dtypes, or from declared SAS types
when the caller supplies them. Text columns read from delimited files are
promoted to Numeric when every present value is a plain number with no
leading zeros or "+" sign, so identifiers such as "001" stay text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pandas as pd

from ...domain.entities.snapshot import (
    DEFAULT_NUMERIC_WIDTH,
    ColumnDefinition,
    ColumnType,
    DatasetSnapshot,
)
from ...domain.entities.typed_value import MISSING, Number, Text, to_typed_value
from ...domain.errors import ConfigurationError
from .exceptions import DataValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ...domain.entities.typed_value import TypedValue

# No sign other than "-" and no leading zeros before the integer digits.
NUMERIC_PATTERN = r"-?(0|[1-9]\d*)(\.\d*)?([eE][+-]?\d+)?|-?\.\d+([eE][+-]?\d+)?"
SAS_MISSING = "."
MIN_TEXT_WIDTH = 1


def _present_text(series: pd.Series) -> pd.Series:
    present = series.dropna().astype(str).str.strip()
    return present[(present != "") & (present != SAS_MISSING)]


def infer_column_type(series: pd.Series) -> ColumnType:
    if pd.api.types.is_bool_dtype(series) or pd.api.types.is_numeric_dtype(series):
        return ColumnType.NUMERIC
    if pd.api.types.is_datetime64_any_dtype(series):
        return ColumnType.TEXT
    present = _present_text(series)
    if present.empty:
        return ColumnType.TEXT
    if bool(present.str.fullmatch(NUMERIC_PATTERN).all()):
        return ColumnType.NUMERIC
    return ColumnType.TEXT


def _numeric_cell(raw: object) -> TypedValue:
    if isinstance(raw, str):
        text = raw.strip()
        if text in ("", SAS_MISSING):
            return MISSING
        return Number(float(text))
    return to_typed_value(raw)


def _text_cell(raw: object, *, blank_text_is_missing: bool) -> TypedValue:
    value = to_typed_value(raw, blank_text_is_missing=blank_text_is_missing)
    if isinstance(value, Number):
        return Text(str(raw))
    return value


def _text_width(series: pd.Series) -> int:
    present = series.dropna()
    if present.empty:
        return MIN_TEXT_WIDTH
    widths = present.astype(str).map(lambda v: len(v.encode("utf-8")))
    return max(int(widths.max()), MIN_TEXT_WIDTH)


def snapshot_from_frame(
    frame: pd.DataFrame,
    name: str,
    *,
    types: Mapping[str, ColumnType] | None = None,
    widths: Mapping[str, int] | None = None,
    labels: Mapping[str, str | None] | None = None,
    blank_text_is_missing: bool = False,
) -> DatasetSnapshot:
    types = types or {}
    widths = widths or {}
    labels = labels or {}
    columns: list[ColumnDefinition] = []
    converted: dict[str, list[TypedValue]] = {}
    for raw_name in frame.columns:
        column_name = str(raw_name)
        series = frame[raw_name]
        column_type = types.get(column_name) or infer_column_type(series)
        if column_type is ColumnType.NUMERIC:
            try:
                cells = [_numeric_cell(v) for v in series.tolist()]
            except ValueError as e:
                raise DataValidationError(
                    f"Column {column_name} of {name} is declared Numeric but holds text: {e}"
                ) from e
            width = widths.get(column_name) or DEFAULT_NUMERIC_WIDTH
        else:
            cells = [
                _text_cell(v, blank_text_is_missing=blank_text_is_missing)
                for v in series.tolist()
            ]
            width = widths.get(column_name) or _text_width(series)
        label = labels.get(column_name)
        columns.append(
            ColumnDefinition(
                name=column_name,
                type=column_type,
                width=int(width),
                label=label.strip() if label and label.strip() else None,
            )
        )
        converted[column_name] = cells
    names = [column.name for column in columns]
    records = [
        dict(zip(names, row, strict=True))
        for row in zip(*(converted[n] for n in names), strict=True)
    ]
    try:
        return DatasetSnapshot.build(name, columns, records)
    except ConfigurationError as e:
        raise DataValidationError(f"Cannot build snapshot {name}: {e}") from e

