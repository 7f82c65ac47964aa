from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType

from ..errors import ConfigurationError
from .typed_value import MISSING, TypedValue, to_typed_value

DEFAULT_NUMERIC_WIDTH = 8


class ColumnType(StrEnum):
    NUMERIC = "Numeric"
    TEXT = "Text"

    @classmethod
    def parse(cls, raw: str) -> ColumnType:
        lower = raw.strip().lower()
        if lower.startswith("num") or lower in ("double", "float", "int"):
            return cls.NUMERIC
        if lower.startswith(("text", "char", "str")):
            return cls.TEXT
        raise ConfigurationError(f"Unknown column type: {raw!r}")


@dataclass(frozen=True, slots=True)
class ColumnDefinition:
    name: str
    type: ColumnType
    width: int = DEFAULT_NUMERIC_WIDTH
    label: str | None = None

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ConfigurationError("Column name must not be empty")
        if self.width < 1:
            raise ConfigurationError(
                f"Column {self.name} must have a positive width, got {self.width}"
            )

    @property
    def normalized_name(self) -> str:
        return normalize_name(self.name)

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "type": str(self.type),
            "width": self.width,
            "label": self.label,
        }


type Record = Mapping[str, TypedValue]


def normalize_name(name: str) -> str:
    return name.strip().upper()


def _empty_records() -> tuple[Record, ...]:
    return ()


@dataclass(frozen=True, slots=True)
class DatasetSnapshot:
    name: str
    columns: tuple[ColumnDefinition, ...]
    records: tuple[Record, ...] = field(default_factory=_empty_records)
    _index: Mapping[str, ColumnDefinition] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        index: dict[str, ColumnDefinition] = {}
        for column in self.columns:
            key = column.normalized_name
            if key in index:
                raise ConfigurationError(
                    f"Snapshot {self.name} declares column {column.name} twice "
                    + f"(case-insensitive clash with {index[key].name})"
                )
            index[key] = column
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "_index", MappingProxyType(index))
        object.__setattr__(
            self,
            "records",
            tuple(self._freeze_record(i, r) for i, r in enumerate(self.records)),
        )

    def _freeze_record(self, position: int, record: Mapping[str, object]) -> Record:
        values: dict[str, TypedValue] = dict.fromkeys(self.column_names, MISSING)
        for raw_name, raw_value in record.items():
            column = self._index.get(normalize_name(raw_name))
            if column is None:
                raise ConfigurationError(
                    f"Record {position + 1} of snapshot {self.name} uses undeclared column {raw_name}"
                )
            values[column.name] = to_typed_value(raw_value)
        return MappingProxyType(values)

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def row_count(self) -> int:
        return len(self.records)

    def has_column(self, name: str) -> bool:
        return normalize_name(name) in self._index

    def column(self, name: str) -> ColumnDefinition | None:
        return self._index.get(normalize_name(name))

    def require_column(self, name: str) -> ColumnDefinition:
        column = self.column(name)
        if column is None:
            raise ConfigurationError(f"Snapshot {self.name} has no column {name}")
        return column

    def position(self, name: str) -> int | None:
        target = normalize_name(name)
        for position, column in enumerate(self.columns):
            if column.normalized_name == target:
                return position
        return None

    def value(self, record: Record, name: str) -> TypedValue:
        column = self.require_column(name)
        return record.get(column.name, MISSING)

    @classmethod
    def build(
        cls,
        name: str,
        columns: Iterable[ColumnDefinition],
        records: Iterable[Mapping[str, object]] = (),
    ) -> DatasetSnapshot:
        return cls(name=name, columns=tuple(columns), records=tuple(records))
