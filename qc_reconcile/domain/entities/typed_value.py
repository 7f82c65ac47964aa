"""Typed values compared by the reconciliation engine.

A cell is exactly one of ``Number``, ``Text`` or ``Missing``. Numbers and text
are never coerced into each other; a type mismatch between two cells is a
reportable difference.
"""

from dataclasses import dataclass
import math
from typing import Final

import numpy as np
import pandas as pd


@dataclass(frozen=True, slots=True)
class Number:
    value: float

    def __post_init__(self) -> None:
        value = float(self.value)
        if math.isnan(value):
            raise ValueError("NaN is not a number value; use MISSING")
        # -0.0 and 0.0 must produce the same key text
        object.__setattr__(self, "value", value + 0.0)

    @property
    def tag(self) -> str:
        return "N"

    def render(self) -> str:
        return repr(self.value)

    def display(self) -> str:
        if self.value.is_integer() and abs(self.value) < 1e15:
            return str(int(self.value))
        return repr(self.value)

    def to_json(self) -> object:
        if math.isinf(self.value):
            return str(self.value)
        return self.value


@dataclass(frozen=True, slots=True)
class Text:
    value: str

    @property
    def tag(self) -> str:
        return "C"

    def render(self) -> str:
        return self.value

    def to_json(self) -> object:
        return self.value


@dataclass(frozen=True, slots=True)
class Missing:
    @property
    def tag(self) -> str:
        return "M"

    def render(self) -> str:
        return "."

    def to_json(self) -> object:
        return None


type TypedValue = Number | Text | Missing

MISSING: Final = Missing()


def is_missing(value: TypedValue) -> bool:
    return isinstance(value, Missing)


def to_typed_value(raw: object, *, blank_text_is_missing: bool = False) -> TypedValue:
    if isinstance(raw, (Number, Text, Missing)):
        return raw
    if raw is None or raw is pd.NA or raw is pd.NaT:
        return MISSING
    if isinstance(raw, (bool, np.bool_)):
        return Number(float(raw))
    if isinstance(raw, (int, float, np.integer, np.floating)):
        if np.isnan(raw):
            return MISSING
        return Number(float(raw))
    text = str(raw)
    if blank_text_is_missing and not text.strip():
        return MISSING
    return Text(text)


def describe(value: TypedValue) -> str:
    if isinstance(value, Text):
        return repr(value.value)
    if isinstance(value, Number):
        return value.display()
    return value.render()
