"""Tests for typed cell values."""

import math

import numpy as np
import pytest

from qc_reconcile.domain.entities.typed_value import (
    MISSING,
    Missing,
    Number,
    Text,
    describe,
    is_missing,
    to_typed_value,
)


class TestNumber:
    def test_negative_zero_renders_like_zero(self):
        assert Number(-0.0).render() == Number(0.0).render()
        assert Number(-0.0) == Number(0.0)

    def test_nan_is_rejected(self):
        with pytest.raises(ValueError):
            Number(math.nan)

    def test_integers_are_stored_as_float(self):
        assert Number(3).value == 3.0
        assert isinstance(Number(3).value, float)

    def test_infinity_serializes_as_string(self):
        assert Number(math.inf).to_json() == "inf"
        assert Number(2.5).to_json() == 2.5


class TestToTypedValue:
    """Conversion of raw cells into typed values."""

    @pytest.mark.parametrize("raw", [None, math.nan, np.float64("nan")])
    def test_missing_inputs(self, raw):
        assert to_typed_value(raw) is MISSING

    def test_numpy_scalars_become_numbers(self):
        assert to_typed_value(np.int64(7)) == Number(7.0)
        assert to_typed_value(np.float32(1.5)) == Number(1.5)

    def test_booleans_become_numbers(self):
        assert to_typed_value(True) == Number(1.0)

    def test_text_is_never_parsed_as_number(self):
        assert to_typed_value("12") == Text("12")

    def test_blank_text_kept_by_default(self):
        assert to_typed_value("  ") == Text("  ")

    def test_blank_text_can_be_missing(self):
        assert to_typed_value("  ", blank_text_is_missing=True) is MISSING

    def test_typed_values_pass_through(self):
        value = Text("x")
        assert to_typed_value(value) is value


class TestDescribe:
    def test_describe_values(self):
        assert describe(Text("abc")) == "'abc'"
        assert describe(Number(3.0)) == "3"
        assert describe(Number(2.5)) == "2.5"
        assert describe(MISSING) == "."

    def test_is_missing(self):
        assert is_missing(Missing())
        assert not is_missing(Text(""))
