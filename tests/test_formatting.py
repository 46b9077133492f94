"""Tests for value formatting."""

from __future__ import annotations

import pytest

from treemapper.formatting import MISSING_VALUE, format_compact, format_value, to_fixed
from treemapper.schemas import ConfigSchema, FieldConfig, ValueType


def numeric(decimals: int | None = None, unit: str | None = None) -> FieldConfig:
    return FieldConfig(label="Value", value_type=ValueType.NUMERIC, decimals=decimals, unit=unit)


class TestFormatValue:
    """Formatting by value type."""

    def test_none_is_missing(self, schema: ConfigSchema) -> None:
        for config in schema.values():
            assert format_value(None, config) == MISSING_VALUE
        assert format_value(None, None) == "N/A"

    def test_boolean_uses_color_labels(self, schema: ConfigSchema) -> None:
        assert format_value(True, schema["isOnline"]) == "Online"
        assert format_value("false", schema["isOnline"]) == "Offline"

    def test_boolean_without_labels(self) -> None:
        config = FieldConfig(label="Flag", value_type=ValueType.BOOLEAN)
        assert format_value(True, config) == "Yes"
        assert format_value(False, config) == "No"

    def test_percentage(self, schema: ConfigSchema) -> None:
        assert format_value(0.5, schema["occupancy"]) == "50.0%"
        assert format_value(1, schema["occupancy"]) == "100.0%"

    def test_percentage_default_decimals(self) -> None:
        config = FieldConfig(label="Pct", value_type=ValueType.PERCENTAGE)
        assert format_value(0.25, config) == "25.0%"

    def test_percentage_zero_decimals(self) -> None:
        config = FieldConfig(label="Pct", value_type=ValueType.PERCENTAGE, decimals=0)
        assert format_value(0.25, config) == "25%"

    def test_numeric_with_unit(self, schema: ConfigSchema) -> None:
        assert format_value(1234.5, schema["squareMeters"]) == "1235 m²"

    def test_numeric_decimals(self) -> None:
        assert format_value(3.14159, numeric(decimals=2)) == "3.14"
        assert format_value(7, numeric()) == "7"
        assert format_value(7, numeric(unit="kg")) == "7kg"

    def test_numeric_string(self) -> None:
        assert format_value("12", numeric(decimals=1)) == "12.0"

    def test_non_numeric_in_numeric_field(self) -> None:
        assert format_value("lots", numeric()) == "lots"
        assert format_value("inf", numeric(decimals=2)) == "inf"

    def test_plain_types(self, schema: ConfigSchema) -> None:
        assert format_value("North", schema["building"]) == "North"
        assert format_value("N-101", schema["id"]) == "N-101"
        assert format_value(5.0, schema["name"]) == "5"

    def test_unconfigured_field(self) -> None:
        assert format_value(True, None) == "true"
        assert format_value(12, None) == "12"


class TestToFixed:
    """Fixed-point rendering with ties rounding away from zero."""

    @pytest.mark.parametrize(
        ("value", "decimals", "expected"),
        [
            (2.5, 0, "3"),
            (-2.5, 0, "-3"),
            (1.005, 2, "1.00"),
            (0.125, 2, "0.13"),
            (12, 1, "12.0"),
            (0.0, 1, "0.0"),
        ],
    )
    def test_rounding(self, value: float, decimals: int, expected: str) -> None:
        assert to_fixed(value, decimals) == expected

    def test_huge_values(self) -> None:
        assert to_fixed(1e22, 2) == "10000000000000000000000"


class TestFormatCompact:
    """Abbreviated totals."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (2_500_000, "2.5M"),
            (12_300, "12.3K"),
            (1_000, "1.0K"),
            (950, "950"),
            (12.5, "12.5"),
            (0, "0"),
        ],
    )
    def test_compact(self, value: float, expected: str) -> None:
        assert format_compact(value) == expected
