"""Data models for treemapper."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

# A record is one row of the dataset: field name -> JSON scalar (str, number, bool).
# Records are produced by the data source and never mutated by the engine.
Record = Mapping[str, Any]

# Group name used when no grouping field is selected
ALL_ITEMS_GROUP = "All Items"
# Group name used when a record has no value for the grouping field
UNKNOWN_GROUP = "Unknown"


def round_half_up(x: float) -> int:
    """Round to the nearest integer with ties going up."""
    return math.floor(x + 0.5)


def is_number(value: Any) -> bool:
    """Return True for int/float values (booleans excluded, NaN excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not math.isnan(value)


def as_number(value: Any) -> float | None:
    """Read a native number or a numeric string.

    Native numbers follow `is_number`. Strings must parse to a finite float,
    so "nan" and "inf" are not numbers.
    """
    if is_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def value_to_str(value: Any) -> str:
    """Render a record value the way the data source wrote it.

    Booleans become 'true'/'false', integral floats lose the '.0' suffix and
    None becomes the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def coerce_bool(value: Any) -> bool | None:
    """Coerce a native boolean or the literal strings 'true'/'false'.

    Returns:
        The boolean, or None if the value is not a recognizable boolean
    """
    if isinstance(value, bool):
        return value
    if value == "true":
        return True
    if value == "false":
        return False
    return None


@dataclass(frozen=True)
class Group:
    """A named bucket of records sharing a value for the grouping field."""

    name: str
    members: list[Record] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class ColorResult:
    """Fully resolved color for one value."""

    color: str
    border_color: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"color": self.color, "borderColor": self.border_color, "label": self.label}


@dataclass(frozen=True)
class DataRange:
    """Observed min/max of a numeric field across the current record set."""

    min: float
    max: float

    @property
    def span(self) -> float:
        return self.max - self.min


@dataclass(frozen=True)
class LegendItem:
    """One swatch in a color legend."""

    color: str
    label: str


def compute_data_range(records: Iterable[Record], field_name: str) -> DataRange | None:
    """Compute the observed range of a numeric field.

    Non-numeric and missing values are ignored.

    Returns:
        DataRange, or None if no record carries a numeric value for the field
    """
    values = [r[field_name] for r in records if is_number(r.get(field_name))]
    if not values:
        return None
    return DataRange(min=float(min(values)), max=float(max(values)))
