"""Grouping engine and the size-field rule used to weight records."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from typing import Any

from .models import ALL_ITEMS_GROUP, UNKNOWN_GROUP, Group, Record, is_number, value_to_str
from .schemas import FieldConfig, numeric_fields

# Well-known field names that usually carry an item's area, in preference order
SIZE_FIELD_NAMES = ("squareMeters", "area", "size", "value", "amount")

# Weight given to every record when the schema has no numeric field
CONSTANT_WEIGHT = 1.0


def group_key(record: Record, group_by: str) -> str:
    """Group name for a record: its stringified value, or 'Unknown' if missing."""
    value = record.get(group_by)
    if value is None:
        return UNKNOWN_GROUP
    return value_to_str(value)


def group_records(records: Iterable[Record], group_by: str | None) -> list[Group]:
    """Partition records by the value of a field.

    Single stable pass: groups appear in first-seen order and each group's
    members keep their input order.

    Args:
        records: Records to partition
        group_by: Grouping field; empty or None puts everything in one group

    Returns:
        Ordered list of groups
    """
    if not group_by:
        return [Group(name=ALL_ITEMS_GROUP, members=list(records))]

    buckets: dict[str, list[Record]] = {}
    for record in records:
        buckets.setdefault(group_key(record, group_by), []).append(record)

    return [Group(name=name, members=members) for name, members in buckets.items()]


def size_field(schema: Mapping[str, FieldConfig]) -> str | None:
    """Choose the numeric field that weights records in the layout.

    Prefers a well-known size-like name among the numeric fields, then the
    first numeric field in schema order.

    Returns:
        Field name, or None when every record should get a constant weight
    """
    candidates = numeric_fields(schema)
    for name in SIZE_FIELD_NAMES:
        if name in candidates:
            return name
    return candidates[0] if candidates else None


def record_size(record: Record, size_by: str | None) -> float:
    """Layout weight of one record.

    Missing, non-numeric, negative and infinite sizes weigh nothing.
    """
    if size_by is None:
        return CONSTANT_WEIGHT
    value: Any = record.get(size_by)
    if not is_number(value) or value < 0 or not math.isfinite(value):
        return 0.0
    return float(value)
