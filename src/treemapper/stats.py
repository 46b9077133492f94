"""Summary statistics over a record set."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from .grouping import record_size, size_field
from .models import Record, coerce_bool, value_to_str
from .schemas import FieldConfig, ValueType

# Fields that mark a record as active/online, in lookup order
STATUS_FIELDS = ("isOnline", "online", "active", "enabled")


def is_active(record: Record) -> bool:
    """Whether a record counts as active.

    A record is inactive only when one of its status fields is explicitly
    false. Records without any status field are active.
    """
    return all(coerce_bool(record.get(name)) is not False for name in STATUS_FIELDS)


@dataclass
class RecordStats:
    """Aggregates shown next to the treemap."""

    count: int = 0
    total_size: float = 0.0
    active_size: float = 0.0
    inactive_size: float = 0.0
    size_field: str | None = None
    distinct_counts: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "count": self.count,
            "totalSize": self.total_size,
            "activeSize": self.active_size,
            "inactiveSize": self.inactive_size,
            "sizeField": self.size_field,
            "distinctCounts": dict(self.distinct_counts),
        }


def summarize(records: Iterable[Record], schema: Mapping[str, FieldConfig]) -> RecordStats:
    """Count records, total their sizes and count distinct categorical values."""
    size_by = size_field(schema)
    categorical = [
        name for name, config in schema.items() if config.value_type == ValueType.CATEGORICAL
    ]
    distinct: dict[str, set[str]] = {name: set() for name in categorical}

    stats = RecordStats(size_field=size_by)
    for record in records:
        size = record_size(record, size_by)
        stats.count += 1
        stats.total_size += size
        if is_active(record):
            stats.active_size += size
        else:
            stats.inactive_size += size
        for name in categorical:
            value = record.get(name)
            if value is not None:
                distinct[name].add(value_to_str(value))

    stats.distinct_counts = {name: len(values) for name, values in distinct.items()}
    return stats
