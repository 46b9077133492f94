"""Filter engine: predicates over records driven by the field configuration.

A filter state is a sequence of tagged filters. ``FieldFilter`` tests one
field's value; ``GroupMembershipFilter`` keeps records whose group key is in
an accepted set. The older flat mapping form, where group filters are keys
prefixed with ``_group_``, is converted by ``parse_filter_state``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from .grouping import group_key
from .models import Record, as_number, coerce_bool, is_number, value_to_str
from .schemas import FieldConfig, ValueType, searchable_fields

GROUP_FILTER_PREFIX = "_group_"
ALL_VALUES = "all"


def is_noop_value(value: Any) -> bool:
    """True for filter values that mean 'no filter': None, '' and 'all'."""
    return value is None or value == "" or value == ALL_VALUES


def _as_bool(value: Any) -> bool:
    flag = coerce_bool(value)
    return bool(value) if flag is None else flag


@dataclass(frozen=True)
class FieldFilter:
    """Predicate on one field's value.

    The comparison depends on the field's value type: boolean-coerced
    equality, exact string equality for categorical, exact numeric equality
    for numeric/percentage, and case-insensitive substring otherwise.
    """

    field: str
    value: Any

    @property
    def is_noop(self) -> bool:
        return is_noop_value(self.value)

    def matches(self, record: Record, schema: Mapping[str, FieldConfig]) -> bool:
        if self.is_noop:
            return True

        item_value = record.get(self.field)
        config = schema.get(self.field)
        value_type = config.value_type if config is not None else None

        if value_type == ValueType.BOOLEAN:
            return _as_bool(item_value) == _as_bool(self.value)
        if value_type == ValueType.CATEGORICAL:
            return item_value is not None and value_to_str(item_value) == value_to_str(self.value)
        if value_type in (ValueType.NUMERIC, ValueType.PERCENTAGE):
            # Exact match only; range comparisons are not defined for numeric filters
            wanted = as_number(self.value)
            return wanted is not None and is_number(item_value) and item_value == wanted
        needle = value_to_str(self.value).lower()
        return needle in value_to_str(item_value).lower()


@dataclass(frozen=True)
class GroupMembershipFilter:
    """Keep records whose group key for ``field`` is one of ``accepted``.

    An empty accepted set rejects every record.
    """

    field: str
    accepted: frozenset[str]

    @property
    def is_noop(self) -> bool:
        return False

    def matches(self, record: Record, schema: Mapping[str, FieldConfig]) -> bool:
        return group_key(record, self.field) in self.accepted


Filter = FieldFilter | GroupMembershipFilter
FilterState = Sequence[Filter]


@dataclass(frozen=True)
class FilterOption:
    """A field offered for filtering, with its choices for categorical fields."""

    field: str
    label: str
    value_type: ValueType
    options: list[str] | None = None


def parse_filter_state(filters: Mapping[str, Any]) -> list[Filter]:
    """Convert a flat filter mapping into tagged filters.

    Keys prefixed with ``_group_`` become group-membership filters (a scalar
    value is treated as a one-element list); other keys become field filters.
    No-op values (None, '', 'all') are dropped.
    """
    parsed: list[Filter] = []
    for key, value in filters.items():
        if is_noop_value(value):
            continue
        if key.startswith(GROUP_FILTER_PREFIX):
            field_name = key[len(GROUP_FILTER_PREFIX) :]
            if isinstance(value, (list, tuple, set, frozenset)):
                accepted = frozenset(value_to_str(v) for v in value)  # type: ignore[union-attr]
            else:
                accepted = frozenset([value_to_str(value)])
            parsed.append(GroupMembershipFilter(field_name, accepted))
        else:
            parsed.append(FieldFilter(key, value))
    return parsed


def _normalize(filters: FilterState | Mapping[str, Any] | None) -> list[Filter]:
    if filters is None:
        return []
    if isinstance(filters, Mapping):
        return parse_filter_state(filters)  # type: ignore[arg-type]
    return [f for f in filters if not f.is_noop]


def apply_filters(
    records: Iterable[Record],
    filters: FilterState | Mapping[str, Any] | None,
    schema: Mapping[str, FieldConfig],
) -> list[Record]:
    """Keep the records that satisfy every active filter.

    Args:
        records: Records to filter (order is preserved)
        filters: Tagged filters, or the flat mapping form
        schema: Field configuration

    Returns:
        The records passing the conjunction of all non-empty filters
    """
    active = _normalize(filters)
    if not active:
        return list(records)
    return [r for r in records if all(f.matches(r, schema) for f in active)]


def distinct_values(field_name: str, records: Iterable[Record]) -> list[str]:
    """Sorted distinct stringified values of a field (missing and empty skipped).

    Pass the unfiltered record set when populating filter choices so that
    selecting a value never removes its own options.
    """
    values = {value_to_str(r.get(field_name)) for r in records if r.get(field_name) is not None}
    values.discard("")
    return sorted(values)


def filterable_fields(
    schema: Mapping[str, FieldConfig], records: Iterable[Record] | None = None
) -> list[FilterOption]:
    """Fields offered for filtering (visible ones), in schema order.

    Categorical fields carry their distinct values when records are given.
    """
    record_list = list(records) if records is not None else []
    options: list[FilterOption] = []
    for name, config in schema.items():
        if not config.visible:
            continue
        choices = None
        if config.value_type == ValueType.CATEGORICAL:
            choices = distinct_values(name, record_list)
        options.append(FilterOption(name, config.label, config.value_type, choices))
    return options


def search_records(
    records: Iterable[Record], term: str | None, schema: Mapping[str, FieldConfig]
) -> list[Record]:
    """Free-text search across the searchable fields (case-insensitive).

    A blank term returns every record.
    """
    if term is None or not term.strip():
        return list(records)
    needle = term.lower()
    fields = searchable_fields(schema)
    return [
        r
        for r in records
        if any(needle in value_to_str(r.get(name)).lower() for name in fields)
    ]
