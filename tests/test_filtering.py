"""Tests for filtering, filter options and search."""

from __future__ import annotations

from typing import Any

import pytest

from treemapper.filtering import (
    FieldFilter,
    GroupMembershipFilter,
    apply_filters,
    distinct_values,
    filterable_fields,
    parse_filter_state,
    search_records,
)
from treemapper.models import Record
from treemapper.schemas import ConfigSchema, ValueType


def ids(records: list[Record]) -> list[str]:
    return [r["id"] for r in records]


class TestApplyFilters:
    """Conjunction of field and group-membership filters."""

    @pytest.mark.parametrize(
        "filters",
        [None, {}, {"building": "all"}, {"building": ""}, {"building": None}, []],
    )
    def test_empty_filters_are_identity(
        self, schema: ConfigSchema, records: list[Record], filters: Any
    ) -> None:
        assert apply_filters(records, filters, schema) == records

    def test_boolean_string_value(self, schema: ConfigSchema) -> None:
        """Filtering online=false keeps native false and the string 'false'."""
        data = [
            {"id": "a", "isOnline": True},
            {"id": "b", "isOnline": False},
            {"id": "c", "isOnline": "false"},
        ]
        assert ids(apply_filters(data, {"isOnline": "false"}, schema)) == ["b", "c"]
        assert ids(apply_filters(data, {"isOnline": False}, schema)) == ["b", "c"]
        assert ids(apply_filters(data, {"isOnline": True}, schema)) == ["a"]

    def test_categorical_exact_match(self, schema: ConfigSchema, records: list[Record]) -> None:
        data = [*records, {"id": "NE-1", "building": "Northeast"}]
        result = apply_filters(data, {"building": "North"}, schema)
        assert ids(result) == ["N-101", "N-102", "N-201"]

    def test_numeric_exact_match(self, schema: ConfigSchema, records: list[Record]) -> None:
        assert ids(apply_filters(records, {"squareMeters": "48"}, schema)) == ["N-101"]
        assert ids(apply_filters(records, {"squareMeters": 48.0}, schema)) == ["N-101"]
        assert apply_filters(records, {"squareMeters": "big"}, schema) == []

    def test_non_finite_numeric_strings_never_match(self, schema: ConfigSchema) -> None:
        data = [{"id": "a", "squareMeters": float("inf")}]
        assert apply_filters(data, {"squareMeters": "inf"}, schema) == []
        assert apply_filters(data, {"squareMeters": "nan"}, schema) == []

    def test_percentage_exact_match(self, schema: ConfigSchema, records: list[Record]) -> None:
        assert ids(apply_filters(records, {"occupancy": "0.5"}, schema)) == ["S-101"]

    def test_text_substring(self, schema: ConfigSchema, records: list[Record]) -> None:
        assert ids(apply_filters(records, {"name": "ROOM"}, schema)) == ["N-101"]

    def test_unconfigured_field_substring(self, schema: ConfigSchema) -> None:
        data = [{"id": "a", "floor": "Level 2"}, {"id": "b", "floor": "Level 3"}]
        assert ids(apply_filters(data, {"floor": "2"}, schema)) == ["a"]

    def test_conjunction(self, schema: ConfigSchema, records: list[Record]) -> None:
        result = apply_filters(records, {"building": "North", "isOnline": "true"}, schema)
        assert ids(result) == ["N-101", "N-102"]

    def test_group_membership(self, schema: ConfigSchema, records: list[Record]) -> None:
        filters = {"_group_building": ["South", "Unknown"]}
        assert ids(apply_filters(records, filters, schema)) == ["S-101", "S-102", "X-000"]

    def test_group_membership_scalar(self, schema: ConfigSchema, records: list[Record]) -> None:
        assert ids(apply_filters(records, {"_group_building": "East"}, schema)) == ["E-001"]

    def test_empty_group_selection_rejects_all(
        self, schema: ConfigSchema, records: list[Record]
    ) -> None:
        assert apply_filters(records, {"_group_building": []}, schema) == []

    def test_tagged_filters(self, schema: ConfigSchema, records: list[Record]) -> None:
        filters = [
            GroupMembershipFilter("building", frozenset({"North", "South"})),
            FieldFilter("isOnline", False),
            FieldFilter("name", "all"),
        ]
        assert ids(apply_filters(records, filters, schema)) == ["N-201", "S-102"]

    def test_result_is_subset_in_order(self, schema: ConfigSchema, records: list[Record]) -> None:
        result = apply_filters(records, {"isOnline": "true"}, schema)
        positions = [records.index(r) for r in result]
        assert positions == sorted(positions)


def test_parse_filter_state() -> None:
    parsed = parse_filter_state(
        {"building": "North", "_group_isOnline": [True], "name": "all", "id": ""}
    )
    assert parsed == [
        FieldFilter("building", "North"),
        GroupMembershipFilter("isOnline", frozenset({"true"})),
    ]


class TestDistinctValues:
    """Distinct stringified values for filter choices."""

    def test_sorted_and_deduplicated(self, records: list[Record]) -> None:
        assert distinct_values("building", records) == ["East", "North", "South"]

    def test_skips_missing_and_empty(self) -> None:
        data = [{"c": "b"}, {"c": None}, {}, {"c": ""}, {"c": "a"}, {"c": "b"}]
        assert distinct_values("c", data) == ["a", "b"]

    def test_stringifies_values(self) -> None:
        data = [{"c": True}, {"c": False}, {"c": 2.0}]
        assert distinct_values("c", data) == ["2", "false", "true"]


class TestFilterableFields:
    """Visible fields offered for filtering."""

    def test_visible_fields_only(self, schema: ConfigSchema, records: list[Record]) -> None:
        options = filterable_fields(schema, records)
        assert [o.field for o in options] == [
            "id",
            "name",
            "building",
            "isOnline",
            "occupancy",
            "squareMeters",
        ]

    def test_categorical_choices(self, schema: ConfigSchema, records: list[Record]) -> None:
        by_field = {o.field: o for o in filterable_fields(schema, records)}
        assert by_field["building"].options == ["East", "North", "South"]
        assert by_field["building"].label == "Building"
        assert by_field["isOnline"].options is None
        assert by_field["isOnline"].value_type == ValueType.BOOLEAN

    def test_without_records(self, schema: ConfigSchema) -> None:
        by_field = {o.field: o for o in filterable_fields(schema)}
        assert by_field["building"].options == []


class TestSearch:
    """Free-text search over searchable fields."""

    def test_matches_searchable_fields(self, schema: ConfigSchema, records: list[Record]) -> None:
        assert ids(search_records(records, "n-10", schema)) == ["N-101", "N-102"]
        assert ids(search_records(records, "lab", schema)) == ["S-101"]

    def test_ignores_other_fields(self, schema: ConfigSchema, records: list[Record]) -> None:
        assert search_records(records, "projector", schema) == []
        assert search_records(records, "South", schema) == []

    @pytest.mark.parametrize("term", [None, "", "   "])
    def test_blank_term(
        self, schema: ConfigSchema, records: list[Record], term: str | None
    ) -> None:
        assert search_records(records, term, schema) == records
