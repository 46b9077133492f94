"""View state: which fields group and color the treemap, and how it is shared.

The grouping and coloring fields round-trip through two URL query parameters
so a shared link reproduces the same view.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any
from urllib.parse import parse_qs, urlencode, urlsplit

from .filtering import Filter
from .schemas import FieldConfig, colorable_fields, groupable_fields

GROUP_PARAM = "group"
COLOR_PARAM = "color"


@dataclass(frozen=True)
class ViewState:
    """Active grouping field, coloring field, filters and search term.

    An empty or None ``group_by`` means no grouping.
    """

    group_by: str | None = None
    color_by: str | None = None
    filters: tuple[Filter, ...] = field(default_factory=tuple)
    search: str | None = None

    @classmethod
    def default(cls, schema: Mapping[str, FieldConfig]) -> ViewState:
        """First eligible grouping and coloring fields of the schema."""
        groupable = groupable_fields(schema)
        colorable = colorable_fields(schema)
        return cls(
            group_by=groupable[0] if groupable else None,
            color_by=colorable[0] if colorable else None,
        )

    @classmethod
    def from_query(
        cls, query: str | Mapping[str, Any], schema: Mapping[str, FieldConfig]
    ) -> ViewState:
        """Read the view from URL query parameters.

        Accepts a full URL, a query string or an already-parsed mapping. An
        absent parameter, or one naming a field that is not eligible, falls
        back to the first eligible field. An explicitly empty ``group``
        parameter selects no grouping.
        """
        params = _query_params(query)
        fallback = cls.default(schema)

        group_by = fallback.group_by
        if GROUP_PARAM in params:
            requested = params[GROUP_PARAM]
            if requested == "":
                group_by = None
            elif requested in groupable_fields(schema):
                group_by = requested

        color_by = fallback.color_by
        requested_color = params.get(COLOR_PARAM)
        if requested_color and requested_color in colorable_fields(schema):
            color_by = requested_color

        return cls(group_by=group_by, color_by=color_by)

    def to_query(self) -> str:
        """Encode grouping and coloring fields as a query string."""
        return urlencode({GROUP_PARAM: self.group_by or "", COLOR_PARAM: self.color_by or ""})

    def with_filters(self, *filters: Filter) -> ViewState:
        return replace(self, filters=tuple(filters))


def _query_params(query: str | Mapping[str, Any]) -> dict[str, str]:
    if isinstance(query, Mapping):
        params: dict[str, str] = {}
        for key, value in query.items():
            if isinstance(value, (list, tuple)):
                value = value[0] if value else ""  # type: ignore[index]
            params[str(key)] = "" if value is None else str(value)
        return params

    if "?" in query or "://" in query:
        query = urlsplit(query).query
    parsed = parse_qs(query.lstrip("?"), keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items()}


def next_color_field(current: str | None, schema: Mapping[str, FieldConfig]) -> str | None:
    """Advance cyclically to the next colorable field.

    Returns the first colorable field when ``current`` is not colorable, and
    None when the schema has no colorable field.
    """
    fields = colorable_fields(schema)
    if not fields:
        return None
    if current not in fields:
        return fields[0]
    return fields[(fields.index(current) + 1) % len(fields)]
