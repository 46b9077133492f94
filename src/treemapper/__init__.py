"""treemapper - configuration-driven treemaps for tabular records."""

from .colors import resolve_color
from .filtering import apply_filters, distinct_values, filterable_fields
from .formatting import format_value
from .grouping import group_records
from .schemas import FieldConfig, parse_config_schema
from .treemap import build_treemap
from .view import ViewState

__version__ = "0.1.0"

__all__ = [
    "FieldConfig",
    "ViewState",
    "apply_filters",
    "build_treemap",
    "distinct_values",
    "filterable_fields",
    "format_value",
    "group_records",
    "parse_config_schema",
    "resolve_color",
]
