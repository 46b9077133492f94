"""End-to-end treemap pipeline: filter, group, lay out and color records."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from .colors import contrast_text_color, legend_items, resolve_color
from .filtering import apply_filters, search_records
from .grouping import group_records, size_field
from .layout import LayoutAdapter, SquarifiedLayout, TreemapNode, build_hierarchy
from .logger import VERBOSITY_DEBUG, get_logger, verbosity
from .models import ColorResult, DataRange, Group, LegendItem, Record, compute_data_range
from .schemas import FieldConfig
from .stats import RecordStats, is_active, summarize
from .view import ViewState


@dataclass(frozen=True)
class TreemapCell:
    """One positioned, colored record."""

    record: Record
    group: str
    x0: float
    y0: float
    x1: float
    y1: float
    color: ColorResult
    text_color: str
    active: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "group": self.group,
            "x0": self.x0,
            "y0": self.y0,
            "x1": self.x1,
            "y1": self.y1,
            **self.color.to_dict(),
            "textColor": self.text_color,
            "active": self.active,
            "record": dict(self.record),
        }


@dataclass
class TreemapResult:
    """Everything a display surface needs to draw one frame."""

    view: ViewState
    root: TreemapNode
    groups: list[Group]
    records: list[Record]
    cells: list[TreemapCell] = field(default_factory=list)
    data_range: DataRange | None = None
    legend: list[LegendItem] = field(default_factory=list)
    stats: RecordStats = field(default_factory=RecordStats)

    @property
    def is_empty(self) -> bool:
        return not self.records

    def to_dict(self) -> dict[str, Any]:
        """JSON-serialisable rendering of the result."""
        group_rects = [
            {"name": n.name, "x0": n.x0, "y0": n.y0, "x1": n.x1, "y1": n.y1, "size": n.value}
            for n in self.root.children
        ]
        return {
            "view": {
                "groupBy": self.view.group_by,
                "colorBy": self.view.color_by,
                "search": self.view.search,
            },
            "width": self.root.x1,
            "height": self.root.y1,
            "groups": group_rects,
            "cells": [cell.to_dict() for cell in self.cells],
            "dataRange": (
                {"min": self.data_range.min, "max": self.data_range.max}
                if self.data_range
                else None
            ),
            "legend": [{"color": item.color, "label": item.label} for item in self.legend],
            "stats": self.stats.to_dict(),
        }


def build_treemap(  # noqa: PLR0913 - pipeline takes the whole frame description
    schema: Mapping[str, FieldConfig],
    records: Sequence[Record],
    view: ViewState,
    width: float,
    height: float,
    layout: LayoutAdapter | None = None,
) -> TreemapResult:
    """Run the full pipeline for one frame.

    Records are narrowed by the view's filters and search term, grouped,
    weighted by the size field, laid out, and each leaf is colored by the
    view's color field. The gradient data range is observed over the
    displayed records.

    Args:
        schema: Field configuration
        records: Full (unfiltered) record set
        view: Grouping, coloring, filters and search
        width: Viewport width in pixels
        height: Viewport height in pixels
        layout: Layout adapter (defaults to SquarifiedLayout)

    Returns:
        TreemapResult with positioned cells, legend and statistics
    """
    logger = get_logger(__name__)
    layout = layout or SquarifiedLayout()

    visible = apply_filters(records, view.filters, schema)
    visible = search_records(visible, view.search, schema)
    logger.debug(f"{len(visible)} of {len(records)} records pass filters")

    groups = group_records(visible, view.group_by)
    if verbosity() >= VERBOSITY_DEBUG:
        for group in groups:
            logger.debug(f"Group '{group.name}': {len(group)} records")
    root = build_hierarchy(groups, size_field(schema))
    layout.layout(root, width, height)

    color_config = schema.get(view.color_by) if view.color_by else None
    data_range = compute_data_range(visible, view.color_by) if view.color_by else None

    cells: list[TreemapCell] = []
    for group_node in root.children:
        for leaf in group_node.children:
            record: Record = leaf.data  # type: ignore[assignment]
            value = record.get(view.color_by) if view.color_by else None
            color = resolve_color(value, color_config, data_range)
            cells.append(
                TreemapCell(
                    record=record,
                    group=group_node.name,
                    x0=leaf.x0,
                    y0=leaf.y0,
                    x1=leaf.x1,
                    y1=leaf.y1,
                    color=color,
                    text_color=contrast_text_color(color.color),
                    active=is_active(record),
                )
            )

    return TreemapResult(
        view=view,
        root=root,
        groups=groups,
        records=visible,
        cells=cells,
        data_range=data_range,
        legend=legend_items(color_config, data_range),
        stats=summarize(visible, schema),
    )
