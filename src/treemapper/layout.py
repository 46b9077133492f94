"""Hierarchy construction and the treemap layout adapter.

The engine builds a root -> group -> record hierarchy weighted by the size
field and hands it to a layout adapter, which assigns every node an absolute
rectangle. Rectangle subdivision itself is delegated to ``squarify``.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from typing import Protocol

import squarify  # type: ignore[import-untyped]

from .grouping import record_size
from .models import Group, Record, round_half_up, value_to_str

DEFAULT_PADDING = 3  # Pixels between sibling rectangles
ROOT_NAME = "root"

# Record fields tried, in order, for a leaf's display name
LEAF_NAME_FIELDS = ("id", "key", "identifier", "name", "title", "label")


@dataclass(eq=False)
class TreemapNode:
    """A node of the layout hierarchy.

    ``data`` is the Group for internal group nodes, the Record for leaves and
    None for the root. Coordinates are filled in by a LayoutAdapter.
    """

    name: str
    data: Record | Group | None = None
    value: float = 0.0
    depth: int = 0
    children: list[TreemapNode] = field(default_factory=list)
    x0: float = 0.0
    y0: float = 0.0
    x1: float = 0.0
    y1: float = 0.0

    @property
    def is_leaf(self) -> bool:
        return not self.children and self.depth > 1

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def area(self) -> float:
        return self.width * self.height

    def descendants(self) -> Iterator[TreemapNode]:
        """Pre-order traversal including this node."""
        yield self
        for child in self.children:
            yield from child.descendants()

    def leaves(self) -> Iterator[TreemapNode]:
        return (node for node in self.descendants() if node.is_leaf)


class LayoutAdapter(Protocol):
    """Assigns absolute rectangles to every node of a weighted hierarchy."""

    def layout(self, root: TreemapNode, width: float, height: float) -> TreemapNode:
        """Position ``root`` to fill (0, 0, width, height) and recurse into children."""
        ...


def _leaf_name(record: Record) -> str:
    for name in LEAF_NAME_FIELDS:
        if record.get(name) is not None:
            return value_to_str(record[name])
    return ""


def _total(nodes: Sequence[TreemapNode]) -> float:
    # Sums past the float range saturate instead of becoming infinite
    return min(sum(node.value for node in nodes), sys.float_info.max)


def _sort_by_value(nodes: list[TreemapNode]) -> list[TreemapNode]:
    # Stable: equal sizes keep their input order
    return sorted(nodes, key=lambda n: n.value, reverse=True)


def build_hierarchy(
    groups: Sequence[Group], size_by: str | None, root_name: str = ROOT_NAME
) -> TreemapNode:
    """Build the weighted root -> group -> record hierarchy.

    Leaf values come from the size field (constant weight when None),
    internal values are the sum of their children, and siblings are sorted
    by descending value.
    """
    group_nodes: list[TreemapNode] = []
    for group in groups:
        leaves = [
            TreemapNode(
                name=_leaf_name(record),
                data=record,
                value=record_size(record, size_by),
                depth=2,
            )
            for record in group.members
        ]
        group_nodes.append(
            TreemapNode(
                name=group.name,
                data=group,
                value=_total(leaves),
                depth=1,
                children=_sort_by_value(leaves),
            )
        )

    return TreemapNode(
        name=root_name,
        value=_total(group_nodes),
        depth=0,
        children=_sort_by_value(group_nodes),
    )


class SquarifiedLayout:
    """Squarified treemap layout with fixed padding and pixel rounding.

    Children are laid out inside their parent inset by ``padding / 2`` and
    each child is then inset by another ``padding / 2``, so siblings are
    ``padding`` apart and ``padding`` away from the parent's edge.
    """

    def __init__(self, padding: float = DEFAULT_PADDING, round_coords: bool = True):
        self.padding = padding
        self.round_coords = round_coords

    def layout(self, root: TreemapNode, width: float, height: float) -> TreemapNode:
        root.x0, root.y0 = 0.0, 0.0
        root.x1, root.y1 = self._round(width), self._round(height)
        self._layout_children(root)
        return root

    def _round(self, coord: float) -> float:
        return float(round_half_up(coord)) if self.round_coords else coord

    def _layout_children(self, node: TreemapNode) -> None:
        if not node.children:
            return

        half = self.padding / 2
        x, y = node.x0 + half, node.y0 + half
        dx, dy = node.width - self.padding, node.height - self.padding

        sized = [child for child in node.children if child.value > 0]
        if dx > 0 and dy > 0 and sized:
            # Scale to the largest sibling so the sum cannot overflow
            largest = max(child.value for child in sized)
            values = [child.value / largest for child in sized]
            sizes = squarify.normalize_sizes(values, dx, dy)
            rects = squarify.squarify(sizes, x, y, dx, dy)
        else:
            sized, rects = [], []

        placed: set[int] = set()
        for child, rect in zip(sized, rects, strict=True):
            x0 = self._round(rect["x"] + half)
            y0 = self._round(rect["y"] + half)
            x1 = self._round(rect["x"] + rect["dx"] - half)
            y1 = self._round(rect["y"] + rect["dy"] - half)
            child.x0, child.y0 = x0, y0
            child.x1, child.y1 = max(x0, x1), max(y0, y1)
            placed.add(id(child))

        for child in node.children:
            if id(child) not in placed:
                # Zero-sized nodes collapse to an empty rectangle at the inner origin
                child.x0 = child.x1 = self._round(max(node.x0, min(x, node.x1)))
                child.y0 = child.y1 = self._round(max(node.y0, min(y, node.y1)))
            self._layout_children(child)
