"""Pytest configuration and fixtures for treemapper tests."""

from __future__ import annotations

from typing import Any

import pytest

from treemapper import context
from treemapper.logger import reset_logger
from treemapper.models import Record
from treemapper.schemas import ConfigSchema, parse_config_schema

# Mirrors examples/config.json in a form tests can tweak
SCHEMA_DOC: dict[str, Any] = {
    "id": {"label": "Room ID", "type": "identifier", "searchable": True},
    "name": {"label": "Room", "type": "text", "searchable": True},
    "building": {
        "label": "Building",
        "type": "categorical",
        "colorMode": "categorical",
        "colors": {
            "North": {"bg": "#2563EB", "border": "#1D4ED8"},
            "South": {"bg": "#16A34A", "border": "#15803D"},
            "default": {"bg": "#9CA3AF", "border": "#6B7280"},
        },
    },
    "isOnline": {
        "label": "Status",
        "type": "boolean",
        "colorMode": "boolean",
        "colors": {
            "true": {"bg": "#22C55E", "border": "#16A34A", "label": "Online"},
            "false": {"bg": "#EF4444", "border": "#DC2626", "label": "Offline"},
        },
    },
    "occupancy": {
        "label": "Occupancy",
        "type": "percentage",
        "decimals": 1,
        "colorMode": "gradient",
        "colors": {"min": {"r": 0, "g": 0, "b": 0}, "max": {"r": 255, "g": 255, "b": 255}},
    },
    "squareMeters": {
        "label": "Area",
        "type": "numeric",
        "unit": " m²",
        "decimals": 0,
        "colorMode": "bins",
        "bins": [
            {"min": 0, "max": 20, "label": "Small", "color": "#FDE68A", "borderColor": "#F59E0B"},
            {"min": 20, "max": 50, "label": "Medium", "color": "#FB923C", "borderColor": "#EA580C"},
            {
                "min": 50,
                "max": 1000,
                "label": "Large",
                "color": "#B91C1C",
                "borderColor": "#7F1D1D",
            },
        ],
    },
    "notes": {"label": "Notes", "type": "text", "visible": False},
}


def _room(  # noqa: PLR0913 - one argument per record field
    room_id: str,
    name: str,
    building: str | None,
    online: bool,
    occupancy: float,
    area: float,
) -> dict[str, Any]:
    record: dict[str, Any] = {
        "id": room_id,
        "name": name,
        "isOnline": online,
        "occupancy": occupancy,
        "squareMeters": area,
    }
    if building is not None:
        record["building"] = building
    return record


RECORDS: list[dict[str, Any]] = [
    {**_room("N-101", "Conference Room", "North", True, 0.75, 48), "notes": "Projector"},
    _room("N-102", "Focus Pod", "North", True, 1.0, 6),
    _room("N-201", "Open Office", "North", False, 0.4, 220),
    _room("S-101", "Lab", "South", True, 0.5, 95),
    _room("S-102", "Storage", "South", False, 0.0, 18),
    _room("E-001", "Kiosk", "East", True, 0.25, 4),
    _room("X-000", "Unassigned Desk", None, True, 0.1, 2),
]


@pytest.fixture
def schema() -> ConfigSchema:
    """Parsed example schema."""
    return parse_config_schema(SCHEMA_DOC)


@pytest.fixture
def records() -> list[Record]:
    """Fresh copy of the example record set."""
    return [dict(r) for r in RECORDS]


@pytest.fixture(autouse=True)
def reset_state() -> None:
    """Reset logger and global context before each test for isolation."""
    reset_logger()
    context.reset()
