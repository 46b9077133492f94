"""Color engine: resolve a field value to fill, border and label.

Dispatch is by the field's color mode. Resolution never raises: missing or
malformed configuration and unexpected values resolve to a neutral tuple.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

from .formatting import DEFAULT_PERCENT_DECIMALS, to_fixed
from .logger import get_logger
from .models import (
    ColorResult,
    DataRange,
    LegendItem,
    coerce_bool,
    is_number,
    round_half_up,
    value_to_str,
)
from .schemas import (
    RGB,
    BinsParams,
    BooleanParams,
    CategoricalParams,
    ColorMode,
    FieldConfig,
    GradientParams,
    ValueType,
)

logger = get_logger(__name__)

# Neutral colors for unconfigured fields and unmatched values
NEUTRAL_FILL = "#6B7280"
NEUTRAL_BORDER = "#4B5563"
DEFAULT_COLOR = ColorResult(color=NEUTRAL_FILL, border_color=NEUTRAL_BORDER, label="Unknown")
OUT_OF_RANGE_COLOR = ColorResult(
    color=NEUTRAL_FILL, border_color=NEUTRAL_BORDER, label="Out of range"
)

BORDER_DARKEN_OFFSET = 20  # Subtracted from each channel for gradient borders
GRADIENT_LEGEND_STEPS = (0.0, 0.25, 0.5, 0.75, 1.0)

# Constants for contrast calculations
HEX_COLOR_SHORT_LENGTH = 3  # Length of shorthand hex colors (#RGB)
HEX_COLOR_FULL_LENGTH = 6  # Length of full hex colors (#RRGGBB)
WCAG_LUMINANCE_THRESHOLD = 0.03928
WCAG_CONTRAST_MIDPOINT = 0.5

DARK_TEXT = "#1F2937"
LIGHT_TEXT = "#FFFFFF"

_RGB_PATTERN = re.compile(r"^rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)")


# ============================================================================
# Public API
# ============================================================================


def resolve_color(
    value: Any, field_config: FieldConfig | None, data_range: DataRange | None = None
) -> ColorResult:
    """Resolve a value to its colors under the field's color mode.

    Args:
        value: The record's value for the field (may be None)
        field_config: Configuration of the field, or None if unconfigured
        data_range: Observed min/max of the field (required for gradient mode)

    Returns:
        A fully populated ColorResult; DEFAULT_COLOR when the field has no
        usable color configuration
    """
    if field_config is None or field_config.color_mode is None:
        return DEFAULT_COLOR

    params = field_config.color_params
    if params is None or params.mode != field_config.color_mode.value:
        logger.checks(f"No usable color parameters for '{field_config.label}'")
        return DEFAULT_COLOR

    resolver = _RESOLVERS[field_config.color_mode]
    return resolver(value, params, field_config, data_range)


def legend_items(
    field_config: FieldConfig | None, data_range: DataRange | None = None
) -> list[LegendItem]:
    """Build the legend swatches for a color field.

    Gradient legends need a data range; without one (or without usable color
    parameters) the legend is empty.
    """
    if field_config is None or field_config.color_mode is None:
        return []
    params = field_config.color_params

    if isinstance(params, BooleanParams):
        return [
            LegendItem(params.when_true.bg, params.when_true.label or "Yes"),
            LegendItem(params.when_false.bg, params.when_false.label or "No"),
        ]
    if isinstance(params, CategoricalParams):
        return [LegendItem(swatch.bg, key) for key, swatch in params.values.items()]
    if isinstance(params, BinsParams):
        return [LegendItem(b.color, b.label) for b in params.bins]
    if isinstance(params, GradientParams) and data_range is not None:
        items: list[LegendItem] = []
        for step in GRADIENT_LEGEND_STEPS:
            color = rgb_string(interpolate_rgb(params.min, params.max, step))
            if field_config.value_type == ValueType.PERCENTAGE:
                label = f"{to_fixed(step * 100, 0)}%"
            else:
                value = data_range.min + data_range.span * step
                decimals = field_config.decimals if field_config.decimals is not None else 1
                label = to_fixed(value, decimals) + (field_config.unit or "")
            items.append(LegendItem(color, label))
        return items
    return []


def contrast_text_color(color: str) -> str:
    """Compute a readable text color for a background color.

    Accepts '#RGB', '#RRGGBB' and 'rgb(r, g, b)'. Unparseable colors get
    light text.

    Returns:
        DARK_TEXT for light backgrounds, LIGHT_TEXT otherwise
    """
    channels = parse_color(color)
    if channels is None:
        return LIGHT_TEXT
    r, g, b = (c / 255 for c in channels)

    def luminance_component(c: float) -> float:
        return c / 12.92 if c <= WCAG_LUMINANCE_THRESHOLD else ((c + 0.055) / 1.055) ** 2.4

    luminance = (
        0.2126 * luminance_component(r)
        + 0.7152 * luminance_component(g)
        + 0.0722 * luminance_component(b)
    )
    return DARK_TEXT if luminance > WCAG_CONTRAST_MIDPOINT else LIGHT_TEXT


# ============================================================================
# Color helpers
# ============================================================================


def interpolate_rgb(low: RGB, high: RGB, t: float) -> tuple[int, int, int]:
    """Linearly interpolate each channel and round to the nearest integer."""
    return (
        round_half_up(low.r + (high.r - low.r) * t),
        round_half_up(low.g + (high.g - low.g) * t),
        round_half_up(low.b + (high.b - low.b) * t),
    )


def darken(
    channels: tuple[int, int, int], offset: int = BORDER_DARKEN_OFFSET
) -> tuple[int, int, int]:
    """Subtract a fixed offset from each channel, floored at 0."""
    r, g, b = channels
    return (max(0, r - offset), max(0, g - offset), max(0, b - offset))


def rgb_string(channels: tuple[int, int, int]) -> str:
    r, g, b = channels
    return f"rgb({r},{g},{b})"


def parse_color(color: str) -> tuple[int, int, int] | None:
    """Parse a hex or rgb() color string into channels.

    Returns:
        (r, g, b) with 0-255 channels, or None if the string is not understood
    """
    color = color.strip()
    match = _RGB_PATTERN.match(color)
    if match:
        return tuple(min(255, int(c)) for c in match.groups())  # type: ignore[return-value]

    if not color.startswith("#"):
        return None
    hex_color = color.lstrip("#")
    if len(hex_color) == HEX_COLOR_SHORT_LENGTH:
        hex_color = "".join(c * 2 for c in hex_color)
    elif len(hex_color) != HEX_COLOR_FULL_LENGTH:
        return None
    try:
        return (int(hex_color[0:2], 16), int(hex_color[2:4], 16), int(hex_color[4:6], 16))
    except ValueError:
        return None


# ============================================================================
# Per-mode resolvers
# ============================================================================


def _resolve_boolean(
    value: Any, params: Any, field_config: FieldConfig, data_range: DataRange | None
) -> ColorResult:
    assert isinstance(params, BooleanParams)
    flag = coerce_bool(value)
    if flag is None:
        logger.checks(f"Non-boolean value {value!r} for '{field_config.label}'")
        return DEFAULT_COLOR
    swatch = params.when_true if flag else params.when_false
    return ColorResult(color=swatch.bg, border_color=swatch.border, label=swatch.label)


def _resolve_categorical(
    value: Any, params: Any, field_config: FieldConfig, data_range: DataRange | None
) -> ColorResult:
    assert isinstance(params, CategoricalParams)
    key = value_to_str(value)
    swatch = params.values.get(key, params.default)
    return ColorResult(color=swatch.bg, border_color=swatch.border, label=key or "Unknown")


def _resolve_gradient(
    value: Any, params: Any, field_config: FieldConfig, data_range: DataRange | None
) -> ColorResult:
    assert isinstance(params, GradientParams)
    if data_range is None:
        logger.checks(f"Gradient field '{field_config.label}' resolved without a data range")
        return DEFAULT_COLOR
    if not is_number(value):
        logger.checks(f"Non-numeric value {value!r} for '{field_config.label}'")
        return DEFAULT_COLOR

    if data_range.span == 0:
        t = 0.0
    else:
        t = min(1.0, max(0.0, (value - data_range.min) / data_range.span))

    fill = interpolate_rgb(params.min, params.max, t)
    if field_config.value_type == ValueType.PERCENTAGE:
        decimals = (
            field_config.decimals if field_config.decimals is not None else DEFAULT_PERCENT_DECIMALS
        )
        label = f"{to_fixed(value * 100, decimals)}%"
    elif field_config.decimals is not None:
        label = to_fixed(value, field_config.decimals)
    else:
        label = value_to_str(value)

    return ColorResult(color=rgb_string(fill), border_color=rgb_string(darken(fill)), label=label)


def _resolve_bins(
    value: Any, params: Any, field_config: FieldConfig, data_range: DataRange | None
) -> ColorResult:
    assert isinstance(params, BinsParams)
    if not is_number(value):
        logger.checks(f"Non-numeric value {value!r} for '{field_config.label}'")
        return DEFAULT_COLOR
    for color_bin in params.bins:
        if color_bin.contains(value):
            return ColorResult(
                color=color_bin.color, border_color=color_bin.border_color, label=color_bin.label
            )
    logger.checks(f"Value {value!r} outside configured bins for '{field_config.label}'")
    return OUT_OF_RANGE_COLOR


_Resolver = Callable[[Any, Any, FieldConfig, DataRange | None], ColorResult]

_RESOLVERS: dict[ColorMode, _Resolver] = {
    ColorMode.BOOLEAN: _resolve_boolean,
    ColorMode.CATEGORICAL: _resolve_categorical,
    ColorMode.GRADIENT: _resolve_gradient,
    ColorMode.BINS: _resolve_bins,
}
