"""Human-readable formatting of field values, independent of color."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from .models import as_number, coerce_bool, is_number, value_to_str
from .schemas import BooleanParams, FieldConfig, ValueType

MISSING_VALUE = "N/A"
DEFAULT_PERCENT_DECIMALS = 1
DEFAULT_NUMERIC_DECIMALS = 0

# Beyond this magnitude fixed-point output is replaced by the plain form
FIXED_POINT_LIMIT = 1e21
MILLION = 1_000_000
THOUSAND = 1_000


def to_fixed(value: float, decimals: int) -> str:
    """Format a number with exactly ``decimals`` fractional digits.

    Ties round away from zero on the exact binary value, so 2.5 -> '3' and
    1.005 -> '1.00' (1.005 is stored slightly below the tie).
    """
    if not math.isfinite(value) or abs(value) >= FIXED_POINT_LIMIT:
        return value_to_str(value)
    with localcontext() as ctx:
        ctx.prec = 64
        quantum = Decimal(1).scaleb(-decimals)
        return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def format_value(value: Any, field_config: FieldConfig | None) -> str:
    """Format a value for display according to its field's value type.

    - boolean: the boolean color labels when configured, else 'Yes'/'No'
    - percentage: value x 100 with the configured decimals (default 1) and '%'
    - numeric: value with the configured decimals (default 0) and optional unit
    - anything else: the value's plain string form

    None always formats to 'N/A'.
    """
    if value is None:
        return MISSING_VALUE
    if field_config is None:
        return value_to_str(value)

    value_type = field_config.value_type

    if value_type == ValueType.BOOLEAN:
        flag = coerce_bool(value)
        if flag is None:
            flag = bool(value)
        params = field_config.color_params
        if isinstance(params, BooleanParams):
            return params.when_true.label if flag else params.when_false.label
        return "Yes" if flag else "No"

    if value_type == ValueType.PERCENTAGE:
        number = as_number(value)
        if number is None:
            return value_to_str(value)
        decimals = (
            field_config.decimals if field_config.decimals is not None else DEFAULT_PERCENT_DECIMALS
        )
        return f"{to_fixed(number * 100, decimals)}%"

    if value_type == ValueType.NUMERIC:
        number = as_number(value)
        if number is None:
            return value_to_str(value)
        decimals = (
            field_config.decimals if field_config.decimals is not None else DEFAULT_NUMERIC_DECIMALS
        )
        formatted = to_fixed(number, decimals)
        return f"{formatted}{field_config.unit}" if field_config.unit else formatted

    return value_to_str(value)


def format_compact(value: float) -> str:
    """Abbreviate large totals: 2_500_000 -> '2.5M', 12_300 -> '12.3K'."""
    if abs(value) >= MILLION:
        return f"{to_fixed(value / MILLION, 1)}M"
    if abs(value) >= THOUSAND:
        return f"{to_fixed(value / THOUSAND, 1)}K"
    return to_fixed(value, 0) if float(value).is_integer() else value_to_str(value)
