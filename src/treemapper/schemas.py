"""Pydantic schemas for the field-configuration document.

The configuration document maps each field name to a ``FieldConfig``. Color
parameters are a tagged variant keyed by the field's ``colorMode`` so every
color mode carries exactly the payload it needs. The wire format keeps the
established JSON shape (``type``, ``colors``, ``bins``) and also accepts an
explicit ``colorParams`` object.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

from .exceptions import ConfigError
from .logger import get_logger


class ValueType(str, Enum):
    """How a field's values are interpreted."""

    IDENTIFIER = "identifier"
    TEXT = "text"
    NUMERIC = "numeric"
    PERCENTAGE = "percentage"
    BOOLEAN = "boolean"
    CATEGORICAL = "categorical"


class ColorMode(str, Enum):
    """Strategy for turning a field value into a color."""

    GRADIENT = "gradient"
    BINS = "bins"
    BOOLEAN = "boolean"
    CATEGORICAL = "categorical"


# ============================================================================
# Color parameter variants
# ============================================================================


class RGB(BaseModel):
    """An RGB triple with 0-255 channels."""

    model_config = ConfigDict(frozen=True)

    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)


class Swatch(BaseModel):
    """Fill and border color pair."""

    model_config = ConfigDict(frozen=True)

    bg: str
    border: str


class LabeledSwatch(Swatch):
    """Swatch with a display label (boolean mode)."""

    label: str


class ColorBin(BaseModel):
    """Half-open numeric interval [min, max) with its colors."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    min: float
    max: float
    label: str
    color: str
    border_color: str = Field(alias="borderColor")

    def contains(self, value: float) -> bool:
        return self.min <= value < self.max


class GradientParams(BaseModel):
    """Linear interpolation between two RGB colors."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["gradient"] = "gradient"
    min: RGB
    max: RGB


class BinsParams(BaseModel):
    """Ordered list of bins; the first bin containing the value wins."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["bins"] = "bins"
    bins: list[ColorBin] = Field(min_length=1)


class BooleanParams(BaseModel):
    """Colors and labels for true and false."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    mode: Literal["boolean"] = "boolean"
    when_true: LabeledSwatch = Field(alias="true")
    when_false: LabeledSwatch = Field(alias="false")


class CategoricalParams(BaseModel):
    """Value -> swatch lookup with a mandatory fallback."""

    model_config = ConfigDict(frozen=True)

    mode: Literal["categorical"] = "categorical"
    values: dict[str, Swatch] = Field(default_factory=dict)
    default: Swatch

    @model_validator(mode="before")
    @classmethod
    def split_default(cls, data: Any) -> Any:
        """Accept the flat wire form: {"A": {...}, "B": {...}, "default": {...}}."""
        if isinstance(data, dict) and "values" not in data:
            flat: dict[str, Any] = dict(data)  # type: ignore[arg-type]
            mode = flat.pop("mode", "categorical")
            default = flat.pop("default", None)
            return {"mode": mode, "values": flat, "default": default}
        return data


ColorParams = Annotated[
    GradientParams | BinsParams | BooleanParams | CategoricalParams,
    Field(discriminator="mode"),
]

_color_params_adapter: TypeAdapter[Any] = TypeAdapter(ColorParams)


# ============================================================================
# Field configuration
# ============================================================================


class FieldConfig(BaseModel):
    """Static description of one record field."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    label: str
    value_type: ValueType = Field(alias="type")
    visible: bool = True
    searchable: bool = False
    unit: str | None = None
    decimals: int | None = Field(default=None, ge=0)
    color_mode: ColorMode | None = Field(default=None, alias="colorMode")
    color_params: ColorParams | None = Field(default=None, alias="colorParams")

    @model_validator(mode="before")
    @classmethod
    def build_color_params(cls, data: Any) -> Any:
        """Turn the wire-format ``colors``/``bins`` into a tagged color variant.

        Color configuration problems never reject the field: an unknown mode
        is dropped and malformed parameters leave ``color_params`` unset so
        the color engine falls back to its neutral default.
        """
        if not isinstance(data, dict):
            return data

        raw: dict[str, Any] = dict(data)  # type: ignore[arg-type]
        colors = raw.pop("colors", None)
        bins = raw.pop("bins", None)
        explicit = raw.pop("colorParams", raw.pop("color_params", None))
        mode = raw.get("colorMode", raw.get("color_mode"))
        logger = get_logger(__name__)

        if mode is None:
            return raw
        if isinstance(mode, ColorMode):
            mode = mode.value
        if mode not in {m.value for m in ColorMode}:
            logger.warning(f"Ignoring unknown colorMode '{mode}' for field '{raw.get('label')}'")
            raw.pop("colorMode", None)
            raw.pop("color_mode", None)
            return raw

        if explicit is not None:
            payload = explicit
        elif mode == ColorMode.BINS.value:
            payload = {"bins": bins} if bins is not None else None
        else:
            payload = colors

        if isinstance(payload, BaseModel):
            raw["colorParams"] = payload
            return raw
        if not isinstance(payload, dict):
            logger.warning(
                f"Field '{raw.get('label')}' has colorMode '{mode}' but no color parameters"
            )
            return raw

        try:
            raw["colorParams"] = _color_params_adapter.validate_python({**payload, "mode": mode})
        except ValidationError as e:
            logger.warning(
                f"Field '{raw.get('label')}' has malformed {mode} color parameters: "
                f"{e.error_count()} error(s)"
            )
        return raw

    @property
    def is_numeric(self) -> bool:
        return self.value_type in (ValueType.NUMERIC, ValueType.PERCENTAGE)


ConfigSchema = dict[str, FieldConfig]

_schema_adapter: TypeAdapter[dict[str, FieldConfig]] = TypeAdapter(dict[str, FieldConfig])


def parse_config_schema(data: Any) -> ConfigSchema:
    """Validate a decoded configuration document.

    Args:
        data: Decoded JSON (mapping of field name -> field configuration)

    Returns:
        Mapping of field name to FieldConfig, in document order

    Raises:
        ConfigError: If the document is not a mapping or a field is invalid
    """
    if not isinstance(data, Mapping):
        raise ConfigError("Configuration document must be an object mapping field names to configs")
    try:
        return _schema_adapter.validate_python(dict(data))  # type: ignore[arg-type]
    except ValidationError as e:
        raise ConfigError(f"Invalid field configuration: {e}") from e


# ============================================================================
# Derived field views
# ============================================================================


def groupable_fields(schema: Mapping[str, FieldConfig]) -> list[str]:
    """Fields eligible for grouping (categorical or boolean)."""
    return [
        name
        for name, config in schema.items()
        if config.value_type in (ValueType.CATEGORICAL, ValueType.BOOLEAN)
    ]


def colorable_fields(schema: Mapping[str, FieldConfig]) -> list[str]:
    """Fields eligible for coloring (a color mode is set)."""
    return [name for name, config in schema.items() if config.color_mode is not None]


def visible_fields(schema: Mapping[str, FieldConfig]) -> list[str]:
    """Fields eligible for filtering and display."""
    return [name for name, config in schema.items() if config.visible]


def searchable_fields(schema: Mapping[str, FieldConfig]) -> list[str]:
    """Fields consulted by free-text search."""
    return [name for name, config in schema.items() if config.searchable]


def numeric_fields(schema: Mapping[str, FieldConfig]) -> list[str]:
    """Fields with a numeric value type (percentages excluded)."""
    return [name for name, config in schema.items() if config.value_type == ValueType.NUMERIC]
