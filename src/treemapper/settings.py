"""Settings file loader (treemapper.yaml).

The settings file tells treemapper where to read the schema and the data,
how often to poll, the viewport to lay out into, and the initial view.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from . import context
from .exceptions import SettingsError
from .layout import DEFAULT_PADDING
from .polling import DEFAULT_POLL_INTERVAL
from .sources import DEFAULT_TIMEOUT

SETTINGS_FILENAME = "treemapper.yaml"


class SourcesSettings(BaseModel):
    """Where the schema and the record set come from."""

    model_config = ConfigDict(populate_by_name=True)

    schema_location: str = Field(default="config.json", alias="schema")
    data: str = "data.json"
    poll_interval: float = Field(default=DEFAULT_POLL_INTERVAL, gt=0)
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)


class LayoutSettings(BaseModel):
    """Viewport and spacing."""

    width: int = Field(default=1280, gt=0)
    height: int = Field(default=800, gt=0)
    padding: float = Field(default=DEFAULT_PADDING, ge=0)


class ViewSettings(BaseModel):
    """Initial view; unset fields fall back to the first eligible field."""

    group_by: str | None = None
    color_by: str | None = None
    color_cycle_interval: float | None = None  # None disables color cycling

    @field_validator("color_cycle_interval")
    @classmethod
    def positive_interval(cls, v: float | None) -> float | None:
        if v is not None and v <= 0:
            raise ValueError("view.color_cycle_interval must be positive")
        return v


class Settings(BaseModel):
    """Top-level settings."""

    sources: SourcesSettings = Field(default_factory=SourcesSettings)
    layout: LayoutSettings = Field(default_factory=LayoutSettings)
    view: ViewSettings = Field(default_factory=ViewSettings)

    def resolve_locations(self, base_dir: Path) -> Settings:
        """Make relative source paths relative to the settings file's directory."""
        sources = self.sources.model_copy(
            update={
                "schema_location": _resolve(self.sources.schema_location, base_dir),
                "data": _resolve(self.sources.data, base_dir),
            }
        )
        return self.model_copy(update={"sources": sources})


def _resolve(location: str, base_dir: Path) -> str:
    if location.startswith(("http://", "https://")) or Path(location).is_absolute():
        return location
    return str(base_dir / location)


def load_settings(settings_path: Path | str) -> Settings:
    """Load settings from a YAML file.

    Args:
        settings_path: Path to treemapper.yaml

    Returns:
        Settings with source locations resolved against the file's directory

    Raises:
        SettingsError: If the file doesn't exist or is invalid
    """
    settings_path = Path(settings_path)

    if not settings_path.exists():
        raise SettingsError(f"Settings file not found: {settings_path}")

    try:
        with settings_path.open() as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SettingsError(f"Invalid YAML in {settings_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SettingsError(f"Settings file must contain a mapping: {settings_path}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings in {settings_path}: {e}") from e

    return settings.resolve_locations(settings_path.parent)


def discover_settings(settings_path: Path | None = None) -> Settings:
    """Find and load settings.

    Search order:
    1. Explicit settings_path argument (must exist)
    2. Global context (set via CLI --config, must exist)
    3. Current directory / treemapper.yaml

    Falls back to default settings when nothing is found.
    """
    if settings_path is not None:
        return load_settings(settings_path)

    ctx_path = context.get_settings_path()
    if ctx_path is not None:
        return load_settings(ctx_path)

    cwd_settings = Path(SETTINGS_FILENAME)
    if cwd_settings.exists():
        return load_settings(cwd_settings)

    return Settings()
