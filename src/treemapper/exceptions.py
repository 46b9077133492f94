"""Custom exceptions for treemapper."""


class TreemapperError(Exception):
    """Base exception for all treemapper errors."""

    pass


class ConfigError(TreemapperError):
    """Raised when a field-configuration schema is structurally invalid."""

    pass


class FetchError(TreemapperError):
    """Raised when a schema or data source cannot be read."""

    pass


class SettingsError(TreemapperError):
    """Raised when the settings file is missing or invalid."""

    pass
