"""Process-wide state shared between the CLI callback and the commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass
class _Context:
    settings_path: Path | None = None


_context = _Context()


def get_settings_path() -> Path | None:
    """Settings file chosen with --config, if any."""
    return _context.settings_path


def set_settings_path(path: Path | str | None) -> None:
    _context.settings_path = Path(path).expanduser() if path is not None else None


def reset() -> None:
    """Forget everything set during this process (used between tests)."""
    global _context  # noqa: PLW0603
    _context = _Context()
