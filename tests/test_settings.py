"""Tests for treemapper.yaml settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from treemapper import context
from treemapper.exceptions import SettingsError
from treemapper.settings import SETTINGS_FILENAME, Settings, discover_settings, load_settings


def write_settings(directory: Path, content: str) -> Path:
    path = directory / SETTINGS_FILENAME
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadSettings:
    """Parsing the settings file."""

    def test_full_file(self, tmp_path: Path) -> None:
        path = write_settings(
            tmp_path,
            """
sources:
  schema: schema/config.json
  data: https://sensors.local/data.json
  poll_interval: 2.5
layout:
  width: 640
  height: 480
  padding: 0
view:
  group_by: building
  color_by: occupancy
  color_cycle_interval: 10
""",
        )
        settings = load_settings(path)

        assert settings.sources.schema_location == str(tmp_path / "schema/config.json")
        assert settings.sources.data == "https://sensors.local/data.json"
        assert settings.sources.poll_interval == 2.5
        assert (settings.layout.width, settings.layout.height) == (640, 480)
        assert settings.layout.padding == 0
        assert settings.view.group_by == "building"
        assert settings.view.color_cycle_interval == 10

    def test_defaults(self, tmp_path: Path) -> None:
        settings = load_settings(write_settings(tmp_path, ""))

        assert settings.sources.schema_location == str(tmp_path / "config.json")
        assert settings.sources.data == str(tmp_path / "data.json")
        assert settings.sources.poll_interval == 1.0
        assert settings.layout.padding == 3
        assert settings.view.color_by is None
        assert settings.view.color_cycle_interval is None

    def test_absolute_paths_kept(self, tmp_path: Path) -> None:
        data = tmp_path / "elsewhere" / "data.json"
        settings = load_settings(write_settings(tmp_path, f"sources:\n  data: {data}\n"))
        assert settings.sources.data == str(data)

    def test_example_settings(self) -> None:
        settings = load_settings("examples/treemapper.yaml")
        assert settings.sources.schema_location == str(Path("examples") / "config.json")
        assert settings.view.group_by == "building"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(SettingsError, match="not found"):
            load_settings(tmp_path / SETTINGS_FILENAME)

    @pytest.mark.parametrize(
        ("content", "message"),
        [
            ("sources: [unclosed", "Invalid YAML"),
            ("- just\n- a list\n", "must contain a mapping"),
            ("sources:\n  poll_interval: 0\n", "Invalid settings"),
            ("layout:\n  width: -5\n", "Invalid settings"),
            ("view:\n  color_cycle_interval: -1\n", "Invalid settings"),
        ],
    )
    def test_invalid_files(self, tmp_path: Path, content: str, message: str) -> None:
        with pytest.raises(SettingsError, match=message):
            load_settings(write_settings(tmp_path, content))


class TestDiscoverSettings:
    """Settings lookup order."""

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = write_settings(tmp_path, "layout:\n  width: 111\n")
        assert discover_settings(path).layout.width == 111

    def test_context_path(self, tmp_path: Path) -> None:
        path = write_settings(tmp_path, "layout:\n  width: 222\n")
        context.set_settings_path(path)
        assert discover_settings().layout.width == 222

    def test_context_path_must_exist(self, tmp_path: Path) -> None:
        context.set_settings_path(tmp_path / "missing.yaml")
        with pytest.raises(SettingsError):
            discover_settings()

    def test_current_directory(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        write_settings(tmp_path, "layout:\n  width: 333\n")
        monkeypatch.chdir(tmp_path)
        assert discover_settings().layout.width == 333

    def test_falls_back_to_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.chdir(tmp_path)
        assert discover_settings() == Settings()
