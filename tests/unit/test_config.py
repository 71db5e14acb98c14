"""Tests for project configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from storyweave.config import (
    ConfigError,
    ProjectConfig,
    load_project_config,
    write_project_config,
)
from storyweave.graph.layout import LayoutConfig

if TYPE_CHECKING:
    from pathlib import Path


class TestProjectConfig:
    """Tests for ProjectConfig parsing."""

    def test_from_dict_defaults(self) -> None:
        config = ProjectConfig.from_dict({"name": "tale"})
        assert config.name == "tale"
        assert config.data_dir == "data"
        assert config.layout == LayoutConfig()

    def test_from_dict_layout_overrides(self) -> None:
        config = ProjectConfig.from_dict({"name": "t", "layout": {"gap_x": 100}})
        assert config.layout.gap_x == 100
        assert config.layout.node_width == 220

    def test_unknown_layout_key(self) -> None:
        with pytest.raises(ValueError, match="Unknown layout"):
            ProjectConfig.from_dict({"layout": {"zoom": 2}})

    def test_non_integer_layout_value(self) -> None:
        with pytest.raises(ValueError, match="integer"):
            ProjectConfig.from_dict({"layout": {"gap_x": "wide"}})

    def test_to_dict_roundtrip(self) -> None:
        config = ProjectConfig(name="t", layout=LayoutConfig(gap_y=10))
        assert ProjectConfig.from_dict(config.to_dict()) == config


class TestDataPath:
    """Tests for data directory resolution."""

    def test_relative_to_project(self, tmp_path: Path) -> None:
        assert ProjectConfig(name="t").data_path(tmp_path) == tmp_path / "data"

    def test_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STORYWEAVE_DATA_DIR", "elsewhere")
        assert ProjectConfig(name="t").data_path(tmp_path) == tmp_path / "elsewhere"

    def test_absolute_path(self, tmp_path: Path) -> None:
        target = tmp_path / "abs"
        config = ProjectConfig(name="t", data_dir=str(target))
        assert config.data_path(tmp_path / "project") == target


class TestLoadProjectConfig:
    """Tests for load_project_config."""

    def test_missing_file_uses_defaults(self, tmp_path: Path) -> None:
        config = load_project_config(tmp_path)
        assert config.name == tmp_path.resolve().name
        assert config.layout == LayoutConfig()

    def test_reads_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "storyweave.yaml").write_text(
            "name: saga\ndata_dir: content\nlayout:\n  unreachable_per_level: 3\n"
        )
        config = load_project_config(tmp_path)
        assert config.name == "saga"
        assert config.data_dir == "content"
        assert config.layout.unreachable_per_level == 3

    def test_write_then_load(self, tmp_path: Path) -> None:
        config = ProjectConfig(name="saga", layout=LayoutConfig(margin_x=0))
        write_project_config(tmp_path, config)
        assert load_project_config(tmp_path) == config

    def test_empty_file(self, tmp_path: Path) -> None:
        (tmp_path / "storyweave.yaml").write_text("")
        with pytest.raises(ConfigError, match="Empty file"):
            load_project_config(tmp_path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "storyweave.yaml").write_text("name: [unclosed\n")
        with pytest.raises(ConfigError):
            load_project_config(tmp_path)

    def test_bad_value(self, tmp_path: Path) -> None:
        (tmp_path / "storyweave.yaml").write_text("name: t\nlayout:\n  gap_y: -5\n")
        with pytest.raises(ConfigError, match="gap_y"):
            load_project_config(tmp_path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "storyweave.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_project_config(tmp_path)
