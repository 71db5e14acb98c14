"""Project configuration loading."""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML

from storyweave.graph.layout import LayoutConfig

CONFIG_FILE = "storyweave.yaml"
DEFAULT_DATA_DIR = "data"
DATA_DIR_ENV = "STORYWEAVE_DATA_DIR"


class ConfigError(Exception):
    """Raised when project configuration cannot be loaded."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load project config at {path}: {reason}")


def _layout_from_dict(data: dict[str, Any]) -> LayoutConfig:
    known = {f.name for f in fields(LayoutConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown layout setting(s): {', '.join(unknown)}")
    values: dict[str, int] = {}
    for key, value in data.items():
        # bool is an int subclass; reject it explicitly
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"layout.{key} must be an integer, got {value!r}")
        values[key] = value
    return LayoutConfig(**values)


@dataclass
class ProjectConfig:
    """Configuration for a Storyweave project.

    Attributes:
        name: Project name.
        data_dir: Directory holding ``storylines.json`` and ``catalogs.json``,
            relative to the project directory unless absolute.
        layout: Diagram grid geometry.
    """

    name: str
    data_dir: str = DEFAULT_DATA_DIR
    layout: LayoutConfig = field(default_factory=LayoutConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectConfig:
        """Create config from a parsed ``storyweave.yaml`` mapping.

        Raises:
            ValueError: If a value has the wrong type or is out of range.
        """
        layout_data = data.get("layout") or {}
        if not isinstance(layout_data, dict):
            raise ValueError("layout must be a mapping")
        data_dir = data.get("data_dir", DEFAULT_DATA_DIR)
        if not isinstance(data_dir, str) or not data_dir:
            raise ValueError("data_dir must be a non-empty string")
        return cls(
            name=str(data.get("name", "unnamed")),
            data_dir=data_dir,
            layout=_layout_from_dict(dict(layout_data)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "data_dir": self.data_dir, "layout": asdict(self.layout)}

    def data_path(self, project_path: Path) -> Path:
        """Resolve the data directory.

        ``STORYWEAVE_DATA_DIR`` overrides the configured value.
        """
        data_dir = Path(os.getenv(DATA_DIR_ENV) or self.data_dir)
        return data_dir if data_dir.is_absolute() else project_path / data_dir


def load_project_config(project_path: Path) -> ProjectConfig:
    """Load project configuration from ``storyweave.yaml``.

    A project without a config file gets defaults, named after its
    directory.

    Args:
        project_path: Path to the project root directory.

    Returns:
        ProjectConfig instance.

    Raises:
        ConfigError: If the file exists but cannot be parsed or holds
            invalid values.
    """
    config_path = project_path / CONFIG_FILE
    if not config_path.exists():
        return ProjectConfig(name=project_path.resolve().name)

    yaml = YAML(typ="safe")
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)

        if data is None:
            raise ConfigError(config_path, "Empty file")
        if not isinstance(data, dict):
            raise ConfigError(config_path, "Expected a mapping at the top level")

        return ProjectConfig.from_dict(dict(data))
    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(config_path, str(e)) from e


def write_project_config(project_path: Path, config: ProjectConfig) -> Path:
    """Write *config* to ``storyweave.yaml`` in *project_path*.

    Returns:
        Path of the written file.
    """
    config_path = project_path / CONFIG_FILE
    yaml = YAML()
    yaml.default_flow_style = False
    with config_path.open("w", encoding="utf-8") as f:
        yaml.dump(config.to_dict(), f)
    return config_path
