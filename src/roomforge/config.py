"""Project configuration loading."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path  # noqa: TC003 - used at runtime
from typing import Any

from ruamel.yaml import YAML

from roomforge.bundle.writer import BundleFormat

CONFIG_FILENAME = "project.yaml"

# Default configuration values
DEFAULT_CONTENT_DIR = "content"
DEFAULT_BUILD_DIR = "build"
DEFAULT_FORMAT: BundleFormat = "yaml"
SUPPORTED_FORMATS = ("yaml", "json")


class ProjectConfigError(Exception):
    """Raised when project configuration cannot be loaded or saved."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load project config at {path}: {reason}")


@dataclass
class ProjectConfig:
    """Configuration for a RoomForge project.

    Attributes:
        name: Project name.
        version: Config schema version.
        content: Bundle directory, relative to the project root.
        build: Runtime output directory, relative to the project root.
        format: Bundle serialization format.
    """

    name: str
    version: int = 1
    content: str = DEFAULT_CONTENT_DIR
    build: str = DEFAULT_BUILD_DIR
    format: BundleFormat = DEFAULT_FORMAT

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ProjectConfig:
        """Create config from dictionary.

        Raises:
            ValueError: If ``format`` isn't a supported bundle format.
        """
        fmt = data.get("format", DEFAULT_FORMAT)
        if fmt not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported format '{fmt}', expected one of {SUPPORTED_FORMATS}")
        return cls(
            name=data.get("name", "unnamed"),
            version=data.get("version", 1),
            content=data.get("content", DEFAULT_CONTENT_DIR),
            build=data.get("build", DEFAULT_BUILD_DIR),
            format=fmt,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "content": self.content,
            "build": self.build,
            "format": self.format,
        }

    def content_path(self, project_path: Path) -> Path:
        return project_path / self.content

    def build_path(self, project_path: Path) -> Path:
        return project_path / self.build


def load_project_config(project_path: Path) -> ProjectConfig:
    """Load project configuration from project.yaml.

    Args:
        project_path: Path to the project root directory.

    Returns:
        ProjectConfig instance.

    Raises:
        ProjectConfigError: If config cannot be loaded.
    """
    config_path = project_path / CONFIG_FILENAME

    if not config_path.exists():
        raise ProjectConfigError(config_path, "File not found")

    yaml = YAML()
    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.load(f)

        if data is None:
            raise ProjectConfigError(config_path, "Empty file")

        return ProjectConfig.from_dict(dict(data))
    except Exception as e:
        if isinstance(e, ProjectConfigError):
            raise
        raise ProjectConfigError(config_path, str(e)) from e


def save_project_config(config: ProjectConfig, project_path: Path) -> Path:
    """Write *config* to ``project.yaml`` under *project_path*."""
    config_path = project_path / CONFIG_FILENAME
    yaml = YAML()
    yaml.default_flow_style = False
    try:
        project_path.mkdir(parents=True, exist_ok=True)
        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(config.to_dict(), f)
    except OSError as e:
        raise ProjectConfigError(config_path, str(e)) from e
    return config_path


def create_default_config(name: str, fmt: BundleFormat = DEFAULT_FORMAT) -> ProjectConfig:
    """Create a default project configuration."""
    return ProjectConfig(name=name, format=fmt)
