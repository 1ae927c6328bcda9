"""Configuration loading from environment variables and deadline.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

_CONFIG_FILENAME = "deadline.toml"
_DATA_FILENAME = "projects.json"


@dataclass
class ProjectSettings:
    """Where and how new project folders are created."""

    project_path: str = "Projects"
    dir_prefix: str = "{{id}}"
    project_tag: str = "deadline"

    def __post_init__(self) -> None:
        if self.project_path.startswith("./"):
            self.project_path = self.project_path[2:]
        self.project_path = self.project_path.rstrip("/")

    def folder_name(self, project_id: str, name: str) -> str:
        """Render ``dir_prefix`` for ``project_id`` and join it with ``name``."""
        prefix = self.dir_prefix.replace("{{id}}", project_id)
        return f"{prefix}-{name}" if prefix else name


@dataclass
class DeadlineConfig:
    """Top-level configuration."""

    vault_dir: Path = field(default_factory=Path.cwd)
    data_file: Path | None = None
    projects: ProjectSettings = field(default_factory=ProjectSettings)
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.data_file is None:
            self.data_file = self.vault_dir / _DATA_FILENAME


def load_config(config_path: Path | None = None) -> DeadlineConfig:
    """Load configuration from environment variables and optional deadline.toml.

    Priority: environment variables > deadline.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".deadline" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    projects_data = file_data.get("projects", {})

    vault_dir = Path(os.getenv("DEADLINE_VAULT_DIR", file_data.get("vault_dir", str(Path.cwd()))))
    data_file = os.getenv("DEADLINE_DATA_FILE", file_data.get("data_file"))

    return DeadlineConfig(
        vault_dir=vault_dir,
        data_file=Path(data_file) if data_file else None,
        projects=ProjectSettings(
            project_path=os.getenv(
                "DEADLINE_PROJECT_PATH", projects_data.get("project_path", "Projects")
            ),
            dir_prefix=projects_data.get("dir_prefix", "{{id}}"),
            project_tag=projects_data.get("project_tag", "deadline"),
        ),
        log_level=os.getenv("DEADLINE_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
