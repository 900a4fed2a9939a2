"""Configuration data models for srcpilot."""

import sys
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator


class PathsConfig(BaseModel):
    """Paths configuration."""

    workspace_root: Path = Field(default_factory=Path.cwd)
    data_dir: Path = Field(default_factory=lambda: Path.home() / ".srcpilot")
    cache_dir: Path | None = None  # Artifact cache used for the ambient environment

    @field_validator("workspace_root", "data_dir", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        """Expand user path."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @field_validator("cache_dir", mode="before")
    @classmethod
    def expand_optional_path(cls, v: str | Path | None) -> Path | None:
        """Expand user path for optional paths."""
        if v is None:
            return None
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    def model_post_init(self, __context: object) -> None:
        """Set default subdirectories if not specified."""
        if self.cache_dir is None:
            self.cache_dir = self.data_dir / "cache"

    def get_artifact_cache_path(self) -> Path:
        """
        Get the artifact cache used when installing into the ambient environment.

        Directory structure:
            cache/artifacts/requests-2.32.3-py3-none-any.whl
            cache/artifacts/...

        Returns:
            Path to the ambient artifact cache (e.g., ~/.srcpilot/cache/artifacts)
        """
        cache_dir = self.cache_dir if self.cache_dir is not None else self.data_dir / "cache"
        return cache_dir / "artifacts"


class ToolSource(BaseModel):
    """Tool source configuration."""

    type: Literal["system", "custom"] = "system"
    custom_path: str = ""


class ToolsConfig(BaseModel):
    """External tools configuration."""

    git: ToolSource = Field(default_factory=ToolSource)
    python: str = sys.executable  # Interpreter that runs `build` and `pip`


class RepositoriesConfig(BaseModel):
    """Repositories configuration."""

    # Logical package name -> remote URL, merged over the built-in defaults
    sources: dict[str, str] = Field(default_factory=dict)
    # Optional YAML file holding another name -> URL mapping, merged last
    registry_file: Path | None = None

    @field_validator("registry_file", mode="before")
    @classmethod
    def expand_registry_file(cls, v: str | Path | None) -> Path | None:
        """Expand user path for registry_file."""
        if isinstance(v, str):
            return Path(v).expanduser()
        return v


class AdvancedConfig(BaseModel):
    """Advanced configuration."""

    command_timeout: float | None = None  # Deadline in seconds for each external process; None waits forever
    shallow_clone: bool = True
    log_level: Literal["INFO", "DEBUG", "TRACE"] = "INFO"
    log_json: bool = False


class AppConfig(BaseModel):
    """Application configuration."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    tools: ToolsConfig = Field(default_factory=ToolsConfig)
    repositories: RepositoriesConfig = Field(default_factory=RepositoriesConfig)
    # Extra command shortcuts: group name -> package names
    groups: dict[str, list[str]] = Field(default_factory=dict)
    advanced: AdvancedConfig = Field(default_factory=AdvancedConfig)
