"""Configuration management for srcpilot."""

import os
import sys
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from srcpilot.exceptions import SrcPilotError
from srcpilot.models.config import AppConfig


def default_config_path() -> Path:
    """Return the platform-specific location of config.yaml."""
    if sys.platform == "win32":
        # Windows: %APPDATA%\srcpilot
        config_dir = Path(os.getenv("APPDATA", str(Path.home()))) / "srcpilot"
    elif sys.platform == "darwin":
        # macOS: ~/Library/Application Support/srcpilot
        config_dir = Path.home() / "Library" / "Application Support" / "srcpilot"
    else:
        # Linux/Unix: ~/.config/srcpilot
        config_dir = Path.home() / ".config" / "srcpilot"
    return config_dir / "config.yaml"


class ConfigManager:
    """Loads configuration from a YAML file and applies environment variable overrides."""

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize configuration manager.

        Args:
            config_path: Path to config file. If None, uses SRCPILOT_CONFIG_PATH
                        environment variable or defaults to platform-specific config directory
        """
        if config_path is None:
            env_path = os.getenv("SRCPILOT_CONFIG_PATH")
            config_path = Path(env_path).expanduser() if env_path else default_config_path()

        self.config_path = config_path

    def load(self) -> AppConfig:
        """Load configuration from file and apply environment variable overrides.

        Returns:
            Loaded configuration

        Raises:
            SrcPilotError: If the file is not valid YAML or does not match the schema
        """
        config_data: dict[str, Any] = {}

        try:
            # 1. Load from YAML file if it exists
            if self.config_path.exists():
                with open(self.config_path, encoding="utf-8") as f:
                    config_data = yaml.safe_load(f) or {}

            # 2. Create config object (applies defaults)
            config = AppConfig(**config_data)
        except (yaml.YAMLError, ValidationError, TypeError) as e:
            raise SrcPilotError("invalid configuration in {path}: {error}", path=self.config_path, error=str(e)) from e

        # 3. Apply environment variable overrides
        return self._apply_env_overrides(config)

    def _apply_env_overrides(self, config: AppConfig) -> AppConfig:
        """Apply environment variable overrides.

        Environment variables use the format: SRCPILOT_<KEY>
        Examples:
            - SRCPILOT_WORKSPACE=~/work
            - SRCPILOT_COMMAND_TIMEOUT=600

        Args:
            config: Base configuration

        Returns:
            Configuration with environment overrides applied
        """
        # Path overrides
        if workspace := os.getenv("SRCPILOT_WORKSPACE"):
            config.paths.workspace_root = Path(workspace).expanduser()
        if data_dir := os.getenv("SRCPILOT_DATA_DIR"):
            config.paths.data_dir = Path(data_dir).expanduser()
            # Recalculate dependent paths
            config.paths.cache_dir = None
            config.paths.model_post_init(None)

        # Tool overrides
        if git_path := os.getenv("SRCPILOT_GIT_PATH"):
            config.tools.git.type = "custom"
            config.tools.git.custom_path = git_path
        if python := os.getenv("SRCPILOT_PYTHON"):
            config.tools.python = python

        # Advanced overrides
        if log_level := os.getenv("SRCPILOT_LOG_LEVEL"):
            if log_level.upper() in ("INFO", "DEBUG", "TRACE"):
                config.advanced.log_level = log_level.upper()  # type: ignore
        if timeout := os.getenv("SRCPILOT_COMMAND_TIMEOUT"):
            try:
                seconds = float(timeout)
            except ValueError as e:
                raise SrcPilotError("SRCPILOT_COMMAND_TIMEOUT must be a number, got {value}", value=timeout) from e
            config.advanced.command_timeout = seconds if seconds > 0 else None

        return config


def load_config(config_path: Path | None = None) -> AppConfig:
    """Load the configuration for one invocation.

    Args:
        config_path: Explicit config file, or None for the default lookup

    Returns:
        Application configuration
    """
    return ConfigManager(config_path).load()
