"""Git tool lookup."""

import os
import shutil
from pathlib import Path

from srcpilot.logger import get_logger
from srcpilot.models.config import ToolsConfig

logger = get_logger(__name__)


class GitToolManager:
    """Locates the git executable based on configuration."""

    def __init__(self, tools: ToolsConfig) -> None:
        self.tools = tools

    def get_git_executable(self) -> str:
        """Get Git executable path based on configuration."""
        if self.tools.git.type == "custom" and self.tools.git.custom_path:
            custom = Path(self.tools.git.custom_path).expanduser()
            if custom.is_file() and os.access(custom, os.X_OK):
                return str(custom)
            logger.warning(f"Configured git executable is not usable, falling back to system git: {custom}")

        system_git = shutil.which("git")
        if system_git:
            return system_git

        # Let the first command fail with a clear "not found" error
        return "git"
