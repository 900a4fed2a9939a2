"""Package build services."""

from .builder import PackageBuilder, read_project_name, select_artifact
from .tool import BuildTool, BuildToolError

__all__ = ["BuildTool", "BuildToolError", "PackageBuilder", "read_project_name", "select_artifact"]
