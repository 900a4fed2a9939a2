"""Utilities for srcpilot."""

from srcpilot.utils.subprocess_executor import CommandError, SubprocessExecutor

__all__ = ["CommandError", "SubprocessExecutor"]
