"""Git services."""

from .service import GitCommandError, GitService
from .synchronizer import RepositorySynchronizer, classify_remote
from .tools import GitToolManager

__all__ = ["GitCommandError", "GitService", "GitToolManager", "RepositorySynchronizer", "classify_remote"]
