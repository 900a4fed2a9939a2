"""Data models."""

from .config import AdvancedConfig, AppConfig, PathsConfig, RepositoriesConfig, ToolsConfig
from .package import BatchReport, InstalledPackage, InstallReport, InstallTarget, ItemResult, PackageArtifact
from .repository import LocalClone, RemoteRelationship, RemoteUrl, RepositoryDescriptor

__all__ = [
    "AdvancedConfig",
    "AppConfig",
    "BatchReport",
    "InstallReport",
    "InstallTarget",
    "InstalledPackage",
    "ItemResult",
    "LocalClone",
    "PackageArtifact",
    "PathsConfig",
    "RemoteRelationship",
    "RemoteUrl",
    "RepositoriesConfig",
    "RepositoryDescriptor",
    "ToolsConfig",
]
