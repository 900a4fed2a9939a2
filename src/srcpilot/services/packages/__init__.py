"""Package install, uninstall and cache services."""

from .cache import ArtifactCache
from .client import (
    RegistryClient,
    RegistryClientError,
    RegistryDependencyError,
    RegistryNotFoundError,
    RegistryNotInstalledError,
)
from .installer import PackageInstaller, ensure_target
from .redeploy import NativeRedeployer
from .uninstaller import PackageUninstaller

__all__ = [
    "ArtifactCache",
    "NativeRedeployer",
    "PackageInstaller",
    "PackageUninstaller",
    "RegistryClient",
    "RegistryClientError",
    "RegistryDependencyError",
    "RegistryNotFoundError",
    "RegistryNotInstalledError",
    "ensure_target",
]
