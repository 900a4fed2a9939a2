"""Remove installed packages."""

from srcpilot.exceptions import NotInstalledError, UninstallError
from srcpilot.logger import get_logger
from srcpilot.models.package import InstalledPackage, InstallTarget

from .client import RegistryClient, RegistryClientError, RegistryNotInstalledError
from .installer import ensure_target

logger = get_logger(__name__)


class PackageUninstaller:
    """Uninstalls packages, ignoring dependents."""

    def __init__(self, client: RegistryClient) -> None:
        self.client = client

    def uninstall(
        self,
        name: str,
        version: str | None,
        all_versions: bool,
        target: InstallTarget,
    ) -> list[InstalledPackage]:
        """
        Remove ``name`` and the executables it registered.

        Other installed packages depending on ``name`` never block removal.

        Args:
            name: Distribution name
            version: Version constraint; ignored when ``all_versions`` is set
            all_versions: Remove every installed version
            target: Install target

        Returns:
            Distributions removed

        Raises:
            TargetPathMissingError: If the explicit target directory is missing
            NotInstalledError: If nothing matching is installed
            UninstallError: If removal fails
        """
        ensure_target(target, name)
        try:
            removed = self.client.uninstall(name, version, all_versions=all_versions, target=target)
        except RegistryNotInstalledError as e:
            raise NotInstalledError(name, None if all_versions else version) from e
        except RegistryClientError as e:
            raise UninstallError(name, str(e)) from e

        for package in removed:
            logger.info(f"Uninstalled {package.name} {package.version}", target=target.describe())
        return removed
