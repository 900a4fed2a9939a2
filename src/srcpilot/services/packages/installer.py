"""Install built artifacts or registry packages into an install target."""

from pathlib import Path

from srcpilot.exceptions import InstallError, InstallErrorKind, TargetPathMissingError
from srcpilot.logger import get_logger
from srcpilot.models.package import InstalledPackage, InstallReport, InstallTarget, PackageArtifact

from .cache import ArtifactCache
from .client import RegistryClient, RegistryClientError, RegistryDependencyError, RegistryNotFoundError

logger = get_logger(__name__)

UNKNOWN_PACKAGE = "unknown package"


def ensure_target(target: InstallTarget, package: str = "") -> None:
    """
    Check the install target precondition.

    Raises:
        TargetPathMissingError: If an explicit target directory does not exist
    """
    if target.directory is not None and not target.directory.is_dir():
        raise TargetPathMissingError(target.directory, package)


class PackageInstaller:
    """Installs by artifact file or by name, falling back to the artifact cache."""

    def __init__(self, client: RegistryClient, ambient_cache_dir: Path) -> None:
        """
        Initialize the installer.

        Args:
            client: Registry client used for every install
            ambient_cache_dir: Artifact cache used when the target is the ambient environment
        """
        self.client = client
        self.ambient_cache_dir = ambient_cache_dir

    def cache_for(self, target: InstallTarget) -> ArtifactCache:
        return ArtifactCache(target.cache_dir if target.cache_dir is not None else self.ambient_cache_dir)

    def install_artifact(
        self,
        artifact: PackageArtifact,
        target: InstallTarget,
        find_links: list[Path] | None = None,
        force: bool = False,
    ) -> InstallReport:
        """
        Install an artifact file.

        The artifact is copied into the target's cache afterwards so a later
        install by name can fall back to it.

        Raises:
            TargetPathMissingError: If the explicit target directory is missing
            InstallError: If the install fails or installs nothing
        """
        ensure_target(target, artifact.name)
        report = self._install_file(artifact, target, find_links, force, from_cache=False)
        self.cache_for(target).store(artifact.file_path)
        return report

    def install(
        self,
        name: str,
        version: str | None,
        target: InstallTarget,
        force: bool = False,
    ) -> InstallReport:
        """
        Install a package by name through the registry client.

        If the index reports the package as not found, the highest cached
        artifact satisfying ``version`` is installed instead.

        Args:
            name: Distribution name
            version: Version constraint, or None for the latest
            target: Install target
            force: Reinstall even if already present

        Returns:
            Report of what was installed

        Raises:
            TargetPathMissingError: If the explicit target directory is missing
            InstallError: PACKAGE_NOT_FOUND when neither the index nor the cache has it,
                DEPENDENCY_UNAVAILABLE for any other installer failure
        """
        ensure_target(target, name)
        requirement = f"{name} {version}" if version else name

        try:
            installed = self.client.install(name, version, target, force=force)
        except RegistryNotFoundError as e:
            cached = self._cached_artifact(name, version, target)
            if cached is None:
                raise InstallError(name, InstallErrorKind.PACKAGE_NOT_FOUND, str(e)) from e
            logger.info(f"{requirement} not found in the index, installing cached {cached.file_path.name}")
            return self._install_file(cached, target, None, force, from_cache=True)
        except RegistryDependencyError as e:
            raise InstallError(name, InstallErrorKind.DEPENDENCY_UNAVAILABLE, str(e)) from e
        except RegistryClientError as e:
            raise InstallError(name, InstallErrorKind.DEPENDENCY_UNAVAILABLE, str(e)) from e

        if not installed:
            raise InstallError(name, InstallErrorKind.PACKAGE_NOT_FOUND, UNKNOWN_PACKAGE)

        self._log_installed(installed, target)
        self._cache_installed(installed, target)
        return InstallReport(target=target, installed=installed, source=requirement)

    def _cache_installed(self, installed: list[InstalledPackage], target: InstallTarget) -> None:
        """Keep the artifact of every distribution pulled from the index in a local target's cache."""
        if target.cache_dir is None:
            return
        cache = ArtifactCache(target.cache_dir)
        for package in installed:
            try:
                if cache.lookup(package.name, f"=={package.version}") is not None:
                    continue
                self.client.download(package.name, package.version, target.cache_dir)
            except (ValueError, RegistryClientError) as e:
                logger.warning(f"Could not cache {package.name} {package.version}: {e}")

    def _cached_artifact(self, name: str, version: str | None, target: InstallTarget) -> PackageArtifact | None:
        try:
            return self.cache_for(target).lookup(name, version)
        except ValueError as e:
            logger.warning(f"Cannot search the artifact cache for {name}: {e}")
            return None

    def _install_file(
        self,
        artifact: PackageArtifact,
        target: InstallTarget,
        find_links: list[Path] | None,
        force: bool,
        from_cache: bool,
    ) -> InstallReport:
        try:
            installed = self.client.install(artifact.file_path, target=target, find_links=find_links, force=force)
        except RegistryClientError as e:
            raise InstallError(artifact.name, InstallErrorKind.DEPENDENCY_UNAVAILABLE, str(e)) from e

        if not installed:
            raise InstallError(artifact.name, InstallErrorKind.PACKAGE_NOT_FOUND, UNKNOWN_PACKAGE)

        self._log_installed(installed, target)
        return InstallReport(target=target, installed=installed, source=str(artifact.file_path), from_cache=from_cache)

    @staticmethod
    def _log_installed(installed: list[InstalledPackage], target: InstallTarget) -> None:
        for package in installed:
            logger.info(f"Installed {package.name} {package.version}", target=target.describe())
