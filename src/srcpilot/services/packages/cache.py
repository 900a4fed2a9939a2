"""Local artifact cache consulted when the index cannot resolve a package."""

import shutil
from pathlib import Path

from packaging.utils import canonicalize_name
from packaging.version import InvalidVersion, Version

from srcpilot.logger import get_logger
from srcpilot.models.package import PackageArtifact
from srcpilot.services.build.builder import parse_artifact

from .versions import to_specifier

logger = get_logger(__name__)


class ArtifactCache:
    """Directory of wheels and sdists keyed by their file names."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def artifacts(self, name: str | None = None) -> list[PackageArtifact]:
        """All parsable artifacts in the cache, optionally only those named ``name``."""
        if not self.directory.is_dir():
            return []
        wanted = canonicalize_name(name) if name else None
        found = []
        for path in sorted(self.directory.iterdir()):
            artifact = parse_artifact(path) if path.is_file() else None
            if artifact is None:
                continue
            if wanted is None or canonicalize_name(artifact.name) == wanted:
                found.append(artifact)
        return found

    def lookup(self, name: str, version: str | None = None) -> PackageArtifact | None:
        """
        Find the highest cached version of ``name`` satisfying ``version``.

        Pre-releases are only picked when no final release matches.

        Args:
            name: Distribution name
            version: Version constraint (``1.2.0``, ``>=1.2``, ...) or None for the highest

        Returns:
            The best artifact, or None if nothing matches

        Raises:
            ValueError: If ``version`` is not a valid constraint
        """
        specifier = to_specifier(version)
        by_version: dict[Version, list[PackageArtifact]] = {}
        for artifact in self.artifacts(name):
            try:
                by_version.setdefault(Version(artifact.version), []).append(artifact)
            except InvalidVersion:
                logger.debug(f"Ignoring cached artifact with invalid version: {artifact.file_path}")

        matching = list(specifier.filter(by_version))
        if not matching:
            return None
        best = max(matching)
        # Prefer a wheel over an sdist of the same version
        return max(by_version[best], key=lambda a: a.file_path.suffix == ".whl")

    def store(self, path: Path) -> Path:
        """Copy an artifact into the cache and return the cached path."""
        self.directory.mkdir(parents=True, exist_ok=True)
        destination = self.directory / path.name
        if destination.exists() and destination.resolve() == path.resolve():
            return destination
        shutil.copy2(path, destination)
        logger.debug(f"Cached {path.name} in {self.directory}")
        return destination
