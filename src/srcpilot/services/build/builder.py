"""Build a source tree, and its nested sub-packages, into one installable artifact."""

import shutil
import tomllib
from pathlib import Path

from packaging.utils import (
    InvalidSdistFilename,
    InvalidWheelFilename,
    canonicalize_name,
    parse_sdist_filename,
    parse_wheel_filename,
)

from srcpilot.exceptions import BuildError, SourcePathMissingError
from srcpilot.logger import get_logger
from srcpilot.models.package import PackageArtifact

from .tool import BuildTool, BuildToolError

logger = get_logger(__name__)

BUILD_DESCRIPTOR = "pyproject.toml"
AGGREGATION_DIR = "pkg"

# Directories that never hold sub-packages
_SKIPPED_DIRS = {"build", "dist", AGGREGATION_DIR, "node_modules"}


def read_project_name(descriptor: Path) -> str | None:
    """
    Read the distribution name from a pyproject.toml.

    Returns:
        ``[project].name`` (or ``[tool.poetry].name``), or None if unset or unreadable
    """
    try:
        with open(descriptor, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Failed to read {descriptor}: {e}")
        return None

    name = data.get("project", {}).get("name") or data.get("tool", {}).get("poetry", {}).get("name")
    return name if isinstance(name, str) and name else None


def parse_artifact(path: Path) -> PackageArtifact | None:
    """Parse a wheel or sdist file name, returning None for anything else."""
    try:
        if path.name.endswith(".whl"):
            name, version, _build, _tags = parse_wheel_filename(path.name)
        elif path.name.endswith((".tar.gz", ".zip")):
            name, version = parse_sdist_filename(path.name)
        else:
            return None
    except (InvalidWheelFilename, InvalidSdistFilename):
        return None
    return PackageArtifact(name=str(name), version=str(version), file_path=path)


def select_artifact(output_dir: Path, package_name: str) -> PackageArtifact | None:
    """
    Pick the most recently produced artifact for ``package_name``.

    Wheels win over sdists written in the same instant.
    """
    if not output_dir.is_dir():
        return None

    wanted = canonicalize_name(package_name)
    candidates = []
    for path in output_dir.iterdir():
        artifact = parse_artifact(path) if path.is_file() else None
        if artifact is not None and canonicalize_name(artifact.name) == wanted:
            candidates.append(artifact)

    if not candidates:
        return None
    return max(candidates, key=lambda a: (a.file_path.stat().st_mtime, a.file_path.suffix == ".whl"))


class PackageBuilder:
    """Builds sub-packages first, then the package that embeds them."""

    def __init__(self, tool: BuildTool) -> None:
        self.tool = tool

    def find_subpackages(self, source_tree: Path) -> list[Path]:
        """Directories directly inside ``source_tree`` that carry a build descriptor."""
        return [
            child
            for child in sorted(source_tree.iterdir())
            if child.is_dir()
            and not child.name.startswith(".")
            and child.name not in _SKIPPED_DIRS
            and (child / BUILD_DESCRIPTOR).is_file()
        ]

    def build(self, source_tree: Path) -> PackageArtifact:
        """
        Build ``source_tree`` into its primary artifact.

        Every sub-package is built first (recursively) and its artifact copied
        into ``<source_tree>/pkg``, which the top-level build resolves
        dependencies from. A sub-package that fails is logged and skipped.

        Args:
            source_tree: Directory holding pyproject.toml

        Returns:
            The newest artifact matching the package name

        Raises:
            SourcePathMissingError: If ``source_tree`` does not exist
            BuildError: If there is no descriptor, the build fails, or no artifact is produced
        """
        if not source_tree.is_dir():
            raise SourcePathMissingError(source_tree.name, source_tree)

        descriptor = source_tree / BUILD_DESCRIPTOR
        if not descriptor.is_file():
            raise BuildError(source_tree.name, BuildError.NO_DESCRIPTOR)

        package_name = read_project_name(descriptor) or source_tree.name

        sub_artifacts: list[PackageArtifact] = []
        for sub_tree in self.find_subpackages(source_tree):
            try:
                sub_artifacts.append(self.build(sub_tree))
            except BuildError as e:
                logger.warning(f"Skipping sub-package {sub_tree.name}: {e}")

        aggregation_dir = source_tree / AGGREGATION_DIR
        try:
            self.tool.clean(source_tree)
            if aggregation_dir.exists():
                shutil.rmtree(aggregation_dir)
            aggregation_dir.mkdir(parents=True)
            for artifact in sub_artifacts:
                shutil.copy2(artifact.file_path, aggregation_dir / artifact.file_path.name)
        except OSError as e:
            raise BuildError(package_name, "build step failed", str(e)) from e

        logger.info(f"Building {package_name}", tree=str(source_tree), embedded=len(sub_artifacts))
        try:
            output_dir = self.tool.package(source_tree, find_links=aggregation_dir)
        except BuildToolError as e:
            raise BuildError(package_name, "build step failed", str(e)) from e

        artifact = select_artifact(output_dir, package_name)
        if artifact is None:
            raise BuildError(package_name, BuildError.NOT_PRODUCED, f"nothing matching {package_name} in {output_dir}")

        logger.info(f"Built {artifact.name} {artifact.version}", artifact=str(artifact.file_path))
        return artifact
