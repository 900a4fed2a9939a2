"""Registry client backed by pip.

This is the only place that knows how pip reports success and failure; callers
receive either a list of installed distributions or one of the exceptions below.
"""

import json
import re
import shutil
import subprocess
import tempfile
from pathlib import Path

from packaging.specifiers import SpecifierSet
from packaging.utils import canonicalize_name

from srcpilot.logger import get_logger
from srcpilot.models.package import InstalledPackage, InstallTarget
from srcpilot.services.build.builder import parse_artifact
from srcpilot.utils.subprocess_executor import CommandError, SubprocessExecutor

from .distributions import InstalledDistribution, installed_distributions
from .versions import requirement_string, to_specifier

logger = get_logger(__name__)

_NO_MATCH = re.compile(r"No matching distribution found for ([^\s;]+)")
_REQUIREMENT_NAME = re.compile(r"^([A-Za-z0-9][A-Za-z0-9._-]*)")


class RegistryClientError(Exception):
    """pip failed for a reason other than the ones below."""


class RegistryNotFoundError(RegistryClientError):
    """The requested package does not exist in the index."""

    def __init__(self, requirement: str, output: str = "") -> None:
        super().__init__(output or f"no matching distribution found for {requirement}")
        self.requirement = requirement


class RegistryDependencyError(RegistryClientError):
    """A dependency of the requested package could not be resolved."""


class RegistryNotInstalledError(RegistryClientError):
    """The package to uninstall is not installed."""


class RegistryClient:
    """Installs and uninstalls distributions with ``python -m pip``."""

    def __init__(self, python: str, timeout: float | None = None, index_url: str | None = None) -> None:
        self.python = python
        self.timeout = timeout
        self.index_url = index_url

    def _pip(self, *args: str) -> subprocess.CompletedProcess[bytes]:
        return SubprocessExecutor.run_sync(
            self.python,
            "-m",
            "pip",
            *args,
            "--disable-pip-version-check",
            "--no-input",
            check=True,
            timeout=self.timeout,
        )

    def install(
        self,
        source: str | Path,
        version: str | None = None,
        target: InstallTarget | None = None,
        find_links: list[Path] | None = None,
        force: bool = False,
        no_deps: bool = False,
    ) -> list[InstalledPackage]:
        """
        Install a package by name or from an artifact file.

        Args:
            source: Distribution name or path to a wheel/sdist
            version: Version constraint, only used with a name
            target: Install target; None or an ambient target uses the interpreter's environment
            find_links: Extra directories searched for distributions
            force: Reinstall even if the same version is present
            no_deps: Do not install dependencies

        Returns:
            Distributions pip installed

        Raises:
            RegistryNotFoundError: If the requested package is not in the index
            RegistryDependencyError: If a dependency cannot be resolved
            RegistryClientError: For any other pip failure
        """
        if isinstance(source, Path):
            requirement = str(source)
            artifact = parse_artifact(source)
            name = artifact.name if artifact is not None else None
        else:
            requirement = requirement_string(source, version)
            name = source
        wanted = canonicalize_name(name) if name else None

        with tempfile.TemporaryDirectory(prefix="srcpilot-report-") as tmp:
            report_path = Path(tmp) / "report.json"
            args = ["install", "--report", str(report_path)]
            if target is not None and target.lib_dir is not None:
                target.lib_dir.mkdir(parents=True, exist_ok=True)
                args += ["--target", str(target.lib_dir), "--upgrade"]
            if self.index_url:
                args += ["--index-url", self.index_url]
            for link in find_links or []:
                args += ["--find-links", str(link)]
            if force:
                args.append("--force-reinstall")
            if no_deps:
                args.append("--no-deps")
            args.append(requirement)

            try:
                self._pip(*args)
            except CommandError as e:
                if e.returncode is None:
                    raise RegistryClientError(str(e)) from e
                raise self._classify_failure(requirement, wanted, e.output) from e

            installed = self._read_report(report_path)

        if not installed and name and (target is None or not target.is_local):
            # Already satisfied in the ambient environment
            present = self.installed_version(name)
            if present is not None:
                installed = [InstalledPackage(name=name, version=present)]
        return installed

    @staticmethod
    def _classify_failure(requirement: str, wanted: str | None, output: str) -> RegistryClientError:
        match = _NO_MATCH.search(output)
        if match:
            name_match = _REQUIREMENT_NAME.match(match.group(1))
            missing = canonicalize_name(name_match.group(1)) if name_match else ""
            if wanted is not None and missing == wanted:
                return RegistryNotFoundError(requirement, output)
            return RegistryDependencyError(output)
        if "ResolutionImpossible" in output or "conflicting dependencies" in output:
            return RegistryDependencyError(output)
        return RegistryClientError(output or f"pip failed installing {requirement}")

    @staticmethod
    def _read_report(report_path: Path) -> list[InstalledPackage]:
        if not report_path.exists():
            return []
        with open(report_path, encoding="utf-8") as f:
            report = json.load(f)
        installed = []
        for item in report.get("install", []):
            metadata = item.get("metadata", {})
            if metadata.get("name") and metadata.get("version"):
                installed.append(InstalledPackage(name=metadata["name"], version=metadata["version"]))
        return installed

    def installed_version(self, name: str) -> str | None:
        """Version of ``name`` in the ambient environment, or None."""
        if not name:
            return None
        try:
            result = self._pip("show", name)
        except CommandError as e:
            if e.returncode is None:
                raise RegistryClientError(str(e)) from e
            return None
        for line in result.stdout.decode("utf-8", errors="replace").splitlines():
            key, _, value = line.partition(":")
            if key.strip() == "Version":
                return value.strip()
        return None

    def download(self, name: str, version: str, dest: Path) -> list[Path]:
        """
        Fetch the artifact of one exact release into ``dest``, without dependencies.

        Returns:
            Files pip added to ``dest``; empty if the file was already there

        Raises:
            RegistryClientError: If pip cannot fetch the release
        """
        dest.mkdir(parents=True, exist_ok=True)
        before = set(dest.iterdir())
        args = ["download", "--no-deps", "--dest", str(dest)]
        if self.index_url:
            args += ["--index-url", self.index_url]
        args.append(requirement_string(name, version))
        try:
            self._pip(*args)
        except CommandError as e:
            raise RegistryClientError(e.output or f"pip failed downloading {name} {version}") from e
        return sorted(set(dest.iterdir()) - before)

    def uninstall(
        self,
        name: str,
        version: str | None = None,
        all_versions: bool = False,
        target: InstallTarget | None = None,
    ) -> list[InstalledPackage]:
        """
        Remove a package without checking whether other packages depend on it.

        Args:
            name: Distribution name
            version: Version constraint selecting what to remove
            all_versions: Remove every installed version, ignoring ``version``
            target: Install target; None or an ambient target uses the interpreter's environment

        Returns:
            Distributions removed

        Raises:
            RegistryNotInstalledError: If nothing matching is installed
            RegistryClientError: If removal fails or the choice is ambiguous
        """
        try:
            specifier = to_specifier(None if all_versions else version)
        except ValueError as e:
            raise RegistryClientError(str(e)) from e

        lib_dir = target.lib_dir if target is not None else None
        if lib_dir is not None:
            return self._uninstall_from_target(name, specifier, version, all_versions, lib_dir)

        present = self.installed_version(name)
        if present is None or not specifier.contains(present, prereleases=True):
            raise RegistryNotInstalledError(f"{name} {version} is not installed" if version else f"{name} is not installed")
        try:
            self._pip("uninstall", "--yes", name)
        except CommandError as e:
            raise RegistryClientError(e.output or f"pip failed uninstalling {name}") from e
        return [InstalledPackage(name=name, version=present)]

    def _uninstall_from_target(
        self,
        name: str,
        specifier: SpecifierSet,
        version: str | None,
        all_versions: bool,
        lib_dir: Path,
    ) -> list[InstalledPackage]:
        candidates = installed_distributions(lib_dir, name)
        matching = [d for d in candidates if specifier.contains(d.version, prereleases=True)]
        if not matching:
            raise RegistryNotInstalledError(f"{name} {version} is not installed" if version else f"{name} is not installed")
        if len(matching) > 1 and not all_versions and not version:
            versions = ", ".join(d.version for d in matching)
            raise RegistryClientError(f"several versions of {name} are installed ({versions}); choose one or remove all")

        for dist in matching:
            try:
                self._remove_distribution(dist, lib_dir)
            except OSError as e:
                raise RegistryClientError(f"cannot remove {dist.name} {dist.version}: {e}") from e
        return [InstalledPackage(name=d.name, version=d.version) for d in matching]

    @staticmethod
    def _remove_distribution(dist: InstalledDistribution, target_lib_dir: Path) -> None:
        lib_dir = target_lib_dir.resolve()
        bin_dir = lib_dir / "bin"
        logger.info(f"Removing {dist.name} {dist.version} from {lib_dir}")

        touched_dirs: set[Path] = set()
        for relative in dist.recorded_files():
            path = (lib_dir / relative).resolve()
            if not path.is_relative_to(lib_dir):
                logger.warning(f"Ignoring RECORD entry outside the target: {relative}")
                continue
            if path.is_file() or path.is_symlink():
                path.unlink()
                touched_dirs.add(path.parent)

        for script in dist.console_scripts():
            for candidate in (bin_dir / script, bin_dir / f"{script}.exe"):
                if candidate.exists():
                    candidate.unlink()

        if dist.dist_info.exists():
            shutil.rmtree(dist.dist_info)

        # Drop package directories left empty, deepest first
        for directory in sorted(touched_dirs, key=lambda p: len(p.parts), reverse=True):
            while directory != lib_dir and directory.is_relative_to(lib_dir) and directory.is_dir():
                if any(directory.iterdir()):
                    break
                directory.rmdir()
                directory = directory.parent
