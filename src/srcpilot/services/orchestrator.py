"""Compose synchronization, build and install into user-level operations."""

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from srcpilot.exceptions import NotInstalledError, SourcePathMissingError, SrcPilotError
from srcpilot.logger import get_logger
from srcpilot.models.package import BatchReport, InstalledPackage, InstallReport, InstallTarget, PackageArtifact
from srcpilot.models.repository import LocalClone
from srcpilot.services.build import PackageBuilder
from srcpilot.services.build.builder import AGGREGATION_DIR
from srcpilot.services.git import RepositorySynchronizer
from srcpilot.services.packages import NativeRedeployer, PackageInstaller, PackageUninstaller
from srcpilot.services.registry import RepositoryRegistry

if TYPE_CHECKING:
    from srcpilot.workspace import Workspace

logger = get_logger(__name__)


class OperationKind(str, Enum):
    CLONE = "clone"
    UPDATE = "update"
    BUILD = "build"
    INSTALL = "install"
    UNINSTALL = "uninstall"
    REFRESH = "refresh"
    WIPE = "wipe"


@dataclass(frozen=True)
class CommandSpec:
    """A named shortcut applying one operation to a fixed list of packages."""

    name: str
    packages: tuple[str, ...]
    kind: OperationKind


PACKAGE_GROUPS: dict[str, tuple[str, ...]] = {
    "packaging": ("packaging", "build"),
    "config": ("pydantic", "pyyaml"),
    "logging": ("structlog",),
    "http": ("requests",),
}

COMMAND_TABLE: tuple[CommandSpec, ...] = (
    CommandSpec("clone-packaging", PACKAGE_GROUPS["packaging"], OperationKind.CLONE),
    CommandSpec("update-packaging", PACKAGE_GROUPS["packaging"], OperationKind.UPDATE),
    CommandSpec("install-packaging", PACKAGE_GROUPS["packaging"], OperationKind.INSTALL),
    CommandSpec("refresh-packaging", PACKAGE_GROUPS["packaging"], OperationKind.REFRESH),
    CommandSpec("clone-config", PACKAGE_GROUPS["config"], OperationKind.CLONE),
    CommandSpec("update-config", PACKAGE_GROUPS["config"], OperationKind.UPDATE),
    CommandSpec("install-config", PACKAGE_GROUPS["config"], OperationKind.INSTALL),
    CommandSpec("refresh-config", PACKAGE_GROUPS["config"], OperationKind.REFRESH),
    CommandSpec("install-logging", PACKAGE_GROUPS["logging"], OperationKind.INSTALL),
    CommandSpec("refresh-logging", PACKAGE_GROUPS["logging"], OperationKind.REFRESH),
    CommandSpec("install-http", PACKAGE_GROUPS["http"], OperationKind.INSTALL),
    CommandSpec("wipe-http", PACKAGE_GROUPS["http"], OperationKind.WIPE),
)


def command_table(groups: Mapping[str, list[str]] | None = None) -> dict[str, CommandSpec]:
    """
    Shortcut commands by name.

    Each configured group adds ``<kind>-<group>`` entries for clone, update,
    install and refresh; configured entries replace built-in ones of the same name.
    """
    table = {spec.name: spec for spec in COMMAND_TABLE}
    for group, packages in (groups or {}).items():
        for kind in (OperationKind.CLONE, OperationKind.UPDATE, OperationKind.INSTALL, OperationKind.REFRESH):
            name = f"{kind.value}-{group}"
            table[name] = CommandSpec(name, tuple(packages), kind)
    return table


class Orchestrator:
    """Runs user commands against one workspace and install target."""

    def __init__(
        self,
        workspace: "Workspace",
        registry: RepositoryRegistry,
        synchronizer: RepositorySynchronizer,
        builder: PackageBuilder,
        installer: PackageInstaller,
        uninstaller: PackageUninstaller,
        redeployer: NativeRedeployer,
        install_root: Path | None = None,
        groups: Mapping[str, list[str]] | None = None,
    ) -> None:
        self.workspace = workspace
        self.registry = registry
        self.synchronizer = synchronizer
        self.builder = builder
        self.installer = installer
        self.uninstaller = uninstaller
        self.redeployer = redeployer
        self.install_root = install_root
        self.commands = command_table(groups)

    @property
    def target(self) -> InstallTarget:
        return self.workspace.install_target(self.install_root)

    # Repositories

    def clone(self, name: str) -> LocalClone:
        """Clone ``name`` (a registered package or a remote URL), or sync it if already cloned."""
        descriptor = self.registry.resolve(name)
        return self.synchronizer.sync(descriptor.url, self.workspace.src_dir)

    def update(self, name: str) -> LocalClone:
        """Sync the clone of ``name`` with its registered remote, or with the given URL."""
        return self.clone(name)

    def update_all(self) -> BatchReport:
        """Re-sync every local clone; a failing clone does not stop the others."""
        report = BatchReport(operation="update")
        for path in self.workspace.clones():
            try:
                clone = self.synchronizer.refresh(path)
            except SrcPilotError as e:
                logger.error(f"Update of {path.name} failed: {e}")
                report.record(path.name, False, str(e))
                continue
            report.record(path.name, True, f"on {clone.current_branch}")
        return report

    # Building

    def source_tree(self, name: str) -> Path:
        """
        Raises:
            SourcePathMissingError: If ``src/<name>`` does not exist
        """
        tree = self.workspace.source_tree(name)
        if not tree.is_dir():
            raise SourcePathMissingError(name, tree)
        return tree

    def build(self, name: str) -> PackageArtifact:
        return self.builder.build(self.source_tree(name))

    def build_all(self) -> BatchReport:
        report = BatchReport(operation="build")
        for tree in self.workspace.source_trees():
            try:
                artifact = self.builder.build(tree)
            except SrcPilotError as e:
                logger.error(f"Build of {tree.name} failed: {e}")
                report.record(tree.name, False, str(e))
                continue
            report.record(tree.name, True, artifact.file_path.name)
        return report

    # Installing

    def install_from_source(self, name: str, force: bool = False) -> InstallReport:
        """Build ``src/<name>`` and install the artifact; nothing is installed if the build fails."""
        tree = self.source_tree(name)
        target = self.target
        artifact = self.builder.build(tree)
        return self.installer.install_artifact(artifact, target, find_links=[tree / AGGREGATION_DIR], force=force)

    def install(
        self,
        name: str,
        version: str | None = None,
        from_source: bool = False,
        force: bool = False,
    ) -> InstallReport:
        if from_source:
            return self.install_from_source(name, force=force)
        return self.installer.install(name, version, self.target, force=force)

    def uninstall(self, name: str, version: str | None = None, all_versions: bool = False) -> list[InstalledPackage]:
        return self.uninstaller.uninstall(name, version, all_versions, self.target)

    def refresh(self, name: str, version: str | None = None) -> InstallReport:
        """
        Uninstall then reinstall ``name``.

        A package that was not installed is simply installed. When ``src/<name>``
        exists it is built before anything is removed, so a failed build leaves
        the installed copy in place. Otherwise the package is fetched by name.
        """
        target = self.target
        tree = self.workspace.source_tree(name)
        artifact = self.builder.build(tree) if tree.is_dir() else None

        try:
            self.uninstaller.uninstall(name, None, True, target)
        except NotInstalledError:
            logger.info(f"{name} was not installed, installing")

        if artifact is not None:
            return self.installer.install_artifact(artifact, target, find_links=[tree / AGGREGATION_DIR])
        return self.installer.install(name, version, target)

    def refresh_all(self, names: Iterable[str] | None = None) -> BatchReport:
        """Refresh each package (default: every local clone), reporting every outcome."""
        if names is None:
            names = [path.name for path in self.workspace.clones()]
        return self.run_batch(OperationKind.REFRESH, names)

    def wipe(self, names: Iterable[str]) -> BatchReport:
        """Remove every installed version of each package. Local clones are kept."""
        return self.run_batch(OperationKind.WIPE, names)

    def redeploy(self) -> BatchReport:
        return self.redeployer.redeploy(self.target)

    # Shortcuts

    def run_shortcut(self, command_name: str) -> BatchReport:
        """
        Run a command from the shortcut table.

        Raises:
            SrcPilotError: If no shortcut has this name
        """
        spec = self.commands.get(command_name)
        if spec is None:
            raise SrcPilotError("unknown command: {command}", command=command_name)
        return self.run_batch(spec.kind, spec.packages, operation=spec.name)

    def run_batch(self, kind: OperationKind, names: Iterable[str], operation: str | None = None) -> BatchReport:
        handler = self._handlers()[kind]
        report = BatchReport(operation=operation or kind.value)
        for name in names:
            try:
                detail = handler(name)
            except SrcPilotError as e:
                logger.error(f"{kind.value} of {name} failed: {e}")
                report.record(name, False, str(e))
                continue
            report.record(name, True, detail)
        return report

    def _handlers(self) -> dict[OperationKind, Callable[[str], str]]:
        return {
            OperationKind.CLONE: lambda name: f"on {self.clone(name).current_branch}",
            OperationKind.UPDATE: lambda name: f"on {self.update(name).current_branch}",
            OperationKind.BUILD: lambda name: self.build(name).file_path.name,
            OperationKind.INSTALL: lambda name: _describe_install(self.install(name)),
            OperationKind.UNINSTALL: lambda name: _describe_removed(self.uninstall(name)),
            OperationKind.REFRESH: lambda name: _describe_install(self.refresh(name)),
            OperationKind.WIPE: self._wipe_one,
        }

    def _wipe_one(self, name: str) -> str:
        try:
            return _describe_removed(self.uninstaller.uninstall(name, None, True, self.target))
        except NotInstalledError:
            return "not installed"


def _describe_install(report: InstallReport) -> str:
    return ", ".join(f"{p.name} {p.version}" for p in report.installed)


def _describe_removed(removed: list[InstalledPackage]) -> str:
    return "removed " + ", ".join(f"{p.name} {p.version}" for p in removed)
