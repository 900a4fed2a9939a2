"""Workspace layout and per-invocation context."""

from dataclasses import dataclass
from pathlib import Path

from srcpilot.exceptions import TargetPathMissingError
from srcpilot.models.config import AppConfig
from srcpilot.models.package import InstallTarget
from srcpilot.services.build import BuildTool, PackageBuilder
from srcpilot.services.git import GitService, GitToolManager, RepositorySynchronizer
from srcpilot.services.orchestrator import Orchestrator
from srcpilot.services.packages import NativeRedeployer, PackageInstaller, PackageUninstaller, RegistryClient
from srcpilot.services.registry import RepositoryRegistry


@dataclass(frozen=True)
class Workspace:
    """
    Directory layout rooted at ``root``.

    Directory structure:
        root/src/<name>/          - source trees (git clones)
        root/src/<name>/pkg/      - sub-package artifacts embedded in the build
        root/packages/            - application-local install target, when present
    """

    root: Path

    @property
    def src_dir(self) -> Path:
        return self.root / "src"

    @property
    def local_target_dir(self) -> Path:
        return self.root / "packages"

    def source_tree(self, name: str) -> Path:
        return self.src_dir / name

    def clones(self) -> list[Path]:
        """Source trees under ``src`` that are git clones, sorted by name."""
        if not self.src_dir.is_dir():
            return []
        return [p for p in sorted(self.src_dir.iterdir()) if p.is_dir() and (p / ".git").exists()]

    def source_trees(self) -> list[Path]:
        """Source trees under ``src`` that carry a pyproject.toml, sorted by name."""
        if not self.src_dir.is_dir():
            return []
        return [p for p in sorted(self.src_dir.iterdir()) if (p / "pyproject.toml").is_file()]

    def install_target(self, override: Path | None = None) -> InstallTarget:
        """
        Select the install target.

        An explicit ``override`` must already exist. Without one, ``root/packages``
        is used when it exists, otherwise the ambient environment.

        Raises:
            TargetPathMissingError: If ``override`` is not an existing directory
        """
        if override is not None:
            if not override.is_dir():
                raise TargetPathMissingError(override)
            return InstallTarget(directory=override)
        if self.local_target_dir.is_dir():
            return InstallTarget(directory=self.local_target_dir)
        return InstallTarget()


@dataclass
class AppContext:
    """Everything one invocation needs, built once from the configuration."""

    config: AppConfig
    workspace: Workspace
    registry: RepositoryRegistry
    orchestrator: Orchestrator

    @classmethod
    def create(cls, config: AppConfig, install_root: Path | None = None) -> "AppContext":
        timeout = config.advanced.command_timeout
        workspace = Workspace(config.paths.workspace_root)
        registry = RepositoryRegistry.from_config(config.repositories)

        git = GitService(GitToolManager(config.tools).get_git_executable(), timeout=timeout)
        client = RegistryClient(config.tools.python, timeout=timeout)

        orchestrator = Orchestrator(
            workspace=workspace,
            registry=registry,
            synchronizer=RepositorySynchronizer(git, shallow=config.advanced.shallow_clone),
            builder=PackageBuilder(BuildTool(config.tools.python, timeout=timeout)),
            installer=PackageInstaller(client, config.paths.get_artifact_cache_path()),
            uninstaller=PackageUninstaller(client),
            redeployer=NativeRedeployer(client),
            install_root=install_root,
            groups=config.groups,
        )
        return cls(config=config, workspace=workspace, registry=registry, orchestrator=orchestrator)
