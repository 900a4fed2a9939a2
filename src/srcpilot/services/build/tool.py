"""Build tool wrapper around PyPA ``build``."""

import os
import shutil
from pathlib import Path

from srcpilot.logger import get_logger
from srcpilot.utils.subprocess_executor import CommandError, SubprocessExecutor

logger = get_logger(__name__)


class BuildToolError(Exception):
    """The build tool exited with an error."""


class BuildTool:
    """Runs ``python -m build`` for a source tree.

    Artifacts are written to ``<tree>/dist``.
    """

    OUTPUT_DIR = "dist"

    def __init__(self, python: str, timeout: float | None = None) -> None:
        self.python = python
        self.timeout = timeout

    def output_dir(self, tree: Path) -> Path:
        return tree / self.OUTPUT_DIR

    def clean(self, tree: Path) -> None:
        """Remove artifacts and intermediate files left by a previous build."""
        stale = [tree / self.OUTPUT_DIR, tree / "build"]
        stale += list(tree.glob("*.egg-info")) + list(tree.glob("src/*.egg-info"))
        for path in stale:
            if path.is_dir():
                logger.debug(f"Removing {path}")
                shutil.rmtree(path)

    def package(self, tree: Path, find_links: Path | None = None) -> Path:
        """
        Build wheel and sdist for ``tree``.

        Args:
            tree: Directory containing pyproject.toml
            find_links: Directory of pre-built dependencies made visible to the
                build's package resolution

        Returns:
            Directory holding the produced artifacts

        Raises:
            BuildToolError: If the build fails or times out
        """
        env = dict(os.environ)
        if find_links is not None:
            env["PIP_FIND_LINKS"] = str(find_links)

        output_dir = self.output_dir(tree)
        try:
            SubprocessExecutor.run_sync(
                self.python,
                "-m",
                "build",
                "--outdir",
                str(output_dir),
                str(tree),
                cwd=tree,
                env=env,
                check=True,
                timeout=self.timeout,
            )
        except CommandError as e:
            raise BuildToolError(e.output or f"build exited with code {e.returncode}") from e
        return output_dir
