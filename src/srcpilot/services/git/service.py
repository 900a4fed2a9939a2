"""Git repository service."""

import subprocess
from pathlib import Path

from srcpilot.logger import get_logger
from srcpilot.utils.subprocess_executor import CommandError, SubprocessExecutor, format_output

logger = get_logger(__name__)


class GitCommandError(Exception):
    """A git invocation failed."""

    def __init__(self, args: tuple[str, ...], output: str, returncode: int | None = None) -> None:
        self.args_ = args
        self.output = output
        self.returncode = returncode
        command = " ".join(("git", *args))
        super().__init__(f"`{command}` failed: {output}" if output else f"`{command}` failed")


class GitService:
    """Thin wrapper over the git executable.

    Every method takes the repository directory explicitly and runs git with
    that directory as the child's working directory.
    """

    def __init__(self, git_executable: str = "git", timeout: float | None = None) -> None:
        self.git_executable = git_executable
        self.timeout = timeout

    def _run(self, *args: str, cwd: Path, check: bool = True) -> subprocess.CompletedProcess[bytes]:
        try:
            return SubprocessExecutor.run_sync(self.git_executable, *args, cwd=cwd, check=check, timeout=self.timeout)
        except CommandError as e:
            raise GitCommandError(args, e.output, e.returncode) from e

    def _output(self, *args: str, cwd: Path) -> str:
        result = self._run(*args, cwd=cwd)
        return result.stdout.decode("utf-8", errors="replace").strip() if result.stdout else ""

    @staticmethod
    def is_repository(path: Path) -> bool:
        return (path / ".git").exists()

    def clone(self, url: str, parent_dir: Path, name: str, shallow: bool = True) -> Path:
        """
        Clone ``url`` into ``parent_dir/name``.

        Args:
            url: Remote URL
            parent_dir: Directory the clone is created in
            name: Directory name of the clone
            shallow: Clone only the latest commit (--depth 1)

        Returns:
            Path of the new clone
        """
        parent_dir.mkdir(parents=True, exist_ok=True)
        cmd = ["clone"]
        if shallow:
            cmd += ["--depth", "1"]
        cmd += [url, name]
        logger.info(f"Cloning {url} into {parent_dir / name}")
        self._run(*cmd, cwd=parent_dir)
        return parent_dir / name

    def fetch(self, repo_dir: Path, remote: str) -> None:
        self._run("fetch", remote, cwd=repo_dir)

    def checkout(self, repo_dir: Path, branch: str, create: bool = False, upstream: str | None = None) -> None:
        """
        Checkout a local branch, optionally creating it.

        Args:
            repo_dir: Repository directory
            branch: Local branch name
            create: Create the branch instead of switching to an existing one
            upstream: Remote-tracking ref the new branch starts from and tracks
        """
        if create:
            cmd = ["checkout", "-b", branch]
            if upstream:
                cmd += ["--track", upstream]
            self._run(*cmd, cwd=repo_dir)
        else:
            self._run("checkout", branch, cwd=repo_dir)

    def rebase(self, repo_dir: Path, upstream: str) -> None:
        self._run("rebase", upstream, cwd=repo_dir)

    def remote_add(self, repo_dir: Path, name: str, url: str) -> None:
        self._run("remote", "add", name, url, cwd=repo_dir)

    def remotes(self, repo_dir: Path) -> dict[str, str]:
        """
        List configured remotes.

        Returns:
            Mapping of remote name to fetch URL
        """
        result = self._run("config", "--get-regexp", r"^remote\..*\.url$", cwd=repo_dir, check=False)
        # Exit code 1 means no remote is configured
        if result.returncode not in (0, 1):
            raise GitCommandError(("config", "--get-regexp"), format_output(result), result.returncode)

        remotes: dict[str, str] = {}
        output = result.stdout.decode("utf-8", errors="replace") if result.stdout else ""
        for line in output.splitlines():
            key, _, url = line.strip().partition(" ")
            if key.startswith("remote.") and key.endswith(".url") and url:
                remotes[key[len("remote.") : -len(".url")]] = url.strip()
        return remotes

    def current_branch(self, repo_dir: Path) -> str | None:
        """
        Get the checked out branch.

        Returns:
            Branch name, or None if HEAD is detached
        """
        result = self._run("symbolic-ref", "--quiet", "--short", "HEAD", cwd=repo_dir, check=False)
        if result.returncode == 0 and result.stdout:
            return result.stdout.decode().strip()
        if result.returncode == 1:
            return None
        raise GitCommandError(("symbolic-ref", "HEAD"), format_output(result), result.returncode)

    def branch_exists(self, repo_dir: Path, branch: str) -> bool:
        """Check if a local branch exists."""
        result = self._run("show-ref", "--verify", "--quiet", f"refs/heads/{branch}", cwd=repo_dir, check=False)
        return result.returncode == 0

    def default_branch(self, repo_dir: Path, remote: str) -> str:
        """
        Get the default branch of a remote (the target of ``<remote>/HEAD``).

        Queries the remote with ``git remote set-head --auto`` when the local
        symbolic ref is missing, which is the case right after adding a remote.
        """
        ref = f"refs/remotes/{remote}/HEAD"
        result = self._run("symbolic-ref", "--quiet", "--short", ref, cwd=repo_dir, check=False)
        if result.returncode != 0:
            self._run("remote", "set-head", remote, "--auto", cwd=repo_dir)
            result = self._run("symbolic-ref", "--quiet", "--short", ref, cwd=repo_dir, check=False)
            if result.returncode != 0:
                raise GitCommandError(("symbolic-ref", ref), format_output(result), result.returncode)

        target = result.stdout.decode().strip()
        prefix = f"{remote}/"
        return target[len(prefix) :] if target.startswith(prefix) else target
