"""Bring local clones in sync with canonical or forked remotes."""

from pathlib import Path

from srcpilot.exceptions import SyncError
from srcpilot.logger import get_logger
from srcpilot.models.repository import LocalClone, RemoteRelationship, RemoteUrl, same_remote

from .service import GitCommandError, GitService

logger = get_logger(__name__)

ORIGIN = "origin"


def classify_remote(remotes: dict[str, str], url: str) -> tuple[RemoteRelationship, str | None]:
    """
    Classify ``url`` against the remotes of an existing clone.

    Args:
        remotes: Remote name -> URL of the clone
        url: URL being synchronized

    Returns:
        Tuple of (relationship, name of the matching remote or None)
    """
    origin_url = remotes.get(ORIGIN)
    if origin_url is not None and same_remote(origin_url, url):
        return RemoteRelationship.ORIGIN, ORIGIN

    for name in sorted(remotes):
        if name != ORIGIN and same_remote(remotes[name], url):
            return RemoteRelationship.KNOWN_FORK, name

    return RemoteRelationship.UNKNOWN_FORK, None


class RepositorySynchronizer:
    """Clones, rebases or switches to fork-tracking branches."""

    def __init__(self, git: GitService, shallow: bool = True) -> None:
        self.git = git
        self.shallow = shallow

    def sync(self, remote_url: str, workspace_root: Path) -> LocalClone:
        """
        Bring ``workspace_root/<repo>`` in sync with ``remote_url``.

        A missing clone is created. For an existing clone the URL is classified
        against its remotes: the origin's default branch is rebased, a fork is
        tracked on a local branch named after the fork owner.

        Args:
            remote_url: Canonical or fork URL
            workspace_root: Directory holding the clones

        Returns:
            State of the clone after synchronization

        Raises:
            SyncError: If the URL is not a git remote or any git command fails
        """
        try:
            remote = RemoteUrl.parse(remote_url)
        except ValueError as e:
            raise SyncError(remote_url, str(e)) from e

        name = remote.local_name
        local_path = workspace_root / name

        try:
            if not local_path.exists():
                self.git.clone(remote_url, workspace_root, name, shallow=self.shallow)
            elif not self.git.is_repository(local_path):
                raise SyncError(name, f"{local_path} exists but is not a git repository")
            else:
                relationship, remote_name = classify_remote(self.git.remotes(local_path), remote_url)
                logger.info(f"Syncing {name}", relationship=relationship.value, url=remote_url)

                if relationship is RemoteRelationship.ORIGIN:
                    self._rebase_default_branch(local_path)
                elif relationship is RemoteRelationship.KNOWN_FORK and remote_name is not None:
                    self.git.fetch(local_path, remote_name)
                    self._track_fork(local_path, remote_name, remote.fork_id)
                else:
                    self.git.remote_add(local_path, remote.fork_id, remote_url)
                    self.git.fetch(local_path, remote.fork_id)
                    self._track_fork(local_path, remote.fork_id, remote.fork_id)

            return self._describe(name, local_path)
        except GitCommandError as e:
            raise SyncError(name, str(e)) from e

    def refresh(self, local_path: Path) -> LocalClone:
        """
        Re-sync an existing clone against whatever it currently tracks.

        A clone sitting on a branch named after one of its fork remotes is
        synced against that fork, any other branch against origin.

        Raises:
            SyncError: If HEAD is detached, origin is missing or git fails
        """
        name = local_path.name
        try:
            remotes = self.git.remotes(local_path)
            branch = self.git.current_branch(local_path)
        except GitCommandError as e:
            raise SyncError(name, str(e)) from e

        if branch is None:
            raise SyncError(name, "HEAD is detached; check out a branch before updating")

        if branch != ORIGIN and branch in remotes:
            return self.sync(remotes[branch], local_path.parent)
        if ORIGIN not in remotes:
            raise SyncError(name, "clone has no origin remote")
        return self.sync(remotes[ORIGIN], local_path.parent)

    def _rebase_default_branch(self, local_path: Path) -> None:
        self.git.fetch(local_path, ORIGIN)
        default = self.git.default_branch(local_path, ORIGIN)
        upstream = f"{ORIGIN}/{default}"
        if self.git.branch_exists(local_path, default):
            self.git.checkout(local_path, default)
        else:
            self.git.checkout(local_path, default, create=True, upstream=upstream)
        self.git.rebase(local_path, upstream)

    def _track_fork(self, local_path: Path, remote_name: str, fork_id: str) -> None:
        default = self.git.default_branch(local_path, remote_name)
        upstream = f"{remote_name}/{default}"
        if self.git.branch_exists(local_path, fork_id):
            self.git.checkout(local_path, fork_id)
        else:
            self.git.checkout(local_path, fork_id, create=True, upstream=upstream)
        self.git.rebase(local_path, upstream)

    def _describe(self, name: str, local_path: Path) -> LocalClone:
        branch = self.git.current_branch(local_path)
        if branch is None:
            raise SyncError(name, "HEAD is detached after sync")
        return LocalClone(path=local_path, remotes=self.git.remotes(local_path), current_branch=branch)
