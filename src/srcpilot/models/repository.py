"""Repository related models."""

import re
from enum import Enum
from pathlib import Path, PurePosixPath
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

# user@host:owner/repo.git
_SCP_LIKE = re.compile(r"^(?:(?P<user>[\w.\-]+)@)?(?P<host>[\w.\-]+):(?!//)(?P<path>.+)$")
_SCHEMES = {"http", "https", "ssh", "git", "git+ssh", "ssh+git", "file"}


class RemoteUrl(BaseModel):
    """Structured form of a git remote URL."""

    model_config = ConfigDict(frozen=True)

    host: str
    owner: str
    repo_slug: str
    path: str  # Every path segment, lower-cased, without ".git"

    @classmethod
    def parse(cls, url: str) -> "RemoteUrl":
        """
        Parse a remote URL into host, owner and repository slug.

        Accepted shapes:
            https://github.com/owner/repo.git
            ssh://git@github.com:22/owner/repo
            git@github.com:owner/repo.git
            file:///srv/git/owner/repo.git
            /srv/git/owner/repo.git

        Args:
            url: Remote URL as passed to git

        Returns:
            Parsed URL

        Raises:
            ValueError: If the URL does not look like a git remote
        """
        raw = url.strip()
        if not raw:
            raise ValueError("empty remote URL")

        if "://" in raw:
            parts = urlsplit(raw)
            if parts.scheme.lower() not in _SCHEMES:
                raise ValueError(f"unsupported URL scheme: {parts.scheme}")
            host = (parts.hostname or "").lower()
            segments = [s for s in parts.path.split("/") if s]
            if host and len(segments) < 2:
                raise ValueError(f"remote URL has no owner segment: {url}")
            return cls._from_segments(host, segments, url)

        match = _SCP_LIKE.match(raw)
        # A single letter host is a Windows drive ("C:\...")
        if match and len(match.group("host")) > 1:
            segments = [s for s in match.group("path").split("/") if s]
            if len(segments) < 2:
                raise ValueError(f"remote URL has no owner segment: {url}")
            return cls._from_segments(match.group("host").lower(), segments, url)

        segments = [s for s in PurePosixPath(raw.replace("\\", "/")).parts if s not in ("/", "")]
        return cls._from_segments("", segments, url)

    @classmethod
    def _from_segments(cls, host: str, segments: list[str], url: str) -> "RemoteUrl":
        if not segments:
            raise ValueError(f"remote URL has no repository segment: {url}")
        slug = segments[-1]
        if slug.endswith(".git"):
            slug = slug[: -len(".git")]
        if not slug:
            raise ValueError(f"remote URL has no repository segment: {url}")
        owner = segments[-2] if len(segments) > 1 else ""
        path = "/".join([*segments[:-1], slug]).lower()
        return cls(host=host, owner=owner, repo_slug=slug, path=path)

    @property
    def local_name(self) -> str:
        """Directory name used for the local clone."""
        return self.repo_slug

    @property
    def fork_id(self) -> str:
        """Remote and branch name used when the URL is tracked as a fork."""
        return self.owner or self.repo_slug

    @property
    def key(self) -> tuple[str, str]:
        return (self.host, self.path)


def same_remote(left: str, right: str) -> bool:
    """Return True if two remote URLs point at the same repository."""
    if left.strip() == right.strip():
        return True
    try:
        return RemoteUrl.parse(left).key == RemoteUrl.parse(right).key
    except ValueError:
        return False


class RepositoryDescriptor(BaseModel):
    """Logical package name mapped to its canonical remote."""

    model_config = ConfigDict(frozen=True)

    name: str
    url: str


class RemoteRelationship(str, Enum):
    """How a URL relates to the remotes of an existing clone."""

    ORIGIN = "origin"
    KNOWN_FORK = "known_fork"
    UNKNOWN_FORK = "unknown_fork"


class LocalClone(BaseModel):
    """State of a local clone after synchronization."""

    path: Path
    remotes: dict[str, str]
    current_branch: str
