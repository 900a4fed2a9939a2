"""Repository registry service.

Maps logical package names to canonical remote URLs. The built-in defaults are
overridden by the configuration and by an optional external mapping file.
"""

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType

import yaml

from srcpilot.exceptions import SrcPilotError, SyncError
from srcpilot.logger import get_logger
from srcpilot.models.config import RepositoriesConfig
from srcpilot.models.repository import RemoteUrl, RepositoryDescriptor

logger = get_logger(__name__)

DEFAULT_REPOSITORIES: dict[str, str] = {
    "attrs": "https://github.com/python-attrs/attrs.git",
    "build": "https://github.com/pypa/build.git",
    "click": "https://github.com/pallets/click.git",
    "packaging": "https://github.com/pypa/packaging.git",
    "pydantic": "https://github.com/pydantic/pydantic.git",
    "pyyaml": "https://github.com/yaml/pyyaml.git",
    "requests": "https://github.com/psf/requests.git",
    "structlog": "https://github.com/hynek/structlog.git",
}


class RepositoryRegistry:
    """Read-only mapping of package name to repository descriptor."""

    def __init__(self, sources: Mapping[str, str] | None = None) -> None:
        """
        Initialize the registry.

        Args:
            sources: Name -> URL mapping; defaults to ``DEFAULT_REPOSITORIES``

        Raises:
            SrcPilotError: If a URL is not a recognised git remote
        """
        entries: dict[str, RepositoryDescriptor] = {}
        for name, url in (DEFAULT_REPOSITORIES if sources is None else sources).items():
            try:
                RemoteUrl.parse(url)
            except ValueError as e:
                raise SrcPilotError("invalid remote URL for {name}: {error}", name=name, error=str(e)) from e
            entries[name] = RepositoryDescriptor(name=name, url=url)
        self._entries = MappingProxyType(entries)

    @classmethod
    def from_config(cls, config: RepositoriesConfig) -> "RepositoryRegistry":
        """Build the registry from defaults, config sources and the optional mapping file."""
        registry = cls().merge(config.sources)
        if config.registry_file is not None:
            registry = registry.merge(load_mapping_file(config.registry_file))
        return registry

    def merge(self, overrides: Mapping[str, str]) -> "RepositoryRegistry":
        """
        Return a new registry with ``overrides`` applied on top of this one.

        Args:
            overrides: Name -> URL entries that replace or extend the current ones
        """
        merged = {name: entry.url for name, entry in self._entries.items()}
        for name, url in overrides.items():
            if name in merged and merged[name] != url:
                logger.debug(f"Overriding repository {name}: {merged[name]} -> {url}")
            merged[name] = url
        return RepositoryRegistry(merged)

    def resolve(self, name_or_url: str) -> RepositoryDescriptor:
        """
        Resolve a logical name or a literal remote URL.

        Raises:
            SyncError: If the name is unknown and is not a URL either
        """
        entry = self._entries.get(name_or_url)
        if entry is not None:
            return entry
        if "/" in name_or_url or ":" in name_or_url:
            try:
                remote = RemoteUrl.parse(name_or_url)
            except ValueError as e:
                raise SyncError(name_or_url, str(e)) from e
            return RepositoryDescriptor(name=remote.local_name, url=name_or_url)
        raise SyncError(name_or_url, "no remote URL registered for this package")

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)


def load_mapping_file(path: Path) -> dict[str, str]:
    """
    Load a YAML file mapping package names to URLs.

    Raises:
        SrcPilotError: If the file is missing or is not a flat string mapping
    """
    if not path.exists():
        raise SrcPilotError("repository mapping file not found: {path}", path=path)
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict) or not all(isinstance(k, str) and isinstance(v, str) for k, v in data.items()):
        raise SrcPilotError("repository mapping file must map names to URLs: {path}", path=path)
    return data
