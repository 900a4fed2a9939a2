"""Inspection of installed ``*.dist-info`` directories in a target directory."""

from dataclasses import dataclass
from importlib.metadata import PathDistribution
from pathlib import Path

from packaging.utils import canonicalize_name


@dataclass(frozen=True)
class InstalledDistribution:
    """An installed distribution in a ``pip --target`` directory."""

    name: str
    version: str
    dist_info: Path

    @property
    def _distribution(self) -> PathDistribution:
        return PathDistribution(self.dist_info)

    @property
    def is_purelib(self) -> bool:
        """False when the wheel carried compiled extensions (``Root-Is-Purelib: false``)."""
        wheel = self._distribution.read_text("WHEEL") or ""
        for line in wheel.splitlines():
            key, _, value = line.partition(":")
            if key.strip().lower() == "root-is-purelib":
                return value.strip().lower() == "true"
        return True

    def recorded_files(self) -> list[Path]:
        """Files listed in RECORD, relative to the target directory."""
        return [Path(str(f)) for f in self._distribution.files or []]

    def console_scripts(self) -> list[str]:
        return [ep.name for ep in self._distribution.entry_points if ep.group in ("console_scripts", "gui_scripts")]


def installed_distributions(lib_dir: Path, name: str | None = None) -> list[InstalledDistribution]:
    """
    List distributions installed in ``lib_dir``.

    Args:
        lib_dir: A ``pip --target`` directory
        name: Only return distributions with this (canonicalised) name

    Returns:
        Installed distributions sorted by name and version directory
    """
    if not lib_dir.is_dir():
        return []

    wanted = canonicalize_name(name) if name else None
    found = []
    for dist_info in sorted(lib_dir.glob("*.dist-info")):
        metadata = PathDistribution(dist_info).metadata
        dist_name = metadata.get("Name") if metadata is not None else None
        dist_version = metadata.get("Version") if metadata is not None else None
        if not dist_name or not dist_version:
            continue
        if wanted is None or canonicalize_name(dist_name) == wanted:
            found.append(InstalledDistribution(name=dist_name, version=dist_version, dist_info=dist_info))
    return found
