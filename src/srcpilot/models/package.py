"""Package artifact and installation models."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class PackageArtifact(BaseModel):
    """Installable file produced by a build or found in a cache."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    file_path: Path


class InstallTarget(BaseModel):
    """
    Where packages are installed.

    ``directory`` is None for the ambient interpreter environment. Otherwise it is
    an application-local root laid out as:
        packages/lib/             - pip --target directory
        packages/lib/bin/         - console scripts
        packages/cache/           - artifact cache
    """

    model_config = ConfigDict(frozen=True)

    directory: Path | None = None

    @property
    def is_local(self) -> bool:
        return self.directory is not None

    @property
    def lib_dir(self) -> Path | None:
        return self.directory / "lib" if self.directory is not None else None

    @property
    def bin_dir(self) -> Path | None:
        return self.directory / "lib" / "bin" if self.directory is not None else None

    @property
    def cache_dir(self) -> Path | None:
        return self.directory / "cache" if self.directory is not None else None

    def describe(self) -> str:
        return str(self.directory) if self.directory is not None else "ambient environment"


class InstalledPackage(BaseModel):
    """A distribution the installer reported as installed."""

    name: str
    version: str


class InstallReport(BaseModel):
    """Result of a successful install."""

    target: InstallTarget
    installed: list[InstalledPackage] = Field(default_factory=list)
    source: str = ""  # Artifact path or requirement that was installed
    from_cache: bool = False


class ItemResult(BaseModel):
    """Outcome of one item in a batch operation."""

    name: str
    ok: bool
    detail: str = ""


class BatchReport(BaseModel):
    """Outcome of a batch operation; every item is attempted."""

    operation: str
    items: list[ItemResult] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(item.ok for item in self.items)

    @property
    def failed(self) -> list[ItemResult]:
        return [item for item in self.items if not item.ok]

    def record(self, name: str, ok: bool, detail: str = "") -> ItemResult:
        item = ItemResult(name=name, ok=ok, detail=detail)
        self.items.append(item)
        return item
