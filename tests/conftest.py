import shutil
import subprocess
from collections.abc import Iterator
from pathlib import Path

import pytest
import structlog

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    yield
    structlog.reset_defaults()


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(["git", *args], cwd=cwd, check=True, capture_output=True, text=True)
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str) -> None:
    (repo / name).write_text(content, encoding="utf-8")
    git(repo, "add", name)
    git(repo, "commit", "-q", "-m", f"add {name}")


@pytest.fixture
def git_identity(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("GIT_AUTHOR_NAME", "GIT_COMMITTER_NAME"):
        monkeypatch.setenv(key, "Test User")
    for key in ("GIT_AUTHOR_EMAIL", "GIT_COMMITTER_EMAIL"):
        monkeypatch.setenv(key, "test@example.com")


@pytest.fixture
def upstream(tmp_path: Path, git_identity: None) -> Path:
    """A canonical repository at <tmp>/remotes/acme/widget with one commit on main."""
    repo = tmp_path / "remotes" / "acme" / "widget"
    repo.mkdir(parents=True)
    git(repo, "-c", "init.defaultBranch=main", "init", "-q")
    commit_file(repo, "README.md", "widget\n")
    return repo


@pytest.fixture
def fork(tmp_path: Path, upstream: Path) -> Path:
    """A fork of ``upstream`` owned by alice, one commit ahead."""
    owner_dir = tmp_path / "remotes" / "alice"
    owner_dir.mkdir(parents=True)
    git(owner_dir, "clone", "-q", str(upstream), "widget")
    repo = owner_dir / "widget"
    commit_file(repo, "FORK.md", "alice was here\n")
    return repo


def write_project(tree: Path, name: str, version: str = "1.0.0") -> Path:
    tree.mkdir(parents=True, exist_ok=True)
    (tree / "pyproject.toml").write_text(
        f'[project]\nname = "{name}"\nversion = "{version}"\n',
        encoding="utf-8",
    )
    return tree


def write_dist_info(
    lib_dir: Path,
    name: str,
    version: str,
    purelib: bool = True,
    scripts: tuple[str, ...] = (),
) -> Path:
    """Lay out an installed distribution the way ``pip install --target`` does."""
    package_dir = lib_dir / name
    package_dir.mkdir(parents=True, exist_ok=True)
    (package_dir / "__init__.py").write_text(f"__version__ = '{version}'\n", encoding="utf-8")

    dist_info = lib_dir / f"{name}-{version}.dist-info"
    dist_info.mkdir(parents=True)
    (dist_info / "METADATA").write_text(
        f"Metadata-Version: 2.1\nName: {name}\nVersion: {version}\n", encoding="utf-8"
    )
    (dist_info / "WHEEL").write_text(
        f"Wheel-Version: 1.0\nRoot-Is-Purelib: {'true' if purelib else 'false'}\n", encoding="utf-8"
    )

    records = [f"{name}/__init__.py,,", f"{dist_info.name}/METADATA,,", f"{dist_info.name}/WHEEL,,"]
    if scripts:
        bin_dir = lib_dir / "bin"
        bin_dir.mkdir(exist_ok=True)
        lines = ["[console_scripts]"] + [f"{s} = {name}:main" for s in scripts]
        (dist_info / "entry_points.txt").write_text("\n".join(lines) + "\n", encoding="utf-8")
        records.append(f"{dist_info.name}/entry_points.txt,,")
        for script in scripts:
            (bin_dir / script).write_text("#!/bin/sh\n", encoding="utf-8")
            records.append(f"bin/{script},,")
    records.append(f"{dist_info.name}/RECORD,,")
    (dist_info / "RECORD").write_text("\n".join(records) + "\n", encoding="utf-8")
    return dist_info


def touch_wheel(directory: Path, name: str, version: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name.replace('-', '_')}-{version}-py3-none-any.whl"
    path.write_bytes(b"wheel")
    return path
