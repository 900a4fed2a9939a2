from pathlib import Path

import pytest

from srcpilot.config import ConfigManager
from srcpilot.exceptions import SrcPilotError
from srcpilot.models.config import PathsConfig


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in (
        "SRCPILOT_WORKSPACE",
        "SRCPILOT_DATA_DIR",
        "SRCPILOT_GIT_PATH",
        "SRCPILOT_PYTHON",
        "SRCPILOT_LOG_LEVEL",
        "SRCPILOT_COMMAND_TIMEOUT",
    ):
        monkeypatch.delenv(key, raising=False)


def test_defaults_without_file(tmp_path: Path) -> None:
    config = ConfigManager(tmp_path / "missing.yaml").load()

    assert config.advanced.command_timeout is None
    assert config.advanced.shallow_clone
    assert config.repositories.sources == {}
    assert config.paths.cache_dir == config.paths.data_dir / "cache"


def test_yaml_values_and_path_expansion(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(
        "paths:\n"
        "  workspace_root: ~/work\n"
        "repositories:\n"
        "  sources:\n"
        "    widget: https://example.com/acme/widget.git\n"
        "groups:\n"
        "  mine: [widget]\n"
        "advanced:\n"
        "  command_timeout: 30\n",
        encoding="utf-8",
    )

    config = ConfigManager(path).load()

    assert config.paths.workspace_root == Path.home() / "work"
    assert config.repositories.sources["widget"] == "https://example.com/acme/widget.git"
    assert config.groups == {"mine": ["widget"]}
    assert config.advanced.command_timeout == 30


def test_environment_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SRCPILOT_WORKSPACE", str(tmp_path / "ws"))
    monkeypatch.setenv("SRCPILOT_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("SRCPILOT_GIT_PATH", "/opt/git/bin/git")
    monkeypatch.setenv("SRCPILOT_LOG_LEVEL", "debug")
    monkeypatch.setenv("SRCPILOT_COMMAND_TIMEOUT", "0")

    config = ConfigManager(tmp_path / "missing.yaml").load()

    assert config.paths.workspace_root == tmp_path / "ws"
    assert config.paths.get_artifact_cache_path() == tmp_path / "data" / "cache" / "artifacts"
    assert config.tools.git.type == "custom"
    assert config.tools.git.custom_path == "/opt/git/bin/git"
    assert config.advanced.log_level == "DEBUG"
    assert config.advanced.command_timeout is None


def test_invalid_timeout_variable(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SRCPILOT_COMMAND_TIMEOUT", "soon")

    with pytest.raises(SrcPilotError, match="SRCPILOT_COMMAND_TIMEOUT"):
        ConfigManager(tmp_path / "missing.yaml").load()


@pytest.mark.parametrize("content", ["paths: [unclosed\n", "advanced:\n  log_level: LOUD\n", "- a list\n"])
def test_invalid_file(tmp_path: Path, content: str) -> None:
    path = tmp_path / "config.yaml"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(SrcPilotError, match="invalid configuration"):
        ConfigManager(path).load()


def test_artifact_cache_path_without_cache_dir(tmp_path: Path) -> None:
    paths = PathsConfig(data_dir=tmp_path / "data")
    paths.cache_dir = None

    assert paths.get_artifact_cache_path() == tmp_path / "data" / "cache" / "artifacts"
