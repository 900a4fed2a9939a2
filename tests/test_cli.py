from pathlib import Path

import pytest

from srcpilot.main import main


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for key in ("SRCPILOT_WORKSPACE", "SRCPILOT_GIT_PATH", "SRCPILOT_PYTHON", "SRCPILOT_COMMAND_TIMEOUT"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("SRCPILOT_DATA_DIR", str(tmp_path / "data"))
    root = tmp_path / "work"
    root.mkdir()
    return root


def run(workspace: Path, *args: str) -> int:
    config = workspace.parent / "config.yaml"
    return main(["--config", str(config), "--workspace", str(workspace), *args])


def test_install_from_missing_source_tree_exits_3(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(workspace, "install", "widget", "--source") == 3
    assert "source tree for widget not found" in capsys.readouterr().err


def test_missing_install_root_exits_4(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = run(workspace, "--install-root", str(workspace / "absent"), "install", "widget")

    assert code == 4
    assert "does not exist" in capsys.readouterr().err


def test_clone_of_unregistered_name_exits_6(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(workspace, "clone", "not-a-registered-package") == 6
    assert "no remote URL registered" in capsys.readouterr().err


def test_build_without_descriptor_exits_5(workspace: Path) -> None:
    (workspace / "src" / "widget").mkdir(parents=True)

    assert run(workspace, "build", "widget") == 1
    assert run(workspace, "install", "widget", "--source") == 5


def test_run_without_shortcut_lists_commands(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(workspace, "run") == 0

    out = capsys.readouterr().out
    assert "install-config" in out
    assert "wipe-http" in out


def test_unknown_shortcut_exits_1(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(workspace, "run", "nope") == 1
    assert "unknown command: nope" in capsys.readouterr().err


def test_configured_group_becomes_a_shortcut(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (workspace.parent / "config.yaml").write_text("groups:\n  mine: [widget, gadget]\n", encoding="utf-8")

    assert run(workspace, "run") == 0
    assert "install-mine" in capsys.readouterr().out


def test_refresh_with_no_clones_does_nothing(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert run(workspace, "refresh") == 0
    assert "nothing to do" in capsys.readouterr().out


def test_build_all_skips_trees_without_descriptor(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (workspace / "src" / "notes").mkdir(parents=True)

    assert run(workspace, "build") == 0
    assert "[build] nothing to do" in capsys.readouterr().out


def test_invalid_config_exits_1(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    (workspace.parent / "config.yaml").write_text("advanced: [not, a, mapping\n", encoding="utf-8")

    assert run(workspace, "run") == 1
    assert "invalid configuration" in capsys.readouterr().err
