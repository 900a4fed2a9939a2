import sys
from pathlib import Path

import pytest

from srcpilot.utils.subprocess_executor import CommandError, SubprocessExecutor


def test_runs_in_the_given_directory_without_changing_ours(tmp_path: Path) -> None:
    before = Path.cwd()

    result = SubprocessExecutor.run_sync(sys.executable, "-c", "import os; print(os.getcwd())", cwd=tmp_path)

    assert Path(result.stdout.decode().strip()).resolve() == tmp_path.resolve()
    assert Path.cwd() == before


def test_non_zero_exit_with_check_raises_command_error() -> None:
    script = "import sys; sys.stderr.write('boom'); sys.exit(3)"

    with pytest.raises(CommandError) as exc_info:
        SubprocessExecutor.run_sync(sys.executable, "-c", script, check=True)

    assert exc_info.value.returncode == 3
    assert exc_info.value.output == "boom"


def test_non_zero_exit_without_check_returns_result() -> None:
    result = SubprocessExecutor.run_sync(sys.executable, "-c", "import sys; sys.exit(1)")

    assert result.returncode == 1


def test_timeout_raises_command_error_without_returncode() -> None:
    with pytest.raises(CommandError, match="timed out") as exc_info:
        SubprocessExecutor.run_sync(sys.executable, "-c", "import time; time.sleep(10)", timeout=0.2)

    assert exc_info.value.returncode is None


def test_missing_executable_raises_command_error(tmp_path: Path) -> None:
    with pytest.raises(CommandError) as exc_info:
        SubprocessExecutor.run_sync(str(tmp_path / "no-such-tool"), check=True)

    assert exc_info.value.returncode is None
    assert exc_info.value.command == (str(tmp_path / "no-such-tool"),)
