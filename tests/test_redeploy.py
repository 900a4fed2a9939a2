from pathlib import Path

import pytest
from conftest import touch_wheel, write_dist_info

from srcpilot.exceptions import InstallError, InstallErrorKind, TargetPathMissingError
from srcpilot.models.package import InstalledPackage, InstallTarget
from srcpilot.services.packages import NativeRedeployer, RegistryClient, RegistryClientError


class RecordingClient(RegistryClient):
    def __init__(self, fail: set[str] | None = None) -> None:
        super().__init__(python="python")
        self.fail = fail or set()
        self.calls: list[dict[str, object]] = []

    def install(
        self,
        source: str | Path,
        version: str | None = None,
        target: InstallTarget | None = None,
        find_links: list[Path] | None = None,
        force: bool = False,
        no_deps: bool = False,
    ) -> list[InstalledPackage]:
        assert isinstance(source, Path)
        self.calls.append(
            {"source": source, "exists": source.exists(), "target": target, "force": force, "no_deps": no_deps}
        )
        name = source.name.split("-")[0]
        if name in self.fail:
            raise RegistryClientError(f"cannot build {name}")
        return [InstalledPackage(name=name, version=source.name.split("-")[1])]


@pytest.fixture
def target(tmp_path: Path) -> InstallTarget:
    target = InstallTarget(directory=tmp_path / "packages")
    assert target.lib_dir is not None and target.cache_dir is not None
    target.lib_dir.mkdir(parents=True)
    write_dist_info(target.lib_dir, "pure", "1.0", purelib=True)
    write_dist_info(target.lib_dir, "native", "2.0", purelib=False)
    touch_wheel(target.cache_dir, "native", "2.0")
    touch_wheel(target.cache_dir, "native", "3.0")
    return target


def test_reinstalls_native_packages_from_a_copy(target: InstallTarget) -> None:
    client = RecordingClient()

    report = NativeRedeployer(client).redeploy(target)

    assert report.ok
    assert [item.name for item in report.items] == ["native"]
    assert len(client.calls) == 1
    call = client.calls[0]
    source = call["source"]
    assert isinstance(source, Path)
    assert source.name == "native-2.0-py3-none-any.whl"
    assert call["exists"]
    assert source.parent != target.cache_dir
    assert not source.exists()
    assert call["force"] and call["no_deps"]
    assert call["target"] == target
    assert target.cache_dir is not None and (target.cache_dir / source.name).exists()


def test_missing_cache_entry_is_reported_and_others_continue(target: InstallTarget) -> None:
    assert target.lib_dir is not None
    write_dist_info(target.lib_dir, "another", "1.5", purelib=False)
    client = RecordingClient()

    report = NativeRedeployer(client).redeploy(target)

    assert not report.ok
    assert [item.name for item in report.failed] == ["another"]
    assert "no cached artifact" in report.failed[0].detail
    assert [item.name for item in report.items if item.ok] == ["native"]


def test_install_failure_is_recorded(target: InstallTarget) -> None:
    report = NativeRedeployer(RecordingClient(fail={"native"})).redeploy(target)

    assert [item.name for item in report.failed] == ["native"]
    assert "cannot build native" in report.failed[0].detail


def test_ambient_environment_is_rejected() -> None:
    with pytest.raises(InstallError) as exc_info:
        NativeRedeployer(RecordingClient()).redeploy(InstallTarget())

    assert exc_info.value.kind is InstallErrorKind.ENVIRONMENT_INVALID


def test_missing_target_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(TargetPathMissingError):
        NativeRedeployer(RecordingClient()).redeploy(InstallTarget(directory=tmp_path / "absent"))
