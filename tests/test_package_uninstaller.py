from pathlib import Path

import pytest
from conftest import write_dist_info

from srcpilot.exceptions import NotInstalledError, TargetPathMissingError, UninstallError
from srcpilot.models.package import InstalledPackage, InstallTarget
from srcpilot.services.packages import PackageUninstaller, RegistryClient
from srcpilot.services.packages.distributions import installed_distributions


@pytest.fixture
def target(tmp_path: Path) -> InstallTarget:
    directory = tmp_path / "packages"
    (directory / "lib").mkdir(parents=True)
    return InstallTarget(directory=directory)


@pytest.fixture
def uninstaller() -> PackageUninstaller:
    return PackageUninstaller(RegistryClient(python="python"))


def test_uninstall_removes_files_and_executables(target: InstallTarget, uninstaller: PackageUninstaller) -> None:
    assert target.lib_dir is not None and target.bin_dir is not None
    write_dist_info(target.lib_dir, "widget", "1.0", scripts=("widget-cli",))
    write_dist_info(target.lib_dir, "gadget", "2.0")

    removed = uninstaller.uninstall("widget", None, False, target)

    assert removed == [InstalledPackage(name="widget", version="1.0")]
    assert not (target.lib_dir / "widget").exists()
    assert not (target.lib_dir / "widget-1.0.dist-info").exists()
    assert not (target.bin_dir / "widget-cli").exists()
    assert (target.lib_dir / "gadget" / "__init__.py").exists()


def test_uninstall_ignores_dependents(target: InstallTarget, uninstaller: PackageUninstaller) -> None:
    assert target.lib_dir is not None
    write_dist_info(target.lib_dir, "widget", "1.0")
    dependent = write_dist_info(target.lib_dir, "gadget", "2.0")
    with open(dependent / "METADATA", "a", encoding="utf-8") as f:
        f.write("Requires-Dist: widget>=1.0\n")

    uninstaller.uninstall("widget", None, False, target)

    assert [d.name for d in installed_distributions(target.lib_dir)] == ["gadget"]


def test_ambiguous_version_requires_choice(target: InstallTarget, uninstaller: PackageUninstaller) -> None:
    assert target.lib_dir is not None
    write_dist_info(target.lib_dir, "widget", "1.0")
    write_dist_info(target.lib_dir, "widget", "2.0")

    with pytest.raises(UninstallError, match="several versions"):
        uninstaller.uninstall("widget", None, False, target)

    removed = uninstaller.uninstall("widget", "1.0", False, target)
    assert removed == [InstalledPackage(name="widget", version="1.0")]
    assert [d.version for d in installed_distributions(target.lib_dir, "widget")] == ["2.0"]


def test_all_versions_ignores_version_constraint(target: InstallTarget, uninstaller: PackageUninstaller) -> None:
    assert target.lib_dir is not None
    write_dist_info(target.lib_dir, "widget", "1.0")
    write_dist_info(target.lib_dir, "widget", "2.0")

    removed = uninstaller.uninstall("widget", "9.9", True, target)

    assert sorted(p.version for p in removed) == ["1.0", "2.0"]
    assert installed_distributions(target.lib_dir, "widget") == []


def test_not_installed(target: InstallTarget, uninstaller: PackageUninstaller) -> None:
    assert target.lib_dir is not None
    write_dist_info(target.lib_dir, "widget", "1.0")

    with pytest.raises(NotInstalledError):
        uninstaller.uninstall("gadget", None, False, target)
    with pytest.raises(NotInstalledError, match="widget 2.0"):
        uninstaller.uninstall("widget", "2.0", False, target)


def test_missing_target_directory(tmp_path: Path, uninstaller: PackageUninstaller) -> None:
    with pytest.raises(TargetPathMissingError):
        uninstaller.uninstall("widget", None, False, InstallTarget(directory=tmp_path / "missing"))


def test_purelib_flag_is_read_from_wheel_file(target: InstallTarget) -> None:
    assert target.lib_dir is not None
    write_dist_info(target.lib_dir, "pure", "1.0")
    write_dist_info(target.lib_dir, "native", "1.0", purelib=False)

    flags = {d.name: d.is_purelib for d in installed_distributions(target.lib_dir)}

    assert flags == {"native": False, "pure": True}
