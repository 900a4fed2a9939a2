"""Command line entry point."""

import argparse
import sys
from collections.abc import Sequence
from pathlib import Path

from srcpilot import __version__
from srcpilot.config import load_config
from srcpilot.exceptions import SrcPilotError
from srcpilot.logger import configure_logging, get_logger
from srcpilot.models.package import BatchReport, InstalledPackage, InstallReport
from srcpilot.models.repository import LocalClone
from srcpilot.services.orchestrator import OperationKind, Orchestrator
from srcpilot.workspace import AppContext

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="srcpilot",
        description="srcpilot - keep source packages cloned, built and installed",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  srcpilot clone requests                 # Clone into <workspace>/src/requests
  srcpilot clone https://github.com/me/requests.git
                                          # Track a fork on branch "me"
  srcpilot update                         # Rebase every clone in <workspace>/src
  srcpilot install requests --source      # Build src/requests and install it
  srcpilot refresh                        # Reinstall every cloned package
        """,
    )
    parser.add_argument("--config", type=Path, metavar="PATH", help="Config file (default: platform config dir)")
    parser.add_argument("--workspace", type=Path, metavar="DIR", help="Workspace root holding src/ and packages/")
    parser.add_argument("--install-root", type=Path, metavar="DIR", help="Install into this existing directory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--json-logs", action="store_true", help="Render logs as JSON")
    parser.add_argument("--version", action="version", version=f"srcpilot {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("clone", help="Clone or sync repositories")
    p.add_argument("names", nargs="+", help="Package names or remote URLs")

    p = sub.add_parser("update", help="Sync repositories (all local clones if none given)")
    p.add_argument("names", nargs="*")

    p = sub.add_parser("build", help="Build source trees (all if none given)")
    p.add_argument("names", nargs="*")

    p = sub.add_parser("install", help="Install a package")
    p.add_argument("name")
    p.add_argument("-V", "--package-version", dest="package_version", metavar="SPEC", help="Version constraint")
    p.add_argument("--source", action="store_true", help="Build from src/<name> and install the result")
    p.add_argument("-f", "--force", action="store_true", help="Reinstall even if already installed")

    p = sub.add_parser("uninstall", help="Uninstall a package, ignoring dependents")
    p.add_argument("name")
    p.add_argument("-V", "--package-version", dest="package_version", metavar="SPEC", help="Version constraint")
    p.add_argument("-a", "--all", dest="all_versions", action="store_true", help="Remove every installed version")

    p = sub.add_parser("refresh", help="Uninstall and reinstall (all local clones if none given)")
    p.add_argument("names", nargs="*")
    p.add_argument("-V", "--package-version", dest="package_version", metavar="SPEC", help="Version constraint")

    p = sub.add_parser("wipe", help="Uninstall every version of the given packages")
    p.add_argument("names", nargs="+")

    sub.add_parser("redeploy", help="Reinstall packages with native extensions from the cache")

    p = sub.add_parser("run", help="Run a shortcut command")
    p.add_argument("shortcut", nargs="?", help="Shortcut name; omit to list shortcuts")

    return parser


def print_batch(report: BatchReport) -> int:
    for item in report.items:
        status = "ok" if item.ok else "FAILED"
        print(f"[{report.operation}] {item.name}: {status}{' - ' + item.detail if item.detail else ''}")
    if not report.items:
        print(f"[{report.operation}] nothing to do")
    return 0 if report.ok else 1


def print_install(report: InstallReport) -> int:
    origin = " (from cache)" if report.from_cache else ""
    for package in report.installed:
        print(f"[install] {package.name} {package.version} -> {report.target.describe()}{origin}")
    return 0


def print_clone(clone: LocalClone) -> int:
    print(f"[sync] {clone.path} on {clone.current_branch}")
    return 0


def print_removed(removed: list[InstalledPackage]) -> int:
    for package in removed:
        print(f"[uninstall] removed {package.name} {package.version}")
    return 0


def dispatch(args: argparse.Namespace, orchestrator: Orchestrator) -> int:
    """Run the parsed command and return the exit code."""
    command = args.command
    if command in ("clone", "update") and len(args.names) == 1:
        return print_clone(orchestrator.clone(args.names[0]))
    if command in ("clone", "update") and args.names:
        return print_batch(orchestrator.run_batch(OperationKind(command), args.names))
    if command == "update":
        return print_batch(orchestrator.update_all())
    if command == "build":
        if not args.names:
            return print_batch(orchestrator.build_all())
        return print_batch(orchestrator.run_batch(OperationKind.BUILD, args.names))
    if command == "install":
        return print_install(
            orchestrator.install(args.name, args.package_version, from_source=args.source, force=args.force)
        )
    if command == "uninstall":
        return print_removed(orchestrator.uninstall(args.name, args.package_version, args.all_versions))
    if command == "refresh":
        if len(args.names) == 1:
            return print_install(orchestrator.refresh(args.names[0], args.package_version))
        return print_batch(orchestrator.refresh_all(args.names or None))
    if command == "wipe":
        return print_batch(orchestrator.wipe(args.names))
    if command == "redeploy":
        return print_batch(orchestrator.redeploy())
    if command == "run":
        if not args.shortcut:
            for spec in orchestrator.commands.values():
                print(f"{spec.name:<24} {spec.kind.value:<10} {' '.join(spec.packages)}")
            return 0
        return print_batch(orchestrator.run_shortcut(args.shortcut))
    raise SrcPilotError("unknown command: {command}", command=command)


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point with CLI argument parsing."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        if args.workspace is not None:
            config.paths.workspace_root = args.workspace.expanduser()
        log_level = "DEBUG" if args.verbose else config.advanced.log_level
        configure_logging(log_level, json_output=args.json_logs or config.advanced.log_json)

        context = AppContext.create(config, install_root=args.install_root)
        return dispatch(args, context.orchestrator)
    except SrcPilotError as e:
        logger.debug("Command failed", error_type=type(e).__name__, params=e.params)
        print(f"error: {e}", file=sys.stderr)
        return e.exit_code


if __name__ == "__main__":
    sys.exit(main())
