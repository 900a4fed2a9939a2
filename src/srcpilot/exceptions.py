"""Centralized exception hierarchy for srcpilot.

Every public operation re-raises collaborator failures as one of the classes
below, carrying the affected package or repository name and the original message.
"""

from enum import Enum


class SrcPilotError(Exception):
    """Base exception for all application-specific errors."""

    exit_code = 1

    def __init__(self, message: str, **params: object) -> None:
        """
        Initialize the error.

        Args:
            message: Message template, formatted with ``params``
            **params: Values substituted into the message and kept for reporting
        """
        super().__init__(message)
        self.message = message
        self.params = params

    def __str__(self) -> str:
        try:
            return self.message.format(**self.params)
        except (KeyError, IndexError, ValueError):
            params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
            return f"{self.message} ({params_str})"


class SourcePathMissingError(SrcPilotError):
    """Raised when a package's source tree does not exist."""

    exit_code = 3

    def __init__(self, package: str, path: object) -> None:
        super().__init__("source tree for {package} not found at {path}", package=package, path=path)
        self.package = package


class BuildError(SrcPilotError):
    """Raised when a build has no descriptor, fails, or produces no artifact."""

    exit_code = 5

    NO_DESCRIPTOR = "no build descriptor"
    NOT_PRODUCED = "artifact not produced"

    def __init__(self, package: str, reason: str, detail: str = "") -> None:
        message = "build of {package} failed: {reason}"
        if detail:
            message += " ({detail})"
        super().__init__(message, package=package, reason=reason, detail=detail)
        self.package = package
        self.reason = reason


class SyncError(SrcPilotError):
    """Raised when a repository cannot be brought in sync with its remote."""

    exit_code = 6

    def __init__(self, repository: str, underlying_message: str) -> None:
        super().__init__(
            "sync of {repository} failed: {underlying_message}",
            repository=repository,
            underlying_message=underlying_message,
        )
        self.repository = repository
        self.underlying_message = underlying_message


class InstallErrorKind(str, Enum):
    DEPENDENCY_UNAVAILABLE = "dependency_unavailable"
    PACKAGE_NOT_FOUND = "package_not_found"
    ENVIRONMENT_INVALID = "environment_invalid"


class InstallError(SrcPilotError):
    """Raised when a package cannot be installed."""

    exit_code = 7

    def __init__(self, package: str, kind: InstallErrorKind, message: str) -> None:
        super().__init__("install of {package} failed: {detail}", package=package, detail=message, kind=kind.value)
        self.package = package
        self.kind = kind
        self.detail = message


class TargetPathMissingError(InstallError):
    """Raised when an explicit install target directory does not exist."""

    exit_code = 4

    def __init__(self, path: object, package: str = "") -> None:
        super().__init__(package, InstallErrorKind.ENVIRONMENT_INVALID, f"install target {path} does not exist")
        self.path = path


class UninstallError(SrcPilotError):
    """Raised when a package cannot be removed."""

    exit_code = 8

    def __init__(self, package: str, message: str) -> None:
        super().__init__("uninstall of {package} failed: {detail}", package=package, detail=message)
        self.package = package
        self.detail = message


class NotInstalledError(UninstallError):
    """Raised when the package to remove was never installed."""

    def __init__(self, package: str, version: str | None = None) -> None:
        wanted = f"{package} {version}" if version else package
        super().__init__(package, f"{wanted} is not installed")
