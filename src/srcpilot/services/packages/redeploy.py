"""Reinstall packages with compiled extensions from their cached artifacts."""

import shutil
import tempfile
from pathlib import Path

from srcpilot.exceptions import InstallError, InstallErrorKind
from srcpilot.logger import get_logger
from srcpilot.models.package import BatchReport, InstallTarget

from .cache import ArtifactCache
from .client import RegistryClient, RegistryClientError
from .distributions import installed_distributions
from .installer import ensure_target

logger = get_logger(__name__)


class NativeRedeployer:
    """Rebuilds native extensions of a local target, one package at a time."""

    def __init__(self, client: RegistryClient) -> None:
        self.client = client

    def redeploy(self, target: InstallTarget) -> BatchReport:
        """
        Reinstall every non-pure distribution of ``target`` from its cache.

        Each cached artifact is copied to a temporary directory first so pip
        never reads from and writes to the same file; the copy is removed
        afterwards whatever the outcome.

        Raises:
            InstallError: If the target is the ambient environment or is missing
        """
        if target.lib_dir is None or target.cache_dir is None:
            raise InstallError("", InstallErrorKind.ENVIRONMENT_INVALID, "redeploy needs an application-local target")
        ensure_target(target)

        cache = ArtifactCache(target.cache_dir)
        report = BatchReport(operation="redeploy")
        for dist in installed_distributions(target.lib_dir):
            if dist.is_purelib:
                continue

            label = f"{dist.name} {dist.version}"
            try:
                artifact = cache.lookup(dist.name, f"=={dist.version}")
            except ValueError as e:
                report.record(dist.name, False, str(e))
                continue
            if artifact is None:
                logger.warning(f"No cached artifact for {label}, skipping")
                report.record(dist.name, False, f"no cached artifact for {label}")
                continue

            with tempfile.TemporaryDirectory(prefix="srcpilot-redeploy-") as tmp:
                copy = Path(tmp) / artifact.file_path.name
                shutil.copy2(artifact.file_path, copy)
                try:
                    self.client.install(copy, target=target, force=True, no_deps=True)
                except RegistryClientError as e:
                    logger.error(f"Redeploy of {label} failed: {e}")
                    report.record(dist.name, False, str(e))
                    continue

            logger.info(f"Redeployed {label}")
            report.record(dist.name, True, artifact.file_path.name)
        return report
