"""Materialize resolved packages as local .nupkg files."""

import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled
from versioning.models import PackageIdentity

logger = logging.getLogger(__name__)


def artifact_file_name(identity: PackageIdentity) -> str:
    """File name for a package artifact: '{id}.{version}.nupkg', lowercased."""
    return f"{identity.id}.{identity.version}{Constants.PACKAGE_EXTENSION}".lower()


@dataclass
class FetchSummary:
    """Counts reported at the end of a fetch run."""
    downloaded: int = 0
    skipped: int = 0


class ArtifactFetcher:
    """Download resolved packages into a folder, skipping files already present.

    Args:
        client: Object with download_package(id, version) -> bytes.
        output: Target folder; defaults to the current working directory.
        force: Download and overwrite existing files.
        dry_run: Log what would happen without touching the network or disk.
    """

    def __init__(self, client, output: Optional[str] = None, force: bool = False, dry_run: bool = False):
        self._client = client
        self.folder = output or os.getcwd()
        self.force = force
        self.dry_run = dry_run

    def target_path(self, identity: PackageIdentity) -> str:
        return os.path.join(self.folder, artifact_file_name(identity))

    def fetch(self, identity: PackageIdentity) -> bool:
        """Fetch one package; returns True when it was (or would be) downloaded."""
        file_path = self.target_path(identity)
        exists = os.path.isfile(file_path)

        if exists and not self.force:
            logger.info("Skipped existing %s %s", identity.id, identity.version)
            return False

        logger.info("Downloading %s %s", identity.id, identity.version)
        if self.dry_run:
            return True

        payload = self._client.download_package(identity.id, identity.version)
        if exists:
            logger.info("Rewriting %s", file_path)
        os.makedirs(self.folder, exist_ok=True)
        tmp_path = file_path + ".part"
        try:
            with open(tmp_path, "wb") as fh:
                fh.write(payload)
            os.replace(tmp_path, file_path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        if is_debug_enabled(logger):
            logger.debug(
                "Artifact written",
                extra=extra_context(
                    event="file_write", component="download", action="fetch",
                    target=file_path, size=len(payload),
                ),
            )
        return True

    def run(self, identities: Iterable[PackageIdentity]) -> FetchSummary:
        """Fetch every identity in order and log a summary line."""
        summary = FetchSummary()
        for identity in identities:
            if self.fetch(identity):
                summary.downloaded += 1
            else:
                summary.skipped += 1
        logger.info("Done, %d downloaded, %d skipped.", summary.downloaded, summary.skipped)
        return summary
