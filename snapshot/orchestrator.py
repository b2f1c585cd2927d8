"""Snapshot orchestrator - one create, upload, prune cycle for a node."""

import logging
import time
from pathlib import Path
from typing import Optional

from snapshot.archiver import PART_SUFFIX
from snapshot.errors import SnapshotError, UploadError
from snapshot.models import Artifact, CycleResult
from snapshot.retention import RetentionPruner
from snapshot.storage import ObjectStoreGateway

logger = logging.getLogger(__name__)


def remote_key(prefix: str, filename: str) -> str:
    """Join a key prefix and a file name with a single '/'."""
    prefix = (prefix or '').strip('/')
    return f"{prefix}/{filename}" if prefix else filename


def list_prefix(prefix: str) -> str:
    """Listing prefix for a configured path prefix (ends with '/' unless empty)."""
    prefix = (prefix or '').strip('/')
    return f"{prefix}/" if prefix else ''


class SnapshotOrchestrator:
    """Runs snapshot cycles for a single configured node.

    Create and Upload decide whether a cycle succeeded. Local and remote
    pruning are cleanup: their failures are logged and recorded on the
    CycleResult but never raised.
    """

    def __init__(self, node, archiver, gateway: Optional[ObjectStoreGateway],
                 pruner: Optional[RetentionPruner] = None, upload: bool = True,
                 logger: Optional[logging.Logger] = None):
        self.node = node
        self.archiver = archiver
        self.gateway = gateway
        self.pruner = pruner or RetentionPruner(node.snapshot.retention)
        self.upload = upload
        self.logger = logger or logging.getLogger(__name__)

    @property
    def chain_id(self) -> str:
        return self.node.node.chain_id

    def run_cycle(self) -> CycleResult:
        """Create a snapshot, upload it, then prune both scopes.

        Raises:
            SourceUnavailable: data directory missing (nothing uploaded or pruned)
            ArchiveWriteError: archive could not be written (nothing uploaded or pruned)
            UploadError: upload failed; the local artifact stays on disk
        """
        started = time.monotonic()
        self.logger.info(f"Starting snapshot cycle for {self.chain_id}")

        artifact = self.create()
        result = CycleResult(artifact=artifact)

        if self.upload:
            result.remote_key = self.upload_artifact(artifact)
            result.uploaded = True
        else:
            self.logger.info("Upload disabled, skipping upload and remote cleanup")

        self._prune_local(result)
        if self.upload:
            self._prune_remote(result)

        result.duration_seconds = time.monotonic() - started
        self.logger.info(
            f"Snapshot cycle completed in {result.duration_seconds:.1f}s: "
            f"{artifact.path} -> {result.remote_key or 'local only'}"
        )
        return result

    def create(self, dest_dir=None) -> Artifact:
        """Run the Archiver against the node's data directory.

        Args:
            dest_dir: Output directory; defaults to the node's snapshot_dir
        """
        dest_dir = Path(dest_dir) if dest_dir else Path(self.node.snapshot_dir)
        try:
            return self.archiver.create(self.node.data_path, dest_dir, self.chain_id)
        except SnapshotError as e:
            self.logger.error(f"Failed to create snapshot: {e}")
            self._remove_partial_archives(dest_dir)
            raise

    def upload_artifact(self, artifact: Artifact) -> str:
        key = remote_key(self.node.s3.path_prefix, artifact.name)
        try:
            self.gateway.put(artifact.path, key)
        except UploadError:
            self.logger.error(f"Upload failed, keeping local snapshot: {artifact.path}")
            raise
        except Exception as e:
            self.logger.error(f"Upload failed, keeping local snapshot: {artifact.path}")
            raise UploadError(key, e) from e
        artifact.remote_key = key
        return key

    def upload_existing(self, path, key: Optional[str] = None) -> str:
        """Upload an already-created snapshot file (one-shot `upload` command).

        Returns:
            The remote key the file was stored under
        """
        path = Path(path)
        key = key or remote_key(self.node.s3.path_prefix, path.name)
        if not path.is_file():
            raise UploadError(key, FileNotFoundError(f"Snapshot file does not exist: {path}"))
        self.gateway.put(path, key)
        return key

    def _prune_local(self, result: CycleResult) -> None:
        try:
            result.local_prune = self.pruner.prune_local(self.node.snapshot_dir, self.chain_id)
        except Exception as e:
            self.logger.warning(f"Failed to cleanup old local snapshots: {e}")
            result.local_prune_error = str(e)

    def _prune_remote(self, result: CycleResult) -> None:
        prefix = list_prefix(self.node.s3.path_prefix)
        try:
            result.remote_prune = self.pruner.prune_remote(self.gateway, prefix, self.chain_id)
        except Exception as e:
            self.logger.warning(f"Failed to cleanup old S3 snapshots: {e}")
            result.remote_prune_error = str(e)

    def _remove_partial_archives(self, snapshot_dir: Path) -> None:
        if not snapshot_dir.is_dir():
            return
        for part in snapshot_dir.glob(f"{self.chain_id}-snapshot-*{PART_SUFFIX}"):
            try:
                part.unlink()
                self.logger.debug(f"Removed partial archive: {part}")
            except OSError as e:
                self.logger.warning(f"Could not remove partial archive {part}: {e}")
