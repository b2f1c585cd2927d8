"""Retention pruning for local and remote snapshot artifacts.

Pruning is best-effort: every excess artifact gets its own delete attempt,
and a failure on one never stops the rest.
"""

import fnmatch
import logging
import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Generic, List, Sequence, Tuple, TypeVar

from snapshot.storage import ObjectStoreGateway

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass
class PruneResult(Generic[T]):
    """Outcome of one pruning pass over a scope."""
    scope: str = "local"
    kept: List[T] = field(default_factory=list)
    removed: List[T] = field(default_factory=list)
    failed: List[Tuple[T, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def attempted(self) -> int:
        return len(self.removed) + len(self.failed)


def snapshot_pattern(name_prefix: str) -> str:
    """Glob pattern matching finished artifacts for a prefix."""
    return f"{name_prefix}-snapshot-*.tar*"


def is_snapshot_name(name: str, name_prefix: str) -> bool:
    return (fnmatch.fnmatchcase(name, snapshot_pattern(name_prefix))
            and (name.endswith('.tar') or name.endswith('.tar.gz')))


def prune(ordered: Sequence[T], keep: int, delete: Callable[[T], None],
          scope: str = "local", logger: logging.Logger = logger) -> PruneResult:
    """Delete the oldest entries of an oldest-first list down to `keep`.

    Args:
        ordered: Artifact refs, oldest first
        keep: Number of newest refs to retain (>= 0)
        delete: Callable removing a single ref; any exception counts as a failure
        scope: Label used in logs and on the result

    Returns:
        PruneResult with removed, failed and kept refs
    """
    if keep < 0:
        raise ValueError(f"retention cannot be negative: {keep}")

    ordered = list(ordered)
    excess = len(ordered) - keep
    result = PruneResult(scope=scope)

    if excess <= 0:
        result.kept = ordered
        logger.debug(f"No {scope} snapshots to prune ({len(ordered)} <= {keep})")
        return result

    result.kept = ordered[excess:]
    logger.info(f"Pruning {excess} {scope} snapshot(s), keeping {keep}")

    for ref in ordered[:excess]:
        try:
            delete(ref)
        except Exception as e:
            logger.error(f"Failed to remove old {scope} snapshot {ref}: {e}")
            result.failed.append((ref, str(e)))
        else:
            logger.info(f"Removed old {scope} snapshot: {ref}")
            result.removed.append(ref)

    return result


def remove_local(path: Path) -> None:
    """Remove a local artifact. Already-missing files are not an error."""
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.debug(f"Already deleted or missing: {path}")


class RetentionPruner:
    """Applies a retention count to local and remote snapshot scopes."""

    def __init__(self, retention: int, logger: logging.Logger = None):
        if retention < 0:
            raise ValueError(f"retention cannot be negative: {retention}")
        self.retention = retention
        self.logger = logger or logging.getLogger(__name__)

    def list_local(self, directory, name_prefix: str) -> List[Path]:
        """Finished artifacts in directory, oldest first by mtime then name."""
        directory = Path(directory)
        if not directory.is_dir():
            return []

        snapshots = []
        for path in directory.iterdir():
            if not is_snapshot_name(path.name, name_prefix) or not path.is_file():
                continue
            try:
                mtime = path.stat().st_mtime
            except OSError as e:
                self.logger.warning(f"Failed to get file info for {path}: {e}")
                continue
            snapshots.append((mtime, path.name, path))

        snapshots.sort(key=lambda item: (item[0], item[1]))
        return [path for _, _, path in snapshots]

    def prune_local(self, directory, name_prefix: str) -> PruneResult:
        self.logger.info(f"Cleaning up old local snapshots (retention: {self.retention})")
        snapshots = self.list_local(directory, name_prefix)
        return prune(snapshots, self.retention, remove_local, scope="local", logger=self.logger)

    def list_remote(self, gateway: ObjectStoreGateway, prefix: str, name_prefix: str) -> List[str]:
        """Snapshot keys under prefix, in the gateway's ascending key order."""
        keys = gateway.list(prefix)
        return [key for key in keys if is_snapshot_name(posixpath.basename(key), name_prefix)]

    def prune_remote(self, gateway: ObjectStoreGateway, prefix: str, name_prefix: str) -> PruneResult:
        """Prune remote keys under prefix.

        Raises:
            StorageError: listing the prefix failed
        """
        self.logger.info(f"Cleaning up old remote snapshots under {prefix} (retention: {self.retention})")
        keys = self.list_remote(gateway, prefix, name_prefix)
        return prune(keys, self.retention, gateway.delete, scope="remote", logger=self.logger)
