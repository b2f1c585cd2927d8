"""Snapshot lifecycle engine: archive, upload, prune, repeat."""

from .errors import (
    SnapshotError,
    ConfigurationError,
    SourceUnavailable,
    ArchiveWriteError,
    StorageError,
    UploadError,
)
from .retention import PruneResult, RetentionPruner, prune
from .models import Artifact, CycleResult
from .archiver import Archiver, snapshot_filename
from .orchestrator import SnapshotOrchestrator, remote_key
from .storage import ObjectStoreGateway
from .daemon import SnapshotDaemon

__all__ = [
    'SnapshotError',
    'ConfigurationError',
    'SourceUnavailable',
    'ArchiveWriteError',
    'StorageError',
    'UploadError',
    'PruneResult',
    'RetentionPruner',
    'prune',
    'Artifact',
    'CycleResult',
    'Archiver',
    'snapshot_filename',
    'SnapshotOrchestrator',
    'remote_key',
    'SnapshotDaemon',
    'ObjectStoreGateway',
]
