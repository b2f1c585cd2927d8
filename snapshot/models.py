"""Records passed between snapshot components."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from snapshot.retention import PruneResult


@dataclass
class Artifact:
    """One archive file produced by the Archiver."""
    source_dir: Path
    path: Path
    created_at: datetime
    size_bytes: int = 0
    entry_count: int = 0
    source_bytes: int = 0
    remote_key: Optional[str] = None

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def compression_ratio(self) -> float:
        return self.size_bytes / self.source_bytes if self.source_bytes > 0 else 0.0


@dataclass
class CycleResult:
    """Outcome of a single create, upload and prune pass."""
    artifact: Artifact
    remote_key: Optional[str] = None
    uploaded: bool = False
    local_prune: Optional[PruneResult] = None
    local_prune_error: Optional[str] = None
    remote_prune: Optional[PruneResult] = None
    remote_prune_error: Optional[str] = None
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = 0.0

    @property
    def cleanup_ok(self) -> bool:
        """True when both prune passes ran without any failure."""
        for result, error in ((self.local_prune, self.local_prune_error),
                              (self.remote_prune, self.remote_prune_error)):
            if error or (result is not None and not result.ok):
                return False
        return True
