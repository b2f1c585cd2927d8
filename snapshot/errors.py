"""Error types raised by the snapshot lifecycle engine."""

from pathlib import Path
from typing import Optional, Union


class SnapshotError(Exception):
    """Base class for all snapshot-cosmos errors."""


class ConfigurationError(SnapshotError):
    """Missing or invalid node configuration."""


class SourceUnavailable(SnapshotError):
    """The node data directory is missing or unreadable."""

    def __init__(self, path: Union[str, Path], reason: str = "does not exist"):
        self.path = Path(path)
        super().__init__(f"Source directory {reason}: {self.path}")


class ArchiveWriteError(SnapshotError):
    """Walking the source tree or writing the archive failed."""

    def __init__(self, path: Union[str, Path], cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        message = f"Failed to archive {self.path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class StorageError(SnapshotError):
    """The object store rejected a request or could not be reached."""


class UploadError(StorageError):
    """Uploading an artifact failed. The local artifact is left in place."""

    def __init__(self, key: str, cause: Optional[BaseException] = None):
        self.key = key
        self.cause = cause
        message = f"Failed to upload {key}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
