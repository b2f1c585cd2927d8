"""Archiver - turns a node data directory into a single tarball.

Entries are visited depth-first with each directory's children sorted by
name, so identical trees always produce members in the same order.
"""

import logging
import os
import re
import stat
import tarfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator, Optional, Tuple

from snapshot.errors import ArchiveWriteError, SourceUnavailable
from snapshot.models import Artifact

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d-%H-%M-%S"
PART_SUFFIX = ".part"

_NAME_TIMESTAMP = re.compile(r'-snapshot-(\d{4}-\d{2}-\d{2}-\d{2}-\d{2}-\d{2})\.tar(?:\.gz)?$')


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def snapshot_filename(name_prefix: str, created_at: datetime, compress: bool = True) -> str:
    """Build the artifact file name for a prefix and creation time."""
    ext = '.tar.gz' if compress else '.tar'
    return f"{name_prefix}-snapshot-{created_at.strftime(TIMESTAMP_FORMAT)}{ext}"


def snapshot_time(filename: str) -> Optional[datetime]:
    """Creation time (UTC) encoded in an artifact file name, or None."""
    match = _NAME_TIMESTAMP.search(filename)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def walk_sorted(root: Path) -> Iterator[Tuple[Path, os.stat_result]]:
    """Yield (path, lstat) for every entry under root, root excluded.

    Symlinks are reported but never followed.
    """
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise ArchiveWriteError(root, e) from e

    for entry in entries:
        path = Path(entry.path)
        try:
            st = entry.stat(follow_symlinks=False)
        except OSError as e:
            raise ArchiveWriteError(path, e) from e
        yield path, st
        if stat.S_ISDIR(st.st_mode):
            yield from walk_sorted(path)


class Archiver:
    """Creates compressed snapshot archives of a directory tree."""

    def __init__(self, compress: bool = True, compresslevel: int = 6,
                 clock: Optional[Callable[[], datetime]] = None,
                 logger: Optional[logging.Logger] = None):
        self.compress = compress
        self.compresslevel = compresslevel
        self.clock = clock or utc_now
        self.logger = logger or logging.getLogger(__name__)

    def create(self, source_dir, dest_dir, name_prefix: str) -> Artifact:
        """Archive source_dir into a new file under dest_dir.

        Args:
            source_dir: Directory to archive
            dest_dir: Directory receiving the archive (created if missing)
            name_prefix: Identifier placed at the front of the file name

        Returns:
            Artifact describing the written archive

        Raises:
            SourceUnavailable: source_dir is missing or unreadable
            ArchiveWriteError: reading an entry or writing the archive failed
        """
        source_dir = Path(source_dir)
        dest_dir = Path(dest_dir)

        if not source_dir.exists():
            raise SourceUnavailable(source_dir)
        if not source_dir.is_dir():
            raise SourceUnavailable(source_dir, "is not a directory")
        if not os.access(source_dir, os.R_OK | os.X_OK):
            raise SourceUnavailable(source_dir, "is not readable")

        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveWriteError(dest_dir, e) from e

        created_at = self.clock()
        archive_path = dest_dir / snapshot_filename(name_prefix, created_at, self.compress)
        part_path = archive_path.with_name(archive_path.name + PART_SUFFIX)

        self.logger.info(f"Creating snapshot: {archive_path}")
        self.logger.info(f"  Source: {source_dir}")
        if self.compress:
            self.logger.info(f"  Compression: gzip (level {self.compresslevel})")
        else:
            self.logger.info("  Compression: None (uncompressed tar)")

        entry_count, source_bytes = self._write_archive(source_dir, part_path)

        try:
            os.replace(part_path, archive_path)
            archive_size = archive_path.stat().st_size
        except OSError as e:
            raise ArchiveWriteError(archive_path, e) from e

        artifact = Artifact(
            source_dir=source_dir,
            path=archive_path,
            created_at=created_at,
            size_bytes=archive_size,
            entry_count=entry_count,
            source_bytes=source_bytes,
        )

        self.logger.info(f"✓ Snapshot created: {archive_path}")
        self.logger.info(f"  Entries: {entry_count}")
        self.logger.info(f"  Source size: {format_bytes(source_bytes)}")
        self.logger.info(f"  Archive size: {format_bytes(archive_size)}")
        if self.compress and source_bytes > 0:
            self.logger.info(f"  Compression ratio: {artifact.compression_ratio:.2%}")

        return artifact

    def _write_archive(self, source_dir: Path, part_path: Path) -> Tuple[int, int]:
        mode = 'w:gz' if self.compress else 'w'
        compress_args = {'compresslevel': self.compresslevel} if self.compress else {}

        entry_count = 0
        source_bytes = 0
        try:
            tar = tarfile.open(part_path, mode, **compress_args)
        except (OSError, tarfile.TarError) as e:
            raise ArchiveWriteError(part_path, e) from e

        try:
            with tar:
                for path, _ in walk_sorted(source_dir):
                    if self._add_entry(tar, source_dir, path):
                        entry_count += 1
                        source_bytes += tar.members[-1].size if tar.members[-1].isreg() else 0
        except (OSError, tarfile.TarError) as e:
            # Raised while flushing or closing the archive itself
            raise ArchiveWriteError(part_path, e) from e

        return entry_count, source_bytes

    def _add_entry(self, tar: tarfile.TarFile, source_dir: Path, path: Path) -> bool:
        arcname = path.relative_to(source_dir).as_posix()
        try:
            info = tar.gettarinfo(str(path), arcname=arcname)
            if info is None:
                self.logger.warning(f"Unsupported file type (skipping): {path}")
                return False

            if info.isreg():
                with open(path, 'rb') as f:
                    tar.addfile(info, f)
            else:
                tar.addfile(info)
        except (OSError, tarfile.TarError) as e:
            raise ArchiveWriteError(path, e) from e

        self.logger.debug(f"Added {arcname} ({info.size} bytes)")
        return True


def format_bytes(bytes_size: float) -> str:
    """Format bytes as human-readable size."""
    for unit in ['B', 'KB', 'MB', 'GB', 'TB']:
        if bytes_size < 1024.0:
            return f"{bytes_size:.2f} {unit}"
        bytes_size /= 1024.0
    return f"{bytes_size:.2f} PB"
