import subprocess
import logging
from importlib.metadata import version, PackageNotFoundError
from pathlib import Path

logger = logging.getLogger(__name__)

DIST_NAME = "snapshot-cosmos"
FALLBACK_VERSION = "v1.0.0"


def get_version():
    """Get version from installed package metadata, then git tags."""
    try:
        return f"v{version(DIST_NAME)}"
    except PackageNotFoundError:
        pass

    try:
        return subprocess.check_output(
            ['git', 'describe', '--tags', '--dirty=-dev'],
            cwd=Path(__file__).parent,
            stderr=subprocess.DEVNULL,
            text=True
        ).strip()
    except (subprocess.CalledProcessError, FileNotFoundError, OSError):
        logger.debug("Could not determine version from git, using fallback")
        return FALLBACK_VERSION

__version__ = get_version()
