"""Layer archive handling in the working directory.

Layers are downloaded as ``layer_<n>.tgz`` and unpacked into ``layer_<n>/``
next to each other. Everything matching ``layer_*`` is removed at the end of
the run. Two runs sharing a working directory will delete each other's files;
concurrent runs in one directory are not supported.
"""

import logging
import shutil
import tarfile
from pathlib import Path

from sonarcheck.config import CLEANING_PATTERN
from sonarcheck.errors import ArchiveError

logger = logging.getLogger(__name__)


def layer_paths(work_dir: Path, index: int) -> tuple[Path, Path]:
    """Return the archive file and extraction directory of a 1-based layer index."""
    return work_dir / f"layer_{index}.tgz", work_dir / f"layer_{index}"


def extract_tar_gz(archive_path: Path, output_dir: Path) -> Path:
    """Extract a gzipped tarball into a directory.

    Uses the tarfile "data" filter: absolute paths, parent-directory traversal,
    links pointing outside the output directory and device files are rejected.

    Args:
        archive_path: Path to the .tgz file
        output_dir: Directory to extract into (created if missing)

    Returns:
        The output directory

    Raises:
        ArchiveError: If the archive is unreadable, corrupt or unsafe
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    try:
        with tarfile.open(archive_path, mode="r:gz") as tar:
            tar.extractall(output_dir, filter="data")
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ArchiveError(archive_path, str(e)) from e

    logger.info("File %s extracted successfully", archive_path.name)
    return output_dir


def clean_working_directory(work_dir: Path, pattern: str = CLEANING_PATTERN) -> list[Path]:
    """Remove files and directories matching a glob pattern.

    Failures are logged and do not stop the cleanup of the other entries.

    Args:
        work_dir: Directory to clean
        pattern: Glob pattern of entries to remove

    Returns:
        Entries that were removed
    """
    removed: list[Path] = []

    for path in sorted(work_dir.glob(pattern)):
        try:
            if path.is_dir() and not path.is_symlink():
                shutil.rmtree(path)
            else:
                path.unlink()
        except OSError as e:
            logger.error("Error removing %s: %s", path, e)
            continue
        logger.info("Removed %s", path)
        removed.append(path)

    return removed
