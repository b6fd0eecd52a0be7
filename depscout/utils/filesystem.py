"""
Manifest file IO.

Manifests are handled as text whose line endings are never translated, so a
``\\r\\n`` requirements file is still ``\\r\\n`` after ``depscout update``.
Writes go through a sibling temporary file and ``os.replace``; an interrupted
update leaves the original manifest untouched.

Every ``OSError`` (and decoding error on read) is re-raised as
:class:`~depscout.exceptions.FileOperationError` naming the path and the
operation that failed.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from datetime import datetime
from contextlib import contextmanager
from typing import Iterator, Optional, Union

from depscout.utils.logger import get_logger
from depscout.exceptions import FileOperationError
from depscout.constants import MAX_FILE_SIZE

logger = get_logger("filesystem")

PathLike = Union[str, Path]

BACKUP_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


@contextmanager
def _reraise_as(operation: str, path: Path, summary: str) -> Iterator[None]:
    try:
        yield
    except (OSError, UnicodeDecodeError) as exc:
        raise FileOperationError(
            f"{summary}: {exc}",
            file_path=str(path),
            operation=operation,
            original_error=exc,
        ) from exc


def _validated_file(path: Path) -> Path:
    """Resolve ``path``, rejecting anything that is not an existing regular file."""
    problem = None
    if not path.exists():
        problem = "File not found"
    elif not path.is_file():
        problem = "Not a file"

    if problem:
        raise FileOperationError(f"{problem}: {path}", file_path=str(path), operation="read")
    return path.resolve()


def safe_read_file(
    file_path: PathLike,
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
    encoding: str = "utf-8",
) -> str:
    """Return the text of a manifest exactly as stored.

    Args:
        file_path: Manifest to read.
        max_size: Largest accepted size in bytes; ``None`` accepts any size.
        encoding: Text encoding of the file.

    Raises:
        FileOperationError: The file is missing, too large, unreadable or not
            valid in ``encoding``.
    """
    path = _validated_file(Path(file_path))

    with _reraise_as("read", path, "Failed to read file"):
        size = path.stat().st_size
        if max_size is not None and size > max_size:
            raise FileOperationError(
                f"File too large: {size} bytes (max {max_size})",
                file_path=str(path),
                operation="read",
            )
        return path.read_bytes().decode(encoding)


def _atomic_write(target: Path, content: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_name = tempfile.mkstemp(dir=str(target.parent), prefix=f".{target.name}.", suffix=".tmp")
    temp_path = Path(temp_name)

    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as stream:
            stream.write(content)
            stream.flush()
            os.fsync(stream.fileno())
        temp_path.replace(target)
    except OSError as exc:
        _discard(temp_path)
        raise FileOperationError(
            f"Atomic write failed: {exc}",
            file_path=str(target),
            operation="write",
            original_error=exc,
        ) from exc


def _discard(temp_path: Path) -> None:
    try:
        temp_path.unlink()
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove temporary file %s: %s", temp_path, exc)


def backup_path_for(path: Path, when: Optional[datetime] = None) -> Path:
    """Name of the backup of ``path``: ``{stem}.{timestamp}.backup{suffix}``.

    Example:
        >>> backup_path_for(Path("package.json"), datetime(2024, 5, 1, 9, 30))
        PosixPath('package.20240501_093000.backup.json')
    """
    stamp = (when or datetime.now()).strftime(BACKUP_TIMESTAMP_FORMAT)
    return path.with_name(f"{path.stem}.{stamp}.backup{path.suffix}")


def create_timestamped_backup(file_path: PathLike) -> Path:
    """Copy a manifest aside before it is rewritten.

    Returns:
        Path of the copy, created next to the original.

    Raises:
        FileOperationError: ``file_path`` is not a file or cannot be copied.
    """
    path = Path(file_path)
    if not path.is_file():
        raise FileOperationError(
            f"Cannot backup invalid file: {path}",
            file_path=str(path),
            operation="backup",
        )

    backup = backup_path_for(path)
    with _reraise_as("backup", path, "Failed to create backup"):
        shutil.copy2(path, backup)

    logger.debug("Backed up %s to %s", path, backup)
    return backup


def safe_write_file(
    file_path: PathLike,
    content: str,
    *,
    create_backup: bool = False,
) -> Optional[Path]:
    """Replace a manifest with ``content``, optionally keeping a backup.

    No backup is made when the destination does not exist yet.

    Returns:
        The backup path, or ``None``.
    """
    path = Path(file_path)
    backup = create_timestamped_backup(path) if create_backup and path.is_file() else None

    _atomic_write(path, content)
    logger.debug("Wrote %d characters to %s", len(content), path)
    return backup
