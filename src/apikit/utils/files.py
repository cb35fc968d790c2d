"""File helpers shared by uploads, downloads and the logging observer."""

from __future__ import annotations

import mimetypes
from pathlib import Path

from apikit.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MIME_TYPE = "application/octet-stream"


def mime_type(path: str | Path) -> str:
    """
    Guess the MIME type from the file extension.

    Args:
        path: File path or bare file name.

    Returns:
        MIME type, ``application/octet-stream`` when unknown.
    """
    guessed, _ = mimetypes.guess_type(str(path))
    return guessed or DEFAULT_MIME_TYPE


def file_size(path: str | Path) -> int | None:
    """Size in bytes, or None when the path is not an existing file."""
    path = Path(path)
    if not path.is_file():
        return None
    return path.stat().st_size


def formatted_file_size(size: int) -> str:
    """
    Format a byte count for humans.

    Example:
        >>> formatted_file_size(1536)
        '1.5 KB'
    """
    if size < 1024:
        return f"{size} bytes"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def delete_file(path: str | Path) -> bool:
    """
    Delete a file if present.

    Returns:
        True when the file is gone afterwards.
    """
    path = Path(path)
    if not path.exists():
        return True
    try:
        path.unlink()
        return True
    except OSError as e:
        logger.warning(f"Failed to delete {path}: {e}")
        return False


__all__ = ["DEFAULT_MIME_TYPE", "delete_file", "file_size", "formatted_file_size", "mime_type"]
