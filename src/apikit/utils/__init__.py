"""Utility helpers."""

from apikit.utils.files import (
    DEFAULT_MIME_TYPE,
    delete_file,
    file_size,
    formatted_file_size,
    mime_type,
)

__all__ = [
    "DEFAULT_MIME_TYPE",
    "delete_file",
    "file_size",
    "formatted_file_size",
    "mime_type",
]
