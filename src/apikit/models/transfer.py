"""
Models for file transfers.
"""

from __future__ import annotations

from enum import Flag, auto
from pathlib import Path
from typing import NamedTuple

from pydantic import BaseModel, Field


class DownloadOptions(Flag):
    """How a finished download is moved into place."""

    NONE = 0
    REMOVE_PREVIOUS_FILE = auto()
    CREATE_INTERMEDIATE_DIRECTORIES = auto()


class DownloadTarget(NamedTuple):
    """Final location of a download, returned by a destination callable."""

    path: Path
    options: DownloadOptions = DownloadOptions.NONE


class ResumeData(BaseModel):
    """State needed to continue an interrupted download."""

    url: str
    part_path: Path
    bytes_received: int = Field(ge=0)
    etag: str | None = None
    last_modified: str | None = None

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, raw: bytes) -> ResumeData:
        """Parse resume data; raises pydantic ValidationError when corrupt."""
        return cls.model_validate_json(raw)

    @property
    def validator(self) -> str | None:
        """Value for ``If-Range``: the ETag when known, else Last-Modified."""
        return self.etag or self.last_modified


__all__ = ["DownloadOptions", "DownloadTarget", "ResumeData"]
