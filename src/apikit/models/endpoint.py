"""
Endpoint descriptors.

An endpoint describes a single API call: where it goes, how it is sent and
which files travel with it. Descriptors are immutable; build a new one per
request.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from apikit.models.transfer import DownloadTarget
from apikit.utils.files import mime_type as guess_mime_type

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]

DownloadDestination = Callable[[Path, Any], "DownloadTarget | Path"]


class UploadFile(BaseModel):
    """
    One part of a multipart upload.

    Exactly one of ``data`` or ``file_path`` is expected. Instances missing
    both are accepted here and rejected before dispatch.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    file_name: str
    mime_type: str
    data: bytes | None = None
    file_path: Path | None = None

    @classmethod
    def from_bytes(cls, data: bytes, name: str, file_name: str, mime_type: str) -> UploadFile:
        """In-memory content, e.g. an encoded image."""
        return cls(name=name, file_name=file_name, mime_type=mime_type, data=data)

    @classmethod
    def from_path(
        cls,
        path: str | Path,
        name: str,
        file_name: str | None = None,
        mime_type: str | None = None,
    ) -> UploadFile:
        """
        Content read from a local file at send time.

        Args:
            path: Local file.
            name: Form field name.
            file_name: Defaults to the final path component.
            mime_type: Defaults to a lookup by extension.
        """
        path = Path(path)
        return cls(
            name=name,
            file_name=file_name or path.name,
            mime_type=mime_type or guess_mime_type(path),
            file_path=path,
        )

    @property
    def has_content(self) -> bool:
        return bool(self.data) or self.file_path is not None


@runtime_checkable
class EndpointDescriptor(Protocol):
    """
    What the client needs to know about an API call.

    ``parameters``, ``headers``, ``upload_files``, ``download_destination``
    and ``resume_data`` are optional and read when present.
    """

    base_url: str
    path: str
    method: str


class Endpoint(BaseModel):
    """
    Concrete, immutable endpoint descriptor.

    Example:
        >>> Endpoint(base_url="https://api.example.com", path="/users/1")
        >>> Endpoint(
        ...     base_url="https://api.example.com",
        ...     path="/avatar",
        ...     method="POST",
        ...     upload_files=[UploadFile.from_path("me.png", name="avatar")],
        ... )
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    base_url: str
    path: str = ""
    method: HTTPMethod = "GET"
    parameters: dict[str, Any] | None = None
    headers: dict[str, str] = Field(default_factory=dict)
    upload_files: tuple[UploadFile, ...] | None = None
    download_destination: Callable[..., Any] | None = None
    resume_data: bytes | None = None

    @field_validator("method", mode="before")
    @classmethod
    def _upper_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.upper()
        return value

    @property
    def url(self) -> str:
        """Base URL joined with the path."""
        if not self.path:
            return self.base_url
        return f"{self.base_url.rstrip('/')}/{self.path.lstrip('/')}"

    @property
    def is_upload(self) -> bool:
        return bool(self.upload_files)

    @property
    def is_download(self) -> bool:
        return self.download_destination is not None

    @classmethod
    def from_descriptor(cls, descriptor: Any) -> Endpoint:
        """
        Build an Endpoint from any object exposing the descriptor attributes.

        Only ``base_url`` is required; missing attributes take their defaults.
        """
        if isinstance(descriptor, Endpoint):
            return descriptor
        values = {"base_url": str(descriptor.base_url)}
        for field_name in (
            "path",
            "method",
            "parameters",
            "headers",
            "upload_files",
            "download_destination",
            "resume_data",
        ):
            value = getattr(descriptor, field_name, None)
            if value is not None:
                values[field_name] = value
        return cls(**values)

    def __repr__(self) -> str:
        return f"<Endpoint {self.method} {self.url}>"


__all__ = [
    "DownloadDestination",
    "Endpoint",
    "EndpointDescriptor",
    "HTTPMethod",
    "UploadFile",
]
