"""
Response-side models: raw transport responses, the backend envelope and the
``Result`` handed to completions.
"""

from __future__ import annotations

from dataclasses import dataclass
from email.message import Message
from pathlib import Path
from typing import Any, Generic, TypeVar
from urllib.parse import unquote, urlsplit

import httpx
from pydantic import BaseModel, ConfigDict, Field

from apikit.exceptions import NetworkError

D = TypeVar("D")
T = TypeVar("T")


def safe_filename(value: str | None) -> str | None:
    """Base name of ``value``, or None when nothing usable is left."""
    if not value:
        return None
    name = Path(value).name
    if name in ("", ".", ".."):
        return None
    return name


class RawResponse(BaseModel):
    """Status, body and metadata of one completed HTTP exchange."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    status_code: int
    body: bytes = b""
    headers: httpx.Headers = Field(default_factory=httpx.Headers)
    url: str = ""
    file_path: Path | None = None

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code <= 299

    @property
    def suggested_filename(self) -> str | None:
        """File name from Content-Disposition, else the last URL path segment."""
        disposition = self.headers.get("content-disposition")
        if disposition:
            message = Message()
            message["content-disposition"] = disposition
            name = safe_filename(message.get_filename())
            if name:
                return name
        return safe_filename(unquote(urlsplit(self.url).path.rsplit("/", 1)[-1]))

    @classmethod
    def from_httpx(cls, response: httpx.Response, body: bytes = b"") -> RawResponse:
        return cls(
            status_code=response.status_code,
            body=body,
            headers=response.headers,
            url=str(response.url),
        )

    def __repr__(self) -> str:
        return f"<RawResponse {self.status_code} {self.url} ({len(self.body)} bytes)>"


class BusinessEnvelope(BaseModel, Generic[D]):
    """Backend wrapper ``{"code": int, "msg": str, "data": ...}``."""

    code: int
    msg: str = ""
    data: D | None = None


@dataclass(frozen=True)
class Result(Generic[T]):
    """
    Terminal outcome of one request.

    Example:
        >>> result = await client.request(endpoint, User)
        >>> if result.ok:
        ...     print(result.value.name)
        ... else:
        ...     print(result.error.kind, result.error.message)
    """

    value: T | None = None
    error: NetworkError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: NetworkError) -> Result[Any]:
        return cls(error=error)

    def unwrap(self) -> T:
        """Return the value or raise the NetworkError."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]

    def __repr__(self) -> str:
        if self.ok:
            return f"Result(ok, {self.value!r})"
        return f"Result(failed: {self.error!r})"


__all__ = ["BusinessEnvelope", "RawResponse", "Result", "safe_filename"]
