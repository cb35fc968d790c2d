"""
Transport observers.

Observers see every request before it is sent, every progress update and
every completion. They are purely observational: the transport ignores
anything they return and logs (then drops) anything they raise.
"""

from __future__ import annotations

import json

from apikit.logging import get_logger
from apikit.models.endpoint import Endpoint
from apikit.models.response import RawResponse
from apikit.utils.files import file_size, formatted_file_size

logger = get_logger(__name__)

REDACTED_HEADERS = frozenset({"authorization", "cookie", "proxy-authorization"})


class TransportObserver:
    """Base observer with no-op hooks."""

    def will_send(self, endpoint: Endpoint) -> None:
        """Called before the request is dispatched."""

    def did_progress(self, endpoint: Endpoint, fraction: float) -> None:
        """Called for upload or download progress, ``fraction`` in [0, 1]."""

    def did_complete(
        self,
        endpoint: Endpoint,
        response: RawResponse | None,
        error: BaseException | None,
    ) -> None:
        """Called once with either the response or the transport error."""


class LoggingObserver(TransportObserver):
    """Log requests, progress and responses at debug level."""

    def __init__(self, log_bodies: bool = True) -> None:
        self.log_bodies = log_bodies

    def will_send(self, endpoint: Endpoint) -> None:
        logger.debug(f"Request: {endpoint.method} {endpoint.url}")
        if endpoint.parameters:
            logger.debug(f"  Parameters: {endpoint.parameters}")
        if endpoint.headers:
            logger.debug(f"  Headers: {redact_headers(endpoint.headers)}")

        for index, file in enumerate(endpoint.upload_files or (), start=1):
            info = (
                f"  Upload #{index}: name={file.name} | file_name={file.file_name} "
                f"| mime_type={file.mime_type}"
            )
            if file.data:
                info += f" | size={formatted_file_size(len(file.data))}"
            elif file.file_path is not None:
                info += f" | path={file.file_path}"
                size = file_size(file.file_path)
                if size is not None:
                    info += f" | size={formatted_file_size(size)}"
            logger.debug(info)

        if endpoint.is_download:
            logger.debug(f"  Download: resume={endpoint.resume_data is not None}")

    def did_progress(self, endpoint: Endpoint, fraction: float) -> None:
        direction = "Upload" if endpoint.is_upload else "Download"
        logger.debug(f"{direction} progress: {endpoint.url} | {fraction * 100:.2f}%")

    def did_complete(
        self,
        endpoint: Endpoint,
        response: RawResponse | None,
        error: BaseException | None,
    ) -> None:
        if response is None:
            logger.debug(f"Request failed: {endpoint.url} | {error}")
            return

        logger.debug(f"Response: {endpoint.url} | status={response.status_code}")
        if response.file_path is not None:
            size = file_size(response.file_path)
            logger.debug(f"  Downloaded to: {response.file_path}")
            if size is not None:
                logger.debug(f"  Downloaded size: {formatted_file_size(size)}")
        elif self.log_bodies and response.body:
            try:
                logger.debug(f"  Body: {json.loads(response.body)}")
            except ValueError:
                logger.debug(f"  Body: {len(response.body)} bytes (not JSON)")


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    return {
        name: "***" if name.lower() in REDACTED_HEADERS else value
        for name, value in headers.items()
    }


__all__ = ["LoggingObserver", "REDACTED_HEADERS", "TransportObserver", "redact_headers"]
