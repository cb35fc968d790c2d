"""
Error normalization.

Pipeline steps raise the private failure markers below (or let httpx and
asyncio errors through untouched). ``normalize`` is the only function that
turns a failure into a ``NetworkError``; no other module classifies errors.
"""

from __future__ import annotations

import asyncio
from enum import Enum

import httpx

from apikit.exceptions import NetworkError


class Failure(Exception):
    """Base class for internal pipeline failures."""

    def __init__(self, message: str = "", cause: BaseException | None = None) -> None:
        super().__init__(message or (str(cause) if cause is not None else ""))
        self.cause = cause


class UnreachableFailure(Failure):
    """The reachability gate reported no connectivity."""


class StatusCodeFailure(Failure):
    def __init__(self, status_code: int) -> None:
        super().__init__(f"Unacceptable status code: {status_code}")
        self.status_code = status_code


class RequestMappingFailure(Failure):
    """The descriptor could not be turned into a request (bad URL)."""


class ParameterEncodingFailure(Failure):
    """Parameters could not be encoded into the request."""


class DecodeFailure(Failure):
    """The response body could not be decoded into the requested model."""


class BusinessFailure(Failure):
    def __init__(self, code: int, msg: str) -> None:
        super().__init__(f"Business error {code}: {msg}")
        self.code = code
        self.msg = msg


class MissingFileFailure(Failure):
    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path


class FileReadFailure(Failure):
    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"Cannot read {path}", cause)
        self.path = path


class FileWriteFailure(Failure):
    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"Cannot write {path}", cause)
        self.path = path


class EmptyDownloadFailure(Failure):
    """The finished download is missing or has zero bytes."""


class ResumeErrorCode(str, Enum):
    CANNOT_RESUME = "cannot_resume"
    RESUME_DATA_CORRUPTED = "resume_data_corrupted"


class ResumeFailure(Failure):
    def __init__(self, code: ResumeErrorCode, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message, cause)
        self.code = code


class TransferDirection(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"


class ProgressCallbackFailure(Failure):
    """The caller's progress handler raised."""

    def __init__(self, direction: TransferDirection, cause: BaseException) -> None:
        super().__init__(f"{direction.value} progress handler failed", cause)
        self.direction = direction


class InterruptedTransfer(Failure):
    """A transfer failed mid-body; ``resume_data`` lets the caller continue it."""

    def __init__(self, cause: BaseException, resume_data: bytes | None) -> None:
        super().__init__(str(cause), cause)
        self.resume_data = resume_data


# Transport errors meaning "the network went away" rather than "the request is bad".
CONNECTIVITY_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    asyncio.TimeoutError,
    TimeoutError,
)


def normalize(failure: BaseException) -> NetworkError:
    """
    Map any failure to exactly one NetworkError.

    Args:
        failure: A pipeline failure marker, an httpx/asyncio error, or an
            already normalized NetworkError.

    Returns:
        The normalized error.
    """
    if isinstance(failure, NetworkError):
        return failure
    if isinstance(failure, InterruptedTransfer):
        inner = failure.cause if failure.cause is not None else failure
        return normalize(inner).with_resume_data(failure.resume_data)

    # Pipeline markers
    if isinstance(failure, UnreachableFailure):
        return NetworkError.no_network()
    if isinstance(failure, StatusCodeFailure):
        return NetworkError.response_code_error(failure.status_code)
    if isinstance(failure, RequestMappingFailure):
        return NetworkError.invalid_url()
    if isinstance(failure, ParameterEncodingFailure):
        return NetworkError.request_failed(failure.cause or failure)
    if isinstance(failure, DecodeFailure):
        return NetworkError.json_parse_failed(failure.cause or failure)
    if isinstance(failure, BusinessFailure):
        return NetworkError.business_error(failure.code, failure.msg)
    if isinstance(failure, MissingFileFailure):
        return NetworkError.file_not_found(failure.path)
    if isinstance(failure, FileReadFailure):
        return NetworkError.file_read_failed(failure.path, failure.cause or failure)
    if isinstance(failure, FileWriteFailure):
        return NetworkError.file_write_failed(failure.path, failure.cause or failure)
    if isinstance(failure, EmptyDownloadFailure):
        return NetworkError.empty_download_file()
    if isinstance(failure, ResumeFailure):
        return NetworkError.resume_data_error(failure)
    if isinstance(failure, ProgressCallbackFailure):
        cause = failure.cause or failure
        if failure.direction is TransferDirection.UPLOAD:
            return NetworkError.upload_progress_error(cause)
        return NetworkError.download_progress_error(cause)

    # Transport errors
    if isinstance(failure, (httpx.InvalidURL, httpx.UnsupportedProtocol)):
        return NetworkError.invalid_url()
    if isinstance(failure, CONNECTIVITY_ERRORS):
        return NetworkError.no_network(failure)
    return NetworkError.request_failed(failure)


__all__ = [
    "BusinessFailure",
    "CONNECTIVITY_ERRORS",
    "DecodeFailure",
    "EmptyDownloadFailure",
    "Failure",
    "FileReadFailure",
    "FileWriteFailure",
    "InterruptedTransfer",
    "MissingFileFailure",
    "ParameterEncodingFailure",
    "ProgressCallbackFailure",
    "RequestMappingFailure",
    "ResumeErrorCode",
    "ResumeFailure",
    "StatusCodeFailure",
    "TransferDirection",
    "UnreachableFailure",
    "normalize",
]
