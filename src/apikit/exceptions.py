"""
Error taxonomy for apikit.

Every failure a request can end with is a ``NetworkError`` tagged with one
``NetworkErrorKind``. The set of kinds is closed: callers can match on
``error.kind`` exhaustively and read the payload fields that belong to it.

Payload per kind:
    INVALID_URL              -
    REQUEST_FAILED           cause
    RESPONSE_CODE_ERROR      status_code
    EMPTY_RESPONSE_DATA      -
    JSON_PARSE_FAILED        cause
    BUSINESS_ERROR           code, msg
    NO_NETWORK               -
    FILE_NOT_FOUND           path
    FILE_READ_FAILED         path, cause
    FILE_WRITE_FAILED        path, cause
    UPLOAD_PROGRESS_ERROR    cause
    DOWNLOAD_PROGRESS_ERROR  cause
    EMPTY_DOWNLOAD_FILE      -
    RESUME_DATA_ERROR        cause
"""

from __future__ import annotations

from enum import Enum


class NetworkErrorKind(str, Enum):
    """Closed set of request failure kinds."""

    INVALID_URL = "invalid_url"
    REQUEST_FAILED = "request_failed"
    RESPONSE_CODE_ERROR = "response_code_error"
    EMPTY_RESPONSE_DATA = "empty_response_data"
    JSON_PARSE_FAILED = "json_parse_failed"
    BUSINESS_ERROR = "business_error"
    NO_NETWORK = "no_network"
    FILE_NOT_FOUND = "file_not_found"
    FILE_READ_FAILED = "file_read_failed"
    FILE_WRITE_FAILED = "file_write_failed"
    UPLOAD_PROGRESS_ERROR = "upload_progress_error"
    DOWNLOAD_PROGRESS_ERROR = "download_progress_error"
    EMPTY_DOWNLOAD_FILE = "empty_download_file"
    RESUME_DATA_ERROR = "resume_data_error"


class NetworkError(Exception):
    """
    A normalized request failure.

    Build instances through the per-kind constructors
    (``NetworkError.response_code_error(404)``); the constructor itself only
    stores what it is given.

    Attributes:
        kind: Which failure this is.
        status_code: HTTP status for RESPONSE_CODE_ERROR.
        code: Backend business code for BUSINESS_ERROR.
        msg: Backend business message for BUSINESS_ERROR.
        path: File path for the file related kinds.
        cause: Underlying exception, when there is one.
        resume_data: Opaque bytes for resubmitting an interrupted download.
    """

    def __init__(
        self,
        kind: NetworkErrorKind,
        *,
        status_code: int | None = None,
        code: int | None = None,
        msg: str | None = None,
        path: str | None = None,
        cause: BaseException | None = None,
        resume_data: bytes | None = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        self.code = code
        self.msg = msg
        self.path = path
        self.resume_data = resume_data
        self._original_cause = cause
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause
            self.__suppress_context__ = True

    @property
    def cause(self) -> BaseException | None:
        return self._original_cause

    @property
    def message(self) -> str:
        """Human readable description of the failure."""
        cause = self._describe_cause()
        kind = self.kind
        if kind is NetworkErrorKind.INVALID_URL:
            return "Invalid request URL"
        if kind is NetworkErrorKind.REQUEST_FAILED:
            return f"Request failed: {cause}"
        if kind is NetworkErrorKind.RESPONSE_CODE_ERROR:
            return f"Server responded with an error (status code: {self.status_code})"
        if kind is NetworkErrorKind.EMPTY_RESPONSE_DATA:
            return "Server returned no data"
        if kind is NetworkErrorKind.JSON_PARSE_FAILED:
            return f"Failed to parse response: {cause}"
        if kind is NetworkErrorKind.BUSINESS_ERROR:
            return self.msg or f"Business error (code: {self.code})"
        if kind is NetworkErrorKind.NO_NETWORK:
            return "Network is unavailable, check your connection"
        if kind is NetworkErrorKind.FILE_NOT_FOUND:
            return f"File not found: {self.path}"
        if kind is NetworkErrorKind.FILE_READ_FAILED:
            return f"Failed to read file: {self.path} | {cause}"
        if kind is NetworkErrorKind.FILE_WRITE_FAILED:
            return f"Failed to write file: {self.path} | {cause}"
        if kind is NetworkErrorKind.UPLOAD_PROGRESS_ERROR:
            return f"Upload progress handler failed: {cause}"
        if kind is NetworkErrorKind.DOWNLOAD_PROGRESS_ERROR:
            return f"Download progress handler failed: {cause}"
        if kind is NetworkErrorKind.EMPTY_DOWNLOAD_FILE:
            return "Downloaded file is empty"
        return f"Failed to resume download: {cause}"

    def _describe_cause(self) -> str:
        if self._original_cause is None:
            return "unknown error"
        return str(self._original_cause) or type(self._original_cause).__name__

    def with_resume_data(self, resume_data: bytes | None) -> NetworkError:
        """Return a copy of this error carrying ``resume_data``."""
        return NetworkError(
            self.kind,
            status_code=self.status_code,
            code=self.code,
            msg=self.msg,
            path=self.path,
            cause=self._original_cause,
            resume_data=resume_data,
        )

    # Per-kind constructors

    @classmethod
    def invalid_url(cls) -> NetworkError:
        return cls(NetworkErrorKind.INVALID_URL)

    @classmethod
    def request_failed(cls, cause: BaseException) -> NetworkError:
        return cls(NetworkErrorKind.REQUEST_FAILED, cause=cause)

    @classmethod
    def response_code_error(cls, status_code: int) -> NetworkError:
        return cls(NetworkErrorKind.RESPONSE_CODE_ERROR, status_code=status_code)

    @classmethod
    def empty_response_data(cls) -> NetworkError:
        return cls(NetworkErrorKind.EMPTY_RESPONSE_DATA)

    @classmethod
    def json_parse_failed(cls, cause: BaseException) -> NetworkError:
        return cls(NetworkErrorKind.JSON_PARSE_FAILED, cause=cause)

    @classmethod
    def business_error(cls, code: int, msg: str) -> NetworkError:
        return cls(NetworkErrorKind.BUSINESS_ERROR, code=code, msg=msg)

    @classmethod
    def no_network(cls, cause: BaseException | None = None) -> NetworkError:
        return cls(NetworkErrorKind.NO_NETWORK, cause=cause)

    @classmethod
    def file_not_found(cls, path: str) -> NetworkError:
        return cls(NetworkErrorKind.FILE_NOT_FOUND, path=path)

    @classmethod
    def file_read_failed(cls, path: str, cause: BaseException) -> NetworkError:
        return cls(NetworkErrorKind.FILE_READ_FAILED, path=path, cause=cause)

    @classmethod
    def file_write_failed(cls, path: str, cause: BaseException) -> NetworkError:
        return cls(NetworkErrorKind.FILE_WRITE_FAILED, path=path, cause=cause)

    @classmethod
    def upload_progress_error(cls, cause: BaseException) -> NetworkError:
        return cls(NetworkErrorKind.UPLOAD_PROGRESS_ERROR, cause=cause)

    @classmethod
    def download_progress_error(cls, cause: BaseException) -> NetworkError:
        return cls(NetworkErrorKind.DOWNLOAD_PROGRESS_ERROR, cause=cause)

    @classmethod
    def empty_download_file(cls) -> NetworkError:
        return cls(NetworkErrorKind.EMPTY_DOWNLOAD_FILE)

    @classmethod
    def resume_data_error(cls, cause: BaseException) -> NetworkError:
        return cls(NetworkErrorKind.RESUME_DATA_ERROR, cause=cause)

    def __repr__(self) -> str:
        fields = [
            f"{name}={value!r}"
            for name, value in (
                ("status_code", self.status_code),
                ("code", self.code),
                ("msg", self.msg),
                ("path", self.path),
            )
            if value is not None
        ]
        inner = ", ".join([self.kind.value, *fields])
        return f"NetworkError({inner})"


__all__ = ["NetworkError", "NetworkErrorKind"]
