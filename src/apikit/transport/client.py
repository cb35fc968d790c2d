"""
HTTP transport client.

Wraps one ``httpx.AsyncClient`` with fixed timeouts and an observer, and
turns endpoint descriptors into HTTP exchanges:

- ``send`` for JSON requests and multipart uploads (with upload progress).
- ``download`` for streamed downloads into a partial file, with resume
  support, moved to the descriptor's destination when complete.

Failures are raised as-is (httpx errors) or as pipeline failure markers; the
caller normalizes them.
"""

from __future__ import annotations

import asyncio
import shutil
import uuid
from contextlib import ExitStack
from pathlib import Path
from typing import Any, AsyncIterator

import httpx
from pydantic import ValidationError

from apikit.config import NetworkSettings, get_settings
from apikit.logging import get_logger
from apikit.models.endpoint import Endpoint, UploadFile
from apikit.models.response import RawResponse
from apikit.models.transfer import DownloadOptions, DownloadTarget, ResumeData
from apikit.normalizer import (
    FileReadFailure,
    FileWriteFailure,
    InterruptedTransfer,
    ParameterEncodingFailure,
    RequestMappingFailure,
    ResumeErrorCode,
    ResumeFailure,
)
from apikit.progress import ProgressReporter
from apikit.transport.observer import LoggingObserver, TransportObserver
from apikit.utils.files import delete_file, file_size

logger = get_logger(__name__)

# Methods whose parameters travel in the query string
QUERY_METHODS = frozenset({"GET", "HEAD", "DELETE"})


class TransportClient:
    """
    Transport for apikit requests.

    Example:
        >>> async with TransportClient() as transport:
        ...     raw = await transport.send(endpoint)
        ...     print(raw.status_code)
    """

    def __init__(
        self,
        settings: NetworkSettings | None = None,
        observer: TransportObserver | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize transport client.

        Args:
            settings: Timeouts, chunk sizes and storage paths.
            observer: Request observer (defaults to LoggingObserver).
            transport: Custom httpx transport, e.g. httpx.MockTransport.
        """
        self._settings = settings or get_settings()
        self._observer = observer or LoggingObserver(self._settings.log_bodies)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def settings(self) -> NetworkSettings:
        return self._settings

    @property
    def observer(self) -> TransportObserver:
        return self._observer

    @property
    def client(self) -> httpx.AsyncClient:
        """Underlying httpx client, created on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._settings.request_timeout),
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> TransportClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def send(
        self,
        endpoint: Endpoint,
        reporter: ProgressReporter | None = None,
    ) -> RawResponse:
        """
        Send a JSON or multipart request and read the whole response.

        Args:
            endpoint: Fully composed descriptor.
            reporter: Receives the upload fraction for multipart requests.
        """
        return await self._observed(endpoint, self._send(endpoint, reporter))

    async def download(
        self,
        endpoint: Endpoint,
        reporter: ProgressReporter | None = None,
    ) -> RawResponse:
        """
        Stream the response body to disk and move it to its destination.

        The resource timeout is enforced inside the transfer so that a
        deadline hit mid-body still yields resume data.

        Returns:
            RawResponse whose ``file_path`` is the final location. For
            non-2xx responses nothing is written and ``file_path`` is None.
        """
        return await self._observed(
            endpoint, self._download(endpoint, reporter), deadline=False
        )

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    async def _observed(
        self, endpoint: Endpoint, operation: Any, deadline: bool = True
    ) -> RawResponse:
        self._observe("will_send", endpoint)
        try:
            if deadline:
                operation = asyncio.wait_for(operation, timeout=self._settings.resource_timeout)
            raw = await operation
        except Exception as e:
            self._observe("did_complete", endpoint, None, e)
            raise
        self._observe("did_complete", endpoint, raw, None)
        return raw

    def _observe(self, hook: str, *args: Any) -> None:
        try:
            getattr(self._observer, hook)(*args)
        except Exception as e:
            logger.warning(f"Observer {hook} failed: {e}")

    def _progress(
        self,
        endpoint: Endpoint,
        reporter: ProgressReporter | None,
        completed: int,
        total: int,
    ) -> None:
        if total <= 0:
            return
        fraction = min(completed / total, 1.0)
        self._observe("did_progress", endpoint, fraction)
        if reporter is not None:
            reporter.report(fraction)
            reporter.raise_if_failed()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _build_request(
        self,
        endpoint: Endpoint,
        stack: ExitStack,
        extra_headers: dict[str, str] | None = None,
    ) -> httpx.Request:
        headers = dict(endpoint.headers)
        headers.update(extra_headers or {})
        kwargs: dict[str, Any] = {}

        if endpoint.is_upload:
            # httpx sets the multipart boundary itself
            headers = {k: v for k, v in headers.items() if k.lower() != "content-type"}
            kwargs["files"] = [self._file_part(f, stack) for f in endpoint.upload_files or ()]
            if endpoint.parameters:
                kwargs["data"] = endpoint.parameters
        elif endpoint.parameters is not None:
            if endpoint.method in QUERY_METHODS:
                kwargs["params"] = endpoint.parameters
            else:
                kwargs["json"] = endpoint.parameters

        try:
            request = self.client.build_request(
                endpoint.method, endpoint.url, headers=headers, **kwargs
            )
        except httpx.InvalidURL as e:
            raise RequestMappingFailure(cause=e) from e
        except (TypeError, ValueError) as e:
            raise ParameterEncodingFailure(cause=e) from e

        if request.url.scheme not in ("http", "https") or not request.url.host:
            raise RequestMappingFailure(f"Invalid URL: {endpoint.url!r}")
        return request

    @staticmethod
    def _file_part(file: UploadFile, stack: ExitStack) -> tuple[str, tuple[str, Any, str]]:
        if file.data:
            content: Any = file.data
        else:
            try:
                content = stack.enter_context(open(file.file_path, "rb"))  # type: ignore[arg-type]
            except OSError as e:
                raise FileReadFailure(str(file.file_path), e) from e
        return file.name, (file.file_name, content, file.mime_type)

    async def _send(self, endpoint: Endpoint, reporter: ProgressReporter | None) -> RawResponse:
        with ExitStack() as stack:
            request = self._build_request(endpoint, stack)
            if endpoint.is_upload:
                request = self._with_upload_progress(endpoint, request, reporter)
            response = await self.client.send(request)

        if reporter is not None:
            await reporter.flush()
        return RawResponse.from_httpx(response, response.content)

    def _with_upload_progress(
        self,
        endpoint: Endpoint,
        request: httpx.Request,
        reporter: ProgressReporter | None,
    ) -> httpx.Request:
        total = int(request.headers.get("Content-Length") or 0)
        stream = request.stream
        chunk_size = self._settings.upload_chunk_size

        async def body() -> AsyncIterator[bytes]:
            sent = 0
            async for chunk in stream:  # type: ignore[union-attr]
                for start in range(0, len(chunk), chunk_size):
                    piece = chunk[start : start + chunk_size]
                    yield piece
                    sent += len(piece)
                    self._progress(endpoint, reporter, sent, total)

        return httpx.Request(
            request.method,
            request.url,
            headers=request.headers,
            content=body(),
            extensions=request.extensions,
        )

    # ------------------------------------------------------------------
    # Downloads
    # ------------------------------------------------------------------

    def _load_resume(self, endpoint: Endpoint) -> ResumeData | None:
        if endpoint.resume_data is None:
            return None
        try:
            resume = ResumeData.from_bytes(endpoint.resume_data)
        except ValidationError as e:
            raise ResumeFailure(
                ResumeErrorCode.RESUME_DATA_CORRUPTED, "Resume data is corrupted", e
            ) from e
        if resume.url != endpoint.url:
            raise ResumeFailure(
                ResumeErrorCode.RESUME_DATA_CORRUPTED,
                f"Resume data belongs to {resume.url}, not {endpoint.url}",
            )
        if file_size(resume.part_path) != resume.bytes_received:
            raise ResumeFailure(
                ResumeErrorCode.RESUME_DATA_CORRUPTED,
                f"Partial file {resume.part_path} does not match resume data",
            )
        return resume

    def _new_part_path(self) -> Path:
        directory = self._settings.incomplete_dir
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileWriteFailure(str(directory), e) from e
        return directory / f"{uuid.uuid4().hex}.part"

    async def _download(self, endpoint: Endpoint, reporter: ProgressReporter | None) -> RawResponse:
        resume = self._load_resume(endpoint)
        part_path = resume.part_path if resume else self._new_part_path()
        extra_headers: dict[str, str] = {}
        if resume is not None:
            extra_headers["Range"] = f"bytes={resume.bytes_received}-"
            if resume.validator:
                extra_headers["If-Range"] = resume.validator
            logger.debug(f"Resuming {endpoint.url} at byte {resume.bytes_received}")

        deadline = asyncio.get_running_loop().time() + self._settings.resource_timeout
        with ExitStack() as stack:
            request = self._build_request(endpoint, stack, extra_headers)
        response = await asyncio.wait_for(
            self.client.send(request, stream=True), timeout=remaining(deadline)
        )

        try:
            if resume is not None and response.status_code in (200, 416):
                raise ResumeFailure(
                    ResumeErrorCode.CANNOT_RESUME,
                    f"Server cannot resume download (status {response.status_code})",
                )
            if not response.is_success:
                return RawResponse.from_httpx(response, await response.aread())

            await self._stream_to_file(endpoint, response, part_path, resume, reporter, deadline)
            if reporter is not None:
                await reporter.flush()
        except InterruptedTransfer:
            raise
        except BaseException:
            if resume is None:
                delete_file(part_path)
            raise
        finally:
            await response.aclose()

        raw = RawResponse.from_httpx(response)
        final_path = self._move_into_place(endpoint, part_path, raw)
        return raw.model_copy(update={"file_path": final_path})

    async def _stream_to_file(
        self,
        endpoint: Endpoint,
        response: httpx.Response,
        part_path: Path,
        resume: ResumeData | None,
        reporter: ProgressReporter | None,
        deadline: float,
    ) -> None:
        append = resume is not None and response.status_code == 206
        received = resume.bytes_received if append and resume else 0
        total = expected_size(response, received)

        async def copy(fh: Any) -> None:
            nonlocal received
            async for chunk in response.aiter_bytes(self._settings.download_chunk_size):
                fh.write(chunk)
                received += len(chunk)
                self._progress(endpoint, reporter, received, total or 0)

        try:
            with open(part_path, "ab" if append else "wb") as fh:
                await asyncio.wait_for(copy(fh), timeout=remaining(deadline))
        # TimeoutError is an OSError, so it must be matched first
        except (httpx.TransportError, asyncio.TimeoutError) as e:
            resume_data = ResumeData(
                url=endpoint.url,
                part_path=part_path,
                bytes_received=received,
                etag=response.headers.get("etag"),
                last_modified=response.headers.get("last-modified"),
            ).to_bytes()
            raise InterruptedTransfer(e, resume_data) from e
        except OSError as e:
            raise FileWriteFailure(str(part_path), e) from e

        if not total:
            self._progress(endpoint, reporter, received, received)

    def _move_into_place(self, endpoint: Endpoint, part_path: Path, raw: RawResponse) -> Path:
        destination = endpoint.download_destination
        final_path = part_path
        try:
            if destination is None:
                raise ValueError("download destination not configured")
            target = destination(part_path, raw)
            if not isinstance(target, DownloadTarget):
                target = DownloadTarget(Path(target))
            final_path = Path(target.path)

            if DownloadOptions.CREATE_INTERMEDIATE_DIRECTORIES in target.options:
                final_path.parent.mkdir(parents=True, exist_ok=True)
            if final_path.exists():
                if DownloadOptions.REMOVE_PREVIOUS_FILE not in target.options:
                    raise FileExistsError(f"{final_path} already exists")
                final_path.unlink()
            shutil.move(str(part_path), str(final_path))
        except Exception as e:
            delete_file(part_path)
            raise FileWriteFailure(str(final_path), e) from e

        logger.debug(f"Download saved to {final_path}")
        return final_path

    def __repr__(self) -> str:
        return f"<TransportClient timeout={self._settings.request_timeout}s>"


def remaining(deadline: float) -> float:
    """Seconds left until ``deadline`` on the running loop's clock."""
    return max(deadline - asyncio.get_running_loop().time(), 0.0)


def expected_size(response: httpx.Response, offset: int = 0) -> int | None:
    """
    Total size of the resource being downloaded.

    Uses the Content-Range total for partial responses, else Content-Length
    plus ``offset``.
    """
    content_range = response.headers.get("content-range")
    if response.status_code == 206 and content_range and "/" in content_range:
        total = content_range.rsplit("/", 1)[-1].strip()
        if total.isdigit():
            return int(total)
    length = response.headers.get("content-length")
    if length and length.isdigit():
        return int(length) + offset
    return None


__all__ = ["QUERY_METHODS", "TransportClient", "expected_size", "remaining"]
