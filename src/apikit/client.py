"""
apikit request orchestrator.

``APIClient`` runs every request through the same pipeline:

    compose defaults -> reachability gate -> pre-validation -> dispatch
    -> status validation -> decode -> post-processing -> one Result

Gate and pre-validation failures are delivered before the method returns and
never touch the network. Everything after dispatch runs in its own asyncio
task; the returned ``RequestHandle`` can be awaited or cancelled.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import ValidationError

from apikit.config import NetworkSettings, get_settings
from apikit.endpoints import DefaultHeaders
from apikit.handle import Completion, RequestHandle
from apikit.logging import get_logger
from apikit.models.endpoint import Endpoint
from apikit.models.response import BusinessEnvelope, Result
from apikit.normalizer import (
    BusinessFailure,
    EmptyDownloadFailure,
    RequestMappingFailure,
    TransferDirection,
    UnreachableFailure,
    normalize,
)
from apikit.progress import ForegroundDispatcher, LoopDispatcher, ProgressHandler, ProgressReporter
from apikit.reachability import ReachabilityGate
from apikit.transport.client import TransportClient
from apikit.utils.files import file_size
from apikit.validation import (
    check_download_destination,
    check_upload_files,
    convert,
    decode,
    validate,
)

logger = get_logger(__name__)

M = TypeVar("M")

Pipeline = Callable[[Endpoint, "ProgressReporter | None"], Awaitable[Any]]


class APIClient:
    """
    Networking facade.

    Example:
        >>> monitor = ReachabilityMonitor()
        >>> monitor.start()
        >>> async with APIClient(reachability=monitor) as client:
        ...     result = await client.request_business(endpoint, User)
        ...     if result.ok:
        ...         print(result.value)
        ...     else:
        ...         print(result.error.message)
    """

    def __init__(
        self,
        reachability: ReachabilityGate,
        transport: TransportClient | None = None,
        settings: NetworkSettings | None = None,
        dispatcher: ForegroundDispatcher | None = None,
        defaults: Callable[[Any], Endpoint] | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            reachability: Gate consulted before every request.
            transport: Transport client (built from settings if omitted).
            settings: Defaults to the transport's settings, then the
                process-wide settings.
            dispatcher: Where progress handlers run. Defaults to the event
                loop each request is issued from.
            defaults: Composition step applied to every descriptor. Defaults
                to DefaultHeaders.
        """
        if settings is None:
            settings = transport.settings if transport is not None else get_settings()
        self._settings = settings
        self._transport = transport or TransportClient(settings)
        self._reachability = reachability
        self._dispatcher = dispatcher
        self._defaults = defaults or DefaultHeaders(settings)

    @property
    def settings(self) -> NetworkSettings:
        return self._settings

    @property
    def transport(self) -> TransportClient:
        return self._transport

    @property
    def reachability(self) -> ReachabilityGate:
        return self._reachability

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def request(
        self,
        endpoint: Any,
        model: type[M],
        completion: Completion | None = None,
    ) -> RequestHandle[M]:
        """
        Send a request and decode the response body into ``model``.

        Must be called from a running event loop.

        Args:
            endpoint: Endpoint or any object with the descriptor attributes.
            model: Pydantic model (or other type) for the response body.
            completion: Called once with the Result unless cancelled.

        Returns:
            Handle resolving to ``Result[M]``.
        """
        return self._submit(
            endpoint,
            completion,
            lambda ep, _reporter: self._fetch(ep, model),
        )

    def request_business(
        self,
        endpoint: Any,
        model: type[M],
        completion: Completion | None = None,
    ) -> RequestHandle[M]:
        """
        Send a request answered with a ``{code, msg, data}`` envelope.

        Succeeds with ``data`` decoded into ``model`` when ``code`` equals
        ``settings.business_success_code``; otherwise fails with a
        BUSINESS_ERROR carrying the code and message.
        """
        return self._submit(
            endpoint,
            completion,
            lambda ep, _reporter: self._fetch_business(ep, model),
        )

    def request_upload(
        self,
        endpoint: Any,
        model: type[M],
        on_progress: ProgressHandler | None = None,
        completion: Completion | None = None,
    ) -> RequestHandle[M]:
        """
        Send a multipart upload of ``endpoint.upload_files``.

        Every file is checked before anything is sent: a part with no bytes
        and no existing local file fails with FILE_NOT_FOUND.

        Args:
            on_progress: Receives the sent fraction on the event loop.
        """
        return self._submit(
            endpoint,
            completion,
            lambda ep, reporter: self._fetch(ep, model, reporter),
            precheck=lambda ep: check_upload_files(ep.upload_files),
            on_progress=on_progress,
            direction=TransferDirection.UPLOAD,
        )

    def request_download(
        self,
        endpoint: Any,
        on_progress: ProgressHandler | None = None,
        completion: Completion | None = None,
    ) -> RequestHandle[Path]:
        """
        Download to ``endpoint.download_destination``.

        Fails with FILE_WRITE_FAILED before dispatch when no destination is
        configured and with EMPTY_DOWNLOAD_FILE when the saved file is
        missing or empty. Pass a failed request's ``error.resume_data`` as
        the new endpoint's ``resume_data`` to continue it.

        Returns:
            Handle resolving to the final file path.
        """
        return self._submit(
            endpoint,
            completion,
            self._download,
            precheck=check_download_destination,
            on_progress=on_progress,
            direction=TransferDirection.DOWNLOAD,
        )

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _compose(self, endpoint: Any) -> Endpoint:
        try:
            return self._defaults(endpoint)
        except ValidationError as e:
            raise RequestMappingFailure(cause=e) from e

    def _submit(
        self,
        endpoint: Any,
        completion: Completion | None,
        pipeline: Pipeline,
        precheck: Callable[[Endpoint], None] | None = None,
        on_progress: ProgressHandler | None = None,
        direction: TransferDirection | None = None,
    ) -> RequestHandle[Any]:
        loop = asyncio.get_running_loop()
        handle: RequestHandle[Any] = RequestHandle(loop, completion)

        try:
            if not self._reachability.is_reachable:
                raise UnreachableFailure("Network is not reachable")
            prepared = self._compose(endpoint)
            if precheck is not None:
                precheck(prepared)
        except Exception as e:
            error = normalize(e)
            logger.debug(f"Rejected before dispatch: {error!r}")
            handle.reject(error)
            return handle

        reporter = None
        if on_progress is not None and direction is not None:
            reporter = ProgressReporter(
                on_progress,
                direction,
                self._dispatcher or LoopDispatcher(loop),
                lambda: handle.pending,
            )

        task = loop.create_task(self._run(handle, lambda: pipeline(prepared, reporter)))
        handle.attach(task)
        return handle

    async def _run(
        self,
        handle: RequestHandle[Any],
        start: Callable[[], Awaitable[Any]],
    ) -> None:
        try:
            value = await start()
        except asyncio.CancelledError:
            handle.cancel()
            raise
        except Exception as e:
            error = normalize(e)
            logger.debug(f"Request failed: {error!r}")
            handle.deliver(Result.failure(error))
        else:
            handle.deliver(Result.success(value))

    async def _fetch(
        self,
        endpoint: Endpoint,
        model: type[M],
        reporter: ProgressReporter | None = None,
    ) -> M:
        raw = validate(await self._transport.send(endpoint, reporter))
        return decode(raw, model)

    async def _fetch_business(self, endpoint: Endpoint, model: type[M]) -> M:
        raw = validate(await self._transport.send(endpoint))
        envelope = decode(raw, BusinessEnvelope[Any])
        if envelope.code != self._settings.business_success_code:
            raise BusinessFailure(envelope.code, envelope.msg)
        return convert(envelope.data, model)

    async def _download(self, endpoint: Endpoint, reporter: ProgressReporter | None) -> Path:
        raw = validate(await self._transport.download(endpoint, reporter))
        if raw.file_path is None or not file_size(raw.file_path):
            raise EmptyDownloadFailure("Downloaded file is missing or empty")
        return raw.file_path

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the transport."""
        await self._transport.close()

    async def __aenter__(self) -> APIClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"<APIClient reachable={self._reachability.is_reachable}>"


__all__ = ["APIClient"]
