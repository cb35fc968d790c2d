"""
apikit: HTTP networking facade.

Issue requests against endpoint descriptors, decode responses into pydantic
models, unwrap ``{code, msg, data}`` business envelopes, and run multipart
uploads and resumable downloads with progress. Every failure is reported as a
``NetworkError`` with a ``NetworkErrorKind``.

Example:
    >>> from apikit import APIClient, Endpoint, ReachabilityMonitor
    >>> with ReachabilityMonitor() as monitor:
    ...     async with APIClient(reachability=monitor) as client:
    ...         result = await client.request(
    ...             Endpoint(base_url="https://api.example.com", path="/me"),
    ...             User,
    ...         )
"""

from apikit._version import __version__
from apikit.client import APIClient
from apikit.config import NetworkSettings, configure_settings, get_settings, reset_settings
from apikit.endpoints import DefaultHeaders, default_download_destination
from apikit.exceptions import NetworkError, NetworkErrorKind
from apikit.handle import HandleState, RequestHandle
from apikit.models import (
    BusinessEnvelope,
    DownloadOptions,
    DownloadTarget,
    Endpoint,
    EndpointDescriptor,
    RawResponse,
    Result,
    ResumeData,
    UploadFile,
)
from apikit.progress import ForegroundDispatcher, LoopDispatcher
from apikit.reachability import (
    ReachabilityGate,
    ReachabilityMonitor,
    ReachabilityStatus,
    SocketProbeSource,
    StaticReachability,
)
from apikit.transport import LoggingObserver, TransportClient, TransportObserver

__all__ = [
    "__version__",
    # Client
    "APIClient",
    "RequestHandle",
    "HandleState",
    # Config
    "NetworkSettings",
    "configure_settings",
    "get_settings",
    "reset_settings",
    # Endpoints
    "DefaultHeaders",
    "Endpoint",
    "EndpointDescriptor",
    "UploadFile",
    "default_download_destination",
    # Models
    "BusinessEnvelope",
    "DownloadOptions",
    "DownloadTarget",
    "RawResponse",
    "Result",
    "ResumeData",
    # Errors
    "NetworkError",
    "NetworkErrorKind",
    # Reachability
    "ReachabilityGate",
    "ReachabilityMonitor",
    "ReachabilityStatus",
    "SocketProbeSource",
    "StaticReachability",
    # Transport
    "ForegroundDispatcher",
    "LoggingObserver",
    "LoopDispatcher",
    "TransportClient",
    "TransportObserver",
]
