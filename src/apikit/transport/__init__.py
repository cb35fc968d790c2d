"""
Transport layer for apikit.

``TransportClient`` performs the HTTP exchange; observers watch it.
"""

from apikit.transport.client import QUERY_METHODS, TransportClient, expected_size
from apikit.transport.observer import LoggingObserver, TransportObserver, redact_headers

__all__ = [
    "LoggingObserver",
    "QUERY_METHODS",
    "TransportClient",
    "TransportObserver",
    "expected_size",
    "redact_headers",
]
