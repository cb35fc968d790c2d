"""Data models for apikit."""

from apikit.models.endpoint import (
    DownloadDestination,
    Endpoint,
    EndpointDescriptor,
    HTTPMethod,
    UploadFile,
)
from apikit.models.response import BusinessEnvelope, RawResponse, Result
from apikit.models.transfer import DownloadOptions, DownloadTarget, ResumeData

__all__ = [
    "BusinessEnvelope",
    "DownloadDestination",
    "DownloadOptions",
    "DownloadTarget",
    "Endpoint",
    "EndpointDescriptor",
    "HTTPMethod",
    "RawResponse",
    "Result",
    "ResumeData",
    "UploadFile",
]
