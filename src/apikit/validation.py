"""
Response validation, decoding and request pre-validation.

Decoding goes through pydantic in strict mode: JSON types must match the
model, so datetimes are read from ISO-8601 strings only and epoch numbers
are rejected.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from apikit.models.endpoint import Endpoint, UploadFile
from apikit.models.response import RawResponse
from apikit.normalizer import DecodeFailure, FileWriteFailure, MissingFileFailure, StatusCodeFailure

M = TypeVar("M")

NO_DESTINATION = "download destination not configured"


@lru_cache(maxsize=256)
def _cached_adapter(model: Any) -> TypeAdapter[Any]:
    return TypeAdapter(model)


def _adapter(model: Any) -> TypeAdapter[Any]:
    try:
        return _cached_adapter(model)
    except TypeError:
        # Unhashable annotations skip the cache
        return TypeAdapter(model)


def validate(raw: RawResponse) -> RawResponse:
    """Pass through 2xx responses, fail anything else."""
    if not raw.is_success:
        raise StatusCodeFailure(raw.status_code)
    return raw


def decode(raw: RawResponse, model: type[M]) -> M:
    """
    Decode a JSON body into ``model``.

    Args:
        raw: Validated response.
        model: A pydantic model or any type pydantic can validate
            (``dict``, ``list[User]``, ...).

    Raises:
        DecodeFailure: Body is not JSON or does not match the model.
    """
    try:
        return _adapter(model).validate_json(raw.body, strict=True)
    except ValidationError as e:
        raise DecodeFailure(cause=e) from e


def convert(value: Any, model: type[M]) -> M:
    """
    Validate already-parsed JSON data into ``model``.

    The value is re-encoded so the same strict JSON rules as ``decode`` apply.
    """
    try:
        return _adapter(model).validate_json(to_json(value), strict=True)
    except (ValidationError, PydanticSerializationError) as e:
        raise DecodeFailure(cause=e) from e


def check_upload_files(files: tuple[UploadFile, ...] | None) -> None:
    """
    Verify every upload part has content before anything is sent.

    Raises:
        MissingFileFailure: A part has neither bytes nor a file, or its file
            does not exist.
    """
    for file in files or ():
        if file.data:
            continue
        if file.file_path is None:
            raise MissingFileFailure(file.file_name)
        if not file.file_path.is_file():
            raise MissingFileFailure(str(file.file_path))


def check_download_destination(endpoint: Endpoint) -> None:
    if endpoint.download_destination is None:
        raise FileWriteFailure(NO_DESTINATION, ValueError(NO_DESTINATION))


__all__ = [
    "NO_DESTINATION",
    "check_download_destination",
    "check_upload_files",
    "convert",
    "decode",
    "validate",
]
