"""
Endpoint composition helpers.

Callers describe only what is specific to an API call. ``DefaultHeaders``
fills in the headers every request carries, and
``default_download_destination`` provides the standard download location.
"""

from __future__ import annotations

import platform
import uuid
from pathlib import Path
from typing import Any, Callable

from apikit.config import NetworkSettings, get_settings
from apikit.models.endpoint import Endpoint
from apikit.models.response import RawResponse
from apikit.models.transfer import DownloadOptions, DownloadTarget
from apikit.utils.files import delete_file


def user_agent(app_version: str) -> str:
    """User-Agent of the form ``<OS>/<release> App/<version>``."""
    return f"{platform.system() or 'Unknown'}/{platform.release() or '0'} App/{app_version}"


class DefaultHeaders:
    """
    Composition step adding default headers to a descriptor.

    Adds ``Content-Type: application/json``, a ``User-Agent`` and, when a
    token is configured, ``Authorization: Bearer <token>``. Headers the
    caller already set are left alone.
    """

    def __init__(self, settings: NetworkSettings | None = None) -> None:
        self._settings = settings

    @property
    def settings(self) -> NetworkSettings:
        return self._settings or get_settings()

    def headers(self) -> dict[str, str]:
        settings = self.settings
        headers = {
            "Content-Type": "application/json",
            "User-Agent": user_agent(settings.app_version),
        }
        if settings.auth_token:
            headers["Authorization"] = f"Bearer {settings.auth_token}"
        return headers

    def __call__(self, descriptor: Any) -> Endpoint:
        endpoint = Endpoint.from_descriptor(descriptor)
        present = {name.lower() for name in endpoint.headers}
        merged = {
            name: value
            for name, value in self.headers().items()
            if name.lower() not in present
        }
        merged.update(endpoint.headers)
        return endpoint.model_copy(update={"headers": merged})


def default_download_destination(
    file_name: str | None = None,
    downloads_dir: str | Path | None = None,
) -> Callable[[Path, RawResponse], DownloadTarget]:
    """
    Destination storing downloads in the app's Downloads directory.

    The file name is ``file_name`` when given, else the server-suggested
    name, else a random hex id. An existing file at the target is deleted.

    Args:
        file_name: Explicit file name.
        downloads_dir: Defaults to ``settings.downloads_dir``.
    """

    def destination(temporary_path: Path, response: RawResponse) -> DownloadTarget:
        directory = Path(downloads_dir) if downloads_dir else get_settings().downloads_dir
        directory.mkdir(parents=True, exist_ok=True)

        final_name = file_name or response.suggested_filename or uuid.uuid4().hex
        final_path = directory / final_name
        delete_file(final_path)

        return DownloadTarget(
            final_path,
            DownloadOptions.REMOVE_PREVIOUS_FILE | DownloadOptions.CREATE_INTERMEDIATE_DIRECTORIES,
        )

    return destination


__all__ = ["DefaultHeaders", "default_download_destination", "user_agent"]
