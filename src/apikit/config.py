"""
apikit configuration.

Settings are read from ``APIKIT_*`` environment variables (and an optional
``.env`` file) through pydantic-settings. A single cached instance is shared
by the transport, the orchestrator and the endpoint helpers.

Example:
    >>> from apikit.config import configure_settings
    >>> configure_settings(auth_token="secret", request_timeout=10.0)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from apikit._version import __version__

DEFAULT_DOWNLOADS_DIR = Path.home() / ".apikit" / "Downloads"


class NetworkSettings(BaseSettings):
    """Settings for the networking facade."""

    model_config = SettingsConfigDict(
        env_prefix="APIKIT_",
        env_file=".env",
        extra="ignore",
    )

    # Transport
    request_timeout: float = Field(default=30.0, ge=1.0)
    resource_timeout: float = Field(default=30.0, ge=1.0)
    download_chunk_size: int = Field(default=64 * 1024, ge=1024)
    upload_chunk_size: int = Field(default=64 * 1024, ge=1024)

    # Backend conventions
    business_success_code: int = 0
    auth_token: str | None = None
    app_version: str = __version__

    # Storage
    downloads_dir: Path = DEFAULT_DOWNLOADS_DIR

    # Reachability probe
    reachability_host: str = "1.1.1.1"
    reachability_port: int = Field(default=53, ge=1, le=65535)
    reachability_interval: float = Field(default=5.0, gt=0)
    reachability_probe_timeout: float = Field(default=3.0, gt=0)

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_json: bool = False
    log_bodies: bool = True

    @property
    def incomplete_dir(self) -> Path:
        """Directory holding partially downloaded files."""
        return self.downloads_dir / ".incomplete"


_settings: NetworkSettings | None = None


def get_settings() -> NetworkSettings:
    """Return the process-wide settings, creating them on first use."""
    global _settings
    if _settings is None:
        _settings = NetworkSettings()
    return _settings


def configure_settings(**overrides: Any) -> NetworkSettings:
    """
    Replace the process-wide settings.

    Args:
        **overrides: Field values taking precedence over the environment.

    Returns:
        The new settings instance.
    """
    global _settings
    _settings = NetworkSettings(**overrides)
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next access re-reads the environment."""
    global _settings
    _settings = None


__all__ = [
    "DEFAULT_DOWNLOADS_DIR",
    "NetworkSettings",
    "configure_settings",
    "get_settings",
    "reset_settings",
]
