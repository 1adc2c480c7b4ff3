from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .client import DEFAULT_OSLC_VERSION, OslcClient

DEFAULT_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True)
class OslcSettings:
    base_url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    oslc_version: str = DEFAULT_OSLC_VERSION
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    log_level: str = "INFO"


def _env(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def load_env_config(*, use_dotenv: bool = True) -> OslcSettings:
    """Load OSLC connection settings from environment (optional .env)."""
    if use_dotenv:
        load_dotenv()

    raw_timeout = _env("OSLC_TIMEOUT_SECONDS")
    try:
        timeout = float(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT_SECONDS
    except ValueError as exc:
        raise ValueError(
            f"OSLC_TIMEOUT_SECONDS must be a number, got {raw_timeout!r}"
        ) from exc
    if timeout <= 0:
        raise ValueError("OSLC_TIMEOUT_SECONDS must be positive.")

    return OslcSettings(
        base_url=_env("OSLC_BASE_URL"),
        username=_env("OSLC_USERNAME"),
        password=_env("OSLC_PASSWORD"),
        oslc_version=_env("OSLC_CORE_VERSION") or DEFAULT_OSLC_VERSION,
        timeout_seconds=timeout,
        log_level=_env("OSLC_LOG_LEVEL") or "INFO",
    )


def create_client_from_env(**kwargs) -> OslcClient:
    """Create an OslcClient from environment variables."""
    settings = load_env_config()
    if bool(settings.username) != bool(settings.password):
        raise ValueError(
            "OSLC_USERNAME and OSLC_PASSWORD must be set together in environment."
        )
    return OslcClient(
        base_url=settings.base_url,
        username=settings.username,
        password=settings.password,
        oslc_version=settings.oslc_version,
        timeout_seconds=settings.timeout_seconds,
        **kwargs,
    )


__all__ = ["OslcSettings", "load_env_config", "create_client_from_env"]
