from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_UPSTREAM_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash-image-preview"


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    upstream_url: str
    model: str
    # When set, the generation client posts {model, contents, config} to this
    # URL instead of calling upstream with the key.
    proxy_url: str | None
    max_image_dimension: int
    http_timeout: float
    session_ttl: float
    max_sessions: int
    env: str
    log_level: str

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            api_key=os.getenv("RETOUCHER_API_KEY") or None,
            upstream_url=os.getenv("RETOUCHER_UPSTREAM_URL", DEFAULT_UPSTREAM_URL),
            model=os.getenv("RETOUCHER_MODEL", DEFAULT_MODEL),
            proxy_url=os.getenv("RETOUCHER_PROXY_URL") or None,
            max_image_dimension=_int_env("RETOUCHER_MAX_IMAGE_DIMENSION", 2048),
            http_timeout=_float_env("RETOUCHER_HTTP_TIMEOUT", 120.0),
            session_ttl=_float_env("RETOUCHER_SESSION_TTL", 3600.0),
            max_sessions=_int_env("RETOUCHER_MAX_SESSIONS", 100),
            env=os.getenv("ENV", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
