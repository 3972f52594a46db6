from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_SERVICE_URL = "http://localhost:8080/api"


def _env_float(name: str) -> float | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(slots=True)
class Settings:
    claims_service_url: str
    policies_service_url: str
    service_timeout_seconds: float | None
    service_auth_token: str | None

    currency_symbol: str
    max_open_views: int

    log_level: str
    log_format: str


def load_settings() -> Settings:
    claims_url = os.getenv("CLAIMS_SERVICE_URL", DEFAULT_SERVICE_URL)
    return Settings(
        claims_service_url=claims_url,
        policies_service_url=os.getenv("POLICIES_SERVICE_URL", claims_url),
        service_timeout_seconds=_env_float("SERVICE_TIMEOUT_SECONDS"),
        service_auth_token=os.getenv("SERVICE_AUTH_TOKEN") or None,
        currency_symbol=os.getenv("CURRENCY_SYMBOL", "₹"),
        max_open_views=max(_env_int("MAX_OPEN_VIEWS", 200), 1),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        log_format=os.getenv("LOG_FORMAT", "human").lower(),
    )
