"""Environment-driven settings for the proxy service."""

from __future__ import annotations

import os

_FALSE_VALUES = {"0", "false", "no", "off"}


def upstream_url() -> str:
    return os.getenv("UPSTREAM_API_URL", "http://localhost:8080")


def repair_enabled() -> bool:
    return os.getenv("PROXY_REPAIR_ENABLED", "1").strip().lower() not in _FALSE_VALUES


def proxy_timeout_seconds() -> float:
    return float(os.getenv("PROXY_TIMEOUT_S", "30"))


def client_base_url() -> str:
    return os.getenv("CLIENT_BASE_URL", "http://localhost:8080/api")


def client_timeout_seconds() -> float:
    return float(os.getenv("CLIENT_TIMEOUT_S", "10"))
