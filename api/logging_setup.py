"""JSON logging for the repairing proxy.

Every record emitted through the configured handler carries the proxy
context (service name, upstream target and whether body repair is on), so
repair warnings can be traced back to the upstream that produced them.
"""

from __future__ import annotations

import logging
import os
from typing import Any

from pythonjsonlogger import jsonlogger

from api.config import repair_enabled, upstream_url

_LOGGING_CONFIGURED = False
_DEFAULT_SERVICE = "payload-proxy"
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(service)s %(upstream)s %(repair_enabled)s %(message)s"


class _ProxyContextFilter(logging.Filter):
    def __init__(self, service: str, upstream: str, repair: bool):
        super().__init__()
        self._context = {"service": service, "upstream": upstream, "repair_enabled": repair}

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self._context.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


def configure_logging(service_name: str | None = None) -> None:
    """Attach a JSON stderr handler to the root logger once per process."""
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    root = logging.getLogger()
    root.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    handler = logging.StreamHandler()
    handler.setFormatter(jsonlogger.JsonFormatter(_LOG_FORMAT))
    handler.addFilter(
        _ProxyContextFilter(
            service=service_name or os.getenv("SERVICE_NAME") or _DEFAULT_SERVICE,
            upstream=upstream_url(),
            repair=repair_enabled(),
        )
    )
    root.addHandler(handler)

    _LOGGING_CONFIGURED = True


def reset_logging() -> None:
    """Drop root handlers so tests can reconfigure."""
    global _LOGGING_CONFIGURED
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    _LOGGING_CONFIGURED = False


def log_outcome(
    logger: logging.Logger,
    message: str,
    *,
    has_data: bool | None = None,
    extra: dict[str, Any] | None = None,
) -> None:
    """Log at warning when a fetch came back empty, info otherwise."""
    logger.log(logging.INFO if has_data is not False else logging.WARNING, message, extra=extra)
