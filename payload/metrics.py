"""Prometheus counters for payload repair, normalization and proxying."""

from __future__ import annotations

from prometheus_client import Counter

DECODE_TOTAL = Counter(
    "payload_decode_total", "Payload decode outcomes.", ("outcome",)
)
REPAIRS_TOTAL = Counter(
    "payload_repairs_total", "Successful payload repairs by strategy.", ("strategy",)
)
FIELDS_DEFAULTED = Counter(
    "normalizer_fields_defaulted_total",
    "Record fields replaced by their default during normalization.",
    ("record", "field"),
)
ELEMENTS_DROPPED = Counter(
    "normalizer_elements_dropped_total",
    "List elements dropped because they could not be normalized.",
    ("field",),
)
PROXY_RESPONSES = Counter(
    "proxy_responses_total", "Proxied responses by action taken.", ("action",)
)


def record_decode(strategy: str | None) -> None:
    """Count a decode outcome; ``None`` means every strategy failed."""
    if strategy is None:
        DECODE_TOTAL.labels(outcome="failed").inc()
    elif strategy == "strict":
        DECODE_TOTAL.labels(outcome="strict").inc()
    else:
        DECODE_TOTAL.labels(outcome="repaired").inc()
        REPAIRS_TOTAL.labels(strategy=str(strategy)).inc()


def record_default(record: str, field: str) -> None:
    FIELDS_DEFAULTED.labels(record=record, field=field).inc()


def record_dropped(field: str) -> None:
    ELEMENTS_DROPPED.labels(field=field).inc()


def record_proxy_action(action: str) -> None:
    PROXY_RESPONSES.labels(action=action).inc()
