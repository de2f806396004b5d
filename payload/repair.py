"""Decode upstream JSON text, repairing known producer faults when needed.

The upstream service occasionally emits bodies that are not valid JSON:
elided values for cyclic back-references (``"customer":}``), trailing
garbage after the document, truncated output and stray control bytes.
``decode`` tries a strict parse first and then walks an ordered chain of
repairs, from the most targeted to the most destructive, re-validating every
candidate with a strict parse before accepting it.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from .diagnostics import ELIDED_VALUE_RE, analyze_payload, error_position
from .metrics import record_decode

logger = logging.getLogger(__name__)

_SPAN_RE = re.compile(r"\{.*\}|\[.*\]", re.DOTALL)
_NON_PRINTABLE_RE = re.compile(r"[^\x20-\x7E]+")


class Strategy(StrEnum):
    STRICT = "strict"
    NULL_PATCH = "null_patch"
    EXTRACT_SPAN = "extract_span"
    TRUNCATE = "truncate"
    STRIP_NON_PRINTABLE = "strip_non_printable"


@dataclass(frozen=True)
class DecodeError:
    """Terminal decode failure carrying the last strict parser diagnostic."""

    message: str
    position: int | None = None
    kind: str = "unrecoverable"

    def __str__(self) -> str:
        return f"Failed to parse server response: {self.message}"


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of ``decode``.

    ``text`` is the candidate that parsed; it equals the input whenever the
    strict attempt succeeded.
    """

    ok: bool
    value: Any | None
    text: str | None
    strategy: Strategy | None
    error: DecodeError | None


@dataclass(frozen=True)
class _RepairAttempt:
    strategy: Strategy
    input_len: int
    output_len: int
    succeeded: bool


@dataclass(frozen=True)
class _Failure:
    message: str
    position: int | None


def _as_text(raw: str | bytes | None) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


def _strict(text: str) -> tuple[bool, Any, _Failure | None]:
    try:
        return True, json.loads(text), None
    except ValueError as exc:
        # JSONDecodeError carries an offset; the int digit limit error does not.
        return False, None, _Failure(message=str(exc), position=error_position(exc))
    except RecursionError:
        return False, None, _Failure(message="maximum nesting depth exceeded", position=None)


def patch_elided_values(text: str) -> str:
    """Map every key whose value was elided before a closing brace to null."""
    return ELIDED_VALUE_RE.sub(r'"\1":null}', text)


def extract_span(text: str) -> str | None:
    """Return the outermost greedy ``{...}``/``[...]`` span when it is not the whole text."""
    match = _SPAN_RE.search(text)
    if match is None or match.group(0) == text:
        return None
    return match.group(0)


def truncate_at(text: str, position: int | None) -> str | None:
    """Cut ``text`` at a reported error offset and close what was left open."""
    if position is None or position < 0 or position > len(text):
        return None
    truncated = text[:position]
    missing = truncated.count("{") - truncated.count("}")
    if missing > 0:
        return truncated + "}" * missing
    if text[position : position + 1] == "}" and truncated.endswith(","):
        return truncated[:-1] + "}"
    return truncated


def strip_non_printable(text: str) -> str:
    return _NON_PRINTABLE_RE.sub(" ", text)


def decode(raw: str | bytes | None) -> DecodeResult:
    """Parse ``raw`` as JSON, applying bounded repairs when the strict parse fails."""
    text = _as_text(raw)
    ok, value, failure = _strict(text)
    if ok:
        record_decode(Strategy.STRICT)
        return DecodeResult(ok=True, value=value, text=text, strategy=Strategy.STRICT, error=None)

    attempts: list[_RepairAttempt] = []
    working = text

    def _attempt(strategy: Strategy, candidate: str | None) -> DecodeResult | None:
        nonlocal failure
        if candidate is None or candidate == working:
            return None
        ok, value, candidate_failure = _strict(candidate)
        attempts.append(
            _RepairAttempt(
                strategy=strategy,
                input_len=len(working),
                output_len=len(candidate),
                succeeded=ok,
            )
        )
        if ok:
            return DecodeResult(ok=True, value=value, text=candidate, strategy=strategy, error=None)
        failure = candidate_failure
        return None

    patched = patch_elided_values(working)
    result = _attempt(Strategy.NULL_PATCH, patched)
    if result is None and patched != working:
        working = patched

    if result is None:
        span = extract_span(working)
        result = _attempt(Strategy.EXTRACT_SPAN, span)
        if result is None and span is not None:
            working = span

    if result is None:
        result = _attempt(Strategy.TRUNCATE, truncate_at(working, failure.position))

    if result is None:
        result = _attempt(Strategy.STRIP_NON_PRINTABLE, strip_non_printable(working))

    for attempt in attempts:
        logger.debug(
            "Repair attempt",
            extra={
                "strategy": attempt.strategy.value,
                "input_len": attempt.input_len,
                "output_len": attempt.output_len,
                "succeeded": attempt.succeeded,
            },
        )

    if result is not None:
        record_decode(result.strategy)
        logger.warning(
            "Repaired malformed JSON payload",
            extra={"strategy": result.strategy.value, "payload_len": len(text)},
        )
        return result

    record_decode(None)
    diagnostics = analyze_payload(working, failure.message, failure.position)
    logger.error(
        "All JSON repair attempts failed",
        extra={"parser_message": failure.message, "issues": diagnostics.issues()},
    )
    return DecodeResult(
        ok=False,
        value=None,
        text=None,
        strategy=None,
        error=DecodeError(message=failure.message, position=failure.position),
    )
