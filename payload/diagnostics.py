"""Inspect malformed payloads so operators can see why a repair failed."""

from __future__ import annotations

import re
from dataclasses import dataclass

_CONTEXT_WIDTH = 20
_TRAILING_COMMA_RE = re.compile(r",\s*[}\]]")
_CONTROL_CHAR_RE = re.compile(r"[\x00-\x1F\x7F-\x9F]")
ELIDED_VALUE_RE = re.compile(r'"([^"]+)":\}')
_POSITION_RE = re.compile(r"position (\d+)|\(char (\d+)\)")


def error_position(exc: Exception) -> int | None:
    """Return the character offset a parser reported for ``exc``, if any."""
    pos = getattr(exc, "pos", None)
    if isinstance(pos, int):
        return pos
    match = _POSITION_RE.search(str(exc))
    if match is None:
        return None
    return int(match.group(1) or match.group(2))


@dataclass(frozen=True)
class PayloadDiagnostics:
    """Summary of structural problems found in a payload."""

    position: int | None
    context: str | None
    open_braces: int
    close_braces: int
    trailing_comma: bool
    control_chars: int
    elided_values: int

    @property
    def brace_mismatch(self) -> bool:
        return self.open_braces != self.close_braces

    def issues(self) -> list[str]:
        found: list[str] = []
        if self.position is not None:
            found.append(f"Error at position {self.position}: {self.context!r}")
        if self.brace_mismatch:
            found.append(
                f"Brace mismatch: {self.open_braces} opening vs {self.close_braces} closing braces"
            )
        if self.trailing_comma:
            found.append("Found trailing commas in objects or arrays")
        if self.control_chars:
            found.append(f"Found {self.control_chars} control characters")
        if self.elided_values:
            found.append(f"Found {self.elided_values} keys with an elided value")
        return found


def _context(text: str, position: int) -> str:
    start = max(0, position - _CONTEXT_WIDTH)
    end = min(len(text), position + _CONTEXT_WIDTH)
    return f"{text[start:position]} >> {text[position:end]}"


def analyze_payload(
    text: str, error_message: str | None = None, position: int | None = None
) -> PayloadDiagnostics:
    """Collect brace, comma, control character and elision findings for ``text``.

    ``error_message`` is only consulted when no explicit ``position`` is given.
    """
    if position is None and error_message:
        position = error_position(ValueError(error_message))
    if position is not None and not 0 <= position <= len(text):
        position = None
    return PayloadDiagnostics(
        position=position,
        context=_context(text, position) if position is not None else None,
        open_braces=text.count("{"),
        close_braces=text.count("}"),
        trailing_comma=bool(_TRAILING_COMMA_RE.search(text)),
        control_chars=len(_CONTROL_CHAR_RE.findall(text)),
        elided_values=len(ELIDED_VALUE_RE.findall(text)),
    )
