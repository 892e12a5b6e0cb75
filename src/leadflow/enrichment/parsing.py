"""Extract a JSON object from free-form model output.

Strategies run in order and the first success wins:

1. ``strict_json``: the whole text is a JSON object.
2. ``fenced_block``: the text with Markdown code fences removed.
3. ``brace_span``: the span from the first ``{`` to the last ``}``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

_FENCE_OPEN = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


@dataclass(frozen=True)
class ParseAttempt:
    """Result of one parse strategy: ``data`` on success, ``error`` otherwise."""

    strategy: str
    data: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.data is not None


ParseStrategy = Callable[[str], ParseAttempt]


def _decode(strategy: str, candidate: str) -> ParseAttempt:
    try:
        value = json.loads(candidate)
    except json.JSONDecodeError as exc:
        return ParseAttempt(strategy, error=str(exc))
    if not isinstance(value, dict):
        return ParseAttempt(strategy, error=f"expected a JSON object, got {type(value).__name__}")
    return ParseAttempt(strategy, data=value)


def strict_json(text: str) -> ParseAttempt:
    return _decode("strict_json", text.strip())


def fenced_block(text: str) -> ParseAttempt:
    return _decode("fenced_block", _FENCE_OPEN.sub("", text).strip())


def brace_span(text: str) -> ParseAttempt:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return ParseAttempt("brace_span", error="no JSON object found")
    return _decode("brace_span", text[start : end + 1])


PARSE_STRATEGIES: tuple[ParseStrategy, ...] = (strict_json, fenced_block, brace_span)


def parse_json_object(
    text: str,
    strategies: Sequence[ParseStrategy] = PARSE_STRATEGIES,
) -> ParseAttempt:
    """Run *strategies* left to right and return the first successful attempt.

    When every strategy fails, the returned attempt has ``strategy="none"``
    and an ``error`` listing each strategy's failure.
    """
    failures: list[str] = []
    for strategy in strategies:
        attempt = strategy(text)
        if attempt.ok:
            return attempt
        failures.append(f"{attempt.strategy}: {attempt.error}")
    return ParseAttempt("none", error="; ".join(failures) or "no strategies")
