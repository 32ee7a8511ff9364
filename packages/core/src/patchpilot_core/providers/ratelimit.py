"""Backoff computation from rate-limit response headers.

OpenAI reports when a rate limit window resets in ``x-ratelimit-reset-requests``
and ``x-ratelimit-reset-tokens`` using Go-style durations (``6m0s``, ``1.5s``,
``20ms``), alongside the standard ``retry-after`` in plain seconds. The wait
before the next attempt is the longest of those hints and an exponential
floor, so we never come back before the server said we could.
"""

from __future__ import annotations

import random
import re

_MAX_EXPONENTIAL_SECONDS = 60

_PLAIN_SECONDS_RE = re.compile(r"^\d+(?:\.\d+)?$")
_DURATION_RE = re.compile(
    r"^(?:(?P<h>\d+(?:\.\d+)?)h)?"
    r"(?:(?P<m>\d+(?:\.\d+)?)m(?!s))?"
    r"(?:(?P<s>\d+(?:\.\d+)?)s)?"
    r"(?:(?P<ms>\d+(?:\.\d+)?)ms)?$",
    re.IGNORECASE,
)

RATE_LIMIT_HEADERS = (
    "retry-after",
    "x-ratelimit-reset-requests",
    "x-ratelimit-reset-tokens",
)


def parse_duration_seconds(value: str | None) -> float:
    """Parse ``"12"``, ``"1.5"``, ``"1h2m3s"``, ``"6m0s"`` or ``"20ms"`` into seconds.

    Missing components count as zero; anything unparseable is 0.
    """
    if not value:
        return 0.0
    text = str(value).strip()
    if _PLAIN_SECONDS_RE.match(text):
        return float(text)
    match = _DURATION_RE.match(text)
    if not match:
        return 0.0
    parts = {k: float(v) if v else 0.0 for k, v in match.groupdict().items()}
    return parts["h"] * 3600 + parts["m"] * 60 + parts["s"] + parts["ms"] / 1000


def exponential_floor(attempt: int) -> int:
    """1, 2, 4, 8, 16, 32, 60, 60, ... for attempt 1, 2, 3, ..."""
    return min(_MAX_EXPONENTIAL_SECONDS, 2 ** (attempt - 1))


def wait_seconds(headers: dict[str, str] | None, attempt: int, jitter: float | None = None) -> float:
    """Seconds to sleep after the given (1-based) failed attempt.

    ``headers`` must have lower-case keys. ``jitter`` defaults to a fresh
    ``random.random()`` draw; tests pass a fixed value.
    """
    headers = headers or {}
    if jitter is None:
        jitter = random.random()
    hints = [parse_duration_seconds(headers.get(name)) for name in RATE_LIMIT_HEADERS]
    return max(*hints, exponential_floor(attempt) + jitter)
