"""Backoff for optimistic-concurrency retries."""

from __future__ import annotations

import secrets

_JITTER_SCALE = 1000
_MAX_DELAY_SECONDS = 2.0


def compute_retry_delay(attempt: int, base_delay: float) -> float:
    """Return bounded exponential backoff delay with jitter."""
    if base_delay <= 0:
        return 0.0
    delay = base_delay * (2 ** min(attempt, 6))
    jitter_ratio = secrets.randbelow(_JITTER_SCALE) / _JITTER_SCALE
    return min(_MAX_DELAY_SECONDS, delay + delay * jitter_ratio)
