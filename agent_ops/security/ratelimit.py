"""Rate limiting using in-memory sliding window counters.

Enforces the deployment config's per-minute and per-day request limits,
keyed by caller. Timestamps of recent requests are stored in a deque per
window and expired entries are pruned on each check.

Returns standard rate limit metadata for response headers:
- X-RateLimit-Limit
- X-RateLimit-Remaining
- X-RateLimit-Reset
"""

import time
from collections import defaultdict, deque
from dataclasses import dataclass

MINUTE_SECONDS = 60.0
DAY_SECONDS = 86400.0

# Key: (caller_id, window length), Value: deque of request timestamps
_windows: dict[tuple[str, float], deque[float]] = defaultdict(deque)


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: float
    window: str = "minute"  # which window decided the result


def _prune(window: deque[float], now: float, length: float) -> None:
    window_start = now - length
    while window and window[0] <= window_start:
        window.popleft()


async def check_rate_limit(caller_id: str, per_minute: int, per_day: int | None = None) -> RateLimitResult:
    """Check and record one request against the caller's limits.

    A request only counts against the windows when it is allowed.
    """
    now = time.monotonic()
    limits = [("minute", MINUTE_SECONDS, per_minute)]
    if per_day is not None:
        limits.append(("day", DAY_SECONDS, per_day))

    for name, length, limit in limits:
        window = _windows[(caller_id, length)]
        _prune(window, now, length)
        if len(window) >= limit:
            return RateLimitResult(
                allowed=False,
                limit=limit,
                remaining=0,
                reset_seconds=round(window[0] + length - now, 1),
                window=name,
            )

    for _, length, _ in limits:
        _windows[(caller_id, length)].append(now)

    # Report against the minute window, the one clients hit first
    minute = _windows[(caller_id, MINUTE_SECONDS)]
    return RateLimitResult(
        allowed=True,
        limit=per_minute,
        remaining=max(0, per_minute - len(minute)),
        reset_seconds=round(minute[0] + MINUTE_SECONDS - now, 1),
    )


def reset_caller(caller_id: str) -> None:
    """Clear rate limit state for a caller. Useful for testing."""
    for key in [k for k in _windows if k[0] == caller_id]:
        del _windows[key]
