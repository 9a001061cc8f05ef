"""
Poll-interval policy for tracked listings.

Polling concentrates near auction close, where price and bid changes are
frequent, and backs off for long-lived listings to bound request volume.
"""

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

UNKNOWN_DEADLINE_INTERVAL_MS = 30 * MINUTE_MS

# (remaining-time upper bound, interval); bounds are exclusive
_INTERVAL_STEPS: tuple[tuple[int, int], ...] = (
    (1 * HOUR_MS, 2 * MINUTE_MS),
    (8 * HOUR_MS, 5 * MINUTE_MS),
    (3 * DAY_MS, 15 * MINUTE_MS),
)
_LONG_RUNNING_INTERVAL_MS = 30 * MINUTE_MS


def next_interval(end_time: int | None, now: int) -> int | None:
    """
    Return the poll interval in milliseconds for a listing ending at end_time.

    None means the deadline has passed: the caller should perform exactly one
    final refresh and transition the listing to ended.
    """
    if end_time is None:
        return UNKNOWN_DEADLINE_INTERVAL_MS

    remaining = end_time - now
    if remaining < 0:
        return None

    for upper_bound, interval in _INTERVAL_STEPS:
        if remaining < upper_bound:
            return interval
    return _LONG_RUNNING_INTERVAL_MS


def is_due(last_checked: int, interval: int, now: int) -> bool:
    return now - last_checked >= interval
