"""Unit tests for the poll-interval policy."""
import pytest

from src.domain.policies.interval_policy import (
    DAY_MS,
    HOUR_MS,
    MINUTE_MS,
    UNKNOWN_DEADLINE_INTERVAL_MS,
    is_due,
    next_interval,
)

NOW = 1_700_000_000_000


class TestNextInterval:
    @pytest.mark.parametrize(
        ("remaining", "expected"),
        [
            (30 * 1000, 2 * MINUTE_MS),
            (30 * MINUTE_MS, 2 * MINUTE_MS),
            (4 * HOUR_MS, 5 * MINUTE_MS),
            (2 * DAY_MS, 15 * MINUTE_MS),
            (10 * DAY_MS, 30 * MINUTE_MS),
        ],
    )
    def test_interval_table(self, remaining: int, expected: int) -> None:
        assert next_interval(NOW + remaining, NOW) == expected

    @pytest.mark.parametrize(
        ("remaining", "expected"),
        [
            (HOUR_MS - 1, 2 * MINUTE_MS),
            (HOUR_MS, 5 * MINUTE_MS),
            (8 * HOUR_MS - 1, 5 * MINUTE_MS),
            (8 * HOUR_MS, 15 * MINUTE_MS),
            (3 * DAY_MS - 1, 15 * MINUTE_MS),
            (3 * DAY_MS, 30 * MINUTE_MS),
        ],
    )
    def test_upper_bounds_are_exclusive(self, remaining: int, expected: int) -> None:
        assert next_interval(NOW + remaining, NOW) == expected

    def test_deadline_exactly_now_still_polls_at_shortest_interval(self) -> None:
        assert next_interval(NOW, NOW) == 2 * MINUTE_MS

    def test_deadline_passed_returns_none(self) -> None:
        assert next_interval(NOW - 1, NOW) is None
        assert next_interval(NOW - DAY_MS, NOW) is None

    def test_unknown_deadline_uses_fallback(self) -> None:
        assert next_interval(None, NOW) == UNKNOWN_DEADLINE_INTERVAL_MS == 30 * MINUTE_MS


class TestIsDue:
    def test_due_when_interval_elapsed(self) -> None:
        assert is_due(NOW - 5 * MINUTE_MS, 5 * MINUTE_MS, NOW) is True

    def test_not_due_one_ms_early(self) -> None:
        assert is_due(NOW - 5 * MINUTE_MS + 1, 5 * MINUTE_MS, NOW) is False

    def test_never_checked_is_due(self) -> None:
        assert is_due(0, 30 * MINUTE_MS, NOW) is True
