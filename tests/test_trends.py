"""
Tests for regression slope, monthly series and burst detection
"""

import pytest
from datetime import date, timedelta, timezone

from chatquant.accumulator import accumulate
from chatquant.models import Conversation, Message, Participant
from chatquant.trends import (
    linear_regression_slope,
    detect_bursts,
    build_monthly_volume,
    build_trends,
    build_patterns,
)

BASE = 1704067200000
DAY = 24 * 60 * 60 * 1000


def daily(counts, start=date(2024, 1, 1)):
    """Day-key -> count map for consecutive days."""
    return {(start + timedelta(days=i)).isoformat(): c for i, c in enumerate(counts)}


# ============================================================================
# REGRESSION
# ============================================================================

def test_slope_linear():
    assert linear_regression_slope([1, 2, 3, 4]) == pytest.approx(1.0)
    assert linear_regression_slope([10, 8, 6]) == pytest.approx(-2.0)


def test_slope_degenerate():
    assert linear_regression_slope([]) == 0.0
    assert linear_regression_slope([5]) == 0.0
    assert linear_regression_slope([3, 3, 3]) == 0.0


def test_slope_ignores_non_finite():
    assert linear_regression_slope([1, float("nan"), 2]) == pytest.approx(1.0)


# ============================================================================
# BURSTS
# ============================================================================

def test_no_bursts_under_eight_days():
    """Fewer than 8 active days never yields a burst."""
    assert detect_bursts(daily([1, 1, 1, 1, 1, 1, 100])) == []


def test_spike_after_quiet_week_is_flagged():
    counts = [2] * 8 + [20, 2]
    bursts = detect_bursts(daily(counts))

    assert len(bursts) == 1
    assert bursts[0].start_date == "2024-01-09"
    assert bursts[0].end_date == "2024-01-09"
    assert bursts[0].message_count == 20
    assert bursts[0].avg_daily == 20.0


def test_adjacent_burst_days_merge():
    counts = [2] * 8 + [20, 20]
    bursts = detect_bursts(daily(counts))

    assert len(bursts) == 1
    assert bursts[0].start_date == "2024-01-09"
    assert bursts[0].end_date == "2024-01-10"
    assert bursts[0].message_count == 40
    assert bursts[0].avg_daily == 20.0


def test_separated_bursts_stay_apart():
    counts = [1] * 8 + [30] + [1] * 8 + [30]
    bursts = detect_bursts(daily(counts))
    assert [b.start_date for b in bursts] == ["2024-01-09", "2024-01-18"]


def test_flat_volume_has_no_bursts():
    assert detect_bursts(daily([5] * 30)) == []


# ============================================================================
# MONTHLY SERIES
# ============================================================================

@pytest.fixture
def two_month_state():
    messages = (
        Message("Alice", BASE, "one two three"),
        Message("Bob", BASE + 60_000, "one"),
        Message("Alice", BASE + 40 * DAY, "one two three four five"),
    )
    conv = Conversation(messages=messages, participants=(Participant("Alice"), Participant("Bob")))
    return accumulate(conv, tz=timezone.utc)


def test_monthly_volume_includes_silent_people(two_month_state):
    volume = build_monthly_volume(two_month_state)

    assert [v.month for v in volume] == ["2024-01", "2024-02"]
    assert volume[0].per_person == {"Alice": 1, "Bob": 1}
    assert volume[1].per_person == {"Alice": 1, "Bob": 0}
    assert volume[1].total == 1


def test_trend_series(two_month_state):
    trends = build_trends(two_month_state)

    assert [p.month for p in trends.message_length_trend] == ["2024-01", "2024-02"]
    assert trends.message_length_trend[0].per_person["Alice"] == 3.0
    assert trends.message_length_trend[1].per_person["Alice"] == 5.0
    assert trends.response_time_trend[0].per_person["Bob"] == 60_000
    assert trends.response_time_trend[1].per_person["Bob"] == 0.0
    assert trends.initiation_trend[1].per_person == {"Alice": 1.0, "Bob": 0.0}


def test_patterns(two_month_state):
    patterns = build_patterns(two_month_state)

    assert patterns.volume_trend == pytest.approx(-1.0)
    assert patterns.bursts == []
    assert patterns.weekday["Alice"] + patterns.weekend["Alice"] == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
