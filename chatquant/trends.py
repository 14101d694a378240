"""
Trend and burst analyzers for ChatQuant

All trends run on monthly aggregates (never raw per-message values); burst
detection runs on the day -> count map built by the accumulation pass.
"""

import logging
from datetime import date
from typing import List, Mapping, Sequence

import numpy as np

from . import config
from .accumulator import ConversationAccumulator
from .models import Burst, MonthlyVolume, PatternMetrics, TrendData, TrendPoint

logger = logging.getLogger(__name__)


def linear_regression_slope(values: Sequence[float]) -> float:
    """
    Ordinary least-squares slope of value vs. index.

    slope = (k*Sxy - Sx*Sy) / (k*Sxx - Sx^2), with x = 0..k-1.
    Non-finite values are dropped; returns 0.0 when fewer than two
    values remain or the denominator vanishes.
    """
    y = np.asarray(values, dtype=float)
    y = y[np.isfinite(y)]
    k = len(y)
    if k < 2:
        return 0.0

    x = np.arange(k, dtype=float)
    sum_x = x.sum()
    sum_y = y.sum()
    denominator = k * (x * x).sum() - sum_x * sum_x
    if denominator == 0:
        return 0.0

    slope = (k * (x * y).sum() - sum_x * sum_y) / denominator
    return float(slope) if np.isfinite(slope) else 0.0


def _mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) > 0 else 0.0


# ============================================================================
# MONTHLY SERIES
# ============================================================================

def build_monthly_volume(state: ConversationAccumulator) -> List[MonthlyVolume]:
    """Messages per month, every known person present in every month."""
    names = state.names
    volume = []
    for month in state.sorted_months:
        counts = state.monthly_volume[month]
        per_person = {name: int(counts.get(name, 0)) for name in names}
        volume.append(MonthlyVolume(month=month, per_person=per_person, total=sum(per_person.values())))
    return volume


def build_trends(state: ConversationAccumulator) -> TrendData:
    """Monthly response-time, message-length and initiation series."""
    months = state.sorted_months
    names = state.names

    response_time_trend = []
    message_length_trend = []
    initiation_trend = []

    for month in months:
        rt = {}
        ml = {}
        for name in names:
            acc = state.persons[name]
            rt[name] = _mean(acc.monthly_response_times.get(month, []))
            ml[name] = _mean(acc.monthly_word_counts.get(month, []))
        initiations = state.monthly_initiations.get(month, {})

        response_time_trend.append(TrendPoint(month=month, per_person=rt))
        message_length_trend.append(TrendPoint(month=month, per_person=ml))
        initiation_trend.append(TrendPoint(
            month=month,
            per_person={name: float(initiations.get(name, 0)) for name in names},
        ))

    return TrendData(
        response_time_trend=response_time_trend,
        message_length_trend=message_length_trend,
        initiation_trend=initiation_trend,
    )


def person_response_time_trend(monthly_response_times: Mapping[str, List[float]]) -> float:
    """Slope of a person's monthly-average response times (months with samples only)."""
    averages = [_mean(monthly_response_times[month]) for month in sorted(monthly_response_times)]
    return linear_regression_slope(averages)


# ============================================================================
# BURSTS
# ============================================================================

def detect_bursts(daily_counts: Mapping[str, int]) -> List[Burst]:
    """
    Find days whose volume exceeds 3x their trailing 7-day baseline.

    The first 7 days use the overall daily average as baseline. Burst days
    no more than one calendar day apart are merged into a single period.
    Fewer than 8 active days never yields a burst.
    """
    days = sorted(daily_counts)
    if len(days) < config.BURST_MIN_DAYS:
        return []

    counts = np.array([daily_counts[day] for day in days], dtype=float)
    overall_avg = counts.mean()
    window = config.BURST_WINDOW_DAYS

    burst_days = []
    for i, day in enumerate(days):
        baseline = overall_avg if i < window else counts[i - window:i].mean()
        if baseline > 0 and counts[i] > config.BURST_MULTIPLIER * baseline:
            burst_days.append((day, int(counts[i])))

    if not burst_days:
        return []

    bursts: List[Burst] = []
    start, end, total, n_days = burst_days[0][0], burst_days[0][0], burst_days[0][1], 1

    for day, count in burst_days[1:]:
        if (date.fromisoformat(day) - date.fromisoformat(end)).days <= config.BURST_MERGE_GAP_DAYS:
            end = day
            total += count
            n_days += 1
        else:
            bursts.append(Burst(start, end, total, total / n_days))
            start, end, total, n_days = day, day, count, 1

    bursts.append(Burst(start, end, total, total / n_days))

    logger.debug(f"Detected {len(bursts)} burst periods from {len(burst_days)} burst days")
    return bursts


def build_patterns(state: ConversationAccumulator) -> PatternMetrics:
    """Monthly volume, weekday/weekend split, volume slope and bursts."""
    monthly_volume = build_monthly_volume(state)
    return PatternMetrics(
        monthly_volume=monthly_volume,
        weekday={name: acc.weekday_messages for name, acc in state.persons.items()},
        weekend={name: acc.weekend_messages for name, acc in state.persons.items()},
        volume_trend=linear_regression_slope([mv.total for mv in monthly_volume]),
        bursts=detect_bursts(state.daily_counts),
    )
