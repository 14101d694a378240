"""
Composite heuristic scores for ChatQuant

This module turns derived metrics into four headline scores. Every sub-score
is a small named function so weights and fallbacks can be tested on their own.
No raw messages are read here.

SCORES:
1. Compatibility (0-100, 2-party only): mean of activity overlap, response
   symmetry, message balance, engagement balance and length match.
2. Interest (0-100, per person): weighted initiation share, response-time
   trend, message-length trend, engagement frequency, double-texting and
   late-night activity.
3. Ghost risk (0-100, per person): recent 3 months vs. earlier months for
   response time, message length, initiations and volume.
4. Delusion (0-100): gap between the two interest scores; the holder is the
   lower-interest person, suppressed under the noise floor.

These are fixed-formula approximations, not validated instruments.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from . import config
from .metrics import round_half_up, safe_divide
from .models import (
    EngagementMetrics,
    GhostRisk,
    HeatmapData,
    MonthlyVolume,
    PatternMetrics,
    PersonMetrics,
    TimingMetrics,
    TrendData,
    TrendPoint,
    ViralScores,
)
from .reciprocity import ratio_symmetry
from .trends import linear_regression_slope

logger = logging.getLogger(__name__)

# ============================================================================
# CONSTANTS
# ============================================================================

# Interest: +-60s/month response-time change maps to +-50 points around 50
INTEREST_RT_SLOPE_DIVISOR = 1200.0
# Interest: +-2 words/month length change maps to +-50 points around 50
INTEREST_LENGTH_SLOPE_MULTIPLIER = 25.0
# Interest: 20% reaction receive rate saturates the engagement factor
INTEREST_RECEIVE_RATE_SCALE = 500.0
INTEREST_MENTION_RATE_SCALE = 200.0
INTEREST_REPLY_RATE_SCALE = 300.0
# Interest: 50 double-texts per 1000 messages saturates
INTEREST_DOUBLE_TEXT_SCALE = 2.0
# Interest: 100 late-night messages per 1000 own messages saturates
INTEREST_LATE_NIGHT_SCALE = 1.0

GHOST_FACTOR_INSUFFICIENT = "Insufficient data"
GHOST_FACTOR_RESPONSE_TIME = "Response times are getting slower"
GHOST_FACTOR_MESSAGE_LENGTH = "Messages are getting shorter"
GHOST_FACTOR_INITIATION = "Initiates conversations less often"
GHOST_FACTOR_VOLUME = "Fewer messages in recent months"
GHOST_FACTOR_MINOR = "Minor changes in activity"


def clamp(value: float, min_val: float = 0.0, max_val: float = 100.0) -> float:
    """Clamp value to [min_val, max_val]."""
    return max(min_val, min(max_val, value))


# ============================================================================
# COMPATIBILITY
# ============================================================================

def hourly_profile(grid: List[List[int]]) -> List[int]:
    """Collapse a 7x24 grid into 24 hour-of-day totals."""
    return [sum(grid[day][hour] for day in range(7)) for hour in range(24)]


def activity_overlap_score(heatmap: HeatmapData, a: str, b: str) -> float:
    """Sum over hours of min(share_a(hour), share_b(hour)), as a percentage."""
    grid_a = heatmap.per_person.get(a)
    grid_b = heatmap.per_person.get(b)
    if grid_a is None or grid_b is None:
        return 0.0

    hourly_a = hourly_profile(grid_a)
    hourly_b = hourly_profile(grid_b)
    total_a = sum(hourly_a)
    total_b = sum(hourly_b)
    if total_a == 0 or total_b == 0:
        return 0.0

    overlap = sum(min(hourly_a[h] / total_a, hourly_b[h] / total_b) for h in range(24))
    return clamp(overlap * 100)


def response_symmetry_score(timing: TimingMetrics, a: str, b: str) -> float:
    """min/max of median response times; 50 when neither has data."""
    med_a = timing.per_person[a].median_response_time_ms if a in timing.per_person else 0.0
    med_b = timing.per_person[b].median_response_time_ms if b in timing.per_person else 0.0
    return ratio_symmetry(med_a, med_b)


def message_balance_score(engagement: EngagementMetrics, a: str, b: str) -> float:
    ratio_a = engagement.message_ratio.get(a, 0.0)
    ratio_b = engagement.message_ratio.get(b, 0.0)
    if ratio_a + ratio_b == 0:
        return float(config.NEUTRAL_SCORE)
    return clamp(100 - abs(ratio_a - 0.5) * 200)


def engagement_balance_score(engagement: EngagementMetrics, a: str, b: str) -> float:
    """
    min/max of reaction give rates.

    When both give rates are exactly zero and the stream carries mention or
    reply data, the mean of mention-rate and reply-rate balances is used
    instead. This is an approximation kept from platforms without reactions.
    """
    rate_a = engagement.reaction_give_rate.get(a, 0.0)
    rate_b = engagement.reaction_give_rate.get(b, 0.0)

    if rate_a == 0 and rate_b == 0 and engagement.mention_rate is not None and engagement.reply_rate is not None:
        mention_balance = ratio_symmetry(
            engagement.mention_rate.get(a, 0.0), engagement.mention_rate.get(b, 0.0)
        )
        reply_balance = ratio_symmetry(
            engagement.reply_rate.get(a, 0.0), engagement.reply_rate.get(b, 0.0)
        )
        return (mention_balance + reply_balance) / 2

    return ratio_symmetry(rate_a, rate_b)


def length_match_score(per_person: Dict[str, PersonMetrics], a: str, b: str) -> float:
    """100 - 100*|avgA - avgB|/max(avgA, avgB); 50 when both are zero."""
    avg_a = per_person[a].average_message_length if a in per_person else 0.0
    avg_b = per_person[b].average_message_length if b in per_person else 0.0
    longest = max(avg_a, avg_b)
    if longest == 0:
        return float(config.NEUTRAL_SCORE)
    return clamp(100 - safe_divide(abs(avg_a - avg_b), longest) * 100)


def compute_compatibility(
    names: Sequence[str],
    per_person: Dict[str, PersonMetrics],
    timing: TimingMetrics,
    engagement: EngagementMetrics,
    heatmap: HeatmapData,
) -> Tuple[int, Dict[str, float]]:
    """Unweighted mean of five sub-scores; 0 unless exactly two participants."""
    if len(names) != 2:
        return 0, {}

    a, b = names
    breakdown = {
        "activity_overlap": round(activity_overlap_score(heatmap, a, b), 2),
        "response_symmetry": round(response_symmetry_score(timing, a, b), 2),
        "message_balance": round(message_balance_score(engagement, a, b), 2),
        "engagement_balance": round(engagement_balance_score(engagement, a, b), 2),
        "length_match": round(length_match_score(per_person, a, b), 2),
    }
    score = int(clamp(round_half_up(sum(breakdown.values()) / len(breakdown))))
    return score, breakdown


# ============================================================================
# INTEREST
# ============================================================================

def initiation_share_score(own_initiations: int, total_initiations: int) -> float:
    if total_initiations <= 0:
        return float(config.NEUTRAL_SCORE)
    return clamp(safe_divide(own_initiations, total_initiations) * 100)


def response_trend_score(slope_ms_per_month: float) -> float:
    """Getting faster (negative slope) scores above 50."""
    return clamp(50 - safe_divide(slope_ms_per_month, INTEREST_RT_SLOPE_DIVISOR))


def length_trend_score(slope_words_per_month: float) -> float:
    """Getting longer (positive slope) scores above 50."""
    return clamp(50 + slope_words_per_month * INTEREST_LENGTH_SLOPE_MULTIPLIER)


def engagement_frequency_score(
    receive_rate: float,
    mention_rate: Optional[float] = None,
    reply_rate: Optional[float] = None,
) -> float:
    """Reaction receive rate, with the mention/reply fallback; 50 without any data."""
    if receive_rate > 0:
        return clamp(receive_rate * INTEREST_RECEIVE_RATE_SCALE)
    if mention_rate is not None and reply_rate is not None:
        return clamp(
            mention_rate * INTEREST_MENTION_RATE_SCALE + reply_rate * INTEREST_REPLY_RATE_SCALE
        )
    return float(config.NEUTRAL_SCORE)


def double_text_score(double_texts: int, conversation_messages: int) -> float:
    per_1000 = safe_divide(double_texts * 1000, conversation_messages)
    return clamp(per_1000 * INTEREST_DOUBLE_TEXT_SCALE)


def late_night_score(late_night_messages: int, own_messages: int) -> float:
    per_1000 = safe_divide(late_night_messages, own_messages) * 1000
    return clamp(per_1000 * INTEREST_LATE_NIGHT_SCALE)


def _series(points: List[TrendPoint], name: str) -> List[float]:
    """A person's values from a monthly trend, skipping months without data."""
    return [p.per_person.get(name, 0.0) for p in points if p.per_person.get(name, 0.0) > 0]


def compute_interest_score(
    name: str,
    per_person: Dict[str, PersonMetrics],
    timing: TimingMetrics,
    engagement: EngagementMetrics,
    trends: TrendData,
    conversation_messages: int,
) -> int:
    """Weighted interest score for one person, rounded and clamped to [0, 100]."""
    person = per_person.get(name)
    if person is None or person.total_messages == 0:
        return 0

    weights = config.INTEREST_WEIGHTS
    mention = engagement.mention_rate.get(name, 0.0) if engagement.mention_rate is not None else None
    reply = engagement.reply_rate.get(name, 0.0) if engagement.reply_rate is not None else None

    factors = {
        "initiation": initiation_share_score(
            timing.conversation_initiations.get(name, 0),
            sum(timing.conversation_initiations.values()),
        ),
        "response_time_trend": response_trend_score(
            linear_regression_slope(_series(trends.response_time_trend, name))
        ),
        "message_length_trend": length_trend_score(
            linear_regression_slope(_series(trends.message_length_trend, name))
        ),
        "engagement": engagement_frequency_score(
            engagement.reaction_receive_rate.get(name, 0.0), mention, reply
        ),
        "double_texts": double_text_score(engagement.double_texts.get(name, 0), conversation_messages),
        "late_night": late_night_score(timing.late_night_messages.get(name, 0), person.total_messages),
    }

    weighted = sum(factors[key] * weights[key] for key in weights)
    return int(clamp(round_half_up(weighted)))


# ============================================================================
# GHOST RISK
# ============================================================================

def increase_score(earlier: float, recent: float) -> float:
    """Relative increase as 0-100; improvements and missing baselines give 0."""
    if earlier <= 0 or recent <= earlier:
        return 0.0
    return clamp(safe_divide(recent - earlier, earlier) * 100)


def decrease_score(earlier: float, recent: float) -> float:
    """Relative decrease as 0-100; improvements and missing baselines give 0."""
    if earlier <= 0 or recent >= earlier:
        return 0.0
    return clamp(safe_divide(earlier - recent, earlier) * 100)


def _active_average(points: List[TrendPoint], name: str) -> float:
    """Sum over months divided by the number of months with data (min 1)."""
    values = [p.per_person.get(name, 0.0) for p in points]
    active = sum(1 for v in values if v > 0)
    return safe_divide(sum(values), active or 1)


def _month_average(points, name: str) -> float:
    return safe_divide(sum(p.per_person.get(name, 0) for p in points), len(points))


def compute_ghost_risk(name: str, patterns: PatternMetrics, trends: TrendData) -> GhostRisk:
    """
    Recent-vs-earlier decline heuristic for one person.

    Needs at least 3 months before the 3-month recent window; otherwise the
    score is 0 with an "insufficient data" factor.
    """
    recent_n = config.GHOST_RISK_RECENT_MONTHS
    months: List[MonthlyVolume] = patterns.monthly_volume
    if len(months) - recent_n < config.GHOST_RISK_MIN_EARLIER_MONTHS:
        return GhostRisk(score=0, factors=[GHOST_FACTOR_INSUFFICIENT])

    threshold = config.GHOST_RISK_FACTOR_THRESHOLD
    weights = config.GHOST_RISK_WEIGHTS
    factors: List[str] = []

    rt = trends.response_time_trend
    rt_score = increase_score(
        _active_average(rt[:-recent_n], name), _active_average(rt[-recent_n:], name)
    )
    if rt_score > threshold:
        factors.append(GHOST_FACTOR_RESPONSE_TIME)

    ml = trends.message_length_trend
    ml_score = decrease_score(
        _active_average(ml[:-recent_n], name), _active_average(ml[-recent_n:], name)
    )
    if ml_score > threshold:
        factors.append(GHOST_FACTOR_MESSAGE_LENGTH)

    init = trends.initiation_trend
    init_score = decrease_score(
        _month_average(init[:-recent_n], name), _month_average(init[-recent_n:], name)
    )
    if init_score > threshold:
        factors.append(GHOST_FACTOR_INITIATION)

    vol_score = decrease_score(
        _month_average(months[:-recent_n], name), _month_average(months[-recent_n:], name)
    )
    if vol_score > threshold:
        factors.append(GHOST_FACTOR_VOLUME)

    score = int(clamp(round_half_up(
        rt_score * weights["response_time"]
        + ml_score * weights["message_length"]
        + init_score * weights["initiation"]
        + vol_score * weights["volume"]
    )))

    if not factors and score > 0:
        factors.append(GHOST_FACTOR_MINOR)

    return GhostRisk(score=score, factors=factors)


# ============================================================================
# DELUSION
# ============================================================================

def compute_delusion(
    names: Sequence[str],
    interest_scores: Dict[str, int],
) -> Tuple[int, Optional[str]]:
    """
    |top1 - top2| of the two interest scores.

    The holder is the lower-interest person; no holder under the noise floor
    or outside 1:1 conversations.
    """
    if len(names) != 2:
        return 0, None

    ranked = sorted(names, key=lambda n: interest_scores.get(n, 0), reverse=True)
    score = int(clamp(abs(interest_scores.get(ranked[0], 0) - interest_scores.get(ranked[1], 0))))
    holder = ranked[1] if score >= config.DELUSION_NOISE_FLOOR else None
    return score, holder


# ============================================================================
# ALL SCORES
# ============================================================================

def compute_viral_scores(
    names: Sequence[str],
    per_person: Dict[str, PersonMetrics],
    timing: TimingMetrics,
    engagement: EngagementMetrics,
    patterns: PatternMetrics,
    heatmap: HeatmapData,
    trends: TrendData,
    conversation_messages: int,
) -> ViralScores:
    """Compute every composite score from derived metrics."""
    compatibility, breakdown = compute_compatibility(names, per_person, timing, engagement, heatmap)

    interest_scores = {
        name: compute_interest_score(name, per_person, timing, engagement, trends, conversation_messages)
        for name in names
    }
    ghost_risk = {name: compute_ghost_risk(name, patterns, trends) for name in names}
    delusion_score, delusion_holder = compute_delusion(names, interest_scores)

    logger.debug(
        f"Scores: compatibility={compatibility}, interest={interest_scores}, "
        f"delusion={delusion_score} ({delusion_holder})"
    )
    return ViralScores(
        compatibility_score=compatibility,
        compatibility_breakdown=breakdown,
        interest_scores=interest_scores,
        ghost_risk=ghost_risk,
        delusion_score=delusion_score,
        delusion_holder=delusion_holder,
    )
