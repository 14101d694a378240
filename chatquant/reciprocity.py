"""
Reciprocity index for ChatQuant

Structural balance between the two parties of a 1:1 conversation across
message count, initiation share, response-time parity and reaction giving.
Message content is deliberately ignored.
"""

import logging
from typing import Dict, Sequence

from . import config
from .metrics import round_half_up
from .models import EngagementMetrics, PersonMetrics, ReciprocityIndex, TimingMetrics

logger = logging.getLogger(__name__)


def share_balance(part: float, total: float) -> float:
    """100 * (1 - 2*|share - 0.5|); neutral 50 when total is zero."""
    if total <= 0:
        return float(config.NEUTRAL_SCORE)
    share = part / total
    return max(0.0, min(100.0, 100.0 * (1.0 - 2.0 * abs(share - 0.5))))


def ratio_symmetry(a: float, b: float) -> float:
    """100 * min/max; neutral 50 when both are zero."""
    high = max(a, b)
    if high <= 0:
        return float(config.NEUTRAL_SCORE)
    return max(0.0, min(100.0, 100.0 * min(a, b) / high))


def compute_reciprocity_index(
    names: Sequence[str],
    engagement: EngagementMetrics,
    timing: TimingMetrics,
    per_person: Dict[str, PersonMetrics],
) -> ReciprocityIndex:
    """
    Four equally weighted integer sub-scores in [0, 100] and their rounded mean.

    Only defined for exactly two declared participants; anything else gets
    the neutral default (all 50).
    """
    if len(names) != 2:
        logger.debug(f"Reciprocity skipped for {len(names)} participants")
        return ReciprocityIndex()

    a, b = names

    ratio_a = engagement.message_ratio.get(a, 0.0)
    ratio_b = engagement.message_ratio.get(b, 0.0)
    # message_ratio is already a share of all messages
    message_balance = round_half_up(share_balance(ratio_a, 1.0 if ratio_a + ratio_b > 0 else 0.0))

    init_a = timing.conversation_initiations.get(a, 0)
    init_b = timing.conversation_initiations.get(b, 0)
    initiation_balance = round_half_up(share_balance(init_a, init_a + init_b))

    rt_a = timing.per_person[a].median_response_time_ms if a in timing.per_person else 0.0
    rt_b = timing.per_person[b].median_response_time_ms if b in timing.per_person else 0.0
    response_time_symmetry = round_half_up(ratio_symmetry(rt_a, rt_b))

    react_a = per_person[a].reactions_given if a in per_person else 0
    react_b = per_person[b].reactions_given if b in per_person else 0
    reaction_balance = round_half_up(share_balance(react_a, react_a + react_b))

    overall = round_half_up(
        (message_balance + initiation_balance + response_time_symmetry + reaction_balance) / 4
    )

    return ReciprocityIndex(
        overall=overall,
        message_balance=message_balance,
        initiation_balance=initiation_balance,
        response_time_symmetry=response_time_symmetry,
        reaction_balance=reaction_balance,
    )
