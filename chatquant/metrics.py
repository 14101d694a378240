"""
Derived metrics builder for ChatQuant
Turns finished accumulators into the public per-person, timing,
engagement and heatmap structures
"""

import logging
import math
from typing import Dict, List, Optional, Tuple

import numpy as np

from . import config
from .accumulator import ConversationAccumulator, PersonAccumulator
from .models import (
    EngagementMetrics,
    HeatmapData,
    MessageRecord,
    PersonMetrics,
    PersonTiming,
    TimingMetrics,
)
from .time_features import longest_daily_streak
from .trends import person_response_time_trend

logger = logging.getLogger(__name__)


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Safe division with default fallback."""
    if denominator == 0 or np.isnan(denominator) or np.isnan(numerator):
        return default
    result = numerator / denominator
    return float(result) if np.isfinite(result) else default


def round_half_up(value: float) -> int:
    """Nearest integer with .5 rounded up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def median(values: List[float]) -> float:
    """Standard even/odd median; 0.0 for an empty list."""
    if not values:
        return 0.0
    return float(np.median(values))


def top_n(freq, n: int) -> List[Tuple[str, int]]:
    """Top-N (item, count) pairs, descending, ties in first-seen order."""
    return [(item, int(count)) for item, count in freq.most_common(n)]


# ============================================================================
# PER PERSON
# ============================================================================

def build_person_metrics(acc: PersonAccumulator, mentions_received: int = 0) -> PersonMetrics:
    """Finalize one person's accumulator into public metrics."""
    unique_words = len(acc.word_freq)
    return PersonMetrics(
        total_messages=acc.total_messages,
        total_words=acc.total_words,
        total_characters=acc.total_characters,
        average_message_length=safe_divide(acc.total_words, acc.total_messages),
        average_message_chars=safe_divide(acc.total_characters, acc.total_messages),
        longest_message=acc.longest_message or MessageRecord(),
        shortest_message=acc.shortest_message or MessageRecord(),
        messages_with_emoji=acc.messages_with_emoji,
        emoji_count=acc.emoji_count,
        top_emojis=top_n(acc.emoji_freq, config.TOP_EMOJIS),
        questions_asked=acc.questions_asked,
        media_shared=acc.media_shared,
        links_shared=acc.links_shared,
        reactions_given=acc.reactions_given,
        reactions_received=acc.reactions_received,
        top_reactions_given=top_n(acc.reactions_given_freq, config.TOP_REACTIONS_GIVEN),
        unsent_messages=acc.unsent_messages,
        top_words=top_n(acc.word_freq, config.TOP_WORDS),
        top_phrases=top_n(acc.phrase_freq, config.TOP_PHRASES),
        unique_words=unique_words,
        vocabulary_richness=safe_divide(unique_words, acc.total_words),
        mentions_received=mentions_received,
        replies_sent=acc.replies_sent,
        longest_streak_days=longest_daily_streak(acc.active_days),
    )


def build_per_person(state: ConversationAccumulator) -> Dict[str, PersonMetrics]:
    return {
        name: build_person_metrics(acc, state.mentions_received.get(name, 0))
        for name, acc in state.persons.items()
    }


# ============================================================================
# TIMING
# ============================================================================

def build_person_timing(acc: PersonAccumulator) -> PersonTiming:
    rts = acc.response_times
    return PersonTiming(
        average_response_time_ms=float(np.mean(rts)) if rts else 0.0,
        median_response_time_ms=median(rts),
        fastest_response_ms=float(min(rts)) if rts else 0.0,
        slowest_response_ms=float(max(rts)) if rts else 0.0,
        response_time_trend=person_response_time_trend(acc.monthly_response_times),
    )


def build_timing(state: ConversationAccumulator) -> TimingMetrics:
    persons = state.persons
    return TimingMetrics(
        per_person={name: build_person_timing(acc) for name, acc in persons.items()},
        conversation_initiations={name: acc.initiations for name, acc in persons.items()},
        conversation_endings={name: acc.endings for name, acc in persons.items()},
        longest_silence=state.longest_silence,
        late_night_messages={name: acc.late_night_messages for name, acc in persons.items()},
    )


# ============================================================================
# ENGAGEMENT
# ============================================================================

def build_engagement(state: ConversationAccumulator) -> EngagementMetrics:
    """
    Engagement metrics.

    reaction_rate / reaction_give_rate: reactions given / messages received
    from others. reaction_receive_rate: reactions received / own messages.
    mention_rate and reply_rate are per own message, and only reported when
    the stream carries any mention or reply data.
    """
    total = state.total_messages
    persons = state.persons

    message_ratio = {}
    give_rate = {}
    receive_rate = {}
    mention_rate: Optional[Dict[str, float]] = {} if state.has_mention_data else None
    reply_rate: Optional[Dict[str, float]] = {} if state.has_mention_data else None

    for name, acc in persons.items():
        message_ratio[name] = safe_divide(acc.total_messages, total)
        give_rate[name] = safe_divide(acc.reactions_given, state.messages_received(name))
        receive_rate[name] = safe_divide(acc.reactions_received, acc.total_messages)
        if state.has_mention_data:
            mention_rate[name] = safe_divide(acc.mentions_made, acc.total_messages)
            reply_rate[name] = safe_divide(acc.replies_sent, acc.total_messages)

    return EngagementMetrics(
        double_texts={name: acc.double_texts for name, acc in persons.items()},
        max_consecutive={name: acc.max_consecutive for name, acc in persons.items()},
        message_ratio=message_ratio,
        reaction_rate=dict(give_rate),
        reaction_give_rate=give_rate,
        reaction_receive_rate=receive_rate,
        avg_conversation_length=safe_divide(total, state.total_sessions, default=float(total)),
        total_sessions=state.total_sessions,
        mention_rate=mention_rate,
        reply_rate=reply_rate,
    )


# ============================================================================
# HEATMAP
# ============================================================================

def build_heatmap(state: ConversationAccumulator) -> HeatmapData:
    return HeatmapData(
        per_person={name: [row[:] for row in acc.heatmap] for name, acc in state.persons.items()},
        combined=[row[:] for row in state.combined_heatmap],
    )
