"""
Quantitative analysis engine for ChatQuant

Entry point: compute_quantitative_analysis(conversation).

Pipeline: validate input -> single accumulation pass -> derived metrics ->
trends/bursts -> reciprocity -> network (groups only) -> composite scores ->
badges, best time to text and catchphrases.
Everything after the accumulation pass is a read-only consumer of its state.
"""

import logging
import math
from collections.abc import Sequence
from datetime import tzinfo
from numbers import Real
from typing import List, Optional

from .accumulator import ConversationAccumulator, accumulate
from .awards import compute_badges, compute_best_time_to_text, compute_catchphrases
from .metrics import build_engagement, build_heatmap, build_per_person, build_timing
from .models import Conversation, NetworkMetrics, QuantitativeAnalysis
from .network import compute_network_metrics
from .reciprocity import compute_reciprocity_index
from .scores import compute_viral_scores
from .trends import build_patterns, build_trends

logger = logging.getLogger(__name__)


def validate_conversation(conversation: Conversation) -> None:
    """
    Check the input contract. Raises ValueError on violations.

    Only structural problems fail here; data-quality issues (unknown
    senders, unsorted ties, empty content) are handled downstream.
    """
    if conversation is None:
        raise ValueError("conversation is required")

    messages = getattr(conversation, "messages", None)
    if messages is None:
        raise ValueError("conversation.messages is required")
    if isinstance(messages, (str, bytes)) or not isinstance(messages, Sequence):
        raise ValueError(f"conversation.messages must be a sequence, got {type(messages).__name__}")

    for i, message in enumerate(messages):
        sender = getattr(message, "sender", None)
        if not isinstance(sender, str) or not sender:
            raise ValueError(f"Message {i} has no sender")
        timestamp = getattr(message, "timestamp", None)
        if isinstance(timestamp, bool) or not isinstance(timestamp, Real):
            raise ValueError(f"Message {i} has a non-numeric timestamp: {timestamp!r}")
        if not math.isfinite(timestamp):
            raise ValueError(f"Message {i} has a non-finite timestamp: {timestamp!r}")


def _declared_names(conversation: Conversation) -> List[str]:
    names: List[str] = []
    for name in conversation.participant_names:
        if name not in names:
            names.append(name)
    return names


def _scored_names(conversation: Conversation, state: ConversationAccumulator) -> List[str]:
    """Declared participants; when none are declared, everyone who sent a message."""
    declared = _declared_names(conversation)
    if declared:
        return declared
    return [name for name, acc in state.persons.items() if acc.total_messages > 0]


def _network_names(state: ConversationAccumulator) -> List[str]:
    """Declared participants plus any undeclared senders; reaction-only actors are left out."""
    return [
        name for name, acc in state.persons.items()
        if name in state.declared or acc.total_messages > 0
    ]


def compute_quantitative_analysis(
    conversation: Conversation,
    tz: Optional[tzinfo] = None,
) -> QuantitativeAnalysis:
    """
    Run the full quantitative analysis on a normalized conversation.

    Args:
        conversation: Ordered messages, declared participants and platform tag
        tz: Calendar timezone for month/day/hour placement
            (defaults to CHATQUANT_TIMEZONE)

    Returns:
        Immutable QuantitativeAnalysis

    Raises:
        ValueError: if the conversation violates the input contract
    """
    validate_conversation(conversation)

    n = len(conversation.messages)
    logger.info(
        f"Analyzing {n} messages on {conversation.platform} "
        f"({len(conversation.participants)} declared participants)"
    )
    if n == 0:
        logger.warning("Empty message stream; returning zero-valued analysis")

    state = accumulate(conversation, tz=tz)

    per_person = build_per_person(state)
    timing = build_timing(state)
    engagement = build_engagement(state)
    heatmap = build_heatmap(state)
    patterns = build_patterns(state)
    trends = build_trends(state)

    names = _scored_names(conversation, state)
    reciprocity = compute_reciprocity_index(names, engagement, timing, per_person)

    network: Optional[NetworkMetrics] = None
    if conversation.is_group:
        network = compute_network_metrics(
            _network_names(state),
            state.reply_matrix,
            {name: acc.total_messages for name, acc in state.persons.items()},
        )
    else:
        logger.debug("Not a group conversation; network metrics skipped")

    viral_scores = compute_viral_scores(
        names, per_person, timing, engagement, patterns, heatmap, trends, n
    )
    badges = compute_badges(names, per_person, timing, engagement, heatmap)
    best_time = compute_best_time_to_text(names, timing, heatmap)
    catchphrases = compute_catchphrases(names, state)

    metadata = {
        "total_messages": n,
        "platform": conversation.platform,
        "is_group": conversation.is_group,
        "participants": state.names,
        "session_gap_ms": state.session_gap,
        "timezone": str(state.tz),
    }
    if n:
        metadata["date_range"] = {
            "start": conversation.messages[0].timestamp,
            "end": conversation.messages[-1].timestamp,
        }

    logger.info(
        f"Analysis complete: {state.total_sessions} sessions, "
        f"{len(patterns.bursts)} bursts, compatibility {viral_scores.compatibility_score}"
    )

    return QuantitativeAnalysis(
        per_person=per_person,
        timing=timing,
        engagement=engagement,
        patterns=patterns,
        heatmap=heatmap,
        trends=trends,
        reciprocity_index=reciprocity,
        viral_scores=viral_scores,
        network_metrics=network,
        badges=badges,
        best_time_to_text=best_time,
        catchphrases=catchphrases,
        metadata=metadata,
    )
