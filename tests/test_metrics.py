"""
Tests for derived metrics
"""

import pytest
from collections import Counter
from datetime import timezone

from chatquant.accumulator import accumulate
from chatquant.metrics import (
    safe_divide,
    round_half_up,
    median,
    top_n,
    build_per_person,
    build_timing,
    build_engagement,
    build_heatmap,
)
from chatquant.models import Conversation, Message, Participant, Reaction

BASE = 1704067200000
MINUTE = 60 * 1000


@pytest.fixture
def reacted_chat():
    """Alice and Bob with reactions and repeated words."""
    messages = (
        Message("Alice", BASE, "pizza tonight pizza", reactions=(Reaction("❤", "Bob"),)),
        Message("Bob", BASE + 2 * MINUTE, "pizza sounds great"),
        Message("Alice", BASE + 3 * MINUTE, "great 😊"),
        Message("Bob", BASE + 7 * MINUTE, "", has_media=True, reactions=(Reaction("😂", "Alice"),)),
    )
    return Conversation(
        messages=messages,
        participants=(Participant("Alice"), Participant("Bob")),
    )


# ============================================================================
# HELPERS
# ============================================================================

def test_safe_divide():
    assert safe_divide(10, 2) == 5.0
    assert safe_divide(1, 0) == 0.0
    assert safe_divide(1, 0, default=-1.0) == -1.0
    assert safe_divide(float("nan"), 2) == 0.0


def test_round_half_up():
    assert round_half_up(62.5) == 63
    assert round_half_up(37.5) == 38
    assert round_half_up(0.5) == 1
    assert round_half_up(2.4999) == 2
    assert round_half_up(-2.5) == -2
    assert isinstance(round_half_up(10.0), int)


def test_median_even_odd():
    assert median([]) == 0.0
    assert median([3, 1, 2]) == 2.0
    assert median([4, 1, 3, 2]) == 2.5


def test_top_n_first_seen_tie_break():
    freq = Counter()
    freq.update(["b", "a", "c", "a", "b"])
    assert top_n(freq, 2) == [("b", 2), ("a", 2)]


# ============================================================================
# PER PERSON
# ============================================================================

def test_per_person_metrics(reacted_chat):
    per_person = build_per_person(accumulate(reacted_chat, tz=timezone.utc))

    alice = per_person["Alice"]
    assert alice.total_messages == 2
    assert alice.total_words == 5
    assert alice.average_message_length == 2.5
    assert alice.top_words[0] == ("pizza", 2)
    assert alice.reactions_received == 1
    assert alice.reactions_given == 1
    assert alice.top_reactions_given == [("😂", 1)]
    assert alice.unique_words == 3
    assert alice.vocabulary_richness == pytest.approx(0.6)

    bob = per_person["Bob"]
    assert bob.media_shared == 1
    assert bob.shortest_message.content == "pizza sounds great"


def test_per_person_zero_messages():
    conv = Conversation(messages=(), participants=(Participant("Alice"),))
    alice = build_per_person(accumulate(conv, tz=timezone.utc))["Alice"]

    assert alice.total_messages == 0
    assert alice.average_message_length == 0.0
    assert alice.vocabulary_richness == 0.0
    assert alice.longest_message.content == ""
    assert alice.longest_message.length == 0


# ============================================================================
# TIMING
# ============================================================================

def test_timing(reacted_chat):
    timing = build_timing(accumulate(reacted_chat, tz=timezone.utc))

    bob = timing.per_person["Bob"]
    assert bob.fastest_response_ms == 2 * MINUTE
    assert bob.slowest_response_ms == 4 * MINUTE
    assert bob.median_response_time_ms == 3 * MINUTE
    assert bob.average_response_time_ms == 3 * MINUTE
    # Single month: no trend
    assert bob.response_time_trend == 0.0

    assert timing.conversation_initiations == {"Alice": 1, "Bob": 0}
    assert timing.conversation_endings == {"Alice": 0, "Bob": 1}


# ============================================================================
# ENGAGEMENT
# ============================================================================

def test_engagement_rates(reacted_chat):
    engagement = build_engagement(accumulate(reacted_chat, tz=timezone.utc))

    assert engagement.message_ratio == {"Alice": 0.5, "Bob": 0.5}
    # Bob reacted to 1 of 2 received messages
    assert engagement.reaction_give_rate["Bob"] == 0.5
    assert engagement.reaction_rate["Bob"] == 0.5
    assert engagement.reaction_receive_rate["Alice"] == 0.5
    assert engagement.total_sessions == 1
    assert engagement.avg_conversation_length == 4.0
    assert engagement.mention_rate is None
    assert engagement.reply_rate is None


def test_engagement_mentions_reported_when_present():
    messages = (
        Message("Alice", BASE, "hey @Bob", mentions=("Bob",)),
        Message("Bob", BASE + MINUTE, "yes?", reply_to_index=0),
    )
    conv = Conversation(messages=messages, participants=(Participant("Alice"), Participant("Bob")))
    engagement = build_engagement(accumulate(conv, tz=timezone.utc))

    assert engagement.mention_rate == {"Alice": 1.0, "Bob": 0.0}
    assert engagement.reply_rate == {"Alice": 0.0, "Bob": 1.0}

    per_person = build_per_person(accumulate(conv, tz=timezone.utc))
    assert per_person["Bob"].mentions_received == 1
    assert per_person["Alice"].mentions_received == 0
    assert per_person["Bob"].replies_sent == 1


def test_engagement_empty():
    conv = Conversation(messages=(), participants=(Participant("Alice"), Participant("Bob")))
    engagement = build_engagement(accumulate(conv, tz=timezone.utc))

    assert engagement.total_sessions == 0
    assert engagement.avg_conversation_length == 0.0
    assert engagement.message_ratio == {"Alice": 0.0, "Bob": 0.0}


# ============================================================================
# HEATMAP
# ============================================================================

def test_heatmap_shape(reacted_chat):
    heatmap = build_heatmap(accumulate(reacted_chat, tz=timezone.utc))

    assert len(heatmap.combined) == 7
    assert all(len(row) == 24 for row in heatmap.combined)
    for grid in heatmap.per_person.values():
        assert len(grid) == 7
        assert all(len(row) == 24 for row in grid)
    assert sum(map(sum, heatmap.combined)) == 4


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
