"""
Tests for the single-pass accumulator and calendar helpers
"""

import pytest
from datetime import timezone

from chatquant import config
from chatquant.accumulator import accumulate
from chatquant.models import Conversation, Message, Participant, Reaction
from chatquant.time_features import calendar_slot, is_late_night, is_new_session, is_weekend

# 2024-01-01 00:00:00 UTC, a Monday
BASE = 1704067200000
MINUTE = 60 * 1000
HOUR = 60 * MINUTE
DAY = 24 * HOUR


def make_conversation(rows, participants=("Alice", "Bob"), platform="whatsapp"):
    """rows: (sender, offset_ms, content) or (sender, offset_ms, content, reactions)."""
    messages = []
    for row in rows:
        sender, offset, content = row[:3]
        reactions = tuple(Reaction(emoji=e, actor=a) for e, a in (row[3] if len(row) > 3 else ()))
        messages.append(Message(sender=sender, timestamp=BASE + offset, content=content, reactions=reactions))
    return Conversation(
        messages=tuple(messages),
        participants=tuple(Participant(name=p) for p in participants),
        platform=platform,
    )


@pytest.fixture
def short_chat():
    """Two sessions separated by an 8 hour gap."""
    return make_conversation([
        ("Alice", 0, "Hey, are you around?"),
        ("Alice", 1 * MINUTE, "Need to ask something"),
        ("Bob", 5 * MINUTE, "Yes what's up", [("😂", "Alice")]),
        ("Alice", 6 * MINUTE, "Dinner tonight?"),
        ("Bob", 8 * HOUR, "Sorry, just saw this"),
        ("Alice", 8 * HOUR + 2 * MINUTE, "No worries 😊"),
    ])


# ============================================================================
# CALENDAR
# ============================================================================

def test_calendar_slot_sunday_zero():
    """Monday 2024-01-01 is weekday 1; the day before is Sunday 0."""
    slot = calendar_slot(BASE + 13 * HOUR, timezone.utc)
    assert slot.month_key == "2024-01"
    assert slot.day_key == "2024-01-01"
    assert slot.weekday == 1
    assert slot.hour == 13

    sunday = calendar_slot(BASE - HOUR, timezone.utc)
    assert sunday.weekday == 0
    assert sunday.month_key == "2023-12"


def test_weekend_and_late_night():
    assert is_weekend(0) and is_weekend(6)
    assert not is_weekend(3)
    assert is_late_night(22) and is_late_night(3)
    assert not is_late_night(4) and not is_late_night(21)


def test_session_gap_threshold():
    gap = config.session_gap_ms("whatsapp")
    assert gap == 6 * HOUR
    assert config.session_gap_ms("discord") == 2 * HOUR
    assert is_new_session(gap, gap)
    assert not is_new_session(gap - 1, gap)


# ============================================================================
# ACCUMULATION
# ============================================================================

def test_sessions_and_endings(short_chat):
    """First message initiates, gap >= session gap splits, last message ends."""
    state = accumulate(short_chat, tz=timezone.utc)

    assert state.total_sessions == 2
    assert state.persons["Alice"].initiations == 1
    assert state.persons["Bob"].initiations == 1
    # Alice ends the first session, Alice sends the final message
    assert state.persons["Alice"].endings == 2
    assert state.persons["Bob"].endings == 0


def test_response_times_skip_session_restarts(short_chat):
    """Only same-session replies from a different sender are sampled."""
    state = accumulate(short_chat, tz=timezone.utc)

    assert state.persons["Bob"].response_times == [4 * MINUTE]
    assert state.persons["Alice"].response_times == [1 * MINUTE, 2 * MINUTE]


def test_longest_silence(short_chat):
    state = accumulate(short_chat, tz=timezone.utc)

    silence = state.longest_silence
    assert silence.duration_ms == 8 * HOUR - 6 * MINUTE
    assert silence.last_sender == "Alice"
    assert silence.next_sender == "Bob"
    assert silence.start_timestamp == BASE + 6 * MINUTE


def test_longest_silence_ties_keep_first():
    conv = make_conversation([
        ("Alice", 0, "a"),
        ("Bob", HOUR, "b"),
        ("Alice", 2 * HOUR, "c"),
    ])
    state = accumulate(conv, tz=timezone.utc)
    assert state.longest_silence.start_timestamp == BASE
    assert state.longest_silence.next_sender == "Bob"


def test_double_text_counts_runs_not_messages():
    """A run of k >= 2 is one double-text event with max consecutive k."""
    rows = [("Alice", i * MINUTE, f"msg {i}") for i in range(4)]
    rows.append(("Bob", 10 * MINUTE, "finally"))
    rows.append(("Alice", 11 * MINUTE, "one"))
    rows.append(("Alice", 12 * MINUTE, "two"))
    state = accumulate(make_conversation(rows), tz=timezone.utc)

    alice = state.persons["Alice"]
    assert alice.double_texts == 2
    assert alice.max_consecutive == 4
    assert state.persons["Bob"].double_texts == 0
    assert state.persons["Bob"].max_consecutive == 1


def test_reactions_credit_actor_and_sender():
    """Actors that never send get an accumulator of their own."""
    conv = make_conversation([
        ("Alice", 0, "look at this", [("😂", "Bob"), ("😮", "Carol")]),
        ("Bob", MINUTE, "haha"),
    ])
    state = accumulate(conv, tz=timezone.utc)

    assert state.persons["Alice"].reactions_received == 2
    assert state.persons["Bob"].reactions_given == 1
    assert state.persons["Carol"].reactions_given == 1
    assert state.persons["Carol"].total_messages == 0
    assert state.names == ["Alice", "Bob", "Carol"]


def test_unknown_sender_is_added():
    conv = make_conversation([
        ("Alice", 0, "hi"),
        ("Dave", MINUTE, "who am I"),
    ])
    state = accumulate(conv, tz=timezone.utc)

    assert state.persons["Dave"].total_messages == 1
    assert state.persons["Dave"].first_seen_index == 1
    assert state.messages_received("Dave") == 0
    assert state.messages_received("Bob") == 2


def test_text_counters(short_chat):
    state = accumulate(short_chat, tz=timezone.utc)
    alice = state.persons["Alice"]

    assert alice.total_messages == 4
    assert alice.questions_asked == 2
    assert alice.messages_with_emoji == 1
    assert alice.longest_message.content == "Hey, are you around?"
    assert alice.shortest_message.content == "Dinner tonight?"
    assert alice.trigram_freq["need ask something"] == 1


def test_heatmap_and_daily_counts(short_chat):
    state = accumulate(short_chat, tz=timezone.utc)

    # Monday, hour 0 and hour 8
    assert state.combined_heatmap[1][0] == 4
    assert state.combined_heatmap[1][8] == 2
    assert sum(sum(row) for row in state.combined_heatmap) == 6
    assert state.daily_counts == {"2024-01-01": 6}
    assert state.persons["Alice"].active_days == {"2024-01-01"}
    assert state.monthly_volume["2024-01"]["Alice"] == 4


def test_late_night_and_weekend():
    conv = make_conversation([
        ("Alice", 23 * HOUR, "late"),            # Monday 23:00
        ("Bob", 5 * DAY + 12 * HOUR, "noon"),    # Saturday 12:00
    ])
    state = accumulate(conv, tz=timezone.utc)

    assert state.persons["Alice"].late_night_messages == 1
    assert state.persons["Alice"].weekday_messages == 1
    assert state.persons["Bob"].late_night_messages == 0
    assert state.persons["Bob"].weekend_messages == 1


def test_reply_matrix(short_chat):
    state = accumulate(short_chat, tz=timezone.utc)
    assert state.reply_matrix[("Alice", "Bob")] == 1
    assert state.reply_matrix[("Bob", "Alice")] == 2


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
