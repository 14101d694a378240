"""
Single-pass accumulation for ChatQuant

Consumes the message stream exactly once and builds per-person and
conversation-wide running totals. Everything downstream (derived metrics,
trends, bursts, reciprocity, network, composite scores) reads the finished
accumulators and never re-scans the raw messages.
"""

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import tzinfo
from typing import Dict, List, Optional, Sequence, Set, Tuple

from . import config
from .models import Conversation, LongestSilence, Message, MessageRecord
from .text_features import (
    count_words,
    extract_bigrams,
    extract_emojis,
    extract_trigrams,
    is_question,
    tokenize_words,
)
from .time_features import calendar_slot, is_late_night, is_new_session, is_weekend

logger = logging.getLogger(__name__)


def empty_grid() -> List[List[int]]:
    """A zeroed 7x24 [weekday][hour] grid."""
    return [[0] * 24 for _ in range(7)]


@dataclass
class PersonAccumulator:
    """Running totals for one participant."""

    name: str
    # Number of messages already processed when this person was first seen
    first_seen_index: int = 0

    total_messages: int = 0
    total_words: int = 0
    total_characters: int = 0
    longest_message: Optional[MessageRecord] = None
    shortest_message: Optional[MessageRecord] = None

    messages_with_emoji: int = 0
    emoji_count: int = 0
    emoji_freq: Counter = field(default_factory=Counter)
    word_freq: Counter = field(default_factory=Counter)
    phrase_freq: Counter = field(default_factory=Counter)
    trigram_freq: Counter = field(default_factory=Counter)

    questions_asked: int = 0
    media_shared: int = 0
    links_shared: int = 0
    unsent_messages: int = 0
    mentions_made: int = 0
    replies_sent: int = 0

    reactions_given: int = 0
    reactions_received: int = 0
    reactions_given_freq: Counter = field(default_factory=Counter)

    response_times: List[float] = field(default_factory=list)
    monthly_response_times: Dict[str, List[float]] = field(default_factory=dict)
    monthly_word_counts: Dict[str, List[int]] = field(default_factory=dict)

    initiations: int = 0
    endings: int = 0
    late_night_messages: int = 0
    double_texts: int = 0
    max_consecutive: int = 0
    weekday_messages: int = 0
    weekend_messages: int = 0
    heatmap: List[List[int]] = field(default_factory=empty_grid)
    active_days: Set[str] = field(default_factory=set)

    def add_text(self, message: Message, month_key: str) -> None:
        content = message.content or ""
        word_count = count_words(content)

        self.total_messages += 1
        self.total_words += word_count
        self.total_characters += len(content)

        # Longest / shortest only consider non-empty content
        if content.strip():
            if self.longest_message is None or word_count > self.longest_message.length:
                self.longest_message = MessageRecord(content, word_count, message.timestamp)
            if word_count > 0 and (
                self.shortest_message is None or word_count < self.shortest_message.length
            ):
                self.shortest_message = MessageRecord(content, word_count, message.timestamp)

        emojis = extract_emojis(content)
        if emojis:
            self.messages_with_emoji += 1
            self.emoji_count += len(emojis)
            self.emoji_freq.update(emojis)

        if is_question(content):
            self.questions_asked += 1

        tokens = tokenize_words(content)
        if tokens:
            self.word_freq.update(tokens)
            self.phrase_freq.update(extract_bigrams(tokens))
            self.trigram_freq.update(extract_trigrams(tokens))

        if message.has_media:
            self.media_shared += 1
        if message.has_link:
            self.links_shared += 1
        if message.is_unsent:
            self.unsent_messages += 1
        if message.mentions:
            self.mentions_made += len(message.mentions)
        if message.reply_to_index is not None:
            self.replies_sent += 1

        self.monthly_word_counts.setdefault(month_key, []).append(word_count)

    def add_response_time(self, gap_ms: float, month_key: str) -> None:
        self.response_times.append(gap_ms)
        self.monthly_response_times.setdefault(month_key, []).append(gap_ms)

    def close_run(self, run_length: int) -> None:
        """Finalize a consecutive run of this person's messages."""
        if run_length >= 2:
            self.double_texts += 1
        self.max_consecutive = max(self.max_consecutive, run_length)


class ConversationAccumulator:
    """Conversation-wide state for the accumulation pass."""

    def __init__(
        self,
        participant_names: Sequence[str],
        session_gap: int,
        tz: Optional[tzinfo] = None,
    ):
        self.session_gap = session_gap
        self.tz = tz or config.get_timezone()

        self.persons: Dict[str, PersonAccumulator] = {}
        for name in participant_names:
            if name not in self.persons:
                self.persons[name] = PersonAccumulator(name=name)
        self.declared = set(self.persons)

        self.total_messages = 0
        self.total_sessions = 0
        self.combined_heatmap = empty_grid()
        self.monthly_volume: Dict[str, Counter] = {}
        self.monthly_initiations: Dict[str, Counter] = {}
        self.daily_counts: Dict[str, int] = {}
        self.longest_silence = LongestSilence()
        self.reply_matrix: Dict[Tuple[str, str], int] = defaultdict(int)
        self.has_mention_data = False
        self.mentions_received: Counter = Counter()

        self.run_sender: Optional[str] = None
        self.run_length = 0
        self.finished = False

    def person(self, name: str) -> PersonAccumulator:
        """Get a person's accumulator, creating it on first sight."""
        acc = self.persons.get(name)
        if acc is None:
            logger.debug(f"Unknown participant '{name}' at message {self.total_messages}")
            acc = PersonAccumulator(name=name, first_seen_index=self.total_messages)
            self.persons[name] = acc
        return acc

    def messages_received(self, name: str) -> int:
        """Messages sent by others since this person was first seen."""
        acc = self.persons[name]
        return self.total_messages - acc.first_seen_index - acc.total_messages

    def add(self, message: Message, prev: Optional[Message]) -> None:
        """Fold one message into the running state."""
        sender = message.sender
        acc = self.person(sender)
        slot = calendar_slot(message.timestamp, self.tz)

        acc.add_text(message, slot.month_key)
        if message.mentions or message.reply_to_index is not None:
            self.has_mention_data = True
        for mentioned in message.mentions:
            if mentioned != sender:
                self.mentions_received[mentioned] += 1

        # Reactions: the actor gave, the sender received
        for reaction in message.reactions:
            acc.reactions_received += 1
            actor = self.person(reaction.actor)
            actor.reactions_given += 1
            actor.reactions_given_freq[reaction.emoji] += 1

        if prev is None:
            self._start_session(acc, slot.month_key)
        else:
            gap = message.timestamp - prev.timestamp
            if is_new_session(gap, self.session_gap):
                self.persons[prev.sender].endings += 1
                self._start_session(acc, slot.month_key)

            # Ties keep the first occurrence
            if gap > self.longest_silence.duration_ms:
                self.longest_silence = LongestSilence(
                    duration_ms=gap,
                    start_timestamp=prev.timestamp,
                    end_timestamp=message.timestamp,
                    last_sender=prev.sender,
                    next_sender=sender,
                )

            if prev.sender != sender and gap < self.session_gap:
                acc.add_response_time(gap, slot.month_key)
                self.reply_matrix[(prev.sender, sender)] += 1

        if sender == self.run_sender:
            self.run_length += 1
        else:
            if self.run_sender is not None:
                self.persons[self.run_sender].close_run(self.run_length)
            self.run_sender = sender
            self.run_length = 1

        if is_late_night(slot.hour):
            acc.late_night_messages += 1
        if is_weekend(slot.weekday):
            acc.weekend_messages += 1
        else:
            acc.weekday_messages += 1

        acc.heatmap[slot.weekday][slot.hour] += 1
        acc.active_days.add(slot.day_key)
        self.combined_heatmap[slot.weekday][slot.hour] += 1

        self.monthly_volume.setdefault(slot.month_key, Counter())[sender] += 1
        self.daily_counts[slot.day_key] = self.daily_counts.get(slot.day_key, 0) + 1

        self.total_messages += 1

    def _start_session(self, acc: PersonAccumulator, month_key: str) -> None:
        self.total_sessions += 1
        acc.initiations += 1
        self.monthly_initiations.setdefault(month_key, Counter())[acc.name] += 1

    def finish(self, last: Optional[Message]) -> None:
        """Close the run in progress and credit the final session ending."""
        if self.finished:
            return
        if self.run_sender is not None:
            self.persons[self.run_sender].close_run(self.run_length)
        if last is not None:
            self.persons[last.sender].endings += 1
        self.finished = True

    @property
    def names(self) -> List[str]:
        """Declared participants first, then others in order of first sight."""
        return list(self.persons)

    @property
    def sorted_months(self) -> List[str]:
        return sorted(self.monthly_volume)


def accumulate(
    conversation: Conversation,
    tz: Optional[tzinfo] = None,
) -> ConversationAccumulator:
    """Run the single O(n) pass over a conversation's messages."""
    state = ConversationAccumulator(
        conversation.participant_names,
        session_gap=config.session_gap_ms(conversation.platform),
        tz=tz,
    )

    messages = conversation.messages
    prev: Optional[Message] = None
    for message in messages:
        state.add(message, prev)
        prev = message

    state.finish(prev)

    logger.debug(
        f"Accumulated {state.total_messages} messages, "
        f"{state.total_sessions} sessions, {len(state.persons)} persons"
    )
    return state
