"""
Badges, catchphrases and best time to text for ChatQuant

Light-hearted per-person awards built on top of the derived metrics:
1. Badges: one holder per badge, the participant with the highest value
   for a metric (lowest, for response speed). No badge when nobody
   qualifies.
2. Catchphrases: bigrams and trigrams a person uses often and that mostly
   come from them rather than the other participants.
3. Best time to text: the busiest weekday/hour cell of a person's heatmap
   as a two-hour window, plus their median response time.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

from . import config
from .accumulator import ConversationAccumulator
from .metrics import round_half_up, safe_divide
from .models import (
    Badge,
    BestTimeToText,
    Catchphrase,
    EngagementMetrics,
    HeatmapData,
    PersonMetrics,
    TimingMetrics,
)

logger = logging.getLogger(__name__)

# ============================================================================
# CONSTANTS
# ============================================================================

# Sunday = 0, matching the heatmap rows
DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

NO_DATA = "No data"

HEART_EMOJIS = frozenset(
    "❤❣\U0001F493\U0001F496\U0001F497\U0001F498\U0001F499\U0001F49A"
    "\U0001F49B\U0001F49C\U0001F5A4\U0001F90D\U0001F90E\U0001FA77\U0001F9E1"
)


def find_winner(values: Dict[str, float]) -> Optional[Tuple[str, float]]:
    """Highest positive value; ties go to the first name."""
    best: Optional[Tuple[str, float]] = None
    for name, value in values.items():
        if not math.isfinite(value) or value <= 0:
            continue
        if best is None or value > best[1]:
            best = (name, value)
    return best


def find_lowest(values: Dict[str, float]) -> Optional[Tuple[str, float]]:
    """Lowest positive value; ties go to the first name."""
    best: Optional[Tuple[str, float]] = None
    for name, value in values.items():
        if not math.isfinite(value) or value <= 0:
            continue
        if best is None or value < best[1]:
            best = (name, value)
    return best


def plural(count, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_duration(ms: float) -> str:
    """Compact duration: 45s, 12m, 3h 5m, 2 days."""
    seconds = int(ms // 1000)
    if seconds < 60:
        return f"{seconds}s"
    minutes = seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours, rest = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {rest}m" if rest else f"{hours}h"
    return plural(hours // 24, "day")


def format_silence(ms: float) -> str:
    days = round_half_up(ms / config.DAY_MS)
    if days == 0:
        return plural(round_half_up(ms / config.HOUR_MS), "hour")
    return plural(days, "day")


def is_heart(emoji_str: str) -> bool:
    return any(ch in HEART_EMOJIS for ch in emoji_str)


# ============================================================================
# BADGES
# ============================================================================

def compute_badges(
    names: Sequence[str],
    per_person: Dict[str, PersonMetrics],
    timing: TimingMetrics,
    engagement: EngagementMetrics,
    heatmap: HeatmapData,
) -> List[Badge]:
    """
    Award badges among the scored participants, in a fixed order.

    Each badge goes to the first participant holding the strictly highest
    positive value. Streaks need more than one day, mentions more than
    MENTION_MAGNET_MIN and replies more than REPLY_KING_MIN.
    """
    badges: List[Badge] = []

    def person(name: str) -> Optional[PersonMetrics]:
        return per_person.get(name)

    def total(name: str) -> int:
        p = person(name)
        return p.total_messages if p else 0

    def attr(field_name: str) -> Dict[str, float]:
        return {name: getattr(per_person[name], field_name) if name in per_person else 0 for name in names}

    def award(badge_id, name, emoji_char, description, winner, evidence):
        badges.append(Badge(
            id=badge_id,
            name=name,
            emoji=emoji_char,
            description=description,
            holder=winner,
            evidence=evidence,
        ))

    # Night owl
    late = {
        name: safe_divide(timing.late_night_messages.get(name, 0), total(name)) * 100
        for name in names
    }
    winner = find_winner(late)
    if winner:
        award("night-owl", "Night Owl", "\U0001F989",
              "Highest share of messages sent between 22:00 and 4:00",
              winner[0], f"{winner[1]:.1f}% of messages after 22:00")

    # Early bird
    early = {}
    for name in names:
        grid = heatmap.per_person.get(name)
        count = sum(sum(row[:config.EARLY_BIRD_END_HOUR]) for row in grid) if grid else 0
        early[name] = safe_divide(count, total(name)) * 100
    winner = find_winner(early)
    if winner:
        award("early-bird", "Early Bird", "\U0001F426",
              f"Highest share of messages sent before {config.EARLY_BIRD_END_HOUR}:00",
              winner[0], f"{winner[1]:.1f}% of messages before {config.EARLY_BIRD_END_HOUR}:00")

    # Ghost champion
    silence = timing.longest_silence
    if silence.duration_ms > 0 and silence.last_sender:
        award("ghost-champion", "Ghosting Champion", "\U0001F47B",
              "Sent the last message before the longest silence",
              silence.last_sender, f"Silence lasted {format_silence(silence.duration_ms)}")

    winner = find_winner({name: engagement.double_texts.get(name, 0) for name in names})
    if winner:
        award("double-texter", "Double Texter", "\U0001F4AC",
              "Most often sent several messages in a row without a reply",
              winner[0], plural(winner[1], "double text"))

    winner = find_winner(attr("average_message_length"))
    if winner:
        award("novelist", "Novelist", "\U0001F4D6",
              "Highest average message length",
              winner[0], f"{winner[1]:.1f} words per message on average")

    winner = find_lowest({
        name: timing.per_person[name].median_response_time_ms if name in timing.per_person else 0.0
        for name in names
    })
    if winner:
        award("speed-demon", "Speed Demon", "⚡",
              "Fastest median response time",
              winner[0], f"Median response: {format_duration(winner[1])}")

    winner = find_winner({
        name: safe_divide(person(name).emoji_count, total(name)) if person(name) else 0.0
        for name in names
    })
    if winner:
        award("emoji-monarch", "Emoji Monarch", "\U0001F602",
              "Most emoji per message",
              winner[0], f"{winner[1]:.2f} emoji per message")

    # Initiator: share of every initiation, not just the scored participants'
    all_initiations = sum(timing.conversation_initiations.values())
    winner = find_winner({name: timing.conversation_initiations.get(name, 0) for name in names})
    if winner and all_initiations > 0:
        award("initiator", "Initiator", "\U0001F501",
              "Started the most conversations",
              winner[0], f"Started {winner[1] / all_initiations * 100:.0f}% of conversations")

    # Heart bomber, only when someone reacted at all
    if any(person(name) and person(name).top_reactions_given for name in names):
        hearts = {
            name: sum(count for emoji_char, count in person(name).top_reactions_given if is_heart(emoji_char))
            if person(name) else 0
            for name in names
        }
        winner = find_winner(hearts)
        if winner:
            award("heart-bomber", "Heart Bomber", "❤️",
                  "Most heart reactions given",
                  winner[0], plural(winner[1], "heart reaction"))

    winner = find_winner(attr("links_shared"))
    if winner:
        award("link-lord", "Link Lord", "\U0001F4CE",
              "Shared the most links",
              winner[0], f"{plural(winner[1], 'link')} shared")

    winner = find_winner(attr("longest_streak_days"))
    if winner and winner[1] > 1:
        award("streak-master", "Streak Master", "\U0001F525",
              "Longest run of consecutive days with messages",
              winner[0], f"{winner[1]} days in a row")

    winner = find_winner(attr("questions_asked"))
    if winner:
        award("question-master", "Question Master", "\U0001F50D",
              "Asked the most questions",
              winner[0], f"{plural(winner[1], 'question')} asked")

    winner = find_winner(attr("mentions_received"))
    if winner and winner[1] > config.MENTION_MAGNET_MIN:
        award("mention-magnet", "Mention Magnet", "\U0001F4E2",
              "Mentioned by others the most",
              winner[0], plural(winner[1], "mention"))

    winner = find_winner(attr("replies_sent"))
    if winner and winner[1] > config.REPLY_KING_MIN:
        award("reply-king", "Reply King", "↩️",
              "Replied to specific messages the most",
              winner[0], f"{winner[1]} replies")

    logger.debug(f"Awarded {len(badges)} badges: {[b.id for b in badges]}")
    return badges


# ============================================================================
# CATCHPHRASES
# ============================================================================

def compute_catchphrases(
    names: Sequence[str],
    state: ConversationAccumulator,
) -> Dict[str, List[Catchphrase]]:
    """
    Per-person bigrams and trigrams used at least CATCHPHRASE_MIN_COUNT
    times where the person accounts for at least CATCHPHRASE_MIN_UNIQUENESS
    of all uses among the scored participants.

    Ranked by count * uniqueness, top TOP_CATCHPHRASES per person.
    """
    counters = {}
    for name in names:
        acc = state.persons.get(name)
        counters[name] = (acc.phrase_freq, acc.trigram_freq) if acc else ()

    global_counts: Dict[str, int] = {}
    for freqs in counters.values():
        for freq in freqs:
            for phrase, count in freq.items():
                global_counts[phrase] = global_counts.get(phrase, 0) + count

    result: Dict[str, List[Catchphrase]] = {}
    for name in names:
        candidates = []
        for freq in counters[name]:
            for phrase, count in freq.items():
                if count < config.CATCHPHRASE_MIN_COUNT:
                    continue
                uniqueness = safe_divide(count, global_counts.get(phrase, count))
                if uniqueness < config.CATCHPHRASE_MIN_UNIQUENESS:
                    continue
                candidates.append(Catchphrase(phrase, count, round_half_up(uniqueness * 100) / 100))

        candidates.sort(key=lambda c: c.count * c.uniqueness, reverse=True)
        result[name] = candidates[:config.TOP_CATCHPHRASES]

    return result


# ============================================================================
# BEST TIME TO TEXT
# ============================================================================

def compute_best_time_to_text(
    names: Sequence[str],
    timing: TimingMetrics,
    heatmap: HeatmapData,
) -> Dict[str, BestTimeToText]:
    """Busiest heatmap cell per person (first in day/hour order on ties)."""
    result: Dict[str, BestTimeToText] = {}

    for name in names:
        median_rt = timing.per_person[name].median_response_time_ms if name in timing.per_person else 0.0
        grid = heatmap.per_person.get(name)

        best_count, best_day, best_hour = 0, 0, 0
        for day in range(7):
            for hour in range(24):
                count = grid[day][hour] if grid else 0
                if count > best_count:
                    best_count, best_day, best_hour = count, day, hour

        if best_count == 0:
            result[name] = BestTimeToText(NO_DATA, 0, NO_DATA, median_rt)
            continue

        end = min(best_hour + config.BEST_TIME_WINDOW_HOURS, 24)
        day_name = DAY_NAMES[best_day]
        result[name] = BestTimeToText(
            best_day=day_name,
            best_hour=best_hour,
            best_window=f"{day_name}s {best_hour:02d}:00-{end:02d}:00",
            avg_response_ms=median_rt,
        )

    return result
