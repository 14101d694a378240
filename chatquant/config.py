"""
Configuration module for ChatQuant
Fixed analysis constants plus environment-loaded ambient settings
"""

import os
from pathlib import Path
from typing import Dict, Any, FrozenSet
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent

# ============================================================================
# Ambient settings (environment)
# ============================================================================

LOG_LEVEL = os.getenv("CHATQUANT_LOG_LEVEL", "INFO").upper()

# Calendar used for month/day keys, weekday/hour cells and late-night checks
TIMEZONE_NAME = os.getenv("CHATQUANT_TIMEZONE", "UTC")

# ============================================================================
# Session & timing thresholds (fixed, never read from the environment)
# ============================================================================

HOUR_MS = 60 * 60 * 1000
DAY_MS = 24 * HOUR_MS

DEFAULT_SESSION_GAP_MS = 6 * HOUR_MS
HIGH_VELOCITY_SESSION_GAP_MS = 2 * HOUR_MS

PLATFORMS: FrozenSet[str] = frozenset(
    {"messenger", "whatsapp", "instagram", "telegram", "discord"}
)
HIGH_VELOCITY_PLATFORMS: FrozenSet[str] = frozenset({"discord"})

# Late night: hour >= 22 or hour < 4
LATE_NIGHT_START_HOUR = 22
LATE_NIGHT_END_HOUR = 4

# ============================================================================
# Burst detection
# ============================================================================

BURST_MULTIPLIER = 3.0
BURST_WINDOW_DAYS = 7
BURST_MIN_DAYS = 8
BURST_MERGE_GAP_DAYS = 1

# ============================================================================
# Frequency lists
# ============================================================================

TOP_EMOJIS = 10
TOP_REACTIONS_GIVEN = 5
TOP_WORDS = 20
TOP_PHRASES = 10

# ============================================================================
# Catchphrases, best time to text, badges
# ============================================================================

CATCHPHRASE_MIN_COUNT = 3
# Share of a phrase's uses that must come from one person
CATCHPHRASE_MIN_UNIQUENESS = 0.6
TOP_CATCHPHRASES = 8

BEST_TIME_WINDOW_HOURS = 2

# Early bird: hours 0-7
EARLY_BIRD_END_HOUR = 8
MENTION_MAGNET_MIN = 5
REPLY_KING_MIN = 10

# ============================================================================
# Composite score constants
# ============================================================================

INTEREST_WEIGHTS: Dict[str, float] = {
    "initiation": 0.25,
    "response_time_trend": 0.20,
    "message_length_trend": 0.15,
    "engagement": 0.20,
    "double_texts": 0.10,
    "late_night": 0.10,
}

GHOST_RISK_WEIGHTS: Dict[str, float] = {
    "response_time": 0.30,
    "message_length": 0.25,
    "initiation": 0.25,
    "volume": 0.20,
}

GHOST_RISK_RECENT_MONTHS = 3
GHOST_RISK_MIN_EARLIER_MONTHS = 3
GHOST_RISK_FACTOR_THRESHOLD = 30

DELUSION_NOISE_FLOOR = 5

# Neutral value for balance scores without data
NEUTRAL_SCORE = 50

# Polish + English stopwords filtered from top-words analysis
STOPWORDS: FrozenSet[str] = frozenset([
    # English
    "i", "me", "my", "myself", "we", "our", "ours", "ourselves", "you", "your", "yours",
    "yourself", "yourselves", "he", "him", "his", "himself", "she", "her", "hers",
    "herself", "it", "its", "itself", "they", "them", "their", "theirs", "themselves",
    "what", "which", "who", "whom", "this", "that", "these", "those", "am", "is", "are",
    "was", "were", "be", "been", "being", "have", "has", "had", "having", "do", "does",
    "did", "doing", "a", "an", "the", "and", "but", "if", "or", "because", "as", "until",
    "while", "of", "at", "by", "for", "with", "about", "against", "between", "through",
    "during", "before", "after", "above", "below", "to", "from", "up", "down", "in",
    "out", "on", "off", "over", "under", "again", "further", "then", "once", "here",
    "there", "when", "where", "why", "how", "all", "both", "each", "few", "more", "most",
    "other", "some", "such", "no", "nor", "not", "only", "own", "same", "so", "than",
    "too", "very", "s", "t", "can", "will", "just", "don", "should", "now", "d", "ll",
    "m", "o", "re", "ve", "y", "ain", "aren", "couldn", "didn", "doesn", "hadn", "hasn",
    "haven", "isn", "ma", "mightn", "mustn", "needn", "shan", "shouldn", "wasn",
    "weren", "won", "wouldn", "ok", "yes", "yeah", "yep", "nah", "nope", "oh",
    "ah", "um", "uh", "like", "lol", "haha", "hahaha", "xd", "xdd",
    # Polish
    "w", "z", "na", "do", "to", "je", "się", "nie", "że", "co", "tak", "za", "ale",
    "od", "po", "jak", "już", "mi", "ty", "ja", "ten", "ta", "te", "go", "mu", "czy",
    "jest", "są", "był", "była", "było", "być", "mam", "masz", "si", "tu",
    "tam", "też", "tym", "tego", "tej", "tych", "bo", "ze", "sobie", "tylko", "jeszcze",
    "może", "trzeba", "bardzo", "teraz", "kiedy", "gdzie", "dlaczego", "bez", "przy",
    "nad", "pod", "przed", "przez", "dla", "ani", "albo", "u", "ku", "aż",
    "juz", "sie", "moze", "tez", "wiec", "czyli", "dobra",
])


def session_gap_ms(platform: str) -> int:
    """Session-gap threshold for a platform tag."""
    if platform in HIGH_VELOCITY_PLATFORMS:
        return HIGH_VELOCITY_SESSION_GAP_MS
    return DEFAULT_SESSION_GAP_MS


def get_timezone() -> ZoneInfo:
    """Resolve the configured calendar timezone."""
    return ZoneInfo(TIMEZONE_NAME)


def get_config_summary() -> Dict[str, Any]:
    """Return a summary of current configuration."""
    return {
        "ambient": {
            "log_level": LOG_LEVEL,
            "timezone": TIMEZONE_NAME,
        },
        "sessions": {
            "default_gap_ms": DEFAULT_SESSION_GAP_MS,
            "high_velocity_gap_ms": HIGH_VELOCITY_SESSION_GAP_MS,
            "high_velocity_platforms": sorted(HIGH_VELOCITY_PLATFORMS),
            "late_night_hours": [LATE_NIGHT_START_HOUR, LATE_NIGHT_END_HOUR],
        },
        "bursts": {
            "multiplier": BURST_MULTIPLIER,
            "window_days": BURST_WINDOW_DAYS,
            "min_days": BURST_MIN_DAYS,
        },
        "scores": {
            "interest_weights": dict(INTEREST_WEIGHTS),
            "ghost_risk_weights": dict(GHOST_RISK_WEIGHTS),
            "delusion_noise_floor": DELUSION_NOISE_FLOOR,
        },
        "awards": {
            "catchphrase_min_count": CATCHPHRASE_MIN_COUNT,
            "catchphrase_min_uniqueness": CATCHPHRASE_MIN_UNIQUENESS,
            "best_time_window_hours": BEST_TIME_WINDOW_HOURS,
        },
    }


def validate_config() -> tuple[bool, str]:
    """Validate configuration. Returns (is_valid, message)."""
    try:
        get_timezone()
    except (ZoneInfoNotFoundError, ValueError):
        return False, f"CHATQUANT_TIMEZONE '{TIMEZONE_NAME}' is not a known IANA timezone"

    for label, weights in (("Interest", INTEREST_WEIGHTS), ("Ghost-risk", GHOST_RISK_WEIGHTS)):
        total_weight = sum(weights.values())
        if abs(total_weight - 1.0) > 0.01:
            return False, f"{label} weights sum to {total_weight:.2f}, should be ~1.0"

    return True, "Configuration valid"


if __name__ == "__main__":
    # Print config summary for debugging
    import json
    print("ChatQuant Configuration:")
    print(json.dumps(get_config_summary(), indent=2))
    print()
    valid, msg = validate_config()
    print(f"Validation: {msg}")
