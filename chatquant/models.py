"""
Data models for ChatQuant
Normalized input stream and the immutable analysis result
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Tuple, Any


# ============================================================================
# INPUT
# ============================================================================

@dataclass(frozen=True)
class Reaction:
    """A reaction attached to a message."""
    emoji: str
    actor: str


@dataclass(frozen=True)
class Message:
    """A single normalized message. Timestamps are epoch milliseconds."""
    sender: str
    timestamp: int
    content: str = ""
    reactions: Tuple[Reaction, ...] = ()
    has_media: bool = False
    has_link: bool = False
    is_unsent: bool = False
    # Mention/reply data for platforms without native reactions
    mentions: Tuple[str, ...] = ()
    reply_to_index: Optional[int] = None


@dataclass(frozen=True)
class Participant:
    """A declared participant."""
    name: str
    platform_id: Optional[str] = None


@dataclass(frozen=True)
class Conversation:
    """Ordered message stream plus participants and platform tag."""
    messages: Tuple[Message, ...]
    participants: Tuple[Participant, ...]
    platform: str = "whatsapp"
    is_group: bool = False
    title: str = ""

    @property
    def participant_names(self) -> List[str]:
        return [p.name for p in self.participants]


# ============================================================================
# OUTPUT
# ============================================================================

@dataclass(frozen=True)
class MessageRecord:
    content: str = ""
    length: int = 0
    timestamp: int = 0


@dataclass(frozen=True)
class PersonMetrics:
    total_messages: int
    total_words: int
    total_characters: int
    average_message_length: float
    average_message_chars: float
    longest_message: MessageRecord
    shortest_message: MessageRecord
    messages_with_emoji: int
    emoji_count: int
    top_emojis: List[Tuple[str, int]]
    questions_asked: int
    media_shared: int
    links_shared: int
    reactions_given: int
    reactions_received: int
    top_reactions_given: List[Tuple[str, int]]
    unsent_messages: int
    top_words: List[Tuple[str, int]]
    top_phrases: List[Tuple[str, int]]
    unique_words: int
    vocabulary_richness: float
    mentions_received: int = 0
    replies_sent: int = 0
    # Longest run of consecutive calendar days with at least one message
    longest_streak_days: int = 0


@dataclass(frozen=True)
class PersonTiming:
    average_response_time_ms: float
    median_response_time_ms: float
    fastest_response_ms: float
    slowest_response_ms: float
    # Positive slope = getting slower
    response_time_trend: float


@dataclass(frozen=True)
class LongestSilence:
    duration_ms: int = 0
    start_timestamp: int = 0
    end_timestamp: int = 0
    last_sender: str = ""
    next_sender: str = ""


@dataclass(frozen=True)
class TimingMetrics:
    per_person: Dict[str, PersonTiming]
    conversation_initiations: Dict[str, int]
    conversation_endings: Dict[str, int]
    longest_silence: LongestSilence
    late_night_messages: Dict[str, int]


@dataclass(frozen=True)
class EngagementMetrics:
    double_texts: Dict[str, int]
    max_consecutive: Dict[str, int]
    message_ratio: Dict[str, float]
    reaction_rate: Dict[str, float]
    reaction_give_rate: Dict[str, float]
    reaction_receive_rate: Dict[str, float]
    avg_conversation_length: float
    total_sessions: int
    mention_rate: Optional[Dict[str, float]] = None
    reply_rate: Optional[Dict[str, float]] = None


@dataclass(frozen=True)
class MonthlyVolume:
    month: str
    per_person: Dict[str, int]
    total: int


@dataclass(frozen=True)
class Burst:
    start_date: str
    end_date: str
    message_count: int
    avg_daily: float


@dataclass(frozen=True)
class PatternMetrics:
    monthly_volume: List[MonthlyVolume]
    weekday: Dict[str, int]
    weekend: Dict[str, int]
    volume_trend: float
    bursts: List[Burst]


@dataclass(frozen=True)
class HeatmapData:
    """7x24 grids indexed [weekday][hour], weekday 0 = Sunday."""
    per_person: Dict[str, List[List[int]]]
    combined: List[List[int]]


@dataclass(frozen=True)
class TrendPoint:
    month: str
    per_person: Dict[str, float]


@dataclass(frozen=True)
class TrendData:
    response_time_trend: List[TrendPoint]
    message_length_trend: List[TrendPoint]
    initiation_trend: List[TrendPoint]


@dataclass(frozen=True)
class ReciprocityIndex:
    overall: int = 50
    message_balance: int = 50
    initiation_balance: int = 50
    response_time_symmetry: int = 50
    reaction_balance: int = 50


@dataclass(frozen=True)
class NetworkNode:
    name: str
    total_messages: int
    centrality: float


@dataclass(frozen=True)
class NetworkEdge:
    source: str
    target: str
    weight: int
    source_to_target: int
    target_to_source: int


@dataclass(frozen=True)
class NetworkMetrics:
    nodes: List[NetworkNode]
    edges: List[NetworkEdge]
    density: float
    most_connected: str


@dataclass(frozen=True)
class GhostRisk:
    score: int
    factors: List[str]


@dataclass(frozen=True)
class ViralScores:
    compatibility_score: int
    compatibility_breakdown: Dict[str, float]
    interest_scores: Dict[str, int]
    ghost_risk: Dict[str, GhostRisk]
    delusion_score: int
    delusion_holder: Optional[str] = None


@dataclass(frozen=True)
class Catchphrase:
    phrase: str
    count: int
    # Share of all uses of the phrase that came from this person
    uniqueness: float


@dataclass(frozen=True)
class BestTimeToText:
    best_day: str
    best_hour: int
    best_window: str
    avg_response_ms: float


@dataclass(frozen=True)
class Badge:
    id: str
    name: str
    emoji: str
    description: str
    holder: str
    evidence: str


@dataclass(frozen=True)
class QuantitativeAnalysis:
    per_person: Dict[str, PersonMetrics]
    timing: TimingMetrics
    engagement: EngagementMetrics
    patterns: PatternMetrics
    heatmap: HeatmapData
    trends: TrendData
    reciprocity_index: ReciprocityIndex
    viral_scores: ViralScores
    network_metrics: Optional[NetworkMetrics] = None
    badges: List[Badge] = field(default_factory=list)
    best_time_to_text: Dict[str, BestTimeToText] = field(default_factory=dict)
    catchphrases: Dict[str, List[Catchphrase]] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Plain nested dict, suitable for json.dumps."""
        return asdict(self)
