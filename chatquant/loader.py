"""
Normalized conversation loader for ChatQuant
Reads the importer's JSON output or a parsed DataFrame into a Conversation
"""

import json
import logging
from numbers import Real
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from . import config
from .models import Conversation, Message, Participant, Reaction

logger = logging.getLogger(__name__)

ENCODINGS = ["utf-8", "utf-8-sig", "cp1252", "latin1"]

# DataFrame columns produced by upstream chat parsers
DF_TIMESTAMP = "timestamp"
DF_SENDER = "sender"
DF_TEXT = "text"
DF_IS_MEDIA = "is_media"


def to_epoch_ms(value: Any) -> int:
    """
    Convert a timestamp to epoch milliseconds.

    Numbers are taken as epoch milliseconds. Strings and datetimes go through
    pandas; naive values are placed in the configured calendar timezone.
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, Real):
        return int(value)

    ts = pd.Timestamp(value)
    if pd.isna(ts):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if ts.tzinfo is None:
        ts = ts.tz_localize(config.get_timezone())
    return int(ts.value // 1_000_000)


def _parse_reactions(raw: Optional[Iterable[Dict]]) -> tuple:
    if not raw:
        return ()
    return tuple(Reaction(emoji=str(r["emoji"]), actor=str(r["actor"])) for r in raw)


def _parse_message(raw: Dict[str, Any]) -> Message:
    reply_to = raw.get("reply_to_index")
    return Message(
        sender=str(raw["sender"]).strip(),
        timestamp=to_epoch_ms(raw["timestamp"]),
        content=raw.get("content") or "",
        reactions=_parse_reactions(raw.get("reactions")),
        has_media=bool(raw.get("has_media", False)),
        has_link=bool(raw.get("has_link", False)),
        is_unsent=bool(raw.get("is_unsent", False)),
        mentions=tuple(raw.get("mentions") or ()),
        reply_to_index=int(reply_to) if reply_to is not None else None,
    )


def _parse_participant(raw: Any) -> Participant:
    if isinstance(raw, str):
        return Participant(name=raw)
    return Participant(name=str(raw["name"]), platform_id=raw.get("platform_id"))


def parse_conversation(data: Dict[str, Any]) -> Conversation:
    """
    Build a Conversation from a normalized dict.

    Expected keys: messages (list of {sender, timestamp, content, reactions,
    has_media, has_link, is_unsent, mentions, reply_to_index}), participants
    (names or {name, platform_id}), platform, is_group, title.
    Message order is preserved. Participants default to senders in order of
    first appearance.
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a JSON object, got {type(data).__name__}")

    try:
        messages = tuple(_parse_message(m) for m in data.get("messages") or [])
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Malformed message record: {e}") from e

    raw_participants = data.get("participants")
    if raw_participants:
        participants = tuple(_parse_participant(p) for p in raw_participants)
    else:
        participants = tuple(Participant(name=s) for s in dict.fromkeys(m.sender for m in messages))

    platform = str(data.get("platform", "whatsapp")).lower()
    if platform not in config.PLATFORMS:
        logger.warning(f"Unknown platform '{platform}'; using the default session gap")

    return Conversation(
        messages=messages,
        participants=participants,
        platform=platform,
        is_group=bool(data.get("is_group", len(participants) > 2)),
        title=data.get("title") or "",
    )


def load_conversation(file_path: str) -> Conversation:
    """Load a normalized conversation JSON file from disk."""
    last_err: Optional[Exception] = None

    for enc in ENCODINGS:
        try:
            with open(file_path, "r", encoding=enc) as f:
                data = json.load(f)
            conversation = parse_conversation(data)
            logger.info(
                f"Loaded {len(conversation.messages)} messages from "
                f"{len(conversation.participants)} participants"
            )
            return conversation
        except (OSError, UnicodeDecodeError, json.JSONDecodeError, ValueError) as e:
            last_err = e
            continue

    raise ValueError(f"Failed to read/parse file {file_path}: {last_err}")


def conversation_from_dataframe(
    df: pd.DataFrame,
    platform: str = "whatsapp",
    participants: Optional[Sequence[str]] = None,
    is_group: Optional[bool] = None,
) -> Conversation:
    """
    Build a Conversation from a parsed chat DataFrame.

    Requires `timestamp` and `sender` columns; `text` and `is_media` are
    optional. Rows are stably sorted by timestamp.
    """
    missing = [c for c in (DF_TIMESTAMP, DF_SENDER) if c not in df.columns]
    if missing:
        raise ValueError(f"DataFrame is missing required columns: {missing}")

    df = df.sort_values(DF_TIMESTAMP, kind="mergesort").reset_index(drop=True)

    messages: List[Message] = []
    for row in df.itertuples(index=False):
        record = row._asdict()
        text = record.get(DF_TEXT)
        messages.append(Message(
            sender=str(record[DF_SENDER]).strip(),
            timestamp=to_epoch_ms(record[DF_TIMESTAMP]),
            content=text if isinstance(text, str) else "",
            has_media=bool(record.get(DF_IS_MEDIA, False)),
        ))

    if participants is None:
        participants = list(dict.fromkeys(m.sender for m in messages))

    logger.info(f"Converted {len(messages)} rows from {len(participants)} participants")
    return Conversation(
        messages=tuple(messages),
        participants=tuple(Participant(name=name) for name in participants),
        platform=platform,
        is_group=len(participants) > 2 if is_group is None else is_group,
    )


def validate_format(file_path: str) -> tuple[bool, str]:
    """
    Validate a normalized conversation file.
    Returns (is_valid, reason).
    """
    try:
        with open(file_path, "r", encoding="utf-8", errors="replace") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        return False, f"Could not read file: {e}"

    if not isinstance(data, dict):
        return False, "Top-level value must be an object"

    messages = data.get("messages")
    if not isinstance(messages, list):
        return False, "Missing 'messages' list"

    for i, m in enumerate(messages):
        if not isinstance(m, dict) or not m.get("sender") or "timestamp" not in m:
            return False, f"Message {i} needs 'sender' and 'timestamp'"

    return True, f"Format appears valid ({len(messages)} messages)"
