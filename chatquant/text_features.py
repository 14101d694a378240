"""
Text feature extraction for ChatQuant
Word counts, emoji parsing, question detection and tokenization
"""

import re
import logging
from typing import List
import emoji

from . import config

logger = logging.getLogger(__name__)

URL_RE = re.compile(r"https?://\S+")

# Whitespace and punctuation that separate tokens
TOKEN_SPLIT_RE = re.compile(r"[\s.,!?;:()\[\]{}\"'\-/\\<>@#$%^&*+=|~`_]+")


def count_words(text: str) -> int:
    """Whitespace-delimited word count (0 for blank text)."""
    if not text or not text.strip():
        return 0
    return len(text.split())


def extract_emojis(text: str) -> List[str]:
    """Extract all emojis from text."""
    if not text:
        return []
    return [char for char in text if char in emoji.EMOJI_DATA]


def is_question(text: str) -> bool:
    """True when the text contains '?' outside of URLs."""
    if not text:
        return False
    return "?" in URL_RE.sub("", text)


def tokenize_words(text: str) -> List[str]:
    """
    Tokenize text to lowercase alphabetic words.

    Emojis are removed first; tokens shorter than 2 characters,
    non-alphabetic tokens and stopwords are dropped.
    """
    if not text or not text.strip():
        return []

    stripped = emoji.replace_emoji(text.lower(), replace="")
    return [
        token
        for token in TOKEN_SPLIT_RE.split(stripped)
        if len(token) >= 2 and token.isalpha() and token not in config.STOPWORDS
    ]


def extract_bigrams(tokens: List[str]) -> List[str]:
    """Adjacent token pairs joined by a single space."""
    return [f"{tokens[i]} {tokens[i + 1]}" for i in range(len(tokens) - 1)]


def extract_trigrams(tokens: List[str]) -> List[str]:
    return [" ".join(tokens[i:i + 3]) for i in range(len(tokens) - 2)]


if __name__ == "__main__":
    # Test feature extraction
    test_texts = [
        "Are you coming tonight? 😊",
        "Check https://example.com/?q=1 later",
        "Hahaha that's so funny 😂😂😂",
        "Meeting at 3 PM tomorrow",
    ]

    for text in test_texts:
        print(f"\nText: {text}")
        print(f"  words: {count_words(text)}")
        print(f"  emojis: {extract_emojis(text)}")
        print(f"  question: {is_question(text)}")
        tokens = tokenize_words(text)
        print(f"  tokens: {tokens}")
        print(f"  bigrams: {extract_bigrams(tokens)}")
