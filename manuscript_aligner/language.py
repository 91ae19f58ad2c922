"""Script-based language detection for Arabic and English text."""

import re
import string
from typing import NamedTuple

ARABIC_CHAR_PATTERN = re.compile(r"[\u0600-\u06FF\u0750-\u077F\u08A0-\u08FF]")
ARABIC_PUNCT_PATTERN = re.compile(r"[\u060C\u061B\u061F\u066A-\u066D]")
ARABIC_DIACRITICS_PATTERN = re.compile(
    r"[\u064B-\u065F\u0670\u06D6-\u06DC\u06DF-\u06E8\u06EA-\u06ED]"
)
LATIN_LETTER_PATTERN = re.compile(r"[A-Za-z]")
ASCII_PUNCT = frozenset(string.punctuation)

# Embedding/override/isolate controls plus LRM, RLM and ALM
BIDI_CONTROL_PATTERN = re.compile(r"[\u200E\u200F\u061C\u202A-\u202E\u2066-\u2069]")
WHITESPACE_PATTERN = re.compile(r"\s+")

# A score must beat the other by this factor to win outright
DOMINANCE_FACTOR = 1.1
MIXED_MIN_LATIN = 3


class Detection(NamedTuple):
    """Language label with a confidence in [0, 1]."""

    language: str
    confidence: float


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    if value != value:  # NaN
        return low
    return min(high, max(low, value))


def strip_direction_marks(text: str) -> str:
    return BIDI_CONTROL_PATTERN.sub("", text)


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs and strip bidirectional control marks."""
    if not text:
        return ""
    return strip_direction_marks(WHITESPACE_PATTERN.sub(" ", text)).strip()


def score_arabic(text: str) -> float:
    """Weighted proportion of Arabic letters and Arabic punctuation."""
    if not text:
        return 0.0
    stripped = ARABIC_DIACRITICS_PATTERN.sub("", text)
    if not stripped:
        return 0.0
    letters = len(ARABIC_CHAR_PATTERN.findall(stripped))
    punct = len(ARABIC_PUNCT_PATTERN.findall(stripped))
    return (letters * 1.2 + punct * 0.5) / len(stripped)


def score_english(text: str) -> float:
    """Weighted proportion of Latin letters and ASCII punctuation."""
    if not text:
        return 0.0
    letters = len(LATIN_LETTER_PATTERN.findall(text))
    punct = sum(1 for char in text if char in ASCII_PUNCT)
    return (letters * 1.1 + punct * 0.4) / len(text)


def detect(raw_text: str) -> Detection:
    """
    Detect whether text is Arabic or English.

    Args:
        raw_text: Input text in any shape

    Returns:
        Detection with language "ar", "en" or "unknown"
    """
    text = normalize_whitespace(raw_text)
    if not text:
        return Detection("unknown", 0.0)

    arabic = score_arabic(text)
    english = score_english(text)

    if arabic == 0 and english == 0:
        return Detection("unknown", 0.0)
    if arabic > english * DOMINANCE_FACTOR:
        return Detection("ar", clamp(arabic))
    if english > arabic * DOMINANCE_FACTOR:
        return Detection("en", clamp(english))
    if arabic > english:
        return Detection("ar", clamp(arabic - english))
    if english > arabic:
        return Detection("en", clamp(english - arabic))
    return Detection("unknown", 0.0)


def is_mixed(text: str) -> bool:
    """Strong presence of both scripts."""
    if not text or not ARABIC_CHAR_PATTERN.search(text):
        return False
    return len(LATIN_LETTER_PATTERN.findall(text)) >= MIXED_MIN_LATIN


def classify(text: str) -> str:
    """Like detect(), but reports "mixed" for bilingual text."""
    if is_mixed(text):
        return "mixed"
    return detect(text).language


def ensure_language(text: str, fallback: str) -> str:
    language = detect(text).language
    return fallback if language == "unknown" else language
