"""Identity keys used to match source files with their translations."""

import re
from typing import Optional

# Language tokens stripped from basenames. Lookarounds stand in for \b,
# which would treat "_" as a word character.
LANGUAGE_TOKEN_PATTERN = re.compile(
    r"(?<![a-z0-9])(?:ar-sa|en-us|en-gb|arabic|english|ar|en)(?![a-z0-9])"
)
NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9]+")
ROMAN_TOKEN_PATTERN = re.compile(r"\b[ivxlcdm]{1,6}\b", re.IGNORECASE)
VALID_ROMAN_PATTERN = re.compile(r"^m{0,4}(cm|cd|d?c{0,3})(xc|xl|l?x{0,3})(ix|iv|v?i{0,3})$")
SHORT_NUMBER_PATTERN = re.compile(r"\b(\d{1,2})\b")
NUMERIC_KEY_PATTERN = re.compile(r"\b(\d{1,3})\b")

# Directory names that indicate a language, replaced by "*" in signatures
SIGNATURE_PATTERN = re.compile(r"arabic|arab|ar|english|eng|en")
SIGNATURE_WILDCARD = "*"

ROMAN_VALUES = {"m": 1000, "d": 500, "c": 100, "l": 50, "x": 10, "v": 5, "i": 1}


def roman_to_int(token: str) -> Optional[int]:
    """
    Convert a roman numeral to an integer.

    Args:
        token: Candidate numeral, any case

    Returns:
        The value, or None if the token is not a well-formed numeral
    """
    chars = token.lower()
    if not chars or not VALID_ROMAN_PATTERN.match(chars):
        return None
    total = 0
    current = 0
    for char in reversed(chars):
        value = ROMAN_VALUES[char]
        if value < current:
            total -= value
        else:
            total += value
            current = value
    return total or None


def pad_number(value: int) -> str:
    """Zero-pad single digits to two characters."""
    return f"{value:02d}"


def clean_basename(name: str) -> str:
    """Lowercase, strip language tokens and collapse to alphanumerics."""
    lowered = name.lower()
    lowered = LANGUAGE_TOKEN_PATTERN.sub(" ", lowered)
    lowered = NON_ALNUM_PATTERN.sub(" ", lowered)
    return " ".join(lowered.split())


def convert_roman_segments(text: str) -> str:
    def _replace(match: re.Match) -> str:
        value = roman_to_int(match.group(0))
        return match.group(0) if value is None else pad_number(value)

    return ROMAN_TOKEN_PATTERN.sub(_replace, text)


def pad_numeric_segments(text: str) -> str:
    return SHORT_NUMBER_PATTERN.sub(lambda m: pad_number(int(m.group(1))), text)


def normalized_key(name: str) -> str:
    """
    Build the normalized-basename key for a filename stem.

    "Chapter_IV_AR" and "Chapter 04 English" both become "chapter 04".
    """
    return pad_numeric_segments(convert_roman_segments(clean_basename(name)))


def extract_numeric_key(text: str) -> Optional[str]:
    """First standalone 1-3 digit number, else the first roman numeral."""
    numeric = NUMERIC_KEY_PATTERN.search(text)
    if numeric:
        return pad_number(int(numeric.group(1)))
    roman = ROMAN_TOKEN_PATTERN.search(text)
    if roman:
        value = roman_to_int(roman.group(0))
        if value:
            return pad_number(value)
    return None


def directory_signature(relative_path: str) -> str:
    """
    Replace language-indicating substrings in every path segment.

    "book/ar/ch1.txt" and "book/en/ch1.txt" share the signature
    "book/*/ch1.txt".
    """
    return "/".join(
        SIGNATURE_PATTERN.sub(SIGNATURE_WILDCARD, segment.lower())
        for segment in relative_path.split("/")
    )
