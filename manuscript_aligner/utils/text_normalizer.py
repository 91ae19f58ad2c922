"""Text normalization utilities for paragraphs and identifiers."""

import re

from ..language import normalize_whitespace

BLANK_LINE_PATTERN = re.compile(r"\r?\n\s*\r?\n")
NEWLINE_PATTERN = re.compile(r"\r?\n")

# Regex pattern for illegal control characters (except tab, newline, carriage return)
ILLEGAL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
UNSAFE_ID_CHARS = re.compile(r"[^A-Za-z0-9_-]")


class ParagraphNormalizer:
    """Normalize raw paragraph text before segmentation."""

    @classmethod
    def collapse_blank_lines(cls, text: str) -> str:
        """Reduce any run of blank lines to a single blank line."""
        return BLANK_LINE_PATTERN.sub("\n\n", text)

    @classmethod
    def normalize_paragraph(cls, text: str) -> str:
        """
        Flatten a paragraph onto one line.

        Blank-line runs are collapsed, remaining newlines become spaces,
        whitespace is collapsed and bidirectional marks are removed.

        Args:
            text: Raw paragraph text

        Returns:
            Normalized paragraph, possibly empty
        """
        if not text:
            return ""
        text = cls.collapse_blank_lines(text)
        text = NEWLINE_PATTERN.sub(" ", text)
        return normalize_whitespace(text)

    @classmethod
    def split_paragraphs(cls, raw: str) -> list[str]:
        """Split raw document text on blank lines."""
        if not raw:
            return []
        return BLANK_LINE_PATTERN.split(raw)


def normalize_paragraph(text: str) -> str:
    return ParagraphNormalizer.normalize_paragraph(text)


def normalize_paragraphs(paragraphs: list[str]) -> list[str]:
    """
    Normalize a list of raw paragraphs, dropping the empty ones.

    Args:
        paragraphs: Raw paragraph strings

    Returns:
        Normalized, non-empty paragraphs in their original order
    """
    normalized = (ParagraphNormalizer.normalize_paragraph(p) for p in paragraphs)
    return [p for p in normalized if p]


def split_paragraphs(raw: str) -> list[str]:
    return ParagraphNormalizer.split_paragraphs(raw)


def sanitize_text(text: str) -> str:
    """Remove control characters that may interfere with CSV output.

    Args:
        text: Input text

    Returns:
        Sanitized text
    """
    if not text:
        return text
    return ILLEGAL_CHARS.sub("", text)


def sanitize_id(value: str) -> str:
    """Make a path usable inside row and segment identifiers."""
    return UNSAFE_ID_CHARS.sub("-", value)
