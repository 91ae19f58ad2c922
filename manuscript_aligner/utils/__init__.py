"""Utility functions."""

from .keys import directory_signature, extract_numeric_key, normalized_key, roman_to_int
from .text_normalizer import normalize_paragraph, normalize_paragraphs, sanitize_id, split_paragraphs

__all__ = [
    "directory_signature",
    "extract_numeric_key",
    "normalized_key",
    "roman_to_int",
    "normalize_paragraph",
    "normalize_paragraphs",
    "sanitize_id",
    "split_paragraphs",
]
