"""Confidence scoring for automatic document matching."""

from ..models import FileRecord

SAME_BASE_WEIGHT = 0.65
SAME_NUMBER_WEIGHT = 0.15
SAME_SIGNATURE_WEIGHT = 0.12
SAME_PARENT_WEIGHT = 0.08
SAME_EXTENSION_WEIGHT = 0.05

DEFAULT_AUTO_THRESHOLD = 0.6


def compute_confidence(source: FileRecord, target: FileRecord) -> float:
    """
    Score how likely two files are translations of each other.

    Returns:
        Score in [0, 1], rounded to 2 decimals.
    """
    score = 0.0
    if source.normalized_base and source.normalized_base == target.normalized_base:
        score += SAME_BASE_WEIGHT
    if source.numeric_key and source.numeric_key == target.numeric_key:
        score += SAME_NUMBER_WEIGHT
    if source.dir_signature == target.dir_signature:
        score += SAME_SIGNATURE_WEIGHT
    if source.parent == target.parent:
        score += SAME_PARENT_WEIGHT
    if source.extension == target.extension:
        score += SAME_EXTENSION_WEIGHT
    return min(1.0, max(0.0, round(score, 2)))
