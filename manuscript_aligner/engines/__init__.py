"""Segmentation engines."""

import logging

from .base import SegmentationEngine, UnsupportedLanguageError
from .nltk_engine import NltkSegmenter
from .regex_engine import RegexSegmenter

logger = logging.getLogger(__name__)

ENGINE_REGISTRY = {
    "nltk": NltkSegmenter,
    "regex": RegexSegmenter,
}


def create_engine(name: str, language: str) -> SegmentationEngine:
    """Create a segmentation engine, falling back to regex.

    Args:
        name: Engine name from ENGINE_REGISTRY
        language: Language label the engine segments

    Returns:
        The requested engine, or a RegexSegmenter when the requested engine
        does not support the language
    """
    if name not in ENGINE_REGISTRY:
        raise ValueError(f"Unknown segmentation engine: {name}")
    try:
        return ENGINE_REGISTRY[name](language=language)
    except UnsupportedLanguageError as e:
        logger.info(f"{e}; using regex segmentation for '{language}'")
        return RegexSegmenter(language=language)


__all__ = [
    "SegmentationEngine",
    "UnsupportedLanguageError",
    "NltkSegmenter",
    "RegexSegmenter",
    "ENGINE_REGISTRY",
    "create_engine",
]
