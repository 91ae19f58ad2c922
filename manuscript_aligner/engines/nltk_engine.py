"""NLTK Punkt segmentation engine (locale aware)."""

import logging

from nltk.tokenize import sent_tokenize

from .base import LOCALE_NAMES, SegmentationEngine, UnsupportedLanguageError

logger = logging.getLogger(__name__)

PROBE_TEXT = "Probe sentence one. Probe sentence two."


class NltkSegmenter(SegmentationEngine):
    """Segmentation engine backed by a per-language Punkt model."""

    name = "nltk"

    def __init__(self, language: str = "en"):
        """Initialize the Punkt segmenter for a language.

        Args:
            language: Language label ("ar" or "en")

        Raises:
            UnsupportedLanguageError: If no Punkt model is installed for
                the language
        """
        super().__init__(language)
        locale = LOCALE_NAMES.get(language)
        if locale is None:
            raise UnsupportedLanguageError(language, "no locale mapping")
        self.locale = locale

        # Punkt models load lazily; probe once so a missing model surfaces
        # here rather than on the first paragraph.
        try:
            sent_tokenize(PROBE_TEXT, language=self.locale)
        except LookupError as e:
            raise UnsupportedLanguageError(language, "Punkt model not found") from e
        logger.debug(f"Initialized Punkt segmenter for {self.locale}")

    def segment_with_indices(self, text: str) -> list[tuple[str, int, int]]:
        """Segment text with Punkt and recover character spans.

        Args:
            text: Input text to segment

        Returns:
            List of (segment_text, start_index, end_index) tuples

        Raises:
            UnsupportedLanguageError: If the model cannot be loaded
        """
        if not text:
            return []
        try:
            fragments = sent_tokenize(text, language=self.locale)
        except LookupError as e:
            raise UnsupportedLanguageError(self.language, "Punkt model not found") from e
        fragments = [f.strip() for f in fragments if f and f.strip()]
        return self.locate(text, fragments)
