"""Language-aware sentence segmentation with a regex fallback."""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .engines import RegexSegmenter, SegmentationEngine, UnsupportedLanguageError, create_engine
from .language import detect, normalize_whitespace
from .models import Sentence
from .utils.text_normalizer import normalize_paragraph, normalize_paragraphs

logger = logging.getLogger(__name__)

SEGMENTABLE_LANGUAGES = ("ar", "en")


@dataclass
class SegmentedParagraph:
    """Sentences of one paragraph and the language used to split it."""

    language: str
    text: str  # Normalized paragraph the spans refer to
    sentences: list[Sentence] = field(default_factory=list)

    @property
    def segments(self) -> list[str]:
        return [sentence.text for sentence in self.sentences]


class TextSegmenter:
    """
    Split paragraphs into sentence-like segments.

    The configured engine is tried first. If it does not support the
    language, raises, or returns nothing usable, the regex engine is used.
    Engines are cached on the instance, one per language.
    """

    def __init__(self, engine: str = "nltk", default_language: str = "en", min_length: int = 2):
        """
        Initialize the segmenter.

        Args:
            engine: Preferred engine name ("nltk" or "regex").
            default_language: Language used when detection is inconclusive.
            min_length: Segments shorter than this are discarded.
        """
        self.engine_name = engine
        self.default_language = default_language
        self.min_length = min_length
        self._engines: dict[str, SegmentationEngine] = {}
        self._fallbacks: dict[str, RegexSegmenter] = {}

    def _engine_for(self, language: str) -> SegmentationEngine:
        if language not in self._engines:
            self._engines[language] = create_engine(self.engine_name, language)
        return self._engines[language]

    def _fallback_for(self, language: str) -> RegexSegmenter:
        if language not in self._fallbacks:
            self._fallbacks[language] = RegexSegmenter(language=language)
        return self._fallbacks[language]

    def resolve_language(self, text: str, language: Optional[str] = None) -> str:
        """Caller-supplied language, else detected, else the default."""
        if language in SEGMENTABLE_LANGUAGES:
            return language
        detected = detect(text).language
        return detected if detected in SEGMENTABLE_LANGUAGES else self.default_language

    def _keep(self, pieces: list[tuple[str, int, int]]) -> list[Sentence]:
        sentences = []
        for piece, start, end in pieces:
            normalized = normalize_whitespace(piece)
            if normalized and len(normalized) >= self.min_length:
                sentences.append(Sentence(normalized, start, end))
        return sentences

    def segment(self, paragraph: str, language: Optional[str] = None) -> SegmentedParagraph:
        """
        Segment one paragraph.

        Args:
            paragraph: Raw paragraph text.
            language: Optional language label; detected when omitted.

        Returns:
            SegmentedParagraph whose spans index into its normalized text.
        """
        cleaned = normalize_paragraph(paragraph)
        resolved = self.resolve_language(cleaned, language)
        if not cleaned:
            return SegmentedParagraph(language=resolved, text="")

        engine = self._engine_for(resolved)
        if not isinstance(engine, RegexSegmenter):
            try:
                sentences = self._keep(engine.segment_with_indices(cleaned))
                if sentences:
                    return SegmentedParagraph(resolved, cleaned, sentences)
            except UnsupportedLanguageError as e:
                logger.debug(f"{e}; using regex segmentation")
            except ValueError as e:
                logger.warning(f"{engine.name} segmentation failed ({e}); using regex segmentation")

        fallback = self._fallback_for(resolved)
        return SegmentedParagraph(resolved, cleaned, self._keep(fallback.segment_with_indices(cleaned)))

    def segment_paragraphs(
        self, paragraphs: list[str], language: Optional[str] = None
    ) -> list[SegmentedParagraph]:
        """Normalize a list of raw paragraphs, then segment each one."""
        return [self.segment(p, language) for p in normalize_paragraphs(paragraphs)]
