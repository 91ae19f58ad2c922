"""Base classes and constants for segmentation engines."""

from abc import ABC, abstractmethod

# Sentence-final punctuation shared by both scripts
FULL_STOP = "."
EXCLAMATION = "!"
QUESTION = "?"
ARABIC_QUESTION = "\u061F"  # ؟
ARABIC_SEMICOLON = "\u061B"  # ؛

TERMINATORS = (FULL_STOP, EXCLAMATION, QUESTION, ARABIC_QUESTION, ARABIC_SEMICOLON)

# Language label -> name of the locale model used by locale-aware engines
LOCALE_NAMES = {
    "ar": "arabic",
    "en": "english",
}


class UnsupportedLanguageError(RuntimeError):
    """Raised when an engine has no segmentation model for a language."""

    def __init__(self, language: str, reason: str = ""):
        self.language = language
        message = f"No sentence segmentation model for language '{language}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class SegmentationEngine(ABC):
    """Base class for segmentation engines."""

    name = "base"

    def __init__(self, language: str = "en"):
        """Initialize segmentation engine.

        Args:
            language: Language label ("ar" or "en") the engine segments
        """
        self.language = language

    @abstractmethod
    def segment_with_indices(self, text: str) -> list[tuple[str, int, int]]:
        """Segment text and return segments with their indices.

        Args:
            text: Input text to segment

        Returns:
            List of (segment_text, start_index, end_index) tuples
        """
        pass

    @staticmethod
    def locate(text: str, fragments: list[str]) -> list[tuple[str, int, int]]:
        """Recover spans for fragments that appear in order within text.

        Fragments that cannot be found are placed at the current cursor.

        Args:
            text: Text the fragments were taken from
            fragments: Fragments in document order

        Returns:
            List of (fragment, start_index, end_index) tuples
        """
        located = []
        cursor = 0
        for fragment in fragments:
            start = text.find(fragment, cursor)
            if start == -1:
                start = cursor
                end = min(len(text), cursor + len(fragment))
            else:
                end = start + len(fragment)
            located.append((fragment, start, end))
            cursor = end
        return located

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(language={self.language!r})"
