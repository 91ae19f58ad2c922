"""Regex-based segmentation engine (language independent)."""

import logging
import re

from ..language import normalize_whitespace
from .base import SegmentationEngine, TERMINATORS

logger = logging.getLogger(__name__)


class RegexSegmenter(SegmentationEngine):
    """Split after runs of sentence-final punctuation."""

    name = "regex"

    def __init__(self, language: str = "en"):
        """Initialize regex segmenter.

        Args:
            language: Language label, kept for reporting only
        """
        super().__init__(language)
        terminators = "".join(re.escape(t) for t in TERMINATORS)
        self.split_pattern = re.compile(f"([{terminators}]+)")

    def _emit(self, buffer: list[str], start: int, segments: list) -> None:
        raw = "".join(buffer)
        leading = len(raw) - len(raw.lstrip())
        stripped = raw.strip()
        if not stripped:
            return
        begin = start + leading
        segments.append((normalize_whitespace(stripped), begin, begin + len(stripped)))

    def segment_with_indices(self, text: str) -> list[tuple[str, int, int]]:
        """Segment text, keeping punctuation with the preceding fragment.

        Args:
            text: Input text to segment

        Returns:
            List of (segment_text, start_index, end_index) tuples
        """
        if not text:
            return []

        parts = self.split_pattern.split(text)
        segments: list[tuple[str, int, int]] = []
        buffer: list[str] = []
        buffer_start = 0
        cursor = 0

        for index, part in enumerate(parts):
            if not part:
                continue
            # re.split puts captured delimiters at odd positions
            is_delimiter = index % 2 == 1
            if not buffer:
                buffer_start = cursor
            buffer.append(part)
            cursor += len(part)
            if is_delimiter:
                self._emit(buffer, buffer_start, segments)
                buffer = []

        # Trailing text without a final delimiter
        if buffer:
            self._emit(buffer, buffer_start, segments)

        return segments
