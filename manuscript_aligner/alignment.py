"""Positional sentence alignment with length-ratio checks."""

from typing import Optional, Sequence, Union

from .models import AlignedEntry, Sentence, Span

# Default bounds for an "aligned" length ratio. They are working defaults,
# not measured values: override them through AlignmentConfig.
DEFAULT_MIN_RATIO = 0.3
DEFAULT_MAX_RATIO = 3.0

SegmentInput = Union[Sentence, str]


def _as_sentences(segments: Sequence[SegmentInput]) -> list[Sentence]:
    """Accept plain strings by laying them out as a space-joined paragraph."""
    sentences = []
    cursor = 0
    for segment in segments:
        if isinstance(segment, Sentence):
            sentences.append(segment)
            cursor = segment.end + 1
            continue
        text = segment or ""
        sentences.append(Sentence(text, cursor, cursor + len(text)))
        cursor += len(text) + 1
    return sentences


def length_ratio(src: str, tgt: str) -> float:
    """Target length over source length, both floored at 1."""
    return max(len(tgt), 1) / max(len(src), 1)


class SequenceAligner:
    """
    Align source and target segments one-to-one by position.

    Segments are never reordered. When one list is longer, its surplus is
    emitted against an empty string on the short side.
    """

    def __init__(self, min_ratio: float = DEFAULT_MIN_RATIO, max_ratio: float = DEFAULT_MAX_RATIO):
        if min_ratio <= 0 or max_ratio < min_ratio:
            raise ValueError(f"Invalid ratio bounds: [{min_ratio}, {max_ratio}]")
        self.min_ratio = min_ratio
        self.max_ratio = max_ratio

    def status_for(self, src: str, tgt: str, ratio: float) -> str:
        if not tgt:
            return "target-missing"
        if not src:
            return "source-missing"
        if self.min_ratio <= ratio <= self.max_ratio:
            return "aligned"
        return "length-outlier"

    def _entry(self, src: Optional[Sentence], tgt: Optional[Sentence]) -> AlignedEntry:
        src_text = src.text if src else ""
        tgt_text = tgt.text if tgt else ""
        ratio = length_ratio(src_text, tgt_text)
        src_span: Optional[Span] = (src.start, src.end) if src and src_text else None
        tgt_span: Optional[Span] = (tgt.start, tgt.end) if tgt and tgt_text else None
        return AlignedEntry(
            src=src_text,
            tgt=tgt_text,
            status=self.status_for(src_text, tgt_text, ratio),
            ratio=ratio,
            src_span=src_span,
            tgt_span=tgt_span,
        )

    def align(
        self, source: Sequence[SegmentInput], target: Sequence[SegmentInput]
    ) -> list[AlignedEntry]:
        """
        Align two segment lists.

        Args:
            source: Source segments in document order.
            target: Target segments in document order.

        Returns:
            One entry per position of the longer list.
        """
        src_sentences = _as_sentences(source)
        tgt_sentences = _as_sentences(target)
        if not src_sentences and not tgt_sentences:
            raise ValueError("Cannot align two empty segment lists")

        entries = []
        for index in range(max(len(src_sentences), len(tgt_sentences))):
            src = src_sentences[index] if index < len(src_sentences) else None
            tgt = tgt_sentences[index] if index < len(tgt_sentences) else None
            entries.append(self._entry(src, tgt))
        return entries
