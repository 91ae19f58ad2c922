"""Data models for the alignment pipeline."""

from dataclasses import dataclass, field
from typing import Literal, NamedTuple, Optional

Language = Literal["ar", "en", "mixed", "unknown"]
FileKind = Literal["text", "docx", "json", "jsonl"]
PairOrigin = Literal["explicit-map", "folder-rule", "auto-matched"]
AlignmentStatus = Literal["aligned", "target-missing", "source-missing", "length-outlier"]
ReasonCode = Literal["no_target_match", "unsupported_format", "lang_detection_failed", "too_short"]

Span = tuple[int, int]


class Sentence(NamedTuple):
    """A segment and its half-open character span in the paragraph."""

    text: str
    start: int
    end: int


@dataclass(frozen=True)
class FileRecord:
    """One cataloged input file."""

    path: str  # Project-relative, POSIX separators
    absolute_path: str
    extension: str
    language: Language
    normalized_base: str
    numeric_key: Optional[str]
    dir_signature: str
    size: int
    has_markers: bool = False
    kind: FileKind = "text"

    @property
    def parent(self) -> str:
        """Project-relative parent directory."""
        head, _, _ = self.path.rpartition("/")
        return head

    @property
    def is_structured(self) -> bool:
        return self.kind in ("json", "jsonl")

    @property
    def is_single_file(self) -> bool:
        """Whether the file carries both languages on its own."""
        return self.is_structured or self.language == "mixed" or self.has_markers


@dataclass(frozen=True)
class DocumentPair:
    """A resolved source/target pairing."""

    source: FileRecord
    target: FileRecord
    origin: PairOrigin
    confidence: Optional[float] = None


@dataclass
class AlignedEntry:
    """Result of aligning one source position with one target position."""

    src: str
    tgt: str
    status: AlignmentStatus
    ratio: float
    src_span: Optional[Span] = None
    tgt_span: Optional[Span] = None


@dataclass
class FileReference:
    """Traceability pointer back into an input file."""

    path: str
    span: Optional[Span] = None

    def to_dict(self) -> dict:
        result = {"path": self.path}
        if self.span is not None:
            result["span"] = [self.span[0], self.span[1]]
        return result


@dataclass
class ParallelSegment:
    """One aligned unit of translation."""

    id: str
    row_id: str
    para_index: int
    seg_index: int
    src: str
    tgt: str
    src_lang: Language
    tgt_lang: Language
    status: AlignmentStatus
    length_ratio: float
    file_refs: list[FileReference] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to the camelCase record written to the segment stream."""
        return {
            "id": self.id,
            "rowId": self.row_id,
            "paraIndex": self.para_index,
            "segIndex": self.seg_index,
            "src": self.src,
            "tgt": self.tgt,
            "srcLang": self.src_lang,
            "tgtLang": self.tgt_lang,
            "status": self.status,
            "lengthRatio": self.length_ratio,
            "fileRefs": [ref.to_dict() for ref in self.file_refs],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ParallelSegment":
        """Create a ParallelSegment from a stream record."""
        refs = [
            FileReference(
                path=ref.get("path", ""),
                span=tuple(ref["span"]) if ref.get("span") else None,
            )
            for ref in data.get("fileRefs", [])
        ]
        return cls(
            id=data.get("id", ""),
            row_id=data.get("rowId", ""),
            para_index=data.get("paraIndex", 0),
            seg_index=data.get("segIndex", 0),
            src=data.get("src", ""),
            tgt=data.get("tgt", ""),
            src_lang=data.get("srcLang", "unknown"),
            tgt_lang=data.get("tgtLang", "unknown"),
            status=data.get("status", "aligned"),
            length_ratio=data.get("lengthRatio", 0.0),
            file_refs=refs,
        )


@dataclass(frozen=True)
class MissRecord:
    """A file that could not be aligned, with its reason."""

    path: str
    reason: ReasonCode


class MissLedger:
    """
    Deduplicated record of misses, keyed by path.

    The first reason recorded for a path wins. Paths that end up paired
    are discarded so misses and pairs stay disjoint.
    """

    def __init__(self):
        self._reasons: dict[str, ReasonCode] = {}

    def record(self, path: str, reason: ReasonCode) -> bool:
        """
        Record a miss unless the path already has one.

        Returns:
            True if the miss was new.
        """
        if path in self._reasons:
            return False
        self._reasons[path] = reason
        return True

    def discard(self, path: str) -> None:
        self._reasons.pop(path, None)

    def __contains__(self, path: str) -> bool:
        return path in self._reasons

    def __len__(self) -> int:
        return len(self._reasons)

    @property
    def paths(self) -> set[str]:
        return set(self._reasons)

    def records(self) -> list[MissRecord]:
        """All misses sorted by reason, then path."""
        return sorted(
            (MissRecord(path, reason) for path, reason in self._reasons.items()),
            key=lambda miss: (miss.reason, miss.path),
        )

    def top(self, limit: int) -> list[MissRecord]:
        return self.records()[:limit]

    def summary(self) -> dict[str, int]:
        """Count of misses per reason, keys sorted."""
        counts: dict[str, int] = {}
        for reason in self._reasons.values():
            counts[reason] = counts.get(reason, 0) + 1
        return dict(sorted(counts.items()))


@dataclass
class CoverageTracker:
    """Run-scoped segment counters."""

    sources_found: int = 0
    targets_found: int = 0
    matched_segments: int = 0

    def observe(self, src: str, tgt: str) -> None:
        """Count one emitted entry."""
        if src:
            self.sources_found += 1
        if tgt:
            self.targets_found += 1
        if src and tgt:
            self.matched_segments += 1

    @property
    def coverage_pct(self) -> float:
        """Matched segments as a percentage of source segments, in [0, 100]."""
        if self.sources_found == 0:
            return 0.0
        pct = 100.0 * self.matched_segments / max(self.sources_found, 1)
        return round(min(100.0, max(0.0, pct)), 2)
