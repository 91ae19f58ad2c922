"""Turns document pairs and bilingual single files into parallel segments."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Optional

from tqdm import tqdm

from .alignment import SequenceAligner
from .data.loaders import (
    DocumentReadError,
    load_json_records,
    load_marker_sections,
    load_paragraphs,
    parse_marker_sections,
    read_docx_paragraphs,
)
from .language import ensure_language
from .models import (
    AlignedEntry,
    CoverageTracker,
    DocumentPair,
    FileRecord,
    FileReference,
    MissLedger,
    ParallelSegment,
    Sentence,
)
from .segmenter import TextSegmenter
from .utils.text_normalizer import sanitize_id

logger = logging.getLogger(__name__)

RefBuilder = Callable[[AlignedEntry], list[FileReference]]


@dataclass
class AssemblyOutcome:
    """Everything one pair or single file contributes to the run."""

    path: str
    entries: list[AlignedEntry] = field(default_factory=list)
    segments: list[ParallelSegment] = field(default_factory=list)
    misses: list[tuple[str, str]] = field(default_factory=list)
    pair: Optional[DocumentPair] = None

    @property
    def succeeded(self) -> bool:
        return bool(self.segments) and not self.misses


@dataclass
class AssemblyResult:
    """Merged outcome of a whole run."""

    segments: list[ParallelSegment] = field(default_factory=list)
    pairs: list[DocumentPair] = field(default_factory=list)
    single_file_entries: int = 0


class CorpusAssembler:
    """
    Segment, align and serialize every document pair and single file.

    Work items run on a thread pool; their outcomes are merged in
    submission order, and only the merge touches the coverage tracker
    and the miss ledger.
    """

    def __init__(
        self,
        segmenter: TextSegmenter,
        aligner: SequenceAligner,
        source_language: str = "ar",
        target_language: str = "en",
        workers: int = 4,
        show_progress: bool = True,
    ):
        self.segmenter = segmenter
        self.aligner = aligner
        self.source_language = source_language
        self.target_language = target_language
        self.workers = max(1, workers)
        self.show_progress = show_progress

    def _sentences(self, text: str, language: str) -> list[Sentence]:
        if not text:
            return []
        return self.segmenter.segment(text, language).sentences

    def _emit(
        self,
        outcome: AssemblyOutcome,
        row_id: str,
        para_index: int,
        entries: list[AlignedEntry],
        refs: RefBuilder,
    ) -> None:
        outcome.entries.extend(entries)
        seg_index = 0
        for entry in entries:
            # Surplus target text has no source to pair with, so it is dropped
            # here and shows up only in targetsFound.
            if not entry.src:
                continue
            outcome.segments.append(
                ParallelSegment(
                    id=f"{row_id}#{seg_index}",
                    row_id=row_id,
                    para_index=para_index,
                    seg_index=seg_index,
                    src=entry.src,
                    tgt=entry.tgt,
                    src_lang=ensure_language(entry.src, self.source_language),
                    tgt_lang=ensure_language(entry.tgt, self.target_language) if entry.tgt else "unknown",
                    status=entry.status,
                    length_ratio=round(entry.ratio, 3),
                    file_refs=refs(entry),
                )
            )
            seg_index += 1

    def _align_texts(self, src_text: str, tgt_text: str) -> list[AlignedEntry]:
        src = self._sentences(src_text, self.source_language)
        tgt = self._sentences(tgt_text, self.target_language)
        if not src and not tgt:
            return []
        return self.aligner.align(src, tgt)

    def align_pair(self, pair: DocumentPair) -> AssemblyOutcome:
        """
        Align a source document against its translation, paragraph by paragraph.

        Row ids are ``<source path>:<paragraph index>``; file references
        carry the character span of each side.
        """
        outcome = AssemblyOutcome(path=pair.source.path, pair=pair)
        paragraphs = []
        for record in (pair.source, pair.target):
            try:
                paragraphs.append(load_paragraphs(record.absolute_path, record.kind))
            except DocumentReadError as e:
                logger.warning(f"Skipping pair {pair.source.path} -> {pair.target.path}: {e}")
                outcome.misses.append((record.path, "unsupported_format"))
                return outcome
        src_paragraphs, tgt_paragraphs = paragraphs

        def refs(entry: AlignedEntry) -> list[FileReference]:
            return [
                FileReference(pair.source.path, entry.src_span),
                FileReference(pair.target.path, entry.tgt_span),
            ]

        base_id = sanitize_id(pair.source.path)
        for index in range(max(len(src_paragraphs), len(tgt_paragraphs))):
            src_text = src_paragraphs[index] if index < len(src_paragraphs) else ""
            tgt_text = tgt_paragraphs[index] if index < len(tgt_paragraphs) else ""
            entries = self._align_texts(src_text, tgt_text)
            if entries:
                self._emit(outcome, f"{base_id}:{index:04d}", index, entries, refs)

        if not outcome.segments:
            outcome.misses.append((pair.source.path, "too_short"))
        return outcome

    def _single_file_refs(self, record: FileRecord) -> RefBuilder:
        return lambda entry: [FileReference(record.path)]

    def process_marker_file(self, record: FileRecord) -> AssemblyOutcome:
        """Align each "## AR" block with the "## EN" block after it."""
        outcome = AssemblyOutcome(path=record.path)
        try:
            if record.kind == "docx":
                sections = parse_marker_sections("\n".join(read_docx_paragraphs(record.absolute_path)))
            else:
                sections = load_marker_sections(record.absolute_path)
        except DocumentReadError as e:
            logger.warning(f"Skipping {record.path}: {e}")
            outcome.misses.append((record.path, "unsupported_format"))
            return outcome

        if not sections:
            outcome.misses.append((record.path, "no_target_match"))
            return outcome

        base_id = sanitize_id(record.path)
        for index, section in enumerate(sections):
            entries = self._align_texts(section.src, section.tgt)
            if entries:
                self._emit(outcome, f"{base_id}:marker-{index:03d}", index, entries, self._single_file_refs(record))
        if not outcome.segments:
            outcome.misses.append((record.path, "too_short"))
        return outcome

    def process_json_file(self, record: FileRecord) -> AssemblyOutcome:
        """Align each bilingual record of a JSON or JSONL file."""
        outcome = AssemblyOutcome(path=record.path)
        try:
            records = load_json_records(record.absolute_path, record.kind, record.path)
        except DocumentReadError as e:
            logger.warning(f"Skipping {record.path}: {e}")
            outcome.misses.append((record.path, "unsupported_format"))
            return outcome

        if not records:
            outcome.misses.append((record.path, "no_target_match"))
            return outcome

        for index, item in enumerate(records):
            entries = self._align_texts(item.src, item.tgt)
            if entries:
                row_id = f"{sanitize_id(item.id or record.path)}:json-{index:03d}"
                self._emit(outcome, row_id, index, entries, self._single_file_refs(record))
        if not outcome.segments:
            outcome.misses.append((record.path, "too_short"))
        return outcome

    def process_single_file(self, record: FileRecord) -> AssemblyOutcome:
        if record.is_structured:
            return self.process_json_file(record)
        return self.process_marker_file(record)

    def _isolated(
        self, path: str, pair: Optional[DocumentPair], work: Callable[[], AssemblyOutcome]
    ) -> AssemblyOutcome:
        """Run one work item; an unexpected error becomes an unsupported_format miss."""
        try:
            return work()
        except Exception:
            logger.exception(f"Unexpected error while processing {path}")
            return AssemblyOutcome(path=path, misses=[(path, "unsupported_format")], pair=pair)

    def _run_tasks(self, tasks: list[Callable[[], AssemblyOutcome]]) -> list[AssemblyOutcome]:
        results: dict[int, AssemblyOutcome] = {}
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {executor.submit(task): index for index, task in enumerate(tasks)}
            for future in tqdm(
                as_completed(futures),
                total=len(futures),
                desc=f"Aligning documents ({self.workers} workers)",
                disable=not self.show_progress,
            ):
                results[futures[future]] = future.result()
        return [results[index] for index in range(len(tasks))]

    def assemble(
        self,
        pairs: list[DocumentPair],
        single_files: list[FileRecord],
        tracker: CoverageTracker,
        ledger: MissLedger,
    ) -> AssemblyResult:
        """
        Process all pairs, then all single files, and merge the outcomes.

        Args:
            pairs: Document pairs in acceptance order.
            single_files: Bilingual files not consumed by any pair.
            tracker: Coverage counters, updated per aligned entry.
            ledger: Miss ledger, receives per-file failures.

        Returns:
            AssemblyResult with the segments in emission order and the
            pairs that produced output.
        """
        tasks: list[Callable[[], AssemblyOutcome]] = []
        tasks.extend(
            lambda p=pair: self._isolated(p.source.path, p, lambda: self.align_pair(p)) for pair in pairs
        )
        tasks.extend(
            lambda r=record: self._isolated(r.path, None, lambda: self.process_single_file(r))
            for record in single_files
        )

        result = AssemblyResult()
        for outcome in self._run_tasks(tasks):
            for entry in outcome.entries:
                tracker.observe(entry.src, entry.tgt)
            for path, reason in outcome.misses:
                ledger.record(path, reason)
            result.segments.extend(outcome.segments)
            if outcome.pair is not None:
                if outcome.succeeded:
                    result.pairs.append(outcome.pair)
            elif outcome.segments:
                result.single_file_entries += 1

        logger.info(
            f"Assembled {len(result.segments)} segments from {len(result.pairs)} pairs "
            f"and {result.single_file_entries} single files"
        )
        return result
