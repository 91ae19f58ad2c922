"""File discovery and classification."""

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional

from tqdm import tqdm

from .config import DEFAULT_ROOTS, SUPPORTED_EXTENSIONS
from .data.loaders import DocumentReadError, read_docx_paragraphs, read_text
from .language import classify
from .models import FileRecord
from .utils.keys import (
    clean_basename,
    convert_roman_segments,
    directory_signature,
    extract_numeric_key,
    pad_numeric_segments,
)
from .utils.paths import (
    is_wildcard,
    matches_any,
    pattern_base,
    to_absolute,
    to_project_relative,
    walk_files,
)

logger = logging.getLogger(__name__)

MARKER_PROBE_PATTERN = re.compile(r"^##+\s*(AR|EN)\b", re.IGNORECASE | re.MULTILINE)
DOCX_SAMPLE_PARAGRAPHS = 8


class FileCataloger:
    """
    Build the run's catalog of FileRecords.

    Files are collected from the configured roots plus any include
    patterns, then probed concurrently. The catalog is keyed by
    project-relative path, so each file appears once.
    """

    def __init__(
        self,
        project_root: Path,
        roots: Optional[list[str]] = None,
        max_depth: int = 8,
        include: Optional[list[str]] = None,
        exclude: Optional[list[str]] = None,
        docx_enabled: bool = True,
        workers: int = 4,
        sample_chars: int = 4000,
        show_progress: bool = True,
    ):
        self.project_root = Path(project_root).resolve()
        self.roots = list(DEFAULT_ROOTS) if roots is None else list(roots)
        self.max_depth = max_depth
        self.include = [p for p in (include or []) if p and p.strip()]
        self.exclude = [p for p in (exclude or []) if p and p.strip()]
        self.docx_enabled = docx_enabled
        self.workers = max(1, workers)
        self.sample_chars = sample_chars
        self.show_progress = show_progress

        self._records: dict[str, FileRecord] = {}
        self.probe_failures: dict[str, str] = {}

    @property
    def records(self) -> list[FileRecord]:
        """Cataloged files sorted by path."""
        return [self._records[path] for path in sorted(self._records)]

    def get(self, path: str) -> Optional[FileRecord]:
        return self._records.get(path)

    def __len__(self) -> int:
        return len(self._records)

    def relative(self, target: str | Path) -> str:
        """Project-relative POSIX form of a relative or absolute path."""
        return to_project_relative(to_absolute(target, self.project_root), self.project_root)

    def is_eligible(self, absolute: Path) -> bool:
        extension = absolute.suffix.lower()
        if extension not in SUPPORTED_EXTENSIONS:
            return False
        return self.docx_enabled or extension != ".docx"

    def is_excluded(self, absolute: Path) -> bool:
        relative = to_project_relative(absolute, self.project_root)
        return matches_any(self.exclude, absolute, relative)

    def _is_included(self, absolute: Path) -> bool:
        if not self.include:
            return True
        relative = to_project_relative(absolute, self.project_root)
        return matches_any(self.include, absolute, relative)

    def expand_includes(self) -> list[Path]:
        """Resolve include entries to concrete files."""
        found = []
        for pattern in self.include:
            if not is_wildcard(pattern):
                candidate = to_absolute(pattern, self.project_root)
                if candidate.is_file():
                    found.append(candidate)
                elif candidate.is_dir():
                    found.extend(walk_files(candidate, self.max_depth))
                continue
            base = to_absolute(pattern_base(pattern), self.project_root)
            for candidate in walk_files(base, self.max_depth):
                relative = to_project_relative(candidate, self.project_root)
                if matches_any([pattern], candidate, relative):
                    found.append(candidate)
        return found

    def candidate_paths(self) -> list[Path]:
        """All files to probe, deduplicated and sorted."""
        candidates: dict[str, Path] = {}
        for root in self.roots:
            root_path = to_absolute(root, self.project_root)
            for absolute in walk_files(root_path, self.max_depth):
                if self._is_included(absolute):
                    candidates.setdefault(str(absolute.resolve()), absolute.resolve())
        for absolute in self.expand_includes():
            candidates.setdefault(str(absolute.resolve()), absolute.resolve())

        return [
            path for key, path in sorted(candidates.items())
            if self.is_eligible(path) and not self.is_excluded(path)
        ]

    def _probe(self, absolute: Path, extension: str) -> tuple[str, str, bool]:
        """Return (kind, sample, has_markers) for a file."""
        if extension == ".docx":
            paragraphs = read_docx_paragraphs(absolute, limit=DOCX_SAMPLE_PARAGRAPHS)
            return "docx", " ".join(paragraphs), False
        raw = read_text(absolute)
        sample = raw[: self.sample_chars]
        if extension in (".json", ".jsonl"):
            return extension[1:], sample, False
        return "text", sample, bool(MARKER_PROBE_PATTERN.search(raw))

    def analyze_file(self, absolute: Path) -> Optional[FileRecord]:
        """
        Classify one file.

        Returns:
            FileRecord, or None for unsupported or disabled formats.

        Raises:
            DocumentReadError: If the file cannot be read for probing.
        """
        absolute = Path(absolute)
        if not self.is_eligible(absolute):
            return None
        extension = absolute.suffix.lower()
        try:
            size = absolute.stat().st_size
        except OSError as e:
            raise DocumentReadError(absolute, str(e)) from e

        kind, sample, has_markers = self._probe(absolute, extension)
        if kind in ("json", "jsonl") or has_markers:
            language = "mixed"
        else:
            language = classify(sample)

        relative = to_project_relative(absolute, self.project_root)
        stem = Path(relative).name[: -len(extension)] if extension else Path(relative).name
        normalized_base = pad_numeric_segments(convert_roman_segments(clean_basename(stem)))
        return FileRecord(
            path=relative,
            absolute_path=str(absolute),
            extension=extension,
            language=language,
            normalized_base=normalized_base,
            numeric_key=extract_numeric_key(normalized_base),
            dir_signature=directory_signature(relative),
            size=size,
            has_markers=has_markers,
            kind=kind,
        )

    def _analyze_safely(self, absolute: Path) -> tuple[Optional[FileRecord], Optional[str]]:
        try:
            return self.analyze_file(absolute), None
        except DocumentReadError as e:
            return None, e.reason
        except Exception as e:
            logger.exception(f"Unexpected error probing {absolute}")
            return None, f"{type(e).__name__}: {e}"

    def _register_failure(self, absolute: Path, reason: str) -> None:
        relative = to_project_relative(absolute, self.project_root)
        logger.warning(f"Could not probe {relative}: {reason}")
        self.probe_failures[relative] = reason

    def build(self) -> list[FileRecord]:
        """
        Walk, probe and register every candidate file.

        Returns:
            The cataloged records sorted by path.
        """
        candidates = self.candidate_paths()
        logger.info(f"Probing {len(candidates)} candidate files with {self.workers} workers")
        results: dict[int, tuple[Optional[FileRecord], Optional[str]]] = {}

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            futures = {
                executor.submit(self._analyze_safely, path): index
                for index, path in enumerate(candidates)
            }
            for future in tqdm(
                as_completed(futures),
                total=len(futures),
                desc="Cataloging files",
                disable=not self.show_progress,
            ):
                results[futures[future]] = future.result()

        for index in sorted(results):
            record, failure = results[index]
            if failure is not None:
                self._register_failure(candidates[index], failure)
            elif record is not None:
                self._records.setdefault(record.path, record)

        logger.info(f"Cataloged {len(self._records)} files ({len(self.probe_failures)} probe failures)")
        return self.records

    def ensure(self, target: str | Path) -> Optional[FileRecord]:
        """
        Resolve a project-relative or absolute path to a FileRecord.

        Files not yet cataloged are probed and registered on demand.
        Missing, ineligible or excluded files resolve to None.
        """
        absolute = to_absolute(target, self.project_root)
        relative = to_project_relative(absolute, self.project_root)
        if relative in self._records:
            return self._records[relative]
        if not absolute.is_file() or self.is_excluded(absolute):
            return None
        record, failure = self._analyze_safely(absolute)
        if failure is not None:
            self._register_failure(absolute, failure)
            return None
        if record is not None:
            self._records[record.path] = record
        return record
