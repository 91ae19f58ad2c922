"""Readers for a previously written parallel corpus."""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from ..language import normalize_whitespace
from ..models import ParallelSegment

logger = logging.getLogger(__name__)

EMPTY_MANIFEST = {
    "coveragePct": 0,
    "sourcesFound": 0,
    "targetsFound": 0,
    "pairCount": 0,
    "reasonsForMiss": {},
    "usedMap": False,
}


@dataclass
class ParallelRow:
    """All segments sharing a row id, with their joined texts."""

    row_id: str
    para_index: int
    segments: list[ParallelSegment] = field(default_factory=list)
    src_text: str = ""
    tgt_text: str = ""
    statuses: list[str] = field(default_factory=list)
    length_ratio: float = 0.0


@dataclass
class ParallelDataset:
    segments: list[ParallelSegment]
    manifest: dict
    rows: list[ParallelRow]


def _join(current: str, addition: str) -> str:
    return " ".join(part for part in (current, addition) if part).strip()


def read_parallel_segments(path: Union[str, Path]) -> list[ParallelSegment]:
    """
    Read a segment stream written as JSONL or CSV.

    Returns:
        Segments in file order; empty when the file is missing or unreadable.
    """
    path = Path(path)
    try:
        if path.suffix.lower() == ".csv":
            df = pd.read_csv(path, keep_default_na=False)
            records = df.to_dict(orient="records")
            for record in records:
                record["fileRefs"] = json.loads(record.get("fileRefs") or "[]")
        else:
            with open(path, "r", encoding="utf-8") as f:
                records = [json.loads(line) for line in f if line.strip()]
    except (OSError, ValueError) as e:
        logger.error(f"Failed to read segments from {path}: {e}")
        return []
    return [ParallelSegment.from_dict(record) for record in records]


def read_manifest(path: Union[str, Path]) -> Optional[dict]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to read manifest from {path}: {e}")
        return None


def group_segments_by_row(segments: list[ParallelSegment]) -> list[ParallelRow]:
    """
    Group segments into rows ordered by paragraph index.

    Within a row, segments keep their segment order and the source and
    target texts are joined with single spaces.
    """
    rows: dict[str, ParallelRow] = {}
    for segment in sorted(segments, key=lambda s: (s.para_index, s.seg_index)):
        row = rows.get(segment.row_id)
        if row is None:
            rows[segment.row_id] = ParallelRow(
                row_id=segment.row_id,
                para_index=segment.para_index,
                segments=[segment],
                src_text=normalize_whitespace(segment.src),
                tgt_text=normalize_whitespace(segment.tgt),
                statuses=[segment.status],
                length_ratio=segment.length_ratio,
            )
            continue
        row.segments.append(segment)
        row.src_text = _join(row.src_text, segment.src)
        row.tgt_text = _join(row.tgt_text, segment.tgt)
        row.statuses.append(segment.status)
        row.length_ratio = segment.length_ratio
    return sorted(rows.values(), key=lambda row: row.para_index)


def load_parallel_dataset(
    output_dir: Union[str, Path],
    parallel_file: str = "parallel.jsonl",
    manifest_file: str = "manifest.json",
) -> ParallelDataset:
    """Load segments, manifest and grouped rows from an output directory."""
    output_dir = Path(output_dir)
    segments = read_parallel_segments(output_dir / parallel_file)
    manifest = read_manifest(output_dir / manifest_file) or dict(EMPTY_MANIFEST)
    return ParallelDataset(segments=segments, manifest=manifest, rows=group_segments_by_row(segments))
