"""Writers for the parallel-segment stream and the run manifest."""

import json
from pathlib import Path
from typing import Iterable, List, Literal, Union

import pandas as pd

from ..models import ParallelSegment
from ..utils.text_normalizer import sanitize_text

CSV_COLUMNS = [
    "id", "rowId", "paraIndex", "segIndex", "src", "tgt",
    "srcLang", "tgtLang", "status", "lengthRatio", "fileRefs",
]


class ParallelStreamWriter:
    """
    Writes parallel segments in emission order.

    JSONL (one object per line) is the default; CSV is written through
    pandas with file references stored as a JSON string column.
    Used as a context manager, it flushes on exit.
    """

    def __init__(
        self,
        output_path: Union[str, Path],
        format: Literal["jsonl", "csv"] = "jsonl",
    ):
        """
        Initialize the writer.

        Args:
            output_path: Path of the segment stream.
            format: Output format (jsonl or csv).
        """
        self.output_path = Path(output_path)
        self.format = format
        self._buffer: List[dict] = []

        # Ensure output directory exists
        self.output_path.parent.mkdir(parents=True, exist_ok=True)

    def write_segment(self, segment: ParallelSegment) -> None:
        self._buffer.append(segment.to_dict())

    def write_segments(self, segments: Iterable[ParallelSegment]) -> None:
        for segment in segments:
            self.write_segment(segment)

    def flush(self) -> None:
        """Write the buffered segments, replacing any previous stream."""
        if self.format == "csv":
            rows = [dict(row, fileRefs=json.dumps(row["fileRefs"], ensure_ascii=False)) for row in self._buffer]
            df = pd.DataFrame(rows, columns=CSV_COLUMNS)
            for col in ("src", "tgt"):
                df[col] = df[col].apply(lambda x: sanitize_text(x) if isinstance(x, str) else x)
            df.to_csv(self.output_path, index=False)
            return

        with open(self.output_path, "w", encoding="utf-8") as f:
            for row in self._buffer:
                f.write(json.dumps(row, ensure_ascii=False) + "\n")

    def __enter__(self) -> "ParallelStreamWriter":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - flush unless the block raised."""
        if exc_type is None:
            self.flush()

    @property
    def count(self) -> int:
        return len(self._buffer)


def write_manifest(manifest: dict, output_path: Union[str, Path]) -> Path:
    """Write the manifest as indented JSON with a trailing newline."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(json.dumps(manifest, ensure_ascii=False, indent=2) + "\n")
    return output_path
