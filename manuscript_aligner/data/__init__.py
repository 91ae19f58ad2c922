"""Data loading and output utilities."""

from .corpus_reader import (
    ParallelDataset,
    ParallelRow,
    group_segments_by_row,
    load_parallel_dataset,
    read_manifest,
    read_parallel_segments,
)
from .loaders import DocumentReadError, JsonRecord, MarkerSection
from .output_writer import ParallelStreamWriter, write_manifest

__all__ = [
    "DocumentReadError",
    "JsonRecord",
    "MarkerSection",
    "ParallelDataset",
    "ParallelRow",
    "ParallelStreamWriter",
    "group_segments_by_row",
    "load_parallel_dataset",
    "read_manifest",
    "read_parallel_segments",
    "write_manifest",
]
