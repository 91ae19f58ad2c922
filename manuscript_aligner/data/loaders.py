"""Readers for the document formats the pipeline understands."""

import json
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from lxml import etree

from ..language import normalize_whitespace
from ..utils.text_normalizer import normalize_paragraphs, split_paragraphs

MARKER_HEADING_PATTERN = re.compile(r"^##+\s*(AR|EN)\b", re.IGNORECASE)
LINE_PATTERN = re.compile(r"\r?\n")

SOURCE_ALIASES = ("src", "source", "original", "ar", "arabic", "src_ar", "text_ar", "source_ar")
TARGET_ALIASES = (
    "tgt", "target", "translation", "en", "english", "tgt_en", "text_en", "target_en", "src_en",
)


class DocumentReadError(Exception):
    """Raised when a file cannot be read or parsed as its declared kind."""

    def __init__(self, path: str | Path, reason: str):
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Cannot read {self.path}: {reason}")


@dataclass
class JsonRecord:
    """One bilingual record extracted from a JSON or JSONL file."""

    id: str
    src: str
    tgt: str


@dataclass
class MarkerSection:
    """A source block and the target block that follows it."""

    src: str
    tgt: str


def read_text(path: str | Path) -> str:
    """Read a UTF-8 text file."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise DocumentReadError(path, str(e)) from e


def read_docx_paragraphs(path: str | Path, limit: Optional[int] = None) -> list[str]:
    """
    Extract paragraph texts from a .docx file.

    Args:
        path: Document location.
        limit: Only return the first ``limit`` non-empty paragraphs.

    Returns:
        Paragraph texts in document order, empty paragraphs skipped.
    """
    try:
        document = Document(str(path))
    except (
        OSError, ValueError, KeyError, zipfile.BadZipFile, PackageNotFoundError, etree.XMLSyntaxError
    ) as e:
        raise DocumentReadError(path, str(e) or type(e).__name__) from e

    paragraphs = []
    for paragraph in document.paragraphs:
        text = paragraph.text.strip()
        if not text:
            continue
        paragraphs.append(text)
        if limit is not None and len(paragraphs) >= limit:
            break
    return paragraphs


def load_paragraphs(path: str | Path, kind: str) -> list[str]:
    """Load normalized paragraphs from a text-like or .docx document."""
    if kind == "docx":
        return normalize_paragraphs(read_docx_paragraphs(path))
    return normalize_paragraphs(split_paragraphs(read_text(path)))


def parse_marker_sections(content: str) -> list[MarkerSection]:
    """
    Parse "## AR" / "## EN" heading blocks.

    Each AR block immediately followed by an EN block becomes one section.
    Text before the first heading and unpaired blocks are ignored.
    """
    blocks: list[tuple[str, list[str]]] = []
    for line in LINE_PATTERN.split(content):
        heading = MARKER_HEADING_PATTERN.match(line)
        if heading:
            blocks.append((heading.group(1).lower(), []))
            continue
        if blocks:
            blocks[-1][1].append(line)

    sections = []
    index = 0
    while index < len(blocks):
        language, lines = blocks[index]
        if language == "ar" and index + 1 < len(blocks) and blocks[index + 1][0] == "en":
            sections.append(
                MarkerSection(
                    src=normalize_whitespace("\n".join(lines)),
                    tgt=normalize_whitespace("\n".join(blocks[index + 1][1])),
                )
            )
            index += 2
            continue
        index += 1
    return sections


def load_marker_sections(path: str | Path) -> list[MarkerSection]:
    return parse_marker_sections(read_text(path))


def _first_string(record: dict, aliases: tuple[str, ...]) -> Optional[str]:
    for alias in aliases:
        value = record.get(alias)
        if isinstance(value, str):
            return value
    return None


def _record_from(value: dict, fallback_id: str, index: int) -> Optional[JsonRecord]:
    src = _first_string(value, SOURCE_ALIASES)
    tgt = _first_string(value, TARGET_ALIASES)
    if src is None or tgt is None or not src.strip():
        return None
    record_id = value.get("id")
    if isinstance(record_id, (int, float)) and not isinstance(record_id, bool):
        record_id = str(record_id)
    if not isinstance(record_id, str) or not record_id:
        record_id = f"{fallback_id}#{index}"
    return JsonRecord(id=record_id, src=src, tgt=tgt)


def extract_records(data: Any, fallback_id: str) -> list[JsonRecord]:
    """
    Walk parsed JSON for objects carrying a source and a target field.

    Nested objects and arrays are searched depth-first in document order,
    with an explicit stack so nesting depth is not bounded by recursion.
    Records without an ``id`` are named ``<fallback_id>#<n>``.
    """
    records: list[JsonRecord] = []
    stack = [data]
    while stack:
        value = stack.pop()
        if isinstance(value, list):
            stack.extend(reversed(value))
            continue
        if not isinstance(value, dict):
            continue
        record = _record_from(value, fallback_id, len(records))
        if record is not None:
            records.append(record)
        stack.extend(reversed([child for child in value.values() if isinstance(child, (dict, list))]))
    return records


def load_json_records(path: str | Path, kind: str, fallback_id: str) -> list[JsonRecord]:
    """
    Load bilingual records from a JSON document or a JSONL stream.

    Raises:
        DocumentReadError: If the file is unreadable, any line is malformed,
            or nesting is too deep for the JSON decoder.
    """
    raw = read_text(path)
    try:
        if kind == "jsonl":
            documents = [json.loads(line) for line in LINE_PATTERN.split(raw) if line.strip()]
        else:
            documents = [json.loads(raw)]
    except ValueError as e:
        raise DocumentReadError(path, f"malformed JSON: {e}") from e
    except RecursionError as e:
        raise DocumentReadError(path, "JSON nesting too deep") from e
    return extract_records(documents, fallback_id)
