"""Configuration management for the alignment pipeline."""

import json
import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)

DEFAULT_ROOTS = ["content", "data", "docs", "outputs", "dist"]
SUPPORTED_EXTENSIONS = (".md", ".txt", ".docx", ".json", ".jsonl")


class ScanConfig(BaseModel):
    """Configuration for file discovery."""

    project_root: Path = Path(".")
    roots: list[str] = Field(default_factory=lambda: list(DEFAULT_ROOTS))
    max_depth: int = Field(default=8, ge=0)
    include: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)
    docx: bool = Field(default=True, description="Whether .docx files are eligible at all")
    preset: Optional[str] = None
    corpus_config: Path = Path("config/corpus.json")
    map_path: Path = Path("config/translations-map.json")

    @field_validator("project_root", "corpus_config", "map_path", mode="before")
    @classmethod
    def convert_to_path(cls, v):
        """Convert string to Path."""
        return Path(v) if isinstance(v, str) else v

    def resolve(self, path: Path) -> Path:
        """Resolve a path against the project root."""
        return path if path.is_absolute() else (self.project_root / path)


class SegmentationConfig(BaseModel):
    """Configuration for sentence segmentation."""

    engine: Literal["nltk", "regex"] = "nltk"
    min_length: int = Field(default=2, ge=1)
    source_language: Literal["ar", "en"] = "ar"
    target_language: Literal["ar", "en"] = "en"


class AlignmentConfig(BaseModel):
    """Length-ratio bounds for an aligned segment pair."""

    min_ratio: float = Field(default=0.3, gt=0.0)
    max_ratio: float = Field(default=3.0, gt=0.0)

    @model_validator(mode="after")
    def check_bounds(self):
        if self.max_ratio < self.min_ratio:
            raise ValueError("max_ratio must be >= min_ratio")
        return self


class PairingConfig(BaseModel):
    """Configuration for automatic document matching."""

    auto_threshold: float = Field(default=0.6, ge=0.0, le=1.0)


class OutputConfig(BaseModel):
    """Configuration for output options."""

    output_dir: Path = Path(".cache")
    parallel_file: str = "parallel.jsonl"
    manifest_file: str = "manifest.json"
    format: Literal["jsonl", "csv"] = "jsonl"
    max_misses_display: int = Field(default=10, ge=0)
    inventory_dir: Path = Path("artifacts/reports")

    @field_validator("output_dir", "inventory_dir", mode="before")
    @classmethod
    def convert_to_path(cls, v):
        """Convert string to Path."""
        return Path(v) if isinstance(v, str) else v


class ProcessingConfig(BaseModel):
    """Configuration for processing options."""

    workers: int = Field(default=4, ge=1)
    sample_chars: int = Field(default=4000, ge=1)
    show_progress: bool = True


class Config(BaseModel):
    """Main configuration for the alignment pipeline."""

    scan: ScanConfig = Field(default_factory=ScanConfig)
    segmentation: SegmentationConfig = Field(default_factory=SegmentationConfig)
    alignment: AlignmentConfig = Field(default_factory=AlignmentConfig)
    pairing: PairingConfig = Field(default_factory=PairingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)

    @property
    def output_dir(self) -> Path:
        return self.scan.resolve(self.output.output_dir)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from a YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to a YAML file."""
        data = self.model_dump(mode="json")
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(data, f, default_flow_style=False, allow_unicode=True)


def load_preset(name: str, corpus_path: Path) -> tuple[list[str], list[str]]:
    """
    Read include/exclude globs for a named preset.

    The corpus file may define ``presets: {name: {includes, excludes}}``;
    its top-level ``includes``/``excludes`` serve the "manuscript" preset.

    Returns:
        (includes, excludes); both empty when the preset cannot be loaded.
    """
    try:
        with open(corpus_path, "r", encoding="utf-8") as f:
            corpus = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Could not load preset '{name}': {e}")
        return [], []

    presets = corpus.get("presets") if isinstance(corpus, dict) else None
    if isinstance(presets, dict) and isinstance(presets.get(name), dict):
        entry = presets[name]
    elif name == "manuscript" and isinstance(corpus, dict):
        entry = corpus
    else:
        logger.warning(f"Preset '{name}' not found in {corpus_path}")
        return [], []

    includes = [p for p in entry.get("includes", []) or [] if isinstance(p, str)]
    excludes = [p for p in entry.get("excludes", []) or [] if isinstance(p, str)]
    logger.info(f"Loaded preset: {name}")
    logger.info(f"  Includes: {', '.join(includes) or 'none'}")
    logger.info(f"  Excludes: {', '.join(excludes) or 'none'}")
    return includes, excludes
