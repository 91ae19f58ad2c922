"""Explicit pairs and folder rules from the translation map file."""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class MapPair(BaseModel):
    """An explicit source/target file pairing."""

    source: str
    target: str


class FolderRule(BaseModel):
    """Pair same-relative-path files under two directories."""

    model_config = ConfigDict(populate_by_name=True)

    source_dir: str = Field(alias="sourceDir")
    target_dir: str = Field(alias="targetDir")
    pattern: str = "**/*"


def _valid_entries(values, required: tuple[str, ...]) -> list:
    """Keep model instances and dicts that carry every required key as a non-empty string."""
    if not isinstance(values, list):
        return []
    kept = []
    for value in values:
        if isinstance(value, BaseModel):
            kept.append(value)
        elif isinstance(value, dict) and all(isinstance(value.get(k), str) and value.get(k) for k in required):
            kept.append(dict(value))
    return kept


class TranslationMap(BaseModel):
    """Explicit pairs and folder rules loaded from the translation map file."""

    pairs: list[MapPair] = Field(default_factory=list)
    folders: list[FolderRule] = Field(default_factory=list)
    loaded: bool = False
    path: Optional[Path] = None

    @field_validator("pairs", mode="before")
    @classmethod
    def drop_incomplete_pairs(cls, v):
        return _valid_entries(v, ("source", "target"))

    @field_validator("folders", mode="before")
    @classmethod
    def drop_incomplete_rules(cls, v):
        rules = _valid_entries(v, ("sourceDir", "targetDir"))
        for rule in rules:
            if isinstance(rule, dict) and not (isinstance(rule.get("pattern"), str) and rule.get("pattern")):
                rule["pattern"] = "**/*"
        return rules


def load_translation_map(path: Path) -> TranslationMap:
    """
    Load the translation map.

    A missing file yields an empty, unloaded map. A file that is not valid
    JSON is reported as a warning and also yields an empty map.

    Args:
        path: Location of the translations-map JSON file.

    Returns:
        TranslationMap with loaded=True only when the file was parsed.
    """
    if not path.is_file():
        return TranslationMap(path=path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning(f"Failed to parse translation map at {path}: {e}")
        return TranslationMap(path=path)
    if not isinstance(data, dict):
        logger.warning(f"Translation map at {path} is not a JSON object; ignoring it")
        return TranslationMap(path=path)
    return TranslationMap(
        pairs=data.get("pairs", []),
        folders=data.get("folders", []),
        loaded=True,
        path=path,
    )
