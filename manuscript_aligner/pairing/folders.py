"""Pairs derived from parallel directory rules."""

from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from ..models import DocumentPair
from ..utils.paths import glob_match, to_absolute, walk_files
from .base import PairingState, PairingTier
from .scoring import compute_confidence
from .translation_map import FolderRule

if TYPE_CHECKING:
    from ..catalog import FileCataloger


class FolderRuleTier(PairingTier):
    """
    Pair files sharing a relative path under a source and a target directory.

    Only source files whose path relative to ``source_dir`` matches the
    rule's pattern are considered.
    """

    origin = "folder-rule"

    def __init__(self, rules: list[FolderRule]):
        self.rules = rules

    def _apply(self, rule: FolderRule, catalog: "FileCataloger", state: PairingState) -> list[DocumentPair]:
        source_dir = to_absolute(rule.source_dir, catalog.project_root)
        target_dir = to_absolute(rule.target_dir, catalog.project_root)
        if not source_dir.is_dir() or not target_dir.is_dir():
            return []

        produced = []
        for source_path in walk_files(source_dir, catalog.max_depth):
            relative = source_path.relative_to(source_dir).as_posix()
            if not glob_match(rule.pattern, relative):
                continue
            if state.docx_blocked(relative):
                state.miss(catalog.relative(source_path), "unsupported_format")
                continue

            target_path = target_dir / PurePosixPath(relative)
            if not target_path.is_file():
                source = catalog.ensure(source_path)
                if source is not None:
                    state.miss(source.path, "no_target_match")
                continue

            source = catalog.ensure(source_path)
            target = catalog.ensure(target_path)
            if source is None or target is None or not state.is_free(source, target):
                continue
            pair = DocumentPair(source, target, self.origin, compute_confidence(source, target))
            state.consume(pair)
            produced.append(pair)
        return produced

    def run(self, catalog: "FileCataloger", state: PairingState) -> list[DocumentPair]:
        produced = []
        for rule in self.rules:
            produced.extend(self._apply(rule, catalog, state))
        return produced
