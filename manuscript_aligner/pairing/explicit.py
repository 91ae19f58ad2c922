"""Pairs listed explicitly in the translation map."""

import logging
from typing import TYPE_CHECKING

from ..models import DocumentPair
from .base import PairingState, PairingTier
from .scoring import compute_confidence
from .translation_map import MapPair

if TYPE_CHECKING:
    from ..catalog import FileCataloger

logger = logging.getLogger(__name__)


class ExplicitPairTier(PairingTier):
    """Pair files exactly as the translation map lists them."""

    origin = "explicit-map"

    def __init__(self, entries: list[MapPair]):
        self.entries = entries

    def run(self, catalog: "FileCataloger", state: PairingState) -> list[DocumentPair]:
        produced = []
        for entry in self.entries:
            blocked = [p for p in (entry.source, entry.target) if state.docx_blocked(p)]
            if blocked:
                for path in blocked:
                    state.miss(catalog.relative(path), "unsupported_format")
                continue

            source = catalog.ensure(entry.source)
            target = catalog.ensure(entry.target)
            if source is None or target is None:
                logger.warning(f"Map entry {entry.source} -> {entry.target} does not resolve to two files")
                for record in (source, target):
                    if record is not None:
                        state.miss(record.path, "no_target_match")
                continue
            if source.path == target.path or not state.is_free(source, target):
                continue

            pair = DocumentPair(source, target, self.origin, compute_confidence(source, target))
            state.consume(pair)
            produced.append(pair)
        return produced
