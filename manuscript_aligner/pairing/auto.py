"""Confidence-scored matching of the remaining files."""

import logging
from typing import TYPE_CHECKING

from ..models import DocumentPair
from .base import PairingState, PairingTier
from .scoring import DEFAULT_AUTO_THRESHOLD, compute_confidence

if TYPE_CHECKING:
    from ..catalog import FileCataloger

logger = logging.getLogger(__name__)


class AutoMatchTier(PairingTier):
    """
    Greedily pair unconsumed Arabic and English files by confidence.

    Candidates are ranked by descending score, ties broken by source path
    then target path, so the outcome does not depend on catalog order.
    """

    origin = "auto-matched"

    def __init__(self, threshold: float = DEFAULT_AUTO_THRESHOLD):
        self.threshold = threshold

    def run(self, catalog: "FileCataloger", state: PairingState) -> list[DocumentPair]:
        free = [r for r in catalog.records if state.is_free(r) and not state.docx_blocked(r.path)]
        sources = [r for r in free if r.language == "ar"]
        targets = [r for r in free if r.language == "en"]

        candidates = []
        for source in sources:
            for target in targets:
                score = compute_confidence(source, target)
                if score >= self.threshold:
                    candidates.append((score, source, target))
        candidates.sort(key=lambda c: (-c[0], c[1].path, c[2].path))
        logger.debug(f"{len(candidates)} auto-match candidates above {self.threshold}")

        produced = []
        for score, source, target in candidates:
            if not state.is_free(source, target):
                continue
            pair = DocumentPair(source, target, self.origin, score)
            state.consume(pair)
            produced.append(pair)
        return produced
