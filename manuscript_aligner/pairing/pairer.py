"""Runs the pairing tiers and classifies what is left over."""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

from ..models import DocumentPair, FileRecord, MissLedger
from .auto import AutoMatchTier
from .base import PairingState, PairingTier
from .explicit import ExplicitPairTier
from .folders import FolderRuleTier
from .scoring import DEFAULT_AUTO_THRESHOLD
from .translation_map import TranslationMap

if TYPE_CHECKING:
    from ..catalog import FileCataloger

logger = logging.getLogger(__name__)

ORIGINS = ("explicit-map", "folder-rule", "auto-matched")


@dataclass
class PairingResult:
    """Pairs in acceptance order plus the files that stand on their own."""

    pairs: list[DocumentPair] = field(default_factory=list)
    single_files: list[FileRecord] = field(default_factory=list)
    consumed: set[str] = field(default_factory=set)

    @property
    def counts(self) -> dict[str, int]:
        counts = {origin: 0 for origin in ORIGINS}
        for pair in self.pairs:
            counts[pair.origin] += 1
        return counts


class DocumentPairer:
    """Pair source documents with their translations, tier by tier."""

    def __init__(
        self,
        translation_map: Optional[TranslationMap] = None,
        auto_threshold: float = DEFAULT_AUTO_THRESHOLD,
        docx_enabled: bool = True,
        tiers: Optional[list[PairingTier]] = None,
    ):
        translation_map = translation_map or TranslationMap()
        self.docx_enabled = docx_enabled
        self.tiers = tiers if tiers is not None else [
            ExplicitPairTier(translation_map.pairs),
            FolderRuleTier(translation_map.folders),
            AutoMatchTier(auto_threshold),
        ]

    def pair(self, catalog: "FileCataloger", ledger: MissLedger) -> PairingResult:
        """
        Resolve document pairs.

        Args:
            catalog: Built file catalog.
            ledger: Miss ledger, receives tier-level misses.

        Returns:
            PairingResult; pair members never appear in the ledger.
        """
        state = PairingState(ledger=ledger, docx_enabled=self.docx_enabled)
        for tier in self.tiers:
            produced = tier.run(catalog, state)
            logger.info(f"{tier.origin}: {len(produced)} pairs")

        single_files = [
            record for record in catalog.records
            if record.is_single_file and record.path not in state.consumed
        ]
        return PairingResult(pairs=list(state.pairs), single_files=single_files, consumed=set(state.consumed))


def assign_leftovers(records: Iterable[FileRecord], paired: set[str], ledger: MissLedger) -> None:
    """
    Record a reason for every file that ended up neither paired nor missed.

    Single-file entries are handled by the assembler and skipped here.
    """
    for record in records:
        if record.path in paired or record.path in ledger or record.is_single_file:
            continue
        if record.language == "unknown":
            ledger.record(record.path, "lang_detection_failed")
        else:
            ledger.record(record.path, "no_target_match")
