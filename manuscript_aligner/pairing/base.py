"""Shared state and the abstract pairing tier."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..models import DocumentPair, FileRecord, MissLedger

if TYPE_CHECKING:
    from ..catalog import FileCataloger


@dataclass
class PairingState:
    """
    Files consumed so far and the run's miss ledger.

    A file belongs to at most one pair. Consuming a pair clears any
    miss already recorded for its members.
    """

    ledger: MissLedger
    docx_enabled: bool = True
    consumed: set[str] = field(default_factory=set)
    pairs: list[DocumentPair] = field(default_factory=list)

    def is_free(self, *records: FileRecord) -> bool:
        return all(record.path not in self.consumed for record in records)

    def consume(self, pair: DocumentPair) -> None:
        for path in (pair.source.path, pair.target.path):
            self.consumed.add(path)
            self.ledger.discard(path)
        self.pairs.append(pair)

    def miss(self, path: str, reason: str) -> None:
        """Record a miss unless the path is already paired."""
        if path not in self.consumed:
            self.ledger.record(path, reason)

    def docx_blocked(self, path: str) -> bool:
        return not self.docx_enabled and path.lower().endswith(".docx")


class PairingTier(ABC):
    """
    One pairing strategy.

    Tiers run in order against the same state. Earlier tiers take
    precedence, since they consume files first.
    """

    origin: str = ""

    @abstractmethod
    def run(self, catalog: "FileCataloger", state: PairingState) -> list[DocumentPair]:
        """
        Pair files not yet consumed.

        Args:
            catalog: File catalog, extended on demand for out-of-root paths.
            state: Shared pairing state, updated in place.

        Returns:
            The pairs this tier produced.
        """
        pass
