"""Document pairing strategies."""

from .auto import AutoMatchTier
from .base import PairingState, PairingTier
from .explicit import ExplicitPairTier
from .folders import FolderRuleTier
from .pairer import DocumentPairer, PairingResult, assign_leftovers
from .scoring import compute_confidence
from .translation_map import FolderRule, MapPair, TranslationMap, load_translation_map

__all__ = [
    "AutoMatchTier",
    "DocumentPairer",
    "ExplicitPairTier",
    "FolderRule",
    "FolderRuleTier",
    "MapPair",
    "PairingResult",
    "PairingState",
    "PairingTier",
    "TranslationMap",
    "assign_leftovers",
    "compute_confidence",
    "load_translation_map",
]
