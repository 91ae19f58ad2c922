"""Manuscript aligner - Build an Arabic/English parallel corpus from a document tree."""

__version__ = "0.1.0"

from .alignment import SequenceAligner
from .catalog import FileCataloger
from .config import Config
from .language import detect, ensure_language
from .pipeline import ManuscriptPipeline
from .segmenter import TextSegmenter

__all__ = [
    "Config",
    "FileCataloger",
    "ManuscriptPipeline",
    "SequenceAligner",
    "TextSegmenter",
    "detect",
    "ensure_language",
]
