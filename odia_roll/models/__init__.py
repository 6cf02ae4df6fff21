"""
Data models for the Odia electoral roll pipeline.

These models represent the core data structures and are designed
to be easily serializable to JSON.
"""

from .geometry import BBox, Rect, Word, Line, RecognitionResult
from .block import AnchorCandidate, Block, DetectionStrategy
from .record import PersonName, Relation, RecordAddress, Record
from .roll import (
    DocumentInfo,
    Location,
    PollingStationInfo,
    SectionTally,
    Statistics,
    PageResult,
    Roll,
)
from .processing_stats import ExtractionStats, PageTiming, TranslationUsage

__all__ = [
    # Geometry / recognition
    "BBox",
    "Rect",
    "Word",
    "Line",
    "RecognitionResult",

    # Blocks
    "AnchorCandidate",
    "Block",
    "DetectionStrategy",

    # Records
    "PersonName",
    "Relation",
    "RecordAddress",
    "Record",

    # Roll
    "DocumentInfo",
    "Location",
    "PollingStationInfo",
    "SectionTally",
    "Statistics",
    "PageResult",
    "Roll",

    # Processing stats
    "ExtractionStats",
    "PageTiming",
    "TranslationUsage",
]
