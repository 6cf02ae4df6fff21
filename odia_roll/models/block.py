"""
Block detection models.

A block is a page region believed to hold exactly one voter record.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Any

from .geometry import Rect, Word


class DetectionStrategy(str, Enum):
    """Block detection fallback tiers, in evaluation order."""
    ANCHOR = "anchor"
    STRUCTURAL = "structural"
    GRID = "grid"


PLACEHOLDER_PREFIXES = ("BLOCK_", "GRID_")


@dataclass(frozen=True)
class AnchorCandidate:
    """A recognized identifier token seeding one record block."""
    id: str
    word: Word
    confidence: float


@dataclass
class Block:
    """
    Rectangular page region holding one record.

    Created by the block detector with its strategy confidence; the block
    extractor replaces words and raw_text with the high-fidelity recognition
    of the crop and records that recognition's mean word confidence.
    """
    id: str
    index: int
    boundary: Rect
    source_strategy: DetectionStrategy
    words: List[Word] = field(default_factory=list)
    raw_text: str = ""
    confidence: float = 0.0
    recognition_confidence: Optional[float] = None
    crop_path: Optional[str] = None

    @property
    def has_placeholder_id(self) -> bool:
        return self.id.startswith(PLACEHOLDER_PREFIXES)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "index": self.index,
            "boundary": self.boundary.to_dict(),
            "source_strategy": self.source_strategy.value,
            "raw_text": self.raw_text,
            "confidence": round(self.confidence, 2),
            "recognition_confidence": (
                round(self.recognition_confidence, 2) if self.recognition_confidence is not None else None
            ),
            "crop_path": self.crop_path,
        }
