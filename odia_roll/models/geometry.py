"""
Geometry and recognition models.

Words, lines and rectangles as returned by the recognition workers and
consumed by the block detector.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Any, Iterable, Tuple


@dataclass(frozen=True)
class BBox:
    """Edge-based bounding box (x0, y0) top-left, (x1, y1) bottom-right."""
    x0: float
    y0: float
    x1: float
    y1: float

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @classmethod
    def union(cls, boxes: Iterable["BBox"]) -> "BBox":
        boxes = list(boxes)
        if not boxes:
            raise ValueError("cannot take the union of zero boxes")
        return cls(
            x0=min(b.x0 for b in boxes),
            y0=min(b.y0 for b in boxes),
            x1=max(b.x1 for b in boxes),
            y1=max(b.y1 for b in boxes),
        )

    def overlaps_horizontally(self, other: "BBox") -> bool:
        return self.x0 <= other.x1 and other.x0 <= self.x1

    def to_dict(self) -> dict[str, Any]:
        return {"x0": self.x0, "y0": self.y0, "x1": self.x1, "y1": self.y1}


@dataclass(frozen=True)
class Rect:
    """Origin + size rectangle used for block boundaries."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @classmethod
    def from_edges(cls, left: float, top: float, right: float, bottom: float) -> "Rect":
        return cls(x=left, y=top, width=right - left, height=bottom - top)

    def clamped(self, page_width: float, page_height: float) -> "Rect":
        """
        Clamp to page bounds, keeping at least a 1px extent.

        Pages must have a positive size.
        """
        left = min(max(0.0, self.x), page_width - 1)
        top = min(max(0.0, self.y), page_height - 1)
        right = max(left + 1, min(self.right, page_width))
        bottom = max(top + 1, min(self.bottom, page_height))
        return Rect.from_edges(left, top, right, bottom)

    def rounded(self) -> Tuple[int, int, int, int]:
        """Integer (x, y, width, height) for pixel cropping."""
        return (
            int(round(self.x)),
            int(round(self.y)),
            int(round(self.width)),
            int(round(self.height)),
        )

    def contains_point(self, x: float, y: float) -> bool:
        return self.x <= x <= self.right and self.y <= y <= self.bottom

    def within(self, page_width: float, page_height: float) -> bool:
        return (
            self.x >= 0 and self.y >= 0
            and self.width > 0 and self.height > 0
            and self.right <= page_width and self.bottom <= page_height
        )

    def to_dict(self) -> dict[str, Any]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Word:
    """A single recognized token. Immutable once returned by recognition."""
    text: str
    confidence: float
    bbox: BBox

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.bbox.x0 + self.bbox.x1) / 2, (self.bbox.y0 + self.bbox.y1) / 2)

    def to_dict(self) -> dict[str, Any]:
        return {"text": self.text, "confidence": self.confidence, "bbox": self.bbox.to_dict()}


@dataclass
class Line:
    """Words sharing a visual row. bbox is the union of the word boxes."""
    text: str
    bbox: BBox
    words: List[Word] = field(default_factory=list)

    @classmethod
    def from_words(cls, words: List[Word], text: str = "") -> "Line":
        return cls(
            text=text or " ".join(w.text for w in words),
            bbox=BBox.union(w.bbox for w in words),
            words=list(words),
        )


@dataclass
class RecognitionResult:
    """Output of one recognition call over an image."""
    text: str = ""
    confidence: float = 0.0
    words: List[Word] = field(default_factory=list)
    lines: List[Line] = field(default_factory=list)
    width: int = 0
    height: int = 0

    @staticmethod
    def mean_confidence(words: List[Word]) -> float:
        confs = [w.confidence for w in words if w.confidence >= 0]
        if not confs:
            return 0.0
        value = sum(confs) / len(confs)
        return 0.0 if math.isnan(value) else value
