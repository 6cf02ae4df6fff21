"""
Block boundary inference.

Records are top-anchored blocks of roughly constant height. The next anchor
in the same column is a hard stop so a block never bleeds into the record
below it; the fixed block height bounds isolated and trailing records.
"""

from __future__ import annotations

from typing import List, Optional

from ..config import DetectionConfig
from ..models import AnchorCandidate, Rect, Word


def next_anchor_below(
    current: AnchorCandidate,
    anchors: List[AnchorCandidate],
) -> Optional[AnchorCandidate]:
    """Nearest anchor strictly below `current` that overlaps it horizontally."""
    best = None
    cur = current.word.bbox
    for other in anchors:
        box = other.word.bbox
        if other is current or box.y0 <= cur.y0:
            continue
        if not cur.overlaps_horizontally(box):
            continue
        if best is None or box.y0 < best.word.bbox.y0:
            best = other
    return best


def calculate_boundary(
    anchor_word: Word,
    next_anchor_word: Optional[Word],
    words: List[Word],
    page_width: float,
    page_height: float,
    config: Optional[DetectionConfig] = None,
) -> Rect:
    """
    Infer the rectangle of the record seeded by `anchor_word`.

    Left/right come from the words on the anchor's row; the bottom is the
    lowest word edge inside the provisional band, never past the next anchor
    (minus margin) or the fixed block height. The result is clamped to the
    page with positive width and height.
    """
    config = config or DetectionConfig()
    margin = config.margin
    top_y = anchor_word.bbox.y0

    row_words = [w for w in words if abs(w.bbox.y0 - top_y) < config.row_tolerance]
    min_x = min([w.bbox.x0 for w in row_words] + [anchor_word.bbox.x0])
    max_x = max([w.bbox.x1 for w in row_words] + [anchor_word.bbox.x1])

    if next_anchor_word is not None:
        bottom = min(next_anchor_word.bbox.y0 - margin, top_y + config.block_height)
    else:
        bottom = min(top_y + config.block_height, page_height)

    band_words = [w for w in words if top_y - margin <= w.bbox.y0 <= bottom]
    if band_words:
        bottom = min(max(w.bbox.y1 for w in band_words) + margin, bottom)

    rect = Rect.from_edges(
        max(0.0, min_x - margin),
        max(0.0, top_y - margin),
        min(float(page_width), max_x + margin),
        min(float(page_height), bottom),
    )
    return rect.clamped(page_width, page_height)
