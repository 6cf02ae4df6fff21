"""
Block detection with a three-tier fallback.

Strategies are tried in strict order and exactly one strategy's output is
returned; outputs are never merged:

- ANCHOR: identifier anchors from a coarse page scan, one block per anchor
- STRUCTURAL: consecutive recognized lines grouped by vertical gaps
- GRID: fixed 3-column grid, always produces at least one block

Each strategy is a pure function of the page scan returning blocks, or None
to advance to the next strategy.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from ..config import DetectionConfig
from ..exceptions import OCRError, RecognitionFailure, TesseractNotFoundError
from ..models import AnchorCandidate, Block, DetectionStrategy, Line, Rect, Word
from ..utils.image_utils import image_size, prepare_page_variants
from ..utils.timing import timed_operation
from .anchor_detector import AnchorDetector, find_identifier
from .base import BaseComponent, ProcessingContext
from .boundary import calculate_boundary, next_anchor_below


@dataclass
class PageScan:
    """Coarse recognition of one page, shared by all strategies."""
    width: int
    height: int
    words: List[Word] = field(default_factory=list)
    lines: List[Line] = field(default_factory=list)
    text: str = ""
    variant: str = "processed"


StrategyFn = Callable[[PageScan, DetectionConfig], Optional[List[Block]]]


def _reading_order(candidates: List[AnchorCandidate], row_tolerance: float) -> List[AnchorCandidate]:
    """Rows top to bottom (anchors within row_tolerance share a row), then left to right."""
    ordered = sorted(candidates, key=lambda c: c.word.bbox.y0)
    rows: List[List[AnchorCandidate]] = []
    for candidate in ordered:
        if rows and candidate.word.bbox.y0 - rows[-1][0].word.bbox.y0 < row_tolerance:
            rows[-1].append(candidate)
        else:
            rows.append([candidate])
    return [c for row in rows for c in sorted(row, key=lambda c: c.word.bbox.x0)]


def _words_inside(words: List[Word], rect: Rect) -> List[Word]:
    return [w for w in words if rect.contains_point(*w.center)]


def detect_anchor_blocks(scan: PageScan, config: DetectionConfig) -> Optional[List[Block]]:
    candidates = AnchorDetector(config).detect(scan.words)
    if not candidates:
        return None

    blocks = []
    for index, candidate in enumerate(_reading_order(candidates, config.row_tolerance)):
        below = next_anchor_below(candidate, candidates)
        boundary = calculate_boundary(
            candidate.word,
            below.word if below else None,
            scan.words,
            scan.width,
            scan.height,
            config,
        )
        blocks.append(Block(
            id=candidate.id,
            index=index,
            boundary=boundary,
            source_strategy=DetectionStrategy.ANCHOR,
            words=_words_inside(scan.words, boundary),
            confidence=candidate.confidence,
        ))
    return blocks or None


def detect_structural_blocks(scan: PageScan, config: DetectionConfig) -> Optional[List[Block]]:
    if not scan.lines:
        return None

    groups: List[List[Line]] = []
    group_bottom = 0.0
    for line in scan.lines:
        if groups and line.bbox.y0 - group_bottom <= config.structural_gap:
            groups[-1].append(line)
            group_bottom = max(group_bottom, line.bbox.y1)
        else:
            groups.append([line])
            group_bottom = line.bbox.y1

    blocks = []
    for index, group in enumerate(groups):
        text = " ".join(line.text for line in group)
        boundary = Rect.from_edges(
            min(line.bbox.x0 for line in group),
            min(line.bbox.y0 for line in group),
            max(line.bbox.x1 for line in group),
            max(line.bbox.y1 for line in group),
        ).clamped(scan.width, scan.height)
        blocks.append(Block(
            id=find_identifier(text) or f"BLOCK_{index + 1}",
            index=index,
            boundary=boundary,
            source_strategy=DetectionStrategy.STRUCTURAL,
            words=[w for line in group for w in line.words],
            raw_text="\n".join(line.text for line in group),
            confidence=config.structural_confidence,
        ))
    return blocks or None


def grid_layout(width: int, height: int, config: DetectionConfig) -> List[Rect]:
    """
    Cell rectangles for the grid fallback.

    columns x max(1, ceil((H - 2*margin) / row_height)) cells, row-major.
    The last row is clipped to the page.
    """
    columns = config.grid_columns
    margin = int(width * config.grid_margin_frac)
    col_width = max(1, (width - (columns + 1) * margin) // columns)
    row_height = config.grid_row_height
    rows = max(1, math.ceil((height - 2 * margin) / row_height))

    cells = []
    for row in range(rows):
        y = margin + row * row_height
        for col in range(columns):
            x = margin + col * (col_width + margin)
            cells.append(Rect(x, y, col_width, min(row_height, height - y)).clamped(width, height))
    return cells


def detect_grid_blocks(scan: PageScan, config: DetectionConfig) -> Optional[List[Block]]:
    return [
        Block(
            id=f"GRID_{index + 1}",
            index=index,
            boundary=cell,
            source_strategy=DetectionStrategy.GRID,
            confidence=config.grid_confidence,
        )
        for index, cell in enumerate(grid_layout(scan.width, scan.height, config))
    ]


STRATEGIES: Dict[DetectionStrategy, StrategyFn] = {
    DetectionStrategy.ANCHOR: detect_anchor_blocks,
    DetectionStrategy.STRUCTURAL: detect_structural_blocks,
    DetectionStrategy.GRID: detect_grid_blocks,
}

STRATEGY_ORDER: Tuple[DetectionStrategy, ...] = (
    DetectionStrategy.ANCHOR,
    DetectionStrategy.STRUCTURAL,
    DetectionStrategy.GRID,
)


def run_strategies(scan: PageScan, config: DetectionConfig) -> Tuple[List[Block], DetectionStrategy]:
    """Evaluate strategies in order; the first non-empty result wins."""
    for strategy in STRATEGY_ORDER:
        blocks = STRATEGIES[strategy](scan, config)
        if blocks:
            return blocks, strategy
    # Grid never returns an empty list for a positive page size
    raise ValueError(f"No blocks for page {scan.width}x{scan.height}")


class BlockDetector(BaseComponent):
    """
    Produces the block list for a page.

    Owns no recognition worker; the coarse page worker is passed in by the
    caller and reused across pages.
    """

    name = "BlockDetector"

    def __init__(self, context: ProcessingContext, page_worker):
        super().__init__(context)
        self.page_worker = page_worker
        self.detection = self.config.detection

    def _scan_variant(self, image: np.ndarray, variant: str, page_number: int) -> PageScan:
        """
        Raises:
            RecognitionFailure: the variant yielded no words
            OCRError: the worker failed
        """
        with timed_operation(f"page {page_number} scan ({variant})", self.logger):
            result = self.page_worker.recognize(image)
        if not result.words:
            raise RecognitionFailure("No words recognized", page_number=page_number, variant=variant)

        width, height = image_size(image)
        self.log_debug(f"Page {page_number}: {len(result.words)} words", variant=variant)
        return PageScan(
            width=width,
            height=height,
            words=list(result.words),
            lines=list(result.lines),
            text=result.text,
            variant=variant,
        )

    def scan_page(self, image: np.ndarray, page_number: int = 0) -> PageScan:
        """
        Coarse recognition with one retry on the less-preprocessed variant.

        Recognition errors count as an empty result. A missing Tesseract is
        fatal and propagates.
        """
        processed, alternate = prepare_page_variants(
            image,
            sharpen_sigma=self.detection.page_sharpen_sigma,
            threshold=self.detection.binarize_threshold,
        )

        for variant, variant_image in (("processed", processed), ("original", alternate)):
            try:
                return self._scan_variant(variant_image, variant, page_number)
            except RecognitionFailure as e:
                self.log_info(f"Page {page_number}: {e}")
            except TesseractNotFoundError:
                raise
            except OCRError as e:
                self.log_warning(f"Page {page_number}: recognition error on {variant} image: {e}")

        width, height = image_size(image)
        return PageScan(width=width, height=height, variant="none")

    def detect(self, image: np.ndarray, page_number: int = 0) -> Tuple[List[Block], DetectionStrategy, PageScan]:
        """
        Detect record blocks on a page image.

        Returns:
            (blocks, winning strategy, page scan)
        """
        scan = self.scan_page(image, page_number)
        blocks, strategy = run_strategies(scan, self.detection)
        self.log_info(
            f"Page {page_number}: {len(blocks)} blocks",
            strategy=strategy.value,
        )
        return blocks, strategy, scan
