"""
Block extraction.

For each detected block: crop the page to the block boundary, greyscale,
normalize, sharpen, then recognize with the high-fidelity block worker.
A failing block is logged and skipped; it never aborts its siblings.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional

import numpy as np

from ..exceptions import TesseractNotFoundError
from ..models import Block, PageTiming
from ..utils.image_utils import crop_rect, prepare_block_image, save_image
from ..utils.timing import timed_operation
from .base import BaseComponent, ProcessingContext


_UNSAFE_NAME_RE = re.compile(r"[^A-Za-z0-9_-]")


class BlockExtractor(BaseComponent):
    """Crops and re-recognizes blocks with the block worker."""

    name = "BlockExtractor"

    def __init__(self, context: ProcessingContext, block_worker):
        super().__init__(context)
        self.block_worker = block_worker

    def _crop_path(self, page_number: int, block: Block) -> Optional[Path]:
        if not self.context.save_crops or not self.context.crops_dir:
            return None
        safe_id = _UNSAFE_NAME_RE.sub("_", block.id)
        return self.context.crops_dir / f"page_{page_number:03d}" / f"block_{block.index:03d}_{safe_id}.png"

    def extract_block(self, image: np.ndarray, block: Block, page_number: int = 0) -> Block:
        """
        Recognize one block in place.

        Raises whatever cropping or recognition raises.
        """
        crop = crop_rect(image, block.boundary, block_id=block.id)
        prepared = prepare_block_image(crop, sharpen_sigma=self.config.detection.block_sharpen_sigma)

        result = self.block_worker.recognize(prepared)
        block.words = list(result.words)
        block.raw_text = result.text
        block.recognition_confidence = result.confidence

        crop_path = self._crop_path(page_number, block)
        if crop_path is not None and save_image(prepared, crop_path):
            block.crop_path = str(crop_path)

        return block

    def extract(
        self,
        image: np.ndarray,
        blocks: List[Block],
        page_number: int = 0,
        page_timing: Optional[PageTiming] = None,
    ) -> List[Block]:
        """
        Extract all blocks of a page sequentially.

        Returns:
            The blocks that were cropped and recognized successfully
        """
        extracted = []
        failures = 0

        for block in blocks:
            try:
                with timed_operation(f"block {block.id}", self.logger) as timing:
                    extracted.append(self.extract_block(image, block, page_number))
                if page_timing is not None:
                    page_timing.per_block_times_sec.append(timing.duration_sec)
            except TesseractNotFoundError:
                raise
            except Exception as e:
                failures += 1
                self.log_error(f"Page {page_number}: block {block.index} ({block.id}) failed", error=e)

        if page_timing is not None:
            page_timing.blocks_extracted = len(extracted)
            page_timing.crop_failures = failures

        if failures:
            self.log_warning(f"Page {page_number}: {failures}/{len(blocks)} blocks skipped")
        return extracted
