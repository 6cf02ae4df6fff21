"""
Roll processor: the pipeline facade.

page image -> BlockDetector -> BlockExtractor -> PageResult
pages -> RollParser -> Roll

Owns the two recognition workers (page and block) for the whole run and
the translation cache shared by all components.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np

from ..exceptions import OdiaRollError
from ..models import Block, PageResult, PageTiming, Record, Roll
from ..utils.image_utils import image_size, load_image
from ..utils.ocr_worker import BLOCK_MODE, PAGE_MODE, RecognitionWorker
from ..utils.timing import timed_operation
from ..utils.translator import TranslationCache
from .base import BaseProcessor, ProcessingContext
from .block_detector import BlockDetector
from .block_extractor import BlockExtractor
from .record_extractor import RecordExtractor
from .roll_parser import RollParser


class RollProcessor(BaseProcessor):
    """
    End-to-end processing of already rasterized roll pages.

    Workers are created once and reused; pass fakes for testing. Worker
    initialization failures propagate from the constructor.

    Usage:
        context = ProcessingContext(config=get_config(), image_paths=paths)
        processor = RollProcessor(context)
        if processor.run():
            roll = context.roll
    """

    name = "RollProcessor"

    def __init__(
        self,
        context: ProcessingContext,
        page_worker=None,
        block_worker=None,
        translator: Optional[TranslationCache] = None,
    ):
        super().__init__(context)
        ocr = self.config.ocr
        if page_worker is None:
            page_worker = RecognitionWorker(PAGE_MODE, ocr.page_languages, ocr)
        if block_worker is None:
            block_worker = RecognitionWorker(BLOCK_MODE, ocr.block_languages, ocr)
        self.page_worker = page_worker
        self.block_worker = block_worker

        # An empty cache is falsy, compare with None
        if translator is None:
            translator = TranslationCache.from_config(self.config)
        self.translator = translator
        self.translator.usage = context.stats.translation
        self.translator.usage.engine = self.translator.backend.name

        self.detector = BlockDetector(context, self.page_worker)
        self.extractor = BlockExtractor(context, self.block_worker)
        self.record_extractor = RecordExtractor(context, self.translator)
        self.parser = RollParser(context, self.translator, record_extractor=self.record_extractor)

    def detect_blocks(self, page_image: np.ndarray, page_number: int = 0) -> List[Block]:
        blocks, _, _ = self.detector.detect(page_image, page_number)
        return blocks

    def extract_blocks(self, page_image: np.ndarray, blocks: List[Block], page_number: int = 0) -> List[Block]:
        return self.extractor.extract(page_image, blocks, page_number)

    def extract_record(self, block: Block) -> Optional[Record]:
        """Unvalidated record for one recognized block, names translated."""
        return self.record_extractor.extract(block)

    def process_page(self, page_image: np.ndarray, page_number: int = 1, image_path: str = "") -> PageResult:
        """Detect and recognize the blocks of one page."""
        timing = PageTiming(page_number=page_number)

        with timed_operation(f"page {page_number} detection", self.logger) as detection:
            blocks, strategy, scan = self.detector.detect(page_image, page_number)
        timing.detection_time_sec = detection.duration_sec
        timing.strategy = strategy.value
        timing.blocks_detected = len(blocks)

        with timed_operation(f"page {page_number} extraction", self.logger) as extraction:
            extracted = self.extractor.extract(page_image, blocks, page_number, timing)
        timing.extraction_time_sec = extraction.duration_sec

        self.context.stats.add_page_timing(timing)

        width, height = image_size(page_image)
        return PageResult(
            page_number=page_number,
            text=scan.text,
            blocks=extracted,
            strategy=strategy,
            image_path=image_path,
            width=width,
            height=height,
        )

    def parse_roll(self, pages: Sequence[PageResult]) -> Roll:
        return self.parser.parse(pages)

    def process_images(self, image_paths: Sequence[Path], progress=None) -> Roll:
        """
        Process page images in order and assemble the roll.

        Unreadable images are logged and skipped.
        """
        pages: List[PageResult] = []
        self.context.total_pages = len(image_paths)

        task = progress.add_task("Pages -> Blocks", total=len(image_paths)) if progress else None
        for page_number, path in enumerate(image_paths, start=1):
            self.context.current_page = page_number
            image = load_image(Path(path))
            if image is None:
                self.log_warning(f"Could not read page image: {path}")
            else:
                pages.append(self.process_page(image, page_number, str(path)))
            if progress:
                progress.advance(task)

        self.context.pages = pages
        self.context.roll = self.parse_roll(pages)
        return self.context.roll

    def validate(self) -> bool:
        if not self.context.image_paths:
            self.log_error("No page images given")
            return False
        missing = [p for p in self.context.image_paths if not Path(p).exists()]
        if missing:
            self.log_error(f"Page images not found: {', '.join(str(p) for p in missing)}")
            return False
        return True

    def process(self) -> bool:
        self.context.stats.start()
        try:
            roll = self.process_images(self.context.image_paths)
        except OdiaRollError as e:
            self.log_error("Roll processing failed", error=e)
            self.context.stats.fail(str(e))
            return False

        self.context.stats.complete()
        self.save_debug_info("stats", self.context.stats.to_dict())
        self.log_info(f"Processed {self.context.total_pages} pages, {roll.total_records} records")
        return True
