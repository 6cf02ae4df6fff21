from pathlib import Path

import numpy as np
import pytest

from odia_roll.exceptions import TesseractNotFoundError
from odia_roll.models import Block, DetectionStrategy, PageTiming, Rect
from odia_roll.processors.block_extractor import BlockExtractor

from conftest import FakeWorker, make_result, make_word


def _block(index, rect, block_id=None):
    return Block(
        id=block_id or f"GRID_{index + 1}",
        index=index,
        boundary=rect,
        source_strategy=DetectionStrategy.GRID,
        confidence=70.0,
    )


@pytest.fixture
def page():
    return np.full((400, 600, 3), 255, dtype=np.uint8)


def test_blocks_are_recognized(context, page):
    result = make_result([make_word("ABC1234567", 0, 0, conf=88.0), make_word("ରମେଶ", 0, 30, conf=80.0)])
    worker = FakeWorker(default=result)
    blocks = [_block(0, Rect(10, 10, 200, 100)), _block(1, Rect(300, 10, 200, 100))]

    extracted = BlockExtractor(context, worker).extract(page, blocks)

    assert len(extracted) == 2
    assert extracted[0].raw_text == "ABC1234567\nରମେଶ"
    assert extracted[0].recognition_confidence == pytest.approx(84.0)
    # detection confidence of the strategy is kept
    assert extracted[0].confidence == 70.0
    # the worker sees greyscale crops of the block size
    assert worker.calls == [(100, 200), (100, 200)]


def test_failing_block_does_not_abort_siblings(context, page, ocr_error):
    ok = make_result([make_word("ରମେଶ", 0, 0)])
    worker = FakeWorker([ok, ocr_error, ok])
    blocks = [
        _block(0, Rect(10, 10, 100, 100)),
        _block(1, Rect(120, 10, 100, 100)),
        _block(2, Rect(700, 10, 100, 100)),  # outside the page
        _block(3, Rect(240, 10, 100, 100)),
    ]
    timing = PageTiming(page_number=1)

    extracted = BlockExtractor(context, worker).extract(page, blocks, 1, timing)

    assert [b.index for b in extracted] == [0, 3]
    assert timing.blocks_extracted == 2
    assert timing.crop_failures == 2
    assert len(timing.per_block_times_sec) == 2


def test_missing_tesseract_propagates(context, page):
    worker = FakeWorker([TesseractNotFoundError()])

    with pytest.raises(TesseractNotFoundError):
        BlockExtractor(context, worker).extract(page, [_block(0, Rect(0, 0, 50, 50))])


def test_crops_saved_when_enabled(context, page):
    context.save_crops = True
    worker = FakeWorker(default=make_result([make_word("ରମେଶ", 0, 0)]))
    block = _block(4, Rect(10, 10, 50, 50), block_id="ABC1234567")

    BlockExtractor(context, worker).extract(page, [block], page_number=2)

    assert block.crop_path is not None
    path = Path(block.crop_path)
    assert path.exists()
    assert path.name == "block_004_ABC1234567.png"
    assert path.parent.name == "page_002"
