import numpy as np
import pytest

from odia_roll.exceptions import TesseractNotFoundError
from odia_roll.models import DetectionStrategy
from odia_roll.processors.roll_processor import RollProcessor
from odia_roll.utils.image_utils import save_image
from odia_roll.utils.translator import TranslationCache

from conftest import FakeBackend, FakeWorker, make_result, make_word

PURNIMA = "ନାମ: ପୂର୍ଣ୍ଣିମା ବେହେରା  ସ୍ବାମୀଙ୍କ ନାମ: ସଂଜୟ ବେହେରା  ବୟସ: 37 ଲିଗଂ : ସ୍ତ୍ରୀ"


def _page_scan():
    return make_result(
        [
            make_word("ABC1234567", 50, 50, 200, 70),
            make_word("XYZ7654321", 50, 300, 200, 320),
        ],
        width=800,
        height=1000,
    )


def _block_text():
    return make_result([make_word(PURNIMA, 0, 0, 150, 20, conf=85.0)])


@pytest.fixture
def page():
    return np.full((1000, 800, 3), 255, dtype=np.uint8)


@pytest.fixture
def processor(context):
    translator = TranslationCache(
        FakeBackend({"ପୂର୍ଣ୍ଣିମା ବେହେରା": "Purnima Behera", "ସଂଜୟ ବେହେରା": "Sanjay Behera"}),
        min_interval_sec=0,
    )
    return RollProcessor(
        context,
        page_worker=FakeWorker(default=_page_scan()),
        block_worker=FakeWorker(default=_block_text()),
        translator=translator,
    )


def test_process_page(processor, context, page):
    result = processor.process_page(page, page_number=1)

    assert result.strategy == DetectionStrategy.ANCHOR
    assert [b.id for b in result.blocks] == ["ABC1234567", "XYZ7654321"]
    assert all(b.raw_text == PURNIMA for b in result.blocks)
    assert (result.width, result.height) == (800, 1000)

    timing = context.stats.page_timings[0]
    assert timing.strategy == "anchor"
    assert timing.blocks_detected == 2
    assert timing.blocks_extracted == 2


def test_detect_then_extract_blocks(processor, page):
    blocks = processor.detect_blocks(page, page_number=1)
    assert [b.id for b in blocks] == ["ABC1234567", "XYZ7654321"]
    assert all(b.raw_text == "" for b in blocks)

    extracted = processor.extract_blocks(page, blocks, page_number=1)

    assert [b.raw_text for b in extracted] == [PURNIMA, PURNIMA]
    assert all(b.recognition_confidence == pytest.approx(85.0) for b in extracted)


def test_extract_record_translates_names(processor, page):
    block = processor.process_page(page).blocks[0]

    record = processor.extract_record(block)

    assert record.identifier == "ABC1234567"
    assert record.name.english == "Purnima Behera"
    assert record.relation.name.english == "Sanjay Behera"
    assert record.age == 37
    assert record.source_strategy == DetectionStrategy.ANCHOR


def test_parse_roll(processor, page):
    roll = processor.parse_roll([processor.process_page(page)])

    assert roll.total_records == 2
    assert [r.serial_no for r in roll.records] == [1, 2]
    assert all(r.source_strategy == DetectionStrategy.ANCHOR for r in roll.records)


def test_empty_injected_cache_is_used_and_persisted(context, page, tmp_path):
    translator = TranslationCache(
        FakeBackend({"ପୂର୍ଣ୍ଣିମା ବେହେରା": "Purnima Behera", "ସଂଜୟ ବେହେରା": "Sanjay Behera"}),
        min_interval_sec=0,
    )
    cache_path = tmp_path / "translations.json"
    assert translator.load(cache_path) == 0

    processor = RollProcessor(
        context,
        page_worker=FakeWorker(default=_page_scan()),
        block_worker=FakeWorker(default=_block_text()),
        translator=translator,
    )
    assert processor.translator is translator

    roll = processor.parse_roll([processor.process_page(page)])

    assert roll.records[0].name.english == "Purnima Behera"
    assert translator.save(cache_path) == 2
    assert context.stats.translation.engine == "fake"


def test_run_on_image_files(processor, context, page, tmp_path):
    path = tmp_path / "page_001.png"
    assert save_image(page, path)
    context.image_paths = [path, tmp_path / "unreadable.png"]
    (tmp_path / "unreadable.png").write_bytes(b"not an image")

    assert processor.run()

    assert len(context.pages) == 1
    assert context.roll.total_records == 2
    assert context.stats.status == "completed"
    assert context.stats.translation.engine == "fake"


def test_missing_image_fails_validation(processor, context, tmp_path):
    context.image_paths = [tmp_path / "missing.png"]
    assert not processor.run()


def test_missing_tesseract_fails_the_run(context, page, tmp_path):
    path = tmp_path / "page_001.png"
    save_image(page, path)
    context.image_paths = [path]
    processor = RollProcessor(
        context,
        page_worker=FakeWorker([TesseractNotFoundError("tesseract not installed")]),
        block_worker=FakeWorker(),
        translator=TranslationCache(FakeBackend(), min_interval_sec=0),
    )

    assert not processor.run()
    assert context.stats.status == "failed"
