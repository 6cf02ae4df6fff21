import os

# Must be set before odia_roll is imported anywhere
os.environ["LOG_TO_FILE"] = "0"
os.environ["TRANSLATION_ENGINE"] = "none"
os.environ["DEBUG"] = "0"
os.environ["SAVE_BLOCK_CROPS"] = "0"

import pytest

from odia_roll.config import Config, reset_config
from odia_roll.exceptions import OCRError, TranslationError
from odia_roll.models import BBox, Line, RecognitionResult, Word
from odia_roll.processors.base import ProcessingContext
from odia_roll.utils.translator import TranslationBackend


def make_word(text, x0, y0, x1=None, y1=None, conf=90.0):
    if x1 is None:
        x1 = x0 + 10 * max(1, len(text))
    if y1 is None:
        y1 = y0 + 20
    return Word(text=text, confidence=conf, bbox=BBox(x0, y0, x1, y1))


def make_result(words, lines=None, width=1000, height=1000):
    if lines is None:
        lines = [Line.from_words([w]) for w in words]
    return RecognitionResult(
        text="\n".join(line.text for line in lines),
        confidence=RecognitionResult.mean_confidence(words),
        words=list(words),
        lines=list(lines),
        width=width,
        height=height,
    )


class FakeWorker:
    """Recognition worker returning queued results (or raising queued errors)."""

    def __init__(self, results=None, default=None):
        self.results = list(results or [])
        self.default = default or RecognitionResult()
        self.calls = []

    def recognize(self, image):
        self.calls.append(image.shape)
        item = self.results.pop(0) if self.results else self.default
        if isinstance(item, Exception):
            raise item
        return item


class FakeBackend(TranslationBackend):
    """Translation backend answering from a dict; unknown text fails."""

    name = "fake"

    def __init__(self, answers=None):
        self.answers = dict(answers or {})
        self.calls = []

    def translate(self, text, source, target):
        self.calls.append(text)
        if text in self.answers:
            return self.answers[text]
        raise TranslationError("no answer", engine=self.name, text=text)


class FakeClock:
    def __init__(self, start=100.0):
        self.now = start
        self.sleeps = []

    def __call__(self):
        return self.now

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def context(tmp_path):
    config = Config(output_dir=tmp_path / "output", logs_dir=tmp_path / "logs")
    ctx = ProcessingContext(config=config)
    ctx.setup_paths("test_roll")
    return ctx


@pytest.fixture
def ocr_error():
    return OCRError("simulated failure", mode="page")
