"""
Tesseract recognition workers.

Two long-lived worker handles are used per run:
- "page": coarse/fast full-page scan (automatic page segmentation)
- "block": high-fidelity single-block recognition (dense block, no dictionary)

Each worker checks Tesseract and its language data once, at construction.
A worker is not safe for concurrent use; calls are serialized with a lock.
"""

from __future__ import annotations

import threading
from collections import OrderedDict
from typing import List, Optional, Dict, Tuple, Any

import cv2
import numpy as np
from PIL import Image

try:
    import pytesseract
    from pytesseract import Output
    TESSERACT_AVAILABLE = True
except ImportError:
    TESSERACT_AVAILABLE = False

from ..config import OCRConfig, get_config
from ..exceptions import OCRError, TesseractNotFoundError
from ..logger import get_logger
from ..models.geometry import BBox, Word, Line, RecognitionResult


logger = get_logger(__name__)


PAGE_MODE = "page"
BLOCK_MODE = "block"

# Tesseract parameters per worker mode
TESSERACT_CONFIGS = {
    PAGE_MODE: "--oem 1 --psm 1",
    BLOCK_MODE: (
        "--oem 1 --psm 6 "
        "-c preserve_interword_spaces=1 "
        "-c tessedit_enable_doc_dict=0 "
        "-c textord_heavy_nr=1 "
        "-c textord_min_linesize=1.5"
    ),
}

# Words further apart than this many line-heights are joined with a wide gap
WIDE_GAP_FACTOR = 1.0
WIDE_GAP = "   "


def _to_pil(image: np.ndarray) -> Image.Image:
    if image.ndim == 2:
        return Image.fromarray(image)
    if image.shape[2] == 4:
        return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGRA2RGB))
    return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))


def _join_line_words(words: List[Word]) -> str:
    """
    Rebuild a line's text from its words.

    Large horizontal gaps (typically a column break inside the block) become
    three spaces, which the field engine treats as a segment separator.
    """
    if not words:
        return ""
    height = max(w.bbox.height for w in words) or 1
    parts = [words[0].text]
    for prev, word in zip(words, words[1:]):
        gap = word.bbox.x0 - prev.bbox.x1
        parts.append(WIDE_GAP if gap > height * WIDE_GAP_FACTOR else " ")
        parts.append(word.text)
    return "".join(parts)


def parse_tesseract_data(data: Dict[str, List[Any]], min_conf: int = -1) -> Tuple[List[Word], List[Line]]:
    """
    Convert pytesseract image_to_data output into words and lines.

    Words are grouped into lines by Tesseract's (block, paragraph, line)
    numbering, in reading order.
    """
    words: List[Word] = []
    grouped: "OrderedDict[Tuple[int, int, int], List[Word]]" = OrderedDict()

    n = len(data.get("text", []))
    for i in range(n):
        txt = (data["text"][i] or "").strip()
        if not txt:
            continue

        conf = float(data["conf"][i])
        if min_conf >= 0 and conf < min_conf:
            continue

        left, top = int(data["left"][i]), int(data["top"][i])
        width, height = int(data["width"][i]), int(data["height"][i])
        word = Word(
            text=txt,
            confidence=max(conf, 0.0),
            bbox=BBox(left, top, left + width, top + height),
        )
        words.append(word)

        key = (
            int(data.get("block_num", [0] * n)[i]),
            int(data.get("par_num", [0] * n)[i]),
            int(data.get("line_num", [0] * n)[i]),
        )
        grouped.setdefault(key, []).append(word)

    lines = []
    for line_words in grouped.values():
        line_words.sort(key=lambda w: w.bbox.x0)
        lines.append(Line.from_words(line_words, text=_join_line_words(line_words)))

    return words, lines


class RecognitionWorker:
    """
    Long-lived Tesseract handle for one recognition mode.

    Usage:
        worker = RecognitionWorker("block", languages="ori")
        result = worker.recognize(image)
    """

    def __init__(
        self,
        mode: str = PAGE_MODE,
        languages: Optional[str] = None,
        config: Optional[OCRConfig] = None,
    ):
        if mode not in TESSERACT_CONFIGS:
            raise OCRError(f"Unknown recognition mode: {mode}", mode=mode)

        self.config = config or get_config().ocr
        self.mode = mode
        if languages is None:
            languages = self.config.page_languages if mode == PAGE_MODE else self.config.block_languages
        self.languages = languages
        self.tesseract_config = TESSERACT_CONFIGS[mode]
        self._lock = threading.Lock()

        self._initialize()

    def _initialize(self) -> None:
        """Check Tesseract and the requested language data. Failure is fatal."""
        if not TESSERACT_AVAILABLE:
            raise TesseractNotFoundError()

        if self.config.tesseract_path:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_path

        try:
            version = pytesseract.get_tesseract_version()
        except (pytesseract.TesseractNotFoundError, OSError) as e:
            raise TesseractNotFoundError(self.config.tesseract_path or None) from e

        try:
            available = set(pytesseract.get_languages(config=""))
        except pytesseract.TesseractError as e:
            raise OCRError(f"Could not list Tesseract languages: {e}", mode=self.mode) from e

        missing = [lang for lang in self.languages.split("+") if lang not in available]
        if missing:
            raise OCRError(
                f"Tesseract language data missing: {', '.join(missing)}",
                mode=self.mode,
                languages=self.languages,
            )

        logger.info(f"Tesseract {version} ready ({self.mode} worker, languages: {self.languages})")

    def recognize(self, image: np.ndarray) -> RecognitionResult:
        """
        Recognize text in an image.

        Raises:
            OCRError: if Tesseract fails on this image
        """
        if image is None or image.size == 0:
            raise OCRError("Empty image passed to recognition", mode=self.mode)

        h, w = image.shape[:2]
        pil_img = _to_pil(image)

        with self._lock:
            try:
                data = pytesseract.image_to_data(
                    pil_img,
                    lang=self.languages,
                    config=self.tesseract_config,
                    output_type=Output.DICT,
                )
            except (pytesseract.TesseractError, RuntimeError) as e:
                raise OCRError(f"Tesseract failed: {e}", mode=self.mode, languages=self.languages) from e

        words, lines = parse_tesseract_data(data, min_conf=self.config.min_word_conf)
        return RecognitionResult(
            text="\n".join(line.text for line in lines),
            confidence=RecognitionResult.mean_confidence(words),
            words=words,
            lines=lines,
            width=int(w),
            height=int(h),
        )
