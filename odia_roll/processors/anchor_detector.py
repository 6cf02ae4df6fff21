"""
Record anchor detection.

An anchor is a recognized token matching the voter identifier grammar
(3 letters + 7 digits, e.g. YVY1435841). Each anchor seeds one record block.
"""

from __future__ import annotations

import re
from typing import List, Optional

from ..config import DetectionConfig
from ..models import AnchorCandidate, Word
from ..utils.script import convert_odia_digits


STRICT_ID_RE = re.compile(r"[A-Z]{3}\d{7}")
RELAXED_ID_RE = re.compile(r"[A-Z]{2,4}\d{6,8}")
ANY_ID_RE = re.compile(r"[A-Z]{3}\d{7}|[A-Z]{2,4}\d{6,8}")

_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]")


def clean_token(text: str) -> str:
    """Odia digits to ASCII, drop everything but [A-Za-z0-9], upper-case."""
    return _NON_ALNUM_RE.sub("", convert_odia_digits(text or "")).upper()


def find_identifier(text: str) -> Optional[str]:
    """First strict or relaxed identifier in free text, or None."""
    match = ANY_ID_RE.search(text or "")
    return match.group(0) if match else None


class AnchorDetector:
    """
    Finds identifier anchors among recognized words.

    Per word: strict match at full confidence, else relaxed match at
    relaxed_factor. Adjacent word pairs are joined and tested against the
    strict grammar at pair_factor times their mean confidence. Candidates are
    ordered by confidence (stable) and deduplicated by id.
    """

    def __init__(self, config: Optional[DetectionConfig] = None):
        self.config = config or DetectionConfig()

    def detect(self, words: List[Word]) -> List[AnchorCandidate]:
        candidates: List[AnchorCandidate] = []
        cleaned = [clean_token(w.text) for w in words]

        for word, token in zip(words, cleaned):
            match = STRICT_ID_RE.search(token)
            if match:
                candidates.append(AnchorCandidate(match.group(0), word, word.confidence))
                continue
            match = RELAXED_ID_RE.search(token)
            if match:
                candidates.append(AnchorCandidate(
                    match.group(0), word, word.confidence * self.config.relaxed_factor
                ))

        # Identifiers split across two OCR tokens
        for i in range(len(words) - 1):
            match = STRICT_ID_RE.search(cleaned[i] + cleaned[i + 1])
            if match:
                avg = (words[i].confidence + words[i + 1].confidence) / 2
                candidates.append(AnchorCandidate(
                    match.group(0), words[i], avg * self.config.pair_factor
                ))

        candidates.sort(key=lambda c: c.confidence, reverse=True)

        seen = set()
        unique = []
        for candidate in candidates:
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            unique.append(candidate)
        return unique
