"""
Odia script helpers.

Odia occupies U+0B00..U+0B7F. OCR output mixes it freely with Latin text,
ASCII digits, Odia digits and zero-width joiners.
"""

from __future__ import annotations

import re


ODIA_RANGE = "\u0B00-\u0B7F"
ODIA_CHAR_RE = re.compile(f"[{ODIA_RANGE}]")
# ZWNJ/ZWJ appear inside conjuncts
ODIA_RUN_RE = re.compile(f"[{ODIA_RANGE}\u200c\u200d]+(?:\\s+[{ODIA_RANGE}\u200c\u200d]+)*")

_ODIA_DIGITS = "୦୧୨୩୪୫୬୭୮୯"
_DIGIT_TABLE = str.maketrans(_ODIA_DIGITS, "0123456789")


def is_odia(text: str) -> bool:
    """True if the text contains at least one Odia codepoint."""
    return bool(text) and ODIA_CHAR_RE.search(text) is not None


def convert_odia_digits(text: str) -> str:
    """Convert Odia numerals (୦-୯) to ASCII digits."""
    if not text:
        return text
    return text.translate(_DIGIT_TABLE)


def extract_odia_text(text: str) -> str:
    """Join all Odia runs in the text with single spaces."""
    if not text:
        return ""
    return " ".join(m.group(0) for m in ODIA_RUN_RE.finditer(text)).strip()


def capitalize_words(text: str) -> str:
    """Lower-case, then upper-case the first letter of each space-separated word."""
    if not text:
        return ""
    return " ".join(word[:1].upper() + word[1:] for word in text.lower().split(" "))
