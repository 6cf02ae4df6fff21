"""
Bilingual key-value field extraction.

Each semantic field has a list of label spellings (Odia and English). For
every field a regex matches one of its labels followed by a colon and
captures lazily up to the next label-plus-colon of ANY field, or the end of
the text. Fields are matched against the whole text, so one noisy field
cannot displace its neighbours.

When no label is recognized, word-level fallbacks infer the name (longest
run of Odia words), relation, age, gender and house number.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..config import ValidationConfig
from ..utils.script import convert_odia_digits, extract_odia_text, is_odia


# Field -> label spellings. Odia spellings include both ବ and ୱ forms of "swami".
FIELD_LABELS: Dict[str, Tuple[str, ...]] = {
    "name": ("ନାମ", "Name"),
    "father_name": (
        "ପିତାଙ୍କ ନାମ", "ପିତାଙ୍କର ନାମ", "Father's Name", "Father Name", "ପିତା", "Father",
    ),
    "mother_name": (
        "ମାତାଙ୍କ ନାମ", "ମାତାଙ୍କର ନାମ", "Mother's Name", "Mother Name", "ମାତା", "Mother",
    ),
    "husband_name": (
        "ସ୍ବାମୀଙ୍କ ନାମ", "ସ୍ୱାମୀଙ୍କ ନାମ", "Husband's Name", "Husband Name",
        "ସ୍ବାମୀ", "ସ୍ୱାମୀ", "Husband",
    ),
    "age": ("ବୟସ", "Age"),
    "gender": ("ଲିଗଂ", "ଲିଂଗ", "ଲିଙ୍ଗ", "Gender", "Sex"),
    "house_no": ("ଘର ନଂ", "ଘର ନମ୍ବର", "House No", "House Number"),
}

RELATION_FIELDS = {
    "father_name": "Father",
    "mother_name": "Mother",
    "husband_name": "Husband",
}

# Tokens that are never part of a person's name (labels and frequent OCR
# misreads of labels)
LABEL_WORDS = (
    "ଘର", "ଘରା", "ମିର", "ରାମା", "ହାଇ", "ଘନ", "ଘନା", "ଘମା", "ନଂ",
    "ନାମ", "ପିତା", "ମାତା", "ସ୍ୱାମୀ", "ସ୍ବାମୀ", "ବୟସ", "ଲିଗଂ", "ଲିଂଗ", "ଲିଙ୍ଗ",
    "name", "father", "mother", "husband",
)

FEMALE_KEYWORDS = ("ମହିଳା", "ସ୍ତ୍ରୀ", "female")
MALE_KEYWORDS = ("ପୁରୁଷ", "male")
MOTHER_KEYWORDS = ("ମାତା", "mother")
HUSBAND_KEYWORDS = ("ସ୍ୱାମୀ", "ସ୍ବାମୀ", "husband")
FATHER_KEYWORDS = ("ପିତା", "father")

_SEGMENT_SPLIT_RE = re.compile(r"\n+|\s{3,}")
_SHORT_NUMBER_RE = re.compile(r"^\d{1,3}$")
_TWO_DIGIT_RE = re.compile(r"\b(\d{2})\b")
_LABELED_NUMBER_RE = re.compile(r"\d{1,3}")
_HOUSE_LABEL_RE = re.compile(r"(?:H\.?\s*No|House|ଘର)[\s:]*(\d+)", re.IGNORECASE)
_BARE_NUMBER_RE = re.compile(r"\b(\d{1,4})\b")
_WS_RE = re.compile(r"\s+")


def _label_pattern(label: str) -> str:
    # OCR spacing inside multi-word labels varies
    pattern = r"\s+".join(re.escape(part) for part in label.split())
    if label[0].isascii() and label[0].isalpha():
        # "Age" must not match inside "Page"
        pattern = r"(?<![A-Za-z])" + pattern
    return pattern


def _normalize_label(label: str) -> str:
    return _WS_RE.sub(" ", label.strip()).lower()


def _by_length(labels: Iterable[str]) -> List[str]:
    return sorted(labels, key=len, reverse=True)


_LABEL_TO_FIELD: Dict[str, str] = {
    _normalize_label(label): name
    for name, labels in FIELD_LABELS.items()
    for label in labels
}

# Shared vocabulary, longest label first so a label is never matched as the
# tail of a longer one
_VOCABULARY = "|".join(_label_pattern(label) for label in _by_length(_LABEL_TO_FIELD))
_VOCABULARY_RE = re.compile(rf"({_VOCABULARY})\s*:", re.IGNORECASE)

FIELD_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    name: re.compile(
        rf"(?:{'|'.join(_label_pattern(label) for label in _by_length(labels))})"
        rf"\s*:\s*(.+?)(?=\s*(?:{_VOCABULARY})\s*:|$)",
        re.IGNORECASE | re.DOTALL,
    )
    for name, labels in FIELD_LABELS.items()
}


def first_segment(value: str) -> str:
    """Trim, then keep only the text before the first newline or 3+ space run."""
    return _SEGMENT_SPLIT_RE.split(value.strip())[0].strip()


def extract_labeled_fields(text: str) -> Dict[str, str]:
    """
    Labeled values found in the text, keyed by field name.

    A label occurrence that is only the tail of a longer label (ନାମ inside
    ସ୍ବାମୀଙ୍କ ନାମ) is skipped. The first proper occurrence of a field wins.
    """
    if not text:
        return {}

    label_starts = {
        m.start(): _LABEL_TO_FIELD.get(_normalize_label(m.group(1)))
        for m in _VOCABULARY_RE.finditer(text)
    }

    result: Dict[str, str] = {}
    for name, pattern in FIELD_PATTERNS.items():
        for match in pattern.finditer(text):
            if label_starts.get(match.start()) != name:
                continue
            value = first_segment(match.group(1))
            if value:
                result[name] = value
                break
    return result


def matches_keywords(text: str, keywords: Sequence[str]) -> bool:
    lower = (text or "").lower()
    return any(keyword.lower() in lower for keyword in keywords)


def is_label_word(token: str) -> bool:
    lower = token.strip().lower()
    return any(label in lower for label in LABEL_WORDS)


def is_stray_number(token: str) -> bool:
    """Short standalone numbers (serial numbers, page furniture) below 200."""
    token = convert_odia_digits(token.strip())
    return bool(_SHORT_NUMBER_RE.match(token)) and int(token) < 200


def filter_label_words(tokens: Sequence[str]) -> List[Optional[str]]:
    """
    Replace label tokens and stray numbers with None.

    Positions are kept so removed tokens still separate the runs around them.
    """
    return [
        None if is_label_word(token) or is_stray_number(token) else token
        for token in tokens
    ]


def longest_odia_run(tokens: Sequence[Optional[str]]) -> str:
    """Longest run (by characters) of consecutive Odia tokens; ties keep the first."""
    longest = ""
    current: List[str] = []
    for token in list(tokens) + [None]:
        if token is not None and is_odia(token):
            current.append(token)
            continue
        candidate = " ".join(current)
        if len(candidate) > len(longest):
            longest = candidate
        current = []
    return longest


def relation_type_from_keywords(text: str) -> str:
    if matches_keywords(text, MOTHER_KEYWORDS):
        return "Mother"
    if matches_keywords(text, HUSBAND_KEYWORDS):
        return "Husband"
    return "Father"


def relation_name_from_tokens(tokens: Sequence[str]) -> str:
    """Odia words following the first relation keyword, up to the next label."""
    keywords = MOTHER_KEYWORDS + HUSBAND_KEYWORDS + FATHER_KEYWORDS
    start = next((i for i, t in enumerate(tokens) if matches_keywords(t, keywords)), None)
    if start is None:
        return ""

    collected: List[str] = []
    for token in tokens[start + 1:]:
        if is_label_word(token) or not is_odia(token):
            if collected:
                break
            continue
        collected.append(token)
    return " ".join(collected)


def parse_age(text: str, labeled: Optional[str] = None) -> Optional[int]:
    """
    Age from the labeled value, else the first two-digit token in [18, 120].

    A labeled number is returned even when out of range so validation can
    reject it. The bare scan can misfire on other two-digit numbers.
    """
    if labeled:
        match = _LABELED_NUMBER_RE.search(convert_odia_digits(labeled))
        if match:
            return int(match.group(0))

    for match in _TWO_DIGIT_RE.finditer(convert_odia_digits(text or "")):
        value = int(match.group(1))
        if 18 <= value <= 120:
            return value
    return None


def parse_gender(text: str, relation_type: str, labeled: Optional[str] = None) -> str:
    """Labeled value, then keywords in the text (female first), then relation default."""
    for source in (labeled, text):
        if not source:
            continue
        if matches_keywords(source, FEMALE_KEYWORDS):
            return "Female"
        if matches_keywords(source, MALE_KEYWORDS):
            return "Male"
    return "Female" if relation_type == "Husband" else "Male"


def parse_house_number(text: str, labeled: Optional[str] = None) -> str:
    """Labeled value, explicit house pattern, then a bare 1-9999 number."""
    candidates = []
    if labeled:
        candidates.append(_BARE_NUMBER_RE.search(convert_odia_digits(labeled)))
    text = convert_odia_digits(text or "")
    candidates.append(_HOUSE_LABEL_RE.search(text))
    candidates.append(_BARE_NUMBER_RE.search(text))

    for match in candidates:
        if match and 0 < int(match.group(1)) < 10000:
            return match.group(1)
    return ""


@dataclass
class ExtractedFields:
    """Raw field map for one block, before translation and validation."""
    name: str = ""
    relation_type: str = "Father"
    relation_name: str = ""
    age: Optional[int] = None
    gender: str = "Male"
    house_no: str = ""
    labeled: Dict[str, str] = field(default_factory=dict)

    def values(self) -> List[str]:
        return [v for v in (self.name, self.relation_name, self.house_no) if v]


class FieldExtractor:
    """
    Turns a block's text (and optionally its words) into ExtractedFields.

    Precedence per field: labeled value, then word-level fallback.
    """

    def __init__(self, validation: Optional[ValidationConfig] = None):
        self.validation = validation or ValidationConfig()

    def extract(self, text: str, tokens: Optional[Sequence[str]] = None) -> ExtractedFields:
        text = text or ""
        if tokens is None:
            tokens = text.split()
        tokens = list(tokens)
        labeled = extract_labeled_fields(text)

        name = extract_odia_text(labeled.get("name", ""))
        if not name:
            name = longest_odia_run(filter_label_words(tokens))
        if len(name) < self.validation.min_name_length:
            name = ""

        relation_field = next((f for f in RELATION_FIELDS if f in labeled), None)
        if relation_field:
            relation_type = RELATION_FIELDS[relation_field]
            value = labeled[relation_field]
            relation_name = extract_odia_text(value) or value
        else:
            relation_type = relation_type_from_keywords(text)
            relation_name = relation_name_from_tokens(tokens)

        return ExtractedFields(
            name=name,
            relation_type=relation_type,
            relation_name=relation_name,
            age=parse_age(text, labeled.get("age")),
            gender=parse_gender(text, relation_type, labeled.get("gender")),
            house_no=parse_house_number(text, labeled.get("house_no")),
            labeled=labeled,
        )
