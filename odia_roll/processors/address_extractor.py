"""
Header address extraction.

Reads the polling area address from the first lines of the first page:
colon-separated "label: value" lines, labeled patterns, an Odisha district
gazetteer and 6-digit pincodes (Odisha prefixes 75/76/77 preferred).
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional

from ..models import Location
from ..utils.script import is_odia
from ..utils.translator import TranslationCache
from .base import BaseComponent, ProcessingContext


# Label -> Location attribute
ODIA_FIELD_LABELS = {
    "ମୁଖ୍ୟ ସଚିବ": "building_name",
    "ଶ୍ରୀମତୀ": "building_name",
    "ତାଙ୍କଯର": "locality",
    "ଆମ": "village",
    "ପଞ୍ଚାୟତ": "panchayat",
    "ବ୍ଲକ": "block",
    "ସବଡିଭିଜନ": "subdivision",
    "ଜିଲ୍ଲା": "district",
    "ପିନ": "pincode",
    "ଗ୍ରାମ": "village",
    "ଥାନା": "police_station",
}

ENGLISH_FIELD_LABELS = {
    "polling station": "building_name",
    "location": "locality",
    "village": "village",
    "panchayat": "panchayat",
    "gp": "panchayat",
    "block": "block",
    "tehsil": "block",
    "sub-division": "subdivision",
    "subdivision": "subdivision",
    "district": "district",
    "pin": "pincode",
    "pincode": "pincode",
    "police station": "police_station",
    "ps": "police_station",
}

_WORD = r"[A-Za-z\u0B00-\u0B7F]+"
_PHRASE = r"[A-Za-z\u0B00-\u0B7F ]+?"

LABELED_PATTERNS = (
    (re.compile(rf"(?:ଜିଲ୍ଲା|District|Dist\.?)[\s:]*({_WORD})", re.I), "district"),
    (re.compile(rf"(?:ବ୍ଲକ|Block|Tehsil)[\s:]*({_PHRASE})(?:$|,)", re.I), "block"),
    (re.compile(rf"(?:ଗ୍ରାମ|ଆମ|Village)[\s:]*({_WORD})", re.I), "village"),
    (re.compile(rf"(?:ପଞ୍ଚାୟତ|Panchayat|GP)[\s:]*({_WORD})", re.I), "panchayat"),
    (re.compile(rf"(?:ସବଡିଭିଜନ|Sub[-\s]?Division|Subdivision)[\s:]*({_PHRASE})$", re.I), "subdivision"),
    (re.compile(r"(?:ପିନ|PIN|Pincode)[\s:]*(\d{6})", re.I), "pincode"),
)

BLOCK_PATTERNS = (
    re.compile(rf"(?:ବ୍ଲକ|Block)[\s:]*({_PHRASE})(?:$|,)", re.I),
    re.compile(rf"(?:Tehsil|ତହସିଲ)[\s:]*({_PHRASE})$", re.I),
)

VILLAGE_PATTERNS = (
    re.compile(rf"(?:ଗ୍ରାମ|Village|ଆମ)[\s:]*({_WORD})", re.I),
    re.compile(rf"(?:Town|ସହର)[\s:]*({_WORD})", re.I),
)

ODISHA_DISTRICTS = (
    "Angul", "Balangir", "Balasore", "Bargarh", "Bhadrak",
    "Boudh", "Cuttack", "Deogarh", "Dhenkanal", "Gajapati", "Ganjam",
    "Jagatsinghpur", "Jajpur", "Jharsuguda", "Kalahandi", "Kandhamal",
    "Kendrapara", "Kendujhar", "Khordha", "Koraput", "Malkangiri",
    "Mayurbhanj", "Nabarangpur", "Nayagarh", "Nuapada", "Puri",
    "Rayagada", "Sambalpur", "Subarnapur", "Sundargarh",
    "Kataka", "କଟକ", "ପୁରୀ", "ଖୋର୍ଦ୍ଧା", "ଗଞ୍ଜାମ",
)

ODISHA_PIN_PREFIXES = ("75", "76", "77")

_PINCODE_RE = re.compile(r"\b\d{6}\b")
_CLEAN_RE = re.compile(r"[^\w\s\u0B00-\u0B7F-]")
_WS_RE = re.compile(r"\s+")


def clean_value(value: str) -> str:
    return _CLEAN_RE.sub("", _WS_RE.sub(" ", value or "")).strip()


def extract_pincode(text: str) -> str:
    """First 6-digit number with an Odisha prefix, else the first 6-digit number."""
    pincodes = _PINCODE_RE.findall(text or "")
    for pin in pincodes:
        if pin[:2] in ODISHA_PIN_PREFIXES:
            return pin
    return pincodes[0] if pincodes else ""


def extract_district(text: str) -> str:
    for district in ODISHA_DISTRICTS:
        if district in text:
            return district
    match = LABELED_PATTERNS[0][0].search(text)
    return match.group(1).strip() if match else ""


class AddressExtractor(BaseComponent):
    """Builds the header Location of a roll."""

    name = "AddressExtractor"

    MAX_LINES = 50
    FALLBACK_LINES = 40

    def __init__(self, context: ProcessingContext, translator: Optional[TranslationCache] = None):
        super().__init__(context)
        self.translator = translator

    def _translate(self, value: str) -> str:
        if self.translator is None or not is_odia(value):
            return value
        return self.translator.translate_to_english(value) or value

    def extract_colon_format(self, lines: List[str]) -> Dict[str, str]:
        found: Dict[str, str] = {}
        for line in lines[: self.MAX_LINES]:
            if ":" not in line:
                continue
            label, value = (part.strip() for part in line.split(":", 1))
            value = value.split(":")[0].strip()
            if not label or not value:
                continue

            for odia_label, attr in ODIA_FIELD_LABELS.items():
                if odia_label in label:
                    found[attr] = value
            label_lower = label.lower()
            for english_label, attr in ENGLISH_FIELD_LABELS.items():
                if re.search(rf"(?<![a-z]){re.escape(english_label)}(?![a-z])", label_lower):
                    found[attr] = value
        return found

    def extract_labeled_format(self, lines: List[str]) -> Dict[str, str]:
        found: Dict[str, str] = {}
        for line in lines[: self.MAX_LINES]:
            for pattern, attr in LABELED_PATTERNS:
                match = pattern.search(line)
                if match:
                    found[attr] = self._translate(match.group(1).strip())
        return found

    def _first_match(self, lines: List[str], patterns) -> str:
        for line in lines[: self.FALLBACK_LINES]:
            for pattern in patterns:
                match = pattern.search(line)
                if match:
                    return self._translate(match.group(1).strip())
        return ""

    def extract(self, text: str) -> Location:
        """Location from page text (usually the first page)."""
        lines = [line.strip() for line in (text or "").splitlines() if line.strip()]

        found: Dict[str, str] = {}
        found.update(self.extract_colon_format(lines))
        found.update(self.extract_labeled_format(lines))

        if not found.get("district"):
            found["district"] = extract_district(text or "")
        if not found.get("pincode"):
            found["pincode"] = extract_pincode(text or "")
        if not found.get("block"):
            found["block"] = self._first_match(lines, BLOCK_PATTERNS)
        if not found.get("village"):
            found["village"] = self._first_match(lines, VILLAGE_PATTERNS)

        location = Location()
        for attr, value in found.items():
            cleaned = clean_value(value)
            if cleaned and hasattr(location, attr):
                setattr(location, attr, cleaned)

        self.log_debug("Header address", **{k: v for k, v in location.to_dict().items() if v})
        return location
