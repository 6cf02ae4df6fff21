"""
Roll aggregation and validation.

Merges the per-page results of a document into one Roll:
- document info (year, revision and publication dates)
- polling station numbers from the first lines of the first page
- header address (see AddressExtractor)
- validated records, numbered sequentially across the document
- statistics, from the printed tally or a 51/49 approximation
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from ..exceptions import ValidationError
from ..models import (
    DocumentInfo,
    Location,
    PageResult,
    PollingStationInfo,
    Record,
    Roll,
    Statistics,
)
from ..models.record import STRICT_ID_PATTERN
from ..utils.script import convert_odia_digits
from ..utils.translator import TranslationCache
from .address_extractor import AddressExtractor
from .base import BaseComponent, ProcessingContext
from .field_extractor import LABEL_WORDS
from .record_extractor import RecordExtractor


HEADER_LINES = 20
MIN_CHUNK_LENGTH = 10
DEFAULT_SECTION = "Section 1"

# Statistics approximation when no tally is printed
MALE_SHARE = 0.51
FEMALE_SHARE = 0.49

_YEAR_RE = re.compile(r"(?<!\d)(20\d{2})(?!\d)")
_DATE_RE = re.compile(r"(?<!\d)(\d{2}[-/]\d{2}[-/]\d{4})(?!\d)")

PS_NUMBER_PATTERNS = (
    re.compile(r"(?:\bPS|ମତଦାନ\s*କେନ୍ଦ୍ର)[\s:]*(?:No\.?|ନଂ\.?)[\s:]*(\d{1,3})", re.I),
    re.compile(r"Polling\s*Station[\s:]*(?:No\.?)?[\s:]*(\d{1,3})", re.I),
)
PART_NUMBER_RE = re.compile(r"(?:Part|ଭାଗ)[\s:]*(?:No\.?|ନଂ\.?)[\s:]*(\d{1,2})", re.I)
AC_NUMBER_RE = re.compile(r"(?:\bAC|Assembly(?:\s*Constituency)?)[\s:]*(?:No\.?)?[\s:]*(\d{1,3})", re.I)
SECTION_RE = re.compile(r"(?:Section|ବିଭାଗ)[\s:]*(?:No\.?|ନଂ\.?)?[\s:]*(\d{1,3})", re.I)

TALLY_PATTERNS = {
    "male": re.compile(r"(?:(?<![A-Za-z])Male|ପୁରୁଷ)[\s:]*(\d+)", re.I),
    "female": re.compile(r"(?:Female|ମହିଳା)[\s:]*(\d+)", re.I),
    "transgender": re.compile(r"(?:Third\s*Gender|Transgender|ତୃତୀୟ\s*ଲିଙ୍ଗ)[\s:]*(\d+)", re.I),
    "total": re.compile(r"(?:Total|ମୋଟ)[\s:]*(\d+)", re.I),
}


def _non_empty_lines(text: str) -> List[str]:
    return [line for line in (text or "").splitlines() if line.strip()]


def find_dates(text: str) -> List[str]:
    return _DATE_RE.findall(text or "")


def extract_document_info(pages: Sequence[PageResult]) -> DocumentInfo:
    """Year and revision date from the first page, publication date from the last."""
    info = DocumentInfo(document_pages=len(pages))
    if not pages:
        return info

    first_text = convert_odia_digits(pages[0].text)
    last_text = convert_odia_digits(pages[-1].text)

    year = _YEAR_RE.search(first_text)
    info.year = year.group(1) if year else None

    first_dates = find_dates(first_text)
    last_dates = find_dates(last_text)
    info.revision_date = first_dates[0] if first_dates else None
    info.publication_date = last_dates[-1] if last_dates else None
    return info


def _bounded_number(pattern: "re.Pattern[str]", text: str, low: int, high: int) -> Optional[str]:
    for match in pattern.finditer(text):
        if low <= int(match.group(1)) <= high:
            return match.group(1)
    return None


def extract_polling_station(text: str, location: Optional[Location] = None) -> PollingStationInfo:
    """Station (1-999), part (1-99) and constituency numbers from the header lines."""
    header = convert_odia_digits("\n".join(_non_empty_lines(text)[:HEADER_LINES]))

    number = None
    for pattern in PS_NUMBER_PATTERNS:
        number = _bounded_number(pattern, header, 1, 999)
        if number:
            break

    location = location or Location()
    ac_number = _bounded_number(AC_NUMBER_RE, header, 1, 999)
    if ac_number:
        location.assembly_constituency = f"AC-{int(ac_number):03d}"

    return PollingStationInfo(
        number=number,
        name=f"Polling Station {number}" if number else "",
        part_number=_bounded_number(PART_NUMBER_RE, header, 1, 99),
        location=location,
    )


def extract_section(text: str) -> Optional[str]:
    match = SECTION_RE.search(convert_odia_digits(text or ""))
    return f"Section {int(match.group(1))}" if match else None


def extract_tally(text: str) -> Optional[Statistics]:
    """
    Printed male/female/total counts, or None.

    All three of male, female and total must be present for a tally to count.
    """
    text = convert_odia_digits(text or "")
    found: Dict[str, int] = {}
    for key, pattern in TALLY_PATTERNS.items():
        match = pattern.search(text)
        if match:
            found[key] = int(match.group(1))

    if not all(key in found for key in ("male", "female", "total")):
        return None
    return Statistics(
        total=found["total"],
        male=found["male"],
        female=found["female"],
        transgender=found.get("transgender", 0),
    )


def approximate_statistics(identifiers: Sequence[str]) -> Statistics:
    """51/49 floor split of the unique identifiers. Not a measurement."""
    total = len(set(identifiers))
    return Statistics(
        total=total,
        male=int(total * MALE_SHARE),
        female=int(total * FEMALE_SHARE),
        approximate=True,
    )


def collect_identifiers(pages: Sequence[PageResult]) -> List[str]:
    """Strict identifiers in page text and block text, in order of appearance."""
    seen: List[str] = []
    for page in pages:
        seen.extend(STRICT_ID_PATTERN.findall(page.text or ""))
        for block in page.blocks:
            seen.extend(STRICT_ID_PATTERN.findall(block.raw_text or ""))
            if STRICT_ID_PATTERN.fullmatch(block.id):
                seen.append(block.id)
    return list(dict.fromkeys(seen))


@dataclass
class ParseCounts:
    """Candidate counts of a single parse() call."""
    candidates: int = 0
    accepted: int = 0
    rejections: Counter = field(default_factory=Counter)

    @property
    def rejected(self) -> int:
        return sum(self.rejections.values())


class RollParser(BaseComponent):
    """
    Assembles a Roll from the page results of one document.

    Candidates that fail validation are dropped and counted per field in
    ExtractionStats.rejections and in the roll notes.
    """

    name = "RollParser"

    def __init__(
        self,
        context: ProcessingContext,
        translator: Optional[TranslationCache] = None,
        record_extractor: Optional[RecordExtractor] = None,
        address_extractor: Optional[AddressExtractor] = None,
    ):
        super().__init__(context)
        self.translator = translator
        self.records = record_extractor or RecordExtractor(context, translator)
        self.addresses = address_extractor or AddressExtractor(context, translator)
        self.validation = self.config.validation

    def validate_record(self, record: Record) -> None:
        """
        Raises:
            ValidationError: naming the first field that fails
        """
        if not record.identifier_valid:
            raise ValidationError(
                "Invalid identifier",
                field_name="identifier",
                field_value=record.identifier,
                expected="3 letters + 7 digits",
            )

        name = record.name.odia
        if len(name) <= 2 or any(label in name for label in LABEL_WORDS):
            raise ValidationError("Invalid name", field_name="name", field_value=name)

        if record.age is None or not self.validation.min_age <= record.age <= self.validation.max_age:
            raise ValidationError(
                "Age out of range",
                field_name="age",
                field_value=record.age,
                expected=f"{self.validation.min_age}-{self.validation.max_age}",
            )

    def page_candidates(self, page: PageResult) -> List[Record]:
        """One candidate per block, or per identifier-led text chunk when the page has no blocks."""
        if page.blocks:
            candidates = [self.records.extract(block, translate=False) for block in page.blocks]
            return [c for c in candidates if c is not None]

        text = page.text or ""
        identifiers = STRICT_ID_PATTERN.findall(text)
        chunks = STRICT_ID_PATTERN.split(text)[1:]
        candidates = []
        for identifier, chunk in zip(identifiers, chunks):
            if len(chunk) < MIN_CHUNK_LENGTH:
                continue
            candidates.append(self.records.extract_from_text(chunk, identifier))
        return candidates

    def accept(self, candidates: List[Record], counts: Optional[ParseCounts] = None) -> List[Record]:
        """Validated candidates; counts go to `counts` and to the run stats."""
        stats = self.context.stats
        counts = counts if counts is not None else ParseCounts()
        accepted = []
        for record in candidates:
            stats.candidates_seen += 1
            counts.candidates += 1
            try:
                self.validate_record(record)
            except ValidationError as e:
                stats.reject(e.field_name)
                counts.rejections[e.field_name] += 1
                self.log_debug(f"Rejected {record.identifier or '?'}: {e.message}", field=e.field_name)
                continue
            accepted.append(record)
        stats.records_accepted += len(accepted)
        counts.accepted += len(accepted)
        return accepted

    def parse(self, pages: Sequence[PageResult]) -> Roll:
        pages = list(pages)
        if not pages:
            self.log_warning("No pages to parse")
            return Roll(document_info=DocumentInfo(), notes=self.build_notes(pages, counts=ParseCounts()))

        first_text = pages[0].text
        location = self.addresses.extract(first_text)
        polling_station = extract_polling_station(first_text, location)

        records: List[Record] = []
        counts = ParseCounts()
        section = DEFAULT_SECTION
        for page in pages:
            section = extract_section(page.text) or section
            accepted = self.accept(self.page_candidates(page), counts)
            self.records.translate_records(accepted)

            for record in accepted:
                record.serial_no = len(records) + 1
                record.section = section
                self._fill_address(record, polling_station)
                records.append(record)

            self.log_info(f"Page {page.page_number}: {len(accepted)} records", section=section)

        statistics = extract_tally(pages[-1].text) or approximate_statistics(collect_identifiers(pages))
        if statistics.approximate:
            self.log_info("No tally printed, statistics approximated", total=statistics.total)

        roll = Roll(
            document_info=extract_document_info(pages),
            polling_station=polling_station,
            statistics=statistics,
            records=records,
            notes=self.build_notes(pages, counts, statistics),
        )
        self.log_info(
            f"Roll assembled: {roll.total_records} records",
            rejected=counts.rejected,
        )
        return roll

    @staticmethod
    def _fill_address(record: Record, polling_station: PollingStationInfo) -> None:
        location = polling_station.location
        address = record.address
        address.locality = location.locality
        address.village = location.village
        address.panchayat = location.panchayat
        address.block = location.block
        address.subdivision = location.subdivision
        address.district = location.district
        address.state = location.state
        address.pincode = location.pincode
        address.polling_station = polling_station.number or ""
        address.part_no = polling_station.part_number or ""

    @staticmethod
    def build_notes(
        pages: Sequence[PageResult],
        counts: ParseCounts,
        statistics: Optional[Statistics] = None,
    ) -> Dict[str, object]:
        return {
            "pages_processed": len(pages),
            "strategies": {
                str(page.page_number): page.strategy.value if page.strategy else None
                for page in pages
            },
            "candidates": counts.candidates,
            "accepted": counts.accepted,
            "rejected": dict(counts.rejections),
            "statistics_approximate": bool(statistics and statistics.approximate),
            "sections": {
                "section1": "ସଂଶୋଧନ ସଂଖ୍ୟା ୧ - First time voters",
                "section2": "ନିରବଚ୍ଛିନ୍ନ ସଂଶୋଧନ - Continuous revision",
            },
        }
