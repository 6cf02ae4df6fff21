"""
Roll models.

The Roll is the aggregate root assembled once per input document: header
metadata, statistics and the validated records of every page.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Optional, List, Any, Dict

from .block import Block, DetectionStrategy
from .record import Record


@dataclass
class DocumentInfo:
    """Document-level metadata read from the first and last pages."""
    title: str = "ଭୋଟର ତାଲିକା | Electoral Roll"
    state: str = "Odisha"
    year: Optional[str] = None
    revision_date: Optional[str] = None
    publication_date: Optional[str] = None
    language: str = "Odia/English"
    document_pages: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Location:
    """Header address of the polling area."""
    building_name: str = ""
    locality: str = ""
    village: str = ""
    panchayat: str = ""
    block: str = ""
    subdivision: str = ""
    district: str = ""
    police_station: str = ""
    state: str = "Odisha"
    pincode: str = ""
    assembly_constituency: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PollingStationInfo:
    """Polling station numbers read from the first lines of the first page."""
    number: Optional[str] = None
    name: str = ""
    name_odia: str = ""
    part_number: Optional[str] = None
    location: Location = field(default_factory=Location)

    def to_dict(self) -> dict[str, Any]:
        return {
            "number": self.number,
            "name": self.name,
            "name_odia": self.name_odia,
            "part_number": self.part_number,
            "location": self.location.to_dict(),
        }


@dataclass
class SectionTally:
    """Per-section voter counts."""
    description: str = ""
    male: int = 0
    female: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Statistics:
    """
    Voter counts for the roll.

    When no tally table is printed on the last page the male/female counts
    are a fixed 51/49 split of the detected identifiers and `approximate`
    is set.
    """
    total: int = 0
    male: int = 0
    female: int = 0
    transgender: int = 0
    approximate: bool = False
    section1: SectionTally = field(default_factory=lambda: SectionTally(
        description="ସଂଶୋଧନ ସଂଖ୍ୟା ୧ | First Revision"
    ))
    section2: SectionTally = field(default_factory=lambda: SectionTally(
        description="ନିରବଚ୍ଛିନ୍ନ ସଂଶୋଧନ | Continuous Revision"
    ))

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "male": self.male,
            "female": self.female,
            "transgender": self.transgender,
            "approximate": self.approximate,
            "section1": self.section1.to_dict(),
            "section2": self.section2.to_dict(),
        }


@dataclass
class PageResult:
    """
    Per-page recognition result handed to the roll parser.

    `text` is the coarse page text; `blocks` carry the high-fidelity block
    recognition produced by the block extractor.
    """
    page_number: int = 0
    text: str = ""
    blocks: List[Block] = field(default_factory=list)
    strategy: Optional[DetectionStrategy] = None
    image_path: str = ""
    width: int = 0
    height: int = 0

    @property
    def blocks_count(self) -> int:
        return len(self.blocks)

    def to_dict(self) -> dict[str, Any]:
        return {
            "page_number": self.page_number,
            "image_path": self.image_path,
            "strategy": self.strategy.value if self.strategy else None,
            "blocks_count": self.blocks_count,
            "blocks": [b.to_dict() for b in self.blocks],
        }


@dataclass
class Roll:
    """
    Fully aggregated, validated output for one document.

    Read-only after assembly.
    """
    document_info: DocumentInfo = field(default_factory=DocumentInfo)
    polling_station: PollingStationInfo = field(default_factory=PollingStationInfo)
    statistics: Statistics = field(default_factory=Statistics)
    records: List[Record] = field(default_factory=list)
    notes: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_records(self) -> int:
        return len(self.records)

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Odia text is kept as-is; write with ensure_ascii=False.
        """
        return {
            "document_info": self.document_info.to_dict(),
            "polling_station": self.polling_station.to_dict(),
            "statistics": self.statistics.to_dict(),
            "records": [r.to_dict() for r in self.records],
            "notes": self.notes,
        }
