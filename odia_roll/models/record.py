"""
Voter record models.

Represents individual voter records extracted from electoral roll blocks.
"""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Optional, Any
import re

from .block import DetectionStrategy


STRICT_ID_PATTERN = re.compile(r"[A-Z]{3}\d{7}")

RELATION_TYPES = ("Father", "Mother", "Husband")
GENDERS = ("Male", "Female")


@dataclass
class PersonName:
    """A name in Odia script with its Latin rendering."""
    odia: str = ""
    english: str = ""

    def __post_init__(self):
        self.odia = self.odia.strip()
        self.english = self.english.strip()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Relation:
    """Guardian relation of a voter (Father, Mother or Husband)."""
    type: str = "Father"
    name: PersonName = field(default_factory=PersonName)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "name": self.name.to_dict()}


@dataclass
class RecordAddress:
    """
    Address attached to each record.

    Everything except house_no is copied from the roll header.
    """
    house_no: str = ""
    locality: str = ""
    village: str = ""
    panchayat: str = ""
    block: str = ""
    subdivision: str = ""
    district: str = ""
    state: str = "Odisha"
    polling_station: str = ""
    part_no: str = ""
    pincode: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class Record:
    """
    Core voter information extracted from one block.

    Immutable by convention once it has passed roll validation.
    """

    serial_no: int = 0
    identifier: str = ""

    name: PersonName = field(default_factory=PersonName)
    relation: Relation = field(default_factory=Relation)
    age: Optional[int] = None
    gender: str = "Male"

    address: RecordAddress = field(default_factory=RecordAddress)
    section: str = ""

    # Diagnostics (not part of the roll JSON)
    source_strategy: Optional[DetectionStrategy] = None
    confidence: float = 0.0

    def __post_init__(self):
        self.identifier = self.identifier.strip().upper()

    @staticmethod
    def validate_identifier(identifier: str) -> bool:
        """
        Validate identifier format.

        Indian EPIC format: 3 letters followed by 7 digits (e.g., ABC1234567)
        """
        if not identifier:
            return False
        return bool(STRICT_ID_PATTERN.fullmatch(identifier))

    @property
    def identifier_valid(self) -> bool:
        return self.validate_identifier(self.identifier)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "serial_no": self.serial_no,
            "identifier": self.identifier,
            "name": self.name.to_dict(),
            "relation": self.relation.to_dict(),
            "age": self.age,
            "gender": self.gender,
            "address": self.address.to_dict(),
            "section": self.section,
        }
