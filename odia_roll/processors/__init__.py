"""
Document processors module.

Contains the processing components of the roll pipeline:
- AnchorDetector: Find identifier anchors among recognized words
- BlockDetector: Three-tier block detection (anchor, structural, grid)
- BlockExtractor: Crop and re-recognize each block
- FieldExtractor / RecordExtractor: Bilingual fields to candidate records
- AddressExtractor: Header address of the polling area
- RollParser: Validate and aggregate records into a Roll
- RollProcessor: End-to-end facade owning the recognition workers
"""

from .base import BaseComponent, BaseProcessor, ProcessingContext
from .anchor_detector import AnchorDetector, find_identifier
from .boundary import calculate_boundary, next_anchor_below
from .block_detector import BlockDetector, PageScan, grid_layout
from .block_extractor import BlockExtractor
from .field_extractor import ExtractedFields, FieldExtractor
from .record_extractor import RecordExtractor
from .address_extractor import AddressExtractor
from .roll_parser import RollParser
from .roll_processor import RollProcessor

__all__ = [
    "BaseComponent",
    "BaseProcessor",
    "ProcessingContext",
    "AnchorDetector",
    "find_identifier",
    "calculate_boundary",
    "next_anchor_below",
    "BlockDetector",
    "PageScan",
    "grid_layout",
    "BlockExtractor",
    "ExtractedFields",
    "FieldExtractor",
    "RecordExtractor",
    "AddressExtractor",
    "RollParser",
    "RollProcessor",
]
