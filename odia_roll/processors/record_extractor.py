"""
Record extraction from a recognized block.

Runs the field engine over the block text, resolves placeholder block ids
and fills in English names through the translation cache.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..models import Block, PersonName, Record, Relation, RecordAddress
from ..utils.script import capitalize_words
from ..utils.translator import TranslationCache
from .anchor_detector import STRICT_ID_RE, find_identifier, clean_token
from .base import BaseComponent, ProcessingContext
from .field_extractor import FieldExtractor


def resolve_identifier(block: Block) -> str:
    """
    Identifier for a block's record.

    Placeholder ids (BLOCK_n / GRID_n) are replaced by an identifier found in
    the block text when there is one.
    """
    if not block.has_placeholder_id:
        return block.id

    found = find_identifier(block.raw_text)
    if found:
        return found
    for word in block.words:
        match = STRICT_ID_RE.search(clean_token(word.text))
        if match:
            return match.group(0)
    return block.id


class RecordExtractor(BaseComponent):
    """Builds candidate Records from blocks or text chunks."""

    name = "RecordExtractor"

    def __init__(self, context: ProcessingContext, translator: Optional[TranslationCache] = None):
        super().__init__(context)
        self.translator = translator
        self.fields = FieldExtractor(self.config.validation)

    def extract_from_text(self, text: str, identifier: str, tokens: Optional[List[str]] = None) -> Record:
        fields = self.fields.extract(text, tokens)
        return Record(
            identifier=identifier,
            name=PersonName(odia=fields.name),
            relation=Relation(type=fields.relation_type, name=PersonName(odia=fields.relation_name)),
            age=fields.age,
            gender=fields.gender,
            address=RecordAddress(house_no=fields.house_no),
        )

    def extract(self, block: Block, translate: bool = True) -> Optional[Record]:
        """
        Candidate record for one block, or None if the block has no text.

        The record is not validated here.
        """
        if not block.raw_text.strip() and not block.words:
            self.log_debug(f"Block {block.id} has no text")
            return None

        text = block.raw_text or " ".join(w.text for w in block.words)
        tokens = [w.text for w in block.words] or None

        record = self.extract_from_text(text, resolve_identifier(block), tokens)
        record.source_strategy = block.source_strategy
        record.confidence = block.confidence

        if translate:
            self.translate_records([record])
        return record

    def translate_records(self, records: Iterable[Record]) -> None:
        """
        Fill the English side of every name in one translation batch.

        Without a translator the Odia text is used as-is.
        """
        records = list(records)
        texts = [n.odia for r in records for n in (r.name, r.relation.name) if n.odia]
        if not texts:
            return

        translations: Dict[str, str] = {}
        if self.translator is not None:
            translations = self.translator.translate_batch(texts)

        for record in records:
            for person in (record.name, record.relation.name):
                if person.odia and not person.english:
                    person.english = capitalize_words(translations.get(person.odia) or person.odia)
