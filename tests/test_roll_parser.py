import pytest

from odia_roll.exceptions import ValidationError
from odia_roll.models import Block, DetectionStrategy, PageResult, PersonName, Record, Rect
from odia_roll.processors.roll_parser import (
    RollParser,
    approximate_statistics,
    extract_document_info,
    extract_polling_station,
    extract_section,
    extract_tally,
)
from odia_roll.utils.translator import TranslationCache

from conftest import FakeBackend

PURNIMA = "ନାମ: ପୂର୍ଣ୍ଣିମା ବେହେରା  ସ୍ବାମୀଙ୍କ ନାମ: ସଂଜୟ ବେହେରା  ବୟସ: 37 ଲିଗଂ : ସ୍ତ୍ରୀ"
RAMESH = "ନାମ: ରମେଶ ସାହୁ  ପିତାଙ୍କ ନାମ: ହରି ସାହୁ  ବୟସ: 45  ଘର ନଂ: 12"
MINOR = "ନାମ: ଗୀତା ଦାସ  ପିତାଙ୍କ ନାମ: ରବି ଦାସ  ବୟସ: 16"

HEADER = "\n".join([
    "ଭୋଟର ତାଲିକା Electoral Roll 2024",
    "Assembly Constituency No: 90",
    "Part No: 3",
    "PS No: 12",
    "District: Cuttack",
    "PIN: 753001",
    "Revision date 01-04-2024",
    "Section No 2",
])


def _record(identifier="YVY1435841", name="ପୂର୍ଣ୍ଣିମା ବେହେରା", age=37):
    return Record(identifier=identifier, name=PersonName(odia=name), age=age)


def _block(identifier, text, index=0, strategy=DetectionStrategy.ANCHOR):
    return Block(
        id=identifier,
        index=index,
        boundary=Rect(0, 0, 100, 100),
        source_strategy=strategy,
        raw_text=text,
        confidence=90.0,
    )


@pytest.fixture
def parser(context):
    translator = TranslationCache(
        FakeBackend({
            "ପୂର୍ଣ୍ଣିମା ବେହେରା": "purnima behera",
            "ସଂଜୟ ବେହେରା": "Sanjay Behera",
            "ରମେଶ ସାହୁ": "Ramesh Sahu",
        }),
        min_interval_sec=0,
    )
    return RollParser(context, translator)


@pytest.mark.parametrize("age", [18, 37, 120])
def test_age_bounds_accepted(parser, age):
    parser.validate_record(_record(age=age))


@pytest.mark.parametrize("age", [17, 121, None])
def test_age_bounds_rejected(parser, age):
    with pytest.raises(ValidationError) as exc:
        parser.validate_record(_record(age=age))
    assert exc.value.field_name == "age"


@pytest.mark.parametrize("identifier", ["", "BLOCK_3", "AB123456", "YVY14358411"])
def test_identifier_must_be_strict(parser, identifier):
    with pytest.raises(ValidationError) as exc:
        parser.validate_record(_record(identifier=identifier))
    assert exc.value.field_name == "identifier"


@pytest.mark.parametrize("name", ["", "ରମ", "ରମେଶ ନାମ"])
def test_name_rules(parser, name):
    with pytest.raises(ValidationError) as exc:
        parser.validate_record(_record(name=name))
    assert exc.value.field_name == "name"


def test_parse_blocks_into_roll(parser, context):
    pages = [
        PageResult(
            page_number=1,
            text=HEADER,
            blocks=[
                _block("YVY1435841", PURNIMA, 0),
                _block("ABC1234567", MINOR, 1),
            ],
            strategy=DetectionStrategy.ANCHOR,
        ),
        PageResult(
            page_number=2,
            text="Publication 06-05-2024",
            blocks=[_block("GRID_1", "RST7654321\n" + RAMESH, 0, DetectionStrategy.GRID)],
            strategy=DetectionStrategy.GRID,
        ),
    ]

    roll = parser.parse(pages)

    assert [r.identifier for r in roll.records] == ["YVY1435841", "RST7654321"]
    assert [r.serial_no for r in roll.records] == [1, 2]

    first, second = roll.records
    assert first.name.english == "Purnima Behera"
    assert first.relation.type == "Husband"
    assert first.relation.name.english == "Sanjay Behera"
    assert first.gender == "Female"
    assert first.section == "Section 2"
    assert first.address.district == "Cuttack"
    assert first.address.pincode == "753001"
    assert first.address.polling_station == "12"
    assert first.address.part_no == "3"

    assert second.address.house_no == "12"
    assert second.source_strategy == DetectionStrategy.GRID

    assert context.stats.rejections == {"age": 1}
    assert roll.notes["rejected"] == {"age": 1}
    assert roll.notes["strategies"] == {"1": "anchor", "2": "grid"}

    assert roll.document_info.year == "2024"
    assert roll.document_info.revision_date == "01-04-2024"
    assert roll.document_info.publication_date == "06-05-2024"
    assert roll.document_info.document_pages == 2

    assert roll.polling_station.number == "12"
    assert roll.polling_station.name == "Polling Station 12"
    assert roll.polling_station.location.assembly_constituency == "AC-090"

    assert roll.statistics.approximate
    assert roll.statistics.total == 3
    assert (roll.statistics.male, roll.statistics.female) == (1, 1)


def test_text_fallback_for_pages_without_blocks(parser):
    text = "\n".join([
        "YVY1435841 " + PURNIMA,
        "ABC1234567 x",
        "RST7654321 " + RAMESH,
    ])

    roll = parser.parse([PageResult(page_number=1, text=text)])

    assert [r.identifier for r in roll.records] == ["YVY1435841", "RST7654321"]
    assert roll.records[1].name.odia == "ରମେଶ ସାହୁ"
    assert roll.records[1].section == "Section 1"


def test_roll_serializes(parser):
    roll = parser.parse([PageResult(page_number=1, text=HEADER, blocks=[_block("YVY1435841", PURNIMA)])])

    data = roll.to_dict()

    assert data["records"][0]["identifier"] == "YVY1435841"
    assert "source_strategy" not in data["records"][0]
    assert data["polling_station"]["location"]["pincode"] == "753001"


def test_notes_count_only_their_own_parse(parser, context):
    pages = [PageResult(page_number=1, text=HEADER, blocks=[_block("YVY1435841", PURNIMA), _block("ABC1234567", MINOR, 1)])]

    parser.parse(pages)
    roll = parser.parse(pages)

    assert roll.total_records == 1
    assert roll.notes["candidates"] == 2
    assert roll.notes["accepted"] == 1
    assert roll.notes["rejected"] == {"age": 1}
    # run-wide stats still accumulate across parses
    assert context.stats.records_accepted == 2
    assert context.stats.candidates_seen == 4
    assert context.stats.rejections == {"age": 2}


def test_empty_document(parser):
    roll = parser.parse([])
    assert roll.records == []
    assert roll.document_info.document_pages == 0


def test_approximate_statistics_split():
    stats = approximate_statistics([f"ABC{i:07d}" for i in range(100)] + ["ABC0000000"])

    assert stats.total == 100
    assert stats.male == 51
    assert stats.female == 49
    assert stats.approximate


def test_printed_tally_wins():
    stats = extract_tally("ପୁରୁଷ: ୧୨୦  Female: 110  Third Gender: 1  Total: 231")

    assert (stats.male, stats.female, stats.transgender, stats.total) == (120, 110, 1, 231)
    assert not stats.approximate
    assert extract_tally("Female 12") is None


def test_document_info_without_dates():
    info = extract_document_info([PageResult(text="no dates")])
    assert info.year is None
    assert info.revision_date is None
    assert info.publication_date is None


def test_polling_station_defaults():
    info = extract_polling_station("nothing useful")
    assert info.number is None
    assert info.part_number is None
    assert info.name == ""
    assert info.location.assembly_constituency is None


def test_section_parsing():
    assert extract_section("Section No: 3 - Main Road") == "Section 3"
    assert extract_section("ବିଭାଗ ନଂ ୪") == "Section 4"
    assert extract_section("no section") is None


def test_identifier_is_stored_upper_case_and_validated_strictly():
    assert Record(identifier=" yvy1435841 ").identifier == "YVY1435841"
    assert Record.validate_identifier("YVY1435841")
    assert not Record.validate_identifier("yvy1435841")
