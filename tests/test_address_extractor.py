from odia_roll.processors.address_extractor import (
    AddressExtractor,
    clean_value,
    extract_district,
    extract_pincode,
)
from odia_roll.utils.translator import TranslationCache

from conftest import FakeBackend


def test_english_colon_labels(context):
    text = "\n".join([
        "District: Cuttack",
        "Block: Salepur",
        "Village: Kendupatna",
        "Police Station: Salepur PS",
        "PIN: 754202",
    ])

    location = AddressExtractor(context).extract(text)

    assert location.district == "Cuttack"
    assert location.block == "Salepur"
    assert location.village == "Kendupatna"
    assert location.police_station == "Salepur PS"
    assert location.pincode == "754202"
    assert location.state == "Odisha"


def test_odia_values_are_translated(context):
    translator = TranslationCache(FakeBackend({"କଟକ": "Cuttack"}), min_interval_sec=0)
    text = "ଜିଲ୍ଲା : କଟକ\nପିନ: ୭୫୩୦୦୧"

    location = AddressExtractor(context, translator).extract(text)

    assert location.district == "Cuttack"


def test_odia_without_translator(context):
    location = AddressExtractor(context).extract("ଜିଲ୍ଲା : କଟକ")
    assert location.district == "କଟକ"


def test_gazetteer_and_pincode_fallbacks(context):
    location = AddressExtractor(context).extract("Office 110001 near Puri town 752001")

    assert location.district == "Puri"
    assert location.pincode == "752001"


def test_empty_text(context):
    location = AddressExtractor(context).extract("")
    assert location.district == ""
    assert location.pincode == ""


def test_pincode_prefers_odisha_prefix():
    assert extract_pincode("Ref 110001 PIN 753001") == "753001"
    assert extract_pincode("Ref 110001") == "110001"
    assert extract_pincode("12345 or 1234567") == ""


def test_district_label_fallback():
    assert extract_district("District: Rourkela") == "Rourkela"
    assert extract_district("nothing") == ""


def test_clean_value():
    assert clean_value("  Salepur,   Block! ") == "Salepur Block"
