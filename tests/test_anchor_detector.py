import pytest

from odia_roll.config import DetectionConfig
from odia_roll.processors.anchor_detector import AnchorDetector, clean_token, find_identifier

from conftest import make_word


def test_strict_identifier_full_confidence():
    words = [make_word("ନାମ", 10, 10), make_word("YVY1435841", 100, 10, conf=92.0)]

    anchors = AnchorDetector().detect(words)

    assert [a.id for a in anchors] == ["YVY1435841"]
    assert anchors[0].confidence == 92.0
    assert anchors[0].word is words[1]


def test_noisy_token_is_cleaned():
    assert clean_token("yvy-1435841.") == "YVY1435841"
    assert clean_token("YVY୧୪୩୫୮୪୧") == "YVY1435841"

    anchors = AnchorDetector().detect([make_word("|YVY-1435841|", 10, 10)])
    assert [a.id for a in anchors] == ["YVY1435841"]


def test_relaxed_match_is_discounted():
    anchors = AnchorDetector().detect([make_word("AB123456", 10, 10, conf=80.0)])

    assert [a.id for a in anchors] == ["AB123456"]
    assert anchors[0].confidence == pytest.approx(64.0)


def test_split_identifier_pair():
    words = [make_word("YVY", 10, 10, conf=80.0), make_word("1435841", 50, 10, conf=90.0)]

    anchors = AnchorDetector().detect(words)

    assert [a.id for a in anchors] == ["YVY1435841"]
    assert anchors[0].confidence == pytest.approx(0.9 * 85.0)
    assert anchors[0].word is words[0]


def test_duplicates_keep_highest_confidence():
    words = [
        make_word("YVY1435841", 10, 10, conf=60.0),
        make_word("ABC1234567", 10, 200, conf=70.0),
        make_word("YVY1435841", 10, 400, conf=95.0),
    ]

    anchors = AnchorDetector().detect(words)

    assert [a.id for a in anchors] == ["YVY1435841", "ABC1234567"]
    assert anchors[0].confidence == 95.0
    assert anchors[0].word is words[2]


def test_every_strict_word_appears_exactly_once():
    ids = ["ABC1234567", "XYZ7654321", "ABC1234567", "QRS0000001", "XYZ7654321"]
    words = [make_word(text, 10, 100 * i, conf=50.0 + i) for i, text in enumerate(ids)]

    anchors = AnchorDetector().detect(words)
    found = [a.id for a in anchors]

    for identifier in set(ids):
        assert found.count(identifier) == 1
    confidences = [a.confidence for a in anchors]
    assert confidences == sorted(confidences, reverse=True)


def test_no_anchor_in_plain_words():
    words = [make_word("ନାମ", 10, 10), make_word("Age", 50, 10), make_word("45", 90, 10)]
    assert AnchorDetector().detect(words) == []


def test_factors_come_from_config():
    config = DetectionConfig(relaxed_factor=0.5)
    anchors = AnchorDetector(config).detect([make_word("AB123456", 10, 10, conf=80.0)])
    assert anchors[0].confidence == pytest.approx(40.0)


def test_find_identifier_in_free_text():
    assert find_identifier("1 YVY1435841 ନାମ") == "YVY1435841"
    assert find_identifier("no id here") is None
