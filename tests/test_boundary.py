from odia_roll.config import DetectionConfig
from odia_roll.models import AnchorCandidate
from odia_roll.processors.boundary import calculate_boundary, next_anchor_below

from conftest import make_word


def _anchor(text, x, y):
    word = make_word(text, x, y, x + 120, y + 20)
    return AnchorCandidate(text, word, 90.0)


def test_block_extends_over_content_rows():
    anchor = make_word("ABC1234567", 100, 100, 220, 120)
    words = [
        anchor,
        make_word("ନାମ", 240, 105, 300, 125),
        make_word("ରମେଶ", 110, 130, 180, 150),
    ]

    rect = calculate_boundary(anchor, None, words, 1000, 1000)

    assert rect.x == 90
    assert rect.y == 90
    assert rect.right == 310
    assert rect.bottom == 160


def test_block_never_reaches_next_anchor():
    anchor = make_word("ABC1234567", 100, 100, 220, 120)
    below = make_word("XYZ7654321", 100, 200, 220, 220)
    words = [anchor, make_word("ରମେଶ", 110, 185, 180, 210), below]

    rect = calculate_boundary(anchor, below, words, 1000, 1000)

    assert rect.bottom <= below.bbox.y0


def test_fixed_height_bounds_isolated_block():
    config = DetectionConfig()
    anchor = make_word("ABC1234567", 100, 100, 220, 120)
    words = [anchor, make_word("ସାହୁ", 100, 240, 160, 300)]

    rect = calculate_boundary(anchor, None, words, 1000, 1000, config)

    assert rect.bottom <= 100 + config.block_height


def test_clamped_to_page():
    anchor = make_word("ABC1234567", 2, 3, 140, 40)

    rect = calculate_boundary(anchor, None, [anchor], 120, 30)

    assert rect.x == 0 and rect.y == 0
    assert rect.right <= 120 and rect.bottom <= 30
    assert rect.width >= 1 and rect.height >= 1
    assert rect.within(120, 30)


def test_next_anchor_is_in_same_column():
    current = _anchor("ABC1234567", 100, 100)
    other_column = _anchor("DEF1234567", 600, 150)
    same_column_far = _anchor("GHI1234567", 100, 500)
    same_column_near = _anchor("JKL1234567", 110, 300)
    above = _anchor("MNO1234567", 100, 20)

    anchors = [current, other_column, same_column_far, same_column_near, above]

    assert next_anchor_below(current, anchors) is same_column_near
    assert next_anchor_below(same_column_far, anchors) is None
