from __future__ import annotations

import re

import pytest

from rsvp_reader.pacing.itemize import EndsWith, Item, itemize

SAMPLES = [
    "",
    "   ",
    "one",
    "Hello, world.\n\nNew paragraph here.",
    "  leading and trailing spaces  ",
    "tabs\tand\nnewlines\r\nmixed  up",
    "Wait... what?! Yes; no: maybe,\n\n\n\nnext",
    "ünïcödé wörds — with dashes",
]


def test_paragraph_scenario_items_and_boundaries():
    items = itemize("Hello, world.\n\nNew paragraph here.")

    assert [item.text for item in items] == ["Hello,", "world.", "New", "paragraph", "here."]
    assert [item.ends_with for item in items] == [
        EndsWith.COMMA,
        EndsWith.PARA,
        EndsWith.NONE,
        EndsWith.NONE,
        EndsWith.PERIOD,
    ]


def test_single_newline_is_not_a_paragraph_break():
    items = itemize("first line\nsecond")
    assert items[1].ends_with is EndsWith.NONE


def test_blank_line_with_spaces_is_a_paragraph_break():
    items = itemize("end  \n   \n start")
    assert items[0].ends_with is EndsWith.PARA


@pytest.mark.parametrize("word, expected", [
    ("stop.", EndsWith.PERIOD),
    ("really?", EndsWith.PERIOD),
    ("wow!", EndsWith.PERIOD),
    ("pause,", EndsWith.COMMA),
    ("list;", EndsWith.COMMA),
    ("label:", EndsWith.COMMA),
    ("plain", EndsWith.NONE),
    ('quoted."', EndsWith.NONE),
])
def test_trailing_punctuation(word, expected):
    assert itemize(f"{word} tail")[0].ends_with is expected


@pytest.mark.parametrize("text", SAMPLES)
def test_items_tile_non_whitespace_content(text):
    items = itemize(text)

    for item in items:
        assert text[item.start_char : item.end_char] == item.text
        assert not re.search(r"\s", item.text)
    for left, right in zip(items, items[1:]):
        assert left.end_char <= right.start_char
        assert text[left.end_char : right.start_char].strip() == ""
    assert "".join(item.text for item in items) == "".join(text.split())


def test_item_dict_round_trip_keeps_boundary():
    item = Item(text="world.", start_char=7, end_char=13, ends_with=EndsWith.PARA)
    assert Item.from_dict(item.to_dict()) == item
