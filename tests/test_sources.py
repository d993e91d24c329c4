from __future__ import annotations

import io

import pytest

from rsvp_reader.ingest.html import html_to_text
from rsvp_reader.ingest.sources import extract_text, is_markdown, is_url


def test_plain_text_file(tmp_path):
    path = tmp_path / "story.txt"
    path.write_text("Once upon a time.", encoding="utf-8")

    document = extract_text(str(path))

    assert document.text == "Once upon a time."
    assert document.title == "story"


def test_latin1_fallback(tmp_path):
    path = tmp_path / "old.txt"
    path.write_bytes("café".encode("latin-1"))
    assert extract_text(str(path)).text == "café"


def test_html_file_keeps_paragraphs(tmp_path):
    path = tmp_path / "page.html"
    path.write_text("<html><body><p>One &amp; two.</p><p>Three</p></body></html>", encoding="utf-8")
    assert extract_text(str(path)).text == "One & two.\n\nThree"


def test_stdin():
    assert extract_text("-", stdin=io.StringIO("piped words")).text == "piped words"


def test_missing_and_unsupported(tmp_path):
    with pytest.raises(FileNotFoundError):
        extract_text(str(tmp_path / "nope.txt"))
    odd = tmp_path / "data.xyz"
    odd.write_text("x", encoding="utf-8")
    with pytest.raises(ValueError, match="Unsupported format"):
        extract_text(str(odd))


def test_html_to_text_drops_scripts_and_comments():
    markup = "<script>var x = 1;</script><!-- note --><h1>Head</h1>Body<br>line"
    assert html_to_text(markup) == "Head\n\nBody\nline"


def test_source_kinds():
    assert is_url("https://example.com/a")
    assert not is_url("notes.md")
    assert is_markdown("notes.md")
    assert not is_markdown("notes.txt")
