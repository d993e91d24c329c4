"""HTML to plain text conversion shared by the EPUB and URL loaders."""

from __future__ import annotations

import html as html_lib
import re

_BLOCK_END_RE = re.compile(r"</(p|div|h[1-6]|li|blockquote|section|article|tr)\s*>", re.I)


def html_to_text(markup: str) -> str:
    """Strip tags from *markup*, keeping block boundaries as blank lines."""

    markup = re.sub(r"<(script|style)[^>]*>.*?</\1\s*>", "", markup, flags=re.S | re.I)
    markup = re.sub(r"<!--.*?-->", "", markup, flags=re.S)
    markup = re.sub(r"<br[^>]*>", "\n", markup, flags=re.I)
    markup = _BLOCK_END_RE.sub("\n\n", markup)
    text = re.sub(r"<[^>]+>", " ", markup)
    text = html_lib.unescape(text).replace("\xa0", " ")
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r" ?\n ?", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


__all__ = ["html_to_text"]
