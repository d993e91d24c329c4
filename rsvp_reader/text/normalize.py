"""Text cleanup applied to extracted text before it is itemized."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Mapping, MutableMapping

DEFAULT_LIGATURES = {
    "ﬀ": "ff",
    "ﬁ": "fi",
    "ﬂ": "fl",
    "ﬃ": "ffi",
    "ﬄ": "ffl",
}

SMART_QUOTES = {
    "“": '"',
    "”": '"',
    "‘": "'",
    "’": "'",
    "—": "-",
    "–": "-",
}

_MARKDOWN_RULES = (
    (re.compile(r"^```.*?^```[ \t]*$", re.M | re.S), ""),
    (re.compile(r"!\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]*\)"), r"\1"),
    (re.compile(r"^[ \t]{0,3}#{1,6}[ \t]+", re.M), ""),
    (re.compile(r"^[ \t]{0,3}>[ \t]?", re.M), ""),
    (re.compile(r"^[ \t]*(?:[-*+]|\d+\.)[ \t]+", re.M), ""),
    (re.compile(r"^[ \t]*(?:-{3,}|\*{3,}|_{3,})[ \t]*$", re.M), ""),
    (re.compile(r"(\*\*|__)(.+?)\1"), r"\2"),
    (re.compile(r"(?<![\w*])[*_](?!\s)(.+?)(?<!\s)[*_](?![\w*])"), r"\1"),
    (re.compile(r"`([^`]*)`"), r"\1"),
)


@dataclass
class NormalizationOptions:
    """Configuration toggles for text normalization."""

    fix_hyphenation: bool = True
    normalize_quotes: bool = True
    replace_ligatures: bool = True
    strip_page_numbers: bool = False
    strip_markdown: bool = False
    collapse_whitespace: bool = True
    custom_replacements: MutableMapping[str, str] = field(default_factory=dict)


class Normalizer:
    """Normalize text according to configured options.

    Blank-line paragraph breaks always survive normalization because they drive
    the paragraph pause of the preceding word.
    """

    def __init__(self, options: NormalizationOptions | None = None) -> None:
        self.options = options or NormalizationOptions()

    def normalize(self, text: str) -> str:
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        if self.options.strip_markdown:
            text = self._strip_markdown(text)
        if self.options.fix_hyphenation:
            text = self._fix_hyphenation(text)
        if self.options.normalize_quotes:
            text = self._normalize_quotes(text)
        if self.options.replace_ligatures:
            text = self._replace_ligatures(text)
        if self.options.strip_page_numbers:
            text = self._strip_page_numbers(text)
        if self.options.custom_replacements:
            text = self._apply_mapping(text, self.options.custom_replacements)
        if self.options.collapse_whitespace:
            text = self._collapse_whitespace(text)
        return text.strip()

    def _strip_markdown(self, text: str) -> str:
        for pattern, replacement in _MARKDOWN_RULES:
            text = pattern.sub(replacement, text)
        return text

    def _fix_hyphenation(self, text: str) -> str:
        return re.sub(r"(\w+)-\n(\w+)", r"\1\2", text)

    def _normalize_quotes(self, text: str) -> str:
        for src, dst in SMART_QUOTES.items():
            text = text.replace(src, dst)
        return text

    def _replace_ligatures(self, text: str) -> str:
        for src, dst in DEFAULT_LIGATURES.items():
            text = text.replace(src, dst)
        return text

    def _strip_page_numbers(self, text: str) -> str:
        lines = [line for line in text.split("\n") if not re.fullmatch(r"\d+", line.strip())]
        return "\n".join(lines)

    def _apply_mapping(self, text: str, mapping: Mapping[str, str]) -> str:
        pattern = re.compile("|".join(re.escape(k) for k in mapping.keys()))

        def repl(match: re.Match[str]) -> str:
            return mapping[match.group(0)]

        return pattern.sub(repl, text)

    def _collapse_whitespace(self, text: str) -> str:
        text = re.sub(r"[\t ]+", " ", text)
        text = re.sub(r" ?\n ?", "\n", text)
        text = re.sub(r"\n{3,}", "\n\n", text)
        return text


__all__ = ["Normalizer", "NormalizationOptions"]
