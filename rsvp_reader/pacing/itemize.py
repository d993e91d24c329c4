"""Segment raw text into display items."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from typing import Any, Dict, List

__all__ = ["EndsWith", "Item", "itemize"]

_WORD_RE = re.compile(r"\S+")
_PARAGRAPH_BREAK_RE = re.compile(r"\s*\n\s*\n")

SENTENCE_ENDERS = ".!?"
CLAUSE_ENDERS = ",;:"


class EndsWith(str, Enum):
    """Trailing boundary of an item, used for punctuation pauses."""

    NONE = "none"
    COMMA = "comma"
    PERIOD = "period"
    PARA = "para"


@dataclass(frozen=True)
class Item:
    """A single display unit: one whitespace-delimited word."""

    text: str
    start_char: int
    end_char: int
    ends_with: EndsWith = EndsWith.NONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "start_char": self.start_char,
            "end_char": self.end_char,
            "ends_with": self.ends_with.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Item":
        return cls(
            text=str(data["text"]),
            start_char=int(data["start_char"]),
            end_char=int(data["end_char"]),
            ends_with=EndsWith(data.get("ends_with", EndsWith.NONE.value)),
        )


def itemize(text: str) -> List[Item]:
    """Split *text* into items with character spans and boundary metadata.

    A blank-line paragraph break after a word takes precedence over the word's
    own trailing punctuation.
    """

    items: List[Item] = []
    for match in _WORD_RE.finditer(text):
        word = match.group(0)
        start, end = match.span()
        if _PARAGRAPH_BREAK_RE.match(text, end):
            ends_with = EndsWith.PARA
        elif word[-1] in SENTENCE_ENDERS:
            ends_with = EndsWith.PERIOD
        elif word[-1] in CLAUSE_ENDERS:
            ends_with = EndsWith.COMMA
        else:
            ends_with = EndsWith.NONE
        items.append(Item(text=word, start_char=start, end_char=end, ends_with=ends_with))
    return items
