"""EPUB ingestion utilities."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import re
from typing import Iterable, List, Optional

import ebooklib
from ebooklib import epub

from . import Document
from .html import html_to_text

LOGGER = logging.getLogger(__name__)


@dataclass
class TocEntry:
    title: str
    href: str


class EpubLoader:
    """Extract the reading text of an EPUB in table-of-contents order."""

    def __init__(self, *, strip_empty: bool = True) -> None:
        self.strip_empty = strip_empty

    def load(self, path: str) -> Document:
        book = epub.read_epub(path)
        toc_entries = list(self._flatten_toc(book.get_toc()))
        if not toc_entries:
            LOGGER.warning("EPUB has no explicit TOC, falling back to spine order.")
            toc_entries = self._spine_entries(book)

        sections: List[str] = []
        seen: set[str] = set()
        for entry in toc_entries:
            href = entry.href.split("#", 1)[0]
            if href in seen:
                continue
            seen.add(href)
            item = book.get_item_with_href(href)
            if item is None:
                LOGGER.debug("Skipping TOC entry without document: %s", entry)
                continue
            text = html_to_text(item.get_content().decode("utf-8", errors="ignore"))
            if self.strip_empty and not text.strip():
                LOGGER.debug("Skipping empty section: %s", entry.title)
                continue
            sections.append(text)
        LOGGER.debug("Loaded %d sections from %s", len(sections), path)
        return Document(
            source=path,
            text="\n\n".join(sections),
            title=self._first_metadata(book, "title"),
        )

    def _flatten_toc(self, toc: Iterable) -> Iterable[TocEntry]:
        for node in toc:
            if isinstance(node, (list, tuple)) and node:
                first, *rest = node
                if hasattr(first, "title") and hasattr(first, "href"):
                    yield TocEntry(title=self._safe_title(first.title), href=first.href)
                if rest:
                    yield from self._flatten_toc(rest)
            elif hasattr(node, "title") and hasattr(node, "href"):
                yield TocEntry(title=self._safe_title(node.title), href=node.href)

    def _spine_entries(self, book: epub.EpubBook) -> List[TocEntry]:
        entries: List[TocEntry] = []
        for item in book.get_items_of_type(ebooklib.ITEM_DOCUMENT):
            entries.append(TocEntry(title=item.get_name(), href=item.get_name()))
        return entries

    def _first_metadata(self, book: epub.EpubBook, key: str) -> Optional[str]:
        values = book.get_metadata("DC", key)
        if values:
            value = values[0][0]
            if isinstance(value, bytes):
                return value.decode("utf-8", errors="ignore")
            return str(value)
        return None

    def _safe_title(self, value: str) -> str:
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="ignore")
        return re.sub(r"\s+", " ", value or "").strip()


__all__ = ["EpubLoader"]
