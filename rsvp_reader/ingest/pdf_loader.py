"""PDF ingestion utilities."""

from __future__ import annotations

import collections
import logging
from typing import Dict, List

from pypdf import PdfReader

from . import Document

LOGGER = logging.getLogger(__name__)


class PdfLoader:
    """Extract page text from PDFs, dropping running headers and footers."""

    def __init__(self, *, common_threshold: float = 0.4, strip_running_lines: bool = True) -> None:
        self.common_threshold = common_threshold
        self.strip_running_lines = strip_running_lines

    def load(self, path: str) -> Document:
        reader = PdfReader(path)
        page_texts = [page.extract_text() or "" for page in reader.pages]
        if self.strip_running_lines and len(page_texts) > 2:
            headers, footers = self._detect_repeated_lines(page_texts)
            page_texts = [self._strip_common_lines(text, headers, footers) for text in page_texts]
        pages = [text.strip() for text in page_texts if text.strip()]
        if not pages:
            LOGGER.warning("No extractable text in %s (scanned PDF?)", path)
        title = None
        if reader.metadata and reader.metadata.get("/Title"):
            title = str(reader.metadata.get("/Title"))
        return Document(
            source=path,
            text="\n\n".join(pages),
            title=title,
            page_count=len(page_texts),
        )

    def _detect_repeated_lines(self, pages: List[str]) -> tuple[Dict[str, int], Dict[str, int]]:
        header_counts: Dict[str, int] = collections.Counter()
        footer_counts: Dict[str, int] = collections.Counter()
        for text in pages:
            lines = [line.strip() for line in (text or "").splitlines() if line.strip()]
            if not lines:
                continue
            header_counts[lines[0]] += 1
            footer_counts[lines[-1]] += 1
        threshold = max(2, int(len(pages) * self.common_threshold))
        headers = {line: count for line, count in header_counts.items() if count >= threshold}
        footers = {line: count for line, count in footer_counts.items() if count >= threshold}
        return headers, footers

    def _strip_common_lines(
        self, text: str, headers: Dict[str, int], footers: Dict[str, int]
    ) -> str:
        lines = []
        for line in text.splitlines():
            stripped = line.strip()
            if stripped in headers or stripped in footers:
                continue
            lines.append(line)
        return "\n".join(lines)


__all__ = ["PdfLoader"]
