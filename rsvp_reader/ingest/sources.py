"""Dispatch a source argument (path, URL or ``-``) to the matching loader."""

from __future__ import annotations

import logging
from pathlib import Path
import sys
from typing import Optional, TextIO

import requests

from . import Document
from .html import html_to_text

LOGGER = logging.getLogger(__name__)

SUPPORTED_FORMATS = ("txt", "md", "markdown", "html", "htm", "pdf", "epub")
MARKDOWN_FORMATS = {"md", "markdown"}


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def extract_text(source: str, *, stdin: Optional[TextIO] = None, timeout: float = 30.0) -> Document:
    """Return the plain text behind *source*.

    ``-`` reads standard input, ``http(s)://`` sources are downloaded, and
    anything else is treated as a local file whose suffix picks the loader.
    """

    if source == "-":
        stream = stdin or sys.stdin
        return Document(source="-", text=stream.read())
    if is_url(source):
        return _fetch_url(source, timeout=timeout)

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {source}")
    ext = path.suffix.lower().lstrip(".")
    if ext not in SUPPORTED_FORMATS:
        raise ValueError(
            f"Unsupported format: .{ext} (supported formats: {', '.join(SUPPORTED_FORMATS)})"
        )
    LOGGER.debug("Loading %s as %s", path, ext)

    if ext == "pdf":
        from .pdf_loader import PdfLoader

        return PdfLoader().load(str(path))
    if ext == "epub":
        from .epub_loader import EpubLoader

        return EpubLoader().load(str(path))

    text = _read_text(path)
    if ext in {"html", "htm"}:
        text = html_to_text(text)
    return Document(source=str(path), text=text, title=path.stem)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        LOGGER.warning("Failed to decode %s as UTF-8; attempting latin-1", path)
        return path.read_text(encoding="latin-1")


def _fetch_url(url: str, *, timeout: float) -> Document:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise RuntimeError(f"Failed to fetch URL {url}: {exc}") from exc
    content_type = response.headers.get("content-type", "")
    text = response.text
    if "text/html" in content_type:
        text = html_to_text(text)
    return Document(source=url, text=text)


def is_markdown(source: str) -> bool:
    return Path(source).suffix.lower().lstrip(".") in MARKDOWN_FORMATS


__all__ = ["SUPPORTED_FORMATS", "extract_text", "is_markdown", "is_url"]
