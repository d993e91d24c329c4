"""Content ingestion helpers for the RSVP reader."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Document:
    """Plain text extracted from a file, URL or stdin."""

    source: str
    text: str
    title: Optional[str] = None
    page_count: Optional[int] = None


__all__ = ["Document"]
