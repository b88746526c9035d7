"""Contracts for the two independent PDF passes (text layer, annotation layer)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PdfText:
    text: str
    page_count: int


@dataclass(frozen=True)
class RawAnnotation:
    """Annotation fields as stored in the PDF, before any normalization."""

    page: int
    subtype: Optional[str] = None
    title: Optional[str] = None
    subject: Optional[str] = None
    contents: Optional[str] = None
    rich_text: Optional[str] = None
    creation_date: Optional[str] = None
    modification_date: Optional[str] = None


class BasePdfTextExtractor(ABC):
    """Contract for plain text extraction adapters."""

    @abstractmethod
    def extract(self, path: str) -> PdfText:
        """Extract the full text of the PDF at `path`.

        Raises:
            PdfExtractionError: if the file cannot be opened or parsed.
        """


class BaseAnnotationReader(ABC):
    """Contract for annotation (comment) layer adapters."""

    @abstractmethod
    def read(self, path: str) -> list[RawAnnotation]:
        """Annotations in page order, then in on-page order."""
