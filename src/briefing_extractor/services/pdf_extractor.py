"""Per-file PDF content extraction: text, comments, links and structured fields."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

from ..domain.errors import PdfExtractionError
from ..domain.models import Comment, DownloadedFile, ExtractionResult
from ..extraction.fields import StructuredFieldExtractor
from ..observability.logger import get_logger
from ..pdf.base import BaseAnnotationReader, BasePdfTextExtractor, RawAnnotation
from ..pdf.comments import DEFAULT_SIMILARITY_THRESHOLD, build_comments
from ..pdf.links import (
    DEFAULT_DAM_HOST,
    detailed_links,
    find_links,
    rich_text_links,
    shorten_dam_link,
    unique_in_order,
)
from ..pdf.pdfplumber_adapter import PdfPlumberTextExtractor
from ..pdf.pymupdf_adapter import PyMuPdfAnnotationReader

logger = get_logger(__name__)


class PdfContentExtractor:
    """Runs the text pass and the annotation pass over one downloaded PDF.

    The text pass is mandatory: a file that cannot be parsed raises
    `PdfExtractionError`. The annotation pass is best effort and degrades to
    no comments.
    """

    def __init__(
        self,
        text_extractor: Optional[BasePdfTextExtractor] = None,
        annotation_reader: Optional[BaseAnnotationReader] = None,
        field_extractor: Optional[StructuredFieldExtractor] = None,
        *,
        dam_host: str = DEFAULT_DAM_HOST,
        similarity_threshold: float = DEFAULT_SIMILARITY_THRESHOLD,
    ):
        self._text_extractor = text_extractor or PdfPlumberTextExtractor()
        self._annotation_reader = annotation_reader or PyMuPdfAnnotationReader()
        self._field_extractor = field_extractor or StructuredFieldExtractor()
        self._dam_host = dam_host
        self._similarity_threshold = similarity_threshold

    async def extract_async(self, downloaded: DownloadedFile) -> ExtractionResult:
        # PDF libraries are blocking; keep the event loop free for other projects.
        return await asyncio.to_thread(self.extract, downloaded)

    def extract(self, downloaded: DownloadedFile) -> ExtractionResult:
        path = downloaded.file_path
        if not os.path.isfile(path):
            raise PdfExtractionError("Arquivo PDF não encontrado", detail=path)

        pdf_text = self._text_extractor.extract(path)
        raw_annotations = self._read_annotations(path)
        comments = build_comments(raw_annotations, self._similarity_threshold)

        links_full = self._collect_links(pdf_text.text, comments, raw_annotations)
        links_short = [shorten_dam_link(link, self._dam_host) for link in links_full]
        structured = self._field_extractor.extract(pdf_text.text, comments)

        logger.info(
            "pdf_extracted",
            file_name=downloaded.file_name,
            pages=pdf_text.page_count,
            text_length=len(pdf_text.text),
            comments=len(comments),
            links=len(links_full),
        )
        return ExtractionResult(
            file_name=downloaded.file_name,
            file_path=path,
            size_bytes=downloaded.size_bytes,
            text=pdf_text.text,
            page_count=pdf_text.page_count,
            comments=tuple(comments),
            structured_data=structured,
            links_full=tuple(links_full),
            links_short=tuple(links_short),
            links_detailed=tuple(detailed_links(links_full, links_short)),
        )

    def _read_annotations(self, path: str) -> list[RawAnnotation]:
        try:
            return self._annotation_reader.read(path)
        except Exception as e:
            logger.warning("annotations_unreadable", file_path=path, error=str(e))
            return []

    @staticmethod
    def _collect_links(text: str, comments: list[Comment], raw: list[RawAnnotation]) -> list[str]:
        found: list[str] = list(find_links(text))
        for c in comments:
            found.extend(find_links(c.text))
        for annotation in raw:
            found.extend(find_links(annotation.contents))
            found.extend(find_links(annotation.subject))
            found.extend(rich_text_links(annotation.rich_text))
        return unique_in_order(found)
