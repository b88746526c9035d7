from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from briefing_extractor.domain.errors import PdfExtractionError
from briefing_extractor.domain.models import DownloadedFile
from briefing_extractor.pdf.base import BaseAnnotationReader, RawAnnotation
from briefing_extractor.services.pdf_extractor import PdfContentExtractor


class _BrokenAnnotations(BaseAnnotationReader):
    def read(self, path: str) -> list[RawAnnotation]:
        raise RuntimeError("xref table damaged")


def _downloaded(path: Path) -> DownloadedFile:
    return DownloadedFile(file_name=path.name, file_path=str(path), size_bytes=path.stat().st_size)


def test_extracts_fields_comments_and_links(briefing_pdf: Path) -> None:
    result = PdfContentExtractor().extract(_downloaded(briefing_pdf))

    assert result.page_count == 2
    assert "Power your ideas" in result.text
    fields = result.structured_data
    assert fields.headline == "Power your ideas"
    assert fields.background_color == "Cosmos (Slate 700)"
    assert fields.copy_color == "White"
    assert fields.cta == "Shop now"
    assert fields.po == "ABC-12345"
    assert fields.formats is not None and "4x5" in fields.formats.existing

    page_one = [c for c in result.comments if c.page == 1]
    assert len(page_one) == 1
    assert page_one[0].author == "Maria Silva"
    assert page_one[0].type == "Sticky Note"
    assert [c.page for c in result.comments] == sorted(c.page for c in result.comments)

    assert "https://dam.dell.com/content/dam/x/hero_4x5.psd" in result.links_short
    assert len(result.links_full) == len(result.links_short) == len(result.links_detailed)
    assert result.links_detailed[0].id == 1


def test_custom_dam_host(briefing_pdf: Path) -> None:
    result = PdfContentExtractor(dam_host="https://assets.example.org").extract(_downloaded(briefing_pdf))
    assert "https://assets.example.org/content/dam/x/hero_4x5.psd" in result.links_short


def test_unreadable_annotations_degrade_to_no_comments(briefing_pdf: Path) -> None:
    result = PdfContentExtractor(annotation_reader=_BrokenAnnotations()).extract(_downloaded(briefing_pdf))
    assert result.comments == ()
    assert result.structured_data.headline == "Power your ideas"
    assert result.structured_data.po is None


def test_missing_file_raises(tmp_path: Path) -> None:
    missing = DownloadedFile(file_name="gone.pdf", file_path=str(tmp_path / "gone.pdf"), size_bytes=0)
    with pytest.raises(PdfExtractionError) as exc_info:
        PdfContentExtractor().extract(missing)
    assert exc_info.value.info.code == "PDF_EXTRACTION_ERROR"


def test_corrupt_file_raises(tmp_path: Path) -> None:
    path = tmp_path / "broken.pdf"
    path.write_bytes(b"this is not a pdf")
    with pytest.raises(PdfExtractionError):
        PdfContentExtractor().extract(_downloaded(path))


def test_async_variant_matches_sync(briefing_pdf: Path) -> None:
    extractor = PdfContentExtractor()
    downloaded = _downloaded(briefing_pdf)
    assert asyncio.run(extractor.extract_async(downloaded)) == extractor.extract(downloaded)
