import pdfplumber

from ..domain.errors import PdfExtractionError
from .base import BasePdfTextExtractor, PdfText


class PdfPlumberTextExtractor(BasePdfTextExtractor):
    """Extracts body text from PDF using pdfplumber."""

    def extract(self, path: str) -> PdfText:
        try:
            with pdfplumber.open(path) as pdf:
                pages = [page.extract_text() or "" for page in pdf.pages]
            return PdfText(text="\n".join(pages).strip(), page_count=len(pages))
        except Exception as exc:
            raise PdfExtractionError("Falha ao ler o PDF", detail=f"pdfplumber: {exc}") from exc
