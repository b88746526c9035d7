import pymupdf

from .base import BaseAnnotationReader, RawAnnotation

# Popups only mirror their parent's contents.
_SKIPPED_SUBTYPES = frozenset({"Popup"})


def _rich_text(doc: "pymupdf.Document", xref: int) -> str | None:
    kind, value = doc.xref_get_key(xref, "RC")
    if kind in ("string", "text") and value:
        return value
    return None


class PyMuPdfAnnotationReader(BaseAnnotationReader):
    """Reads the annotation layer through PyMuPDF's object model."""

    def read(self, path: str) -> list[RawAnnotation]:
        out: list[RawAnnotation] = []
        with pymupdf.open(path) as doc:  # type: ignore[no-untyped-call]
            for page_index, page in enumerate(doc, start=1):
                for annot in page.annots():
                    subtype = annot.type[1] if annot.type else None
                    if subtype in _SKIPPED_SUBTYPES:
                        continue
                    info = annot.info or {}
                    out.append(
                        RawAnnotation(
                            page=page_index,
                            subtype=subtype,
                            title=info.get("title") or None,
                            subject=info.get("subject") or None,
                            contents=info.get("content") or None,
                            rich_text=_rich_text(doc, annot.xref),
                            creation_date=info.get("creationDate") or None,
                            modification_date=info.get("modDate") or None,
                        )
                    )
        return out
