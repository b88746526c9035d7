"""camelCase JSON shapes for results leaving the service (HTTP, SSE, persistence)."""

from __future__ import annotations

from typing import Any, Optional

from ..domain.models import (
    BatchResult,
    Comment,
    ExtractionResult,
    FormatSummary,
    LinkRecord,
    ProjectOutcome,
    SelectionResult,
    StructuredFields,
)


def serialize_comment(c: Comment) -> dict[str, Any]:
    return {
        "page": c.page,
        "author": c.author,
        "type": c.type,
        "text": c.text,
        "creationDate": c.creation_date,
        "modificationDate": c.modification_date,
    }


def serialize_formats(f: Optional[FormatSummary]) -> Optional[dict[str, Any]]:
    if f is None:
        return None
    return {"requested": list(f.requested), "existing": list(f.existing), "summary": f.summary}


def serialize_structured(s: StructuredFields) -> dict[str, Any]:
    return {
        "liveDate": s.live_date,
        "vf": s.vf,
        "headline": s.headline,
        "copy": s.copy,
        "description": s.description,
        "cta": s.cta,
        "backgroundColor": s.background_color,
        "copyColor": s.copy_color,
        "postcopy": s.postcopy,
        "urn": s.urn,
        "allocadia": s.allocadia,
        "po": s.po,
        "formats": serialize_formats(s.formats),
    }


def serialize_link(link: LinkRecord) -> dict[str, Any]:
    return {"id": link.id, "full": link.full, "short": link.short}


def serialize_extraction(r: ExtractionResult) -> dict[str, Any]:
    return {
        "fileName": r.file_name,
        "filePath": r.file_path,
        "sizeBytes": r.size_bytes,
        "pageCount": r.page_count,
        "text": r.text,
        "textLength": r.text_length,
        "hasContent": r.has_content,
        "hasComments": r.has_comments,
        "comments": [serialize_comment(c) for c in r.comments],
        "structuredData": serialize_structured(r.structured_data),
        "linksFull": list(r.links_full),
        "linksShort": list(r.links_short),
        "linksDetailed": [serialize_link(link) for link in r.links_detailed],
    }


def serialize_selection(s: Optional[SelectionResult]) -> Optional[dict[str, Any]]:
    if s is None:
        return None
    return {
        "fileName": s.candidate.file_name,
        "reason": s.reason,
        "mode": s.mode,
        "fallback": s.fallback,
        "ranking": [
            {"fileName": item.candidate.file_name, "score": item.score, "reason": item.reason}
            for item in s.ranking
        ],
    }


def serialize_outcome(o: ProjectOutcome) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "url": o.url,
        "projectNumber": o.project_number,
        "success": o.success,
        "projectName": o.project_name,
        "dsid": o.dsid,
    }
    if not o.success:
        payload["error"] = o.error
        return payload
    payload.update(
        {
            "filesDownloaded": o.files_downloaded,
            "totalSize": o.total_size_bytes,
            "downloadDir": o.download_dir,
            "selection": serialize_selection(o.selection),
            "pdfProcessing": {
                "processed": o.pdf_count,
                "results": [serialize_extraction(r) for r in o.results],
            },
        }
    )
    return payload


def serialize_batch(result: BatchResult) -> dict[str, Any]:
    s = result.summary
    return {
        "total": result.total,
        "successful": len(result.successful),
        "failed": len(result.failed),
        "summary": {
            "totalFiles": s.total_files,
            "totalExtractions": s.total_extractions,
            "pdfProcessing": {
                "totalPdfs": s.total_pdfs,
                "successfulExtractions": s.successful_extractions,
                "totalCharactersExtracted": s.total_characters_extracted,
            },
        },
        "outcomes": [serialize_outcome(o) for o in result.outcomes],
    }
