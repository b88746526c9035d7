"""Persistence sinks for project outcomes."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import select

from ..domain.errors import DatabaseError
from ..domain.models import ExtractionResult, ProjectOutcome
from ..models.database import BriefingDownload, PdfExtractedContent, PdfFile, PdfStructuredData, WorkfrontProject
from ..models.responses import serialize_comment, serialize_formats
from ..observability.logger import get_logger

logger = get_logger(__name__)


class BriefingSink(Protocol):
    async def save_outcome(self, outcome: ProjectOutcome) -> None: ...


class NullSink:
    """Used when persistence is disabled."""

    async def save_outcome(self, outcome: ProjectOutcome) -> None:
        return None


def structured_row(result: ExtractionResult) -> dict[str, Any]:
    s = result.structured_data
    return {
        "live_date": s.live_date,
        "vf": s.vf,
        "headline": s.headline,
        "copy": s.copy,
        "description": s.description,
        "cta": s.cta,
        "background_color": s.background_color,
        "copy_color": s.copy_color,
        "postcopy": s.postcopy,
        "urn": s.urn,
        "allocadia": s.allocadia,
        "po": s.po,
        "formats": serialize_formats(s.formats),
    }


def content_row(result: ExtractionResult) -> dict[str, Any]:
    return {
        "full_text": result.text or None,
        "comments": [serialize_comment(c) for c in result.comments],
        "links": list(result.links_full),
    }


class SqlAlchemyBriefingSink:
    """Stores project, download batch, PDF files and their extracted content."""

    def __init__(self, session_factory):
        self._session_factory = session_factory

    async def save_outcome(self, outcome: ProjectOutcome) -> None:
        if not outcome.success:
            return
        try:
            async with self._session_factory() as session:
                project = await self._upsert_project(session, outcome)
                download = BriefingDownload(
                    project_id=project.id,
                    project_name=outcome.project_name or "",
                    dsid=outcome.dsid,
                    total_files=outcome.files_downloaded,
                    total_size=outcome.total_size_bytes,
                    status="COMPLETED" if len(outcome.results) == outcome.pdf_count else "PARTIAL",
                    selection_reason=outcome.selection.reason if outcome.selection else None,
                )
                session.add(download)
                await session.flush()

                for result in outcome.results:
                    pdf = PdfFile(
                        download_id=download.id,
                        original_file_name=result.file_name,
                        file_size=result.size_bytes,
                        page_count=result.page_count,
                        has_content=result.has_content,
                        has_comments=result.has_comments,
                    )
                    session.add(pdf)
                    await session.flush()
                    session.add(PdfExtractedContent(pdf_file_id=pdf.id, **content_row(result)))
                    session.add(PdfStructuredData(pdf_file_id=pdf.id, **structured_row(result)))

                await session.commit()
        except Exception as e:
            raise DatabaseError("failed to persist project outcome", detail=str(e)) from e
        logger.info(
            "outcome_persisted",
            project_number=outcome.project_number,
            dsid=outcome.dsid,
            pdf_files=len(outcome.results),
        )

    async def _upsert_project(self, session, outcome: ProjectOutcome) -> WorkfrontProject:
        result = await session.execute(select(WorkfrontProject).where(WorkfrontProject.url == outcome.url))
        project = result.scalar_one_or_none()
        now = datetime.utcnow()
        if project is None:
            project = WorkfrontProject(url=outcome.url, title=outcome.project_name, dsid=outcome.dsid)
            session.add(project)
        else:
            project.title = outcome.project_name or project.title
            project.dsid = outcome.dsid or project.dsid
            project.accessed_at = now
            project.updated_at = now
        await session.flush()
        return project
