"""SQLAlchemy models for persisted briefing extractions."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import JSON, BigInteger, Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class WorkfrontProject(Base):
    __tablename__ = "workfront_projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    url: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    dsid: Mapped[str | None] = mapped_column(String(20), nullable=True, index=True)
    accessed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class BriefingDownload(Base):
    """One successful project run (a batch of downloaded files)."""

    __tablename__ = "briefing_downloads"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("workfront_projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    project_name: Mapped[str] = mapped_column(Text, nullable=False)
    dsid: Mapped[str | None] = mapped_column(String(20), nullable=True)
    total_files: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    # COMPLETED | PARTIAL
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="COMPLETED")
    selection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class PdfFile(Base):
    __tablename__ = "pdf_files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    download_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("briefing_downloads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    original_file_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    page_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    has_content: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_comments: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    processed_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class PdfExtractedContent(Base):
    __tablename__ = "pdf_extracted_content"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    pdf_file_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pdf_files.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    full_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    comments: Mapped[list | None] = mapped_column(JSON, nullable=True)
    links: Mapped[list | None] = mapped_column(JSON, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)


class PdfStructuredData(Base):
    __tablename__ = "pdf_structured_data"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    pdf_file_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("pdf_files.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    live_date: Mapped[str | None] = mapped_column(Text, nullable=True)
    vf: Mapped[str | None] = mapped_column(Text, nullable=True)
    headline: Mapped[str | None] = mapped_column(Text, nullable=True)
    copy: Mapped[str | None] = mapped_column(Text, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    cta: Mapped[str | None] = mapped_column(Text, nullable=True)
    background_color: Mapped[str | None] = mapped_column(Text, nullable=True)
    copy_color: Mapped[str | None] = mapped_column(Text, nullable=True)
    postcopy: Mapped[str | None] = mapped_column(Text, nullable=True)
    urn: Mapped[str | None] = mapped_column(Text, nullable=True)
    allocadia: Mapped[str | None] = mapped_column(String(50), nullable=True)
    po: Mapped[str | None] = mapped_column(String(100), nullable=True)
    formats: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    extracted_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
