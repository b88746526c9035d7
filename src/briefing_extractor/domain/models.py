"""Framework-agnostic domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

ANONYMOUS_AUTHOR = "Anônimo"
DEFAULT_COMMENT_TYPE = "Comentário"


class ProgressEventType(str, Enum):
    START = "start"
    PROJECT_START = "project-start"
    STAGE = "stage"
    PROJECT_SUCCESS = "project-success"
    PROJECT_FAIL = "project-fail"
    PROJECT_META = "project-meta"
    COMPLETED = "completed"


class ProjectStage(str, Enum):
    NAVIGATING_BRIEFING_FOLDER = "navigating-briefing-folder"
    DISCOVERING_FILES = "discovering-files"
    SELECTING_BRIEFING = "selecting-briefing"
    DOWNLOADING_AND_EXTRACTING = "downloading-and-extracting"
    PERSISTING = "persisting"
    CANCEL_REQUESTED = "cancel-requested"


class FallbackPolicy(str, Enum):
    FIRST_CANDIDATE = "first_candidate"
    ALL_CANDIDATES = "all_candidates"


@dataclass(frozen=True)
class CandidateFile:
    """One discoverable document in a project's document listing."""

    file_name: str
    original_label: str
    is_briefing_hint: bool = False
    # DOM reference used only to trigger the download; never serialized.
    element: Any = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.file_name or not self.file_name.strip():
            raise ValueError("file_name must not be empty")


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: CandidateFile
    score: int
    reason: str


@dataclass(frozen=True)
class SelectionResult:
    candidate: CandidateFile
    reason: str
    mode: str = "single"
    fallback: bool = False
    ranking: tuple[ScoredCandidate, ...] = ()


@dataclass(frozen=True)
class DownloadedFile:
    file_name: str
    file_path: str
    size_bytes: int


@dataclass(frozen=True)
class Comment:
    """One normalized PDF annotation."""

    page: int
    author: str
    type: str
    text: str
    creation_date: Optional[str] = None
    modification_date: Optional[str] = None


@dataclass(frozen=True)
class FormatSummary:
    requested: tuple[str, ...] = ()
    existing: tuple[str, ...] = ()
    summary: Optional[str] = None


@dataclass(frozen=True)
class StructuredFields:
    live_date: Optional[str] = None
    vf: Optional[str] = None
    headline: Optional[str] = None
    copy: Optional[str] = None
    description: Optional[str] = None
    cta: Optional[str] = None
    background_color: Optional[str] = None
    copy_color: Optional[str] = None
    postcopy: Optional[str] = None
    urn: Optional[str] = None
    allocadia: Optional[str] = None
    po: Optional[str] = None
    formats: Optional[FormatSummary] = None


@dataclass(frozen=True)
class LinkRecord:
    id: int
    full: str
    short: str


@dataclass(frozen=True)
class ExtractionResult:
    """Parsed content of one downloaded PDF."""

    file_name: str
    file_path: str
    size_bytes: int
    text: str
    page_count: int
    comments: tuple[Comment, ...] = ()
    structured_data: StructuredFields = field(default_factory=StructuredFields)
    links_full: tuple[str, ...] = ()
    links_short: tuple[str, ...] = ()
    links_detailed: tuple[LinkRecord, ...] = ()

    @property
    def text_length(self) -> int:
        return len(self.text)

    @property
    def has_content(self) -> bool:
        return bool(self.text)

    @property
    def has_comments(self) -> bool:
        return bool(self.comments)


@dataclass(frozen=True)
class ProjectOutcome:
    """Result unit for one submitted project URL."""

    url: str
    project_number: int
    success: bool
    project_name: Optional[str] = None
    dsid: Optional[str] = None
    files_downloaded: int = 0
    total_size_bytes: int = 0
    selection: Optional[SelectionResult] = None
    results: tuple[ExtractionResult, ...] = ()
    pdf_count: int = 0
    download_dir: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BatchSummary:
    total_files: int = 0
    total_extractions: int = 0
    total_pdfs: int = 0
    successful_extractions: int = 0
    total_characters_extracted: int = 0


@dataclass
class BatchResult:
    total: int
    successful: list[ProjectOutcome] = field(default_factory=list)
    failed: list[ProjectOutcome] = field(default_factory=list)
    summary: BatchSummary = field(default_factory=BatchSummary)

    @property
    def outcomes(self) -> list[ProjectOutcome]:
        return sorted(self.successful + self.failed, key=lambda o: o.project_number)


@dataclass(frozen=True)
class ProgressEvent:
    type: ProgressEventType
    project_number: int = 0
    data: dict[str, Any] = field(default_factory=dict)
    operation_id: str = ""
    timestamp: str = ""
