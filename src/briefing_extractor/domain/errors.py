"""Domain-specific errors.

These errors are mapped to HTTP responses / progress events in the API layer.
Messages are meant for end users: short, no selectors, no stack traces.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


class BriefingDomainError(Exception):
    """Base class for all domain errors."""


@dataclass(frozen=True)
class DomainErrorInfo:
    code: str
    message: str
    detail: Optional[str] = None


class InvalidInputError(BriefingDomainError):
    """Raised when request/config validation fails."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="INVALID_INPUT", message=message, detail=detail)


class SessionStateError(BriefingDomainError):
    """Stored Workfront session is missing or unusable."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="SESSION_INVALID", message=message, detail=detail)


class NavigationTimeoutError(BriefingDomainError):
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="NAVIGATION_TIMEOUT", message=message, detail=detail)


class NavigationError(BriefingDomainError):
    """The project page could not be loaded (network, DNS, browser closed)."""

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="NAVIGATION_FAILED", message=message, detail=detail)


class FolderNotFoundError(BriefingDomainError):
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="FOLDER_NOT_FOUND", message=message, detail=detail)


class ClickFailedError(BriefingDomainError):
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="CLICK_FAILED", message=message, detail=detail)


class DownloadError(BriefingDomainError):
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="DOWNLOAD_ERROR", message=message, detail=detail)


class PdfExtractionError(BriefingDomainError):
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="PDF_EXTRACTION_ERROR", message=message, detail=detail)


class OperationCancelledError(BriefingDomainError):
    """Cooperative cancellation requested for a single project."""

    def __init__(self, message: str = "Operação cancelada pelo usuário", detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="CANCELLED", message=message, detail=detail)


class DatabaseError(BriefingDomainError):
    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.info = DomainErrorInfo(code="DATABASE_ERROR", message=message, detail=detail)
