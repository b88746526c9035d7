"""Briefing extraction orchestration (business logic).

One project runs its stages strictly in sequence:
open -> title/DSID -> briefing folder -> discovery -> selection ->
download -> PDF extraction -> persistence.
Projects of a batch run in a rolling window of at most `concurrency` tasks.
"""

from __future__ import annotations

import asyncio
import functools
import shutil
import tempfile
from pathlib import Path
from typing import Iterable, Optional, Sequence

from ..config.settings import BriefingSettings, get_settings
from ..domain.errors import BriefingDomainError, OperationCancelledError, PdfExtractionError
from ..domain.models import (
    BatchResult,
    DownloadedFile,
    ExtractionResult,
    FallbackPolicy,
    ProgressEvent,
    ProgressEventType,
    ProjectOutcome,
    ProjectStage,
)
from ..models.requests import ExtractionOptions, clamp_concurrency
from ..observability.logger import get_logger, log_context
from ..scraping.base import SessionDriver, SessionDriverFactory
from ..scraping.playwright_session import launch_playwright_driver
from ..scraping.session_state import validate_session_state
from ..storage.repositories import BriefingSink, NullSink
from ..utils.time import current_time_ms, elapsed_ms
from .discovery import FileDiscoveryEngine
from .downloader import BatchDownloadOrchestrator
from .pdf_extractor import PdfContentExtractor
from .progress import CancelCheck, ProgressCallback
from .project_info import extract_dsid, resolve_project_name
from .selector import PrimaryBriefingSelector

logger = get_logger(__name__)

NOT_STARTED_MESSAGE = "Projeto não processado: execução interrompida após falha anterior"
UNEXPECTED_ERROR_MESSAGE = "Erro inesperado ao processar o projeto"


class BriefingBatchService:
    """Service layer for briefing extraction batches.

    Responsibilities:
    - Validate the stored session before any project starts
    - Keep at most `concurrency` projects in flight
    - Turn every submitted URL into exactly one `ProjectOutcome`
    - Emit progress events and honour per-project cancellation
    """

    def __init__(
        self,
        *,
        driver_factory: Optional[SessionDriverFactory] = None,
        discovery: Optional[FileDiscoveryEngine] = None,
        selector: Optional[PrimaryBriefingSelector] = None,
        downloader: Optional[BatchDownloadOrchestrator] = None,
        extractor: Optional[PdfContentExtractor] = None,
        sink: Optional[BriefingSink] = None,
        settings: Optional[BriefingSettings] = None,
    ):
        self._settings = settings or get_settings()
        self._driver_factory = driver_factory or functools.partial(launch_playwright_driver, settings=self._settings)
        self._discovery = discovery or FileDiscoveryEngine()
        self._selector = selector or PrimaryBriefingSelector()
        self._downloader = downloader or BatchDownloadOrchestrator(
            bulk_wait_ms=self._settings.bulk_download_wait_ms,
            single_timeout_ms=self._settings.single_download_timeout_ms,
        )
        self._extractor = extractor or PdfContentExtractor(
            dam_host=self._settings.dam_canonical_host,
            similarity_threshold=self._settings.comment_similarity_threshold,
        )
        self._sink = sink or NullSink()
        self._fallback_policy = FallbackPolicy(self._settings.fallback_policy)

    async def process_projects(
        self,
        urls: Sequence[str],
        options: Optional[ExtractionOptions] = None,
        *,
        progress: Optional[ProgressCallback] = None,
        is_canceled: Optional[CancelCheck] = None,
    ) -> BatchResult:
        options = options or ExtractionOptions()
        emit = progress or _discard
        concurrency = clamp_concurrency(
            options.concurrency,
            default=self._settings.concurrency_default,
            upper=self._settings.concurrency_max,
        )
        start_ms = current_time_ms()

        # Raises SessionStateError: without a session no project can run.
        validate_session_state(self._settings.session_state_path)

        result = BatchResult(total=len(urls))
        logger.info("batch_started", total=len(urls), concurrency=concurrency)
        emit(ProgressEvent(type=ProgressEventType.START, data={"total": len(urls), "concurrency": concurrency}))

        queue = iter(enumerate(urls, start=1))
        started: set[int] = set()
        running: set[asyncio.Task[ProjectOutcome]] = set()
        stop_starting = False

        def start_next() -> bool:
            item = next(queue, None)
            if item is None:
                return False
            number, url = item
            started.add(number)
            running.add(
                asyncio.create_task(
                    self._run_project(url, number, options, emit, is_canceled),
                    name=f"briefing-project-{number}",
                )
            )
            return True

        try:
            while len(running) < concurrency and start_next():
                pass
            while running:
                done, _ = await asyncio.wait(running, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    running.discard(task)
                    outcome = task.result()
                    self._record(result, outcome)
                    if not outcome.success and not options.continue_on_error:
                        stop_starting = True
                while not stop_starting and len(running) < concurrency and start_next():
                    pass
        finally:
            for task in running:
                task.cancel()

        for number, url in enumerate(urls, start=1):
            if number not in started:
                result.failed.append(
                    ProjectOutcome(url=url, project_number=number, success=False, error=NOT_STARTED_MESSAGE)
                )

        logger.info(
            "batch_completed",
            successful=len(result.successful),
            failed=len(result.failed),
            duration_ms=elapsed_ms(start_ms),
        )
        emit(
            ProgressEvent(
                type=ProgressEventType.COMPLETED,
                data={"successful": len(result.successful), "failed": len(result.failed)},
            )
        )
        return result

    @staticmethod
    def _record(result: BatchResult, outcome: ProjectOutcome) -> None:
        if not outcome.success:
            result.failed.append(outcome)
            return
        result.successful.append(outcome)
        s = result.summary
        s.total_files += outcome.files_downloaded
        s.total_extractions += len(outcome.results)
        s.total_pdfs += outcome.pdf_count
        s.successful_extractions += sum(1 for r in outcome.results if r.has_content)
        s.total_characters_extracted += sum(r.text_length for r in outcome.results)

    async def _run_project(
        self,
        url: str,
        project_number: int,
        options: ExtractionOptions,
        emit: ProgressCallback,
        is_canceled: Optional[CancelCheck],
    ) -> ProjectOutcome:
        try:
            with log_context(project_number=project_number):
                outcome = await self.process_project(url, project_number, options, emit, is_canceled)
        except BriefingDomainError as e:
            logger.error("project_failed", project_number=project_number, url=url, error=str(e))
            outcome = ProjectOutcome(url=url, project_number=project_number, success=False, error=str(e))
        except Exception as e:
            # Raw library text (selectors, call logs) stays in the log only.
            logger.exception("project_failed_unexpected", project_number=project_number, url=url, error=str(e))
            outcome = ProjectOutcome(
                url=url,
                project_number=project_number,
                success=False,
                error=UNEXPECTED_ERROR_MESSAGE,
            )

        if outcome.success:
            emit(
                ProgressEvent(
                    type=ProgressEventType.PROJECT_SUCCESS,
                    project_number=project_number,
                    data={
                        "url": url,
                        "projectName": outcome.project_name,
                        "filesDownloaded": outcome.files_downloaded,
                    },
                )
            )
        else:
            emit(
                ProgressEvent(
                    type=ProgressEventType.PROJECT_FAIL,
                    project_number=project_number,
                    data={"url": url, "error": outcome.error},
                )
            )
        return outcome

    async def process_project(
        self,
        url: str,
        project_number: int,
        options: ExtractionOptions,
        emit: Optional[ProgressCallback] = None,
        is_canceled: Optional[CancelCheck] = None,
    ) -> ProjectOutcome:
        """Run every stage for one project. Domain errors propagate to the caller."""
        emit = emit or _discard
        state_path = validate_session_state(self._settings.session_state_path)
        driver = await self._driver_factory(str(state_path), options.headless)
        try:
            logger.info("project_started", project_number=project_number, url=url)
            emit(ProgressEvent(type=ProgressEventType.PROJECT_START, project_number=project_number, data={"url": url}))
            url_dsid = extract_dsid(url)
            if url_dsid:
                self._emit_meta(emit, project_number, url_dsid, provisional=True)

            await driver.open(url)
            project_name = resolve_project_name(await driver.project_title(), project_number)
            dsid = extract_dsid(project_name)
            if dsid:
                self._emit_meta(emit, project_number, dsid, provisional=False)
            logger.info("project_identified", project_number=project_number, project_name=project_name, dsid=dsid)

            self._check_cancel(project_number, is_canceled)
            self._emit_stage(emit, project_number, ProjectStage.NAVIGATING_BRIEFING_FOLDER)
            await driver.navigate_to_folder(self._settings.folder_label)
            self._check_cancel(project_number, is_canceled)

            self._emit_stage(emit, project_number, ProjectStage.DISCOVERING_FILES)
            await driver.frame.wait(self._settings.discovery_settle_ms)
            candidates = await self._discovery.discover(driver.frame, project_name)
            if not candidates:
                logger.warning("no_files_found", project_number=project_number, project_name=project_name)
                return ProjectOutcome(
                    url=url,
                    project_number=project_number,
                    success=True,
                    project_name=project_name,
                    dsid=dsid,
                )

            self._emit_stage(emit, project_number, ProjectStage.SELECTING_BRIEFING)
            chosen, selection = self._selector.choose(
                candidates,
                project_name,
                single_briefing=options.single_briefing,
                fallback_policy=self._fallback_policy,
            )

            self._emit_stage(emit, project_number, ProjectStage.DOWNLOADING_AND_EXTRACTING)
            download_dir = self._make_download_dir(project_number)
            try:
                files = await self._downloader.download(driver, chosen, download_dir)
                results, pdf_count = await self._extract_all(files, project_number)
            finally:
                if not options.keep_files:
                    shutil.rmtree(download_dir, ignore_errors=True)
        finally:
            await _close_quietly(driver, project_number)

        outcome = ProjectOutcome(
            url=url,
            project_number=project_number,
            success=True,
            project_name=project_name,
            dsid=dsid,
            files_downloaded=len(files),
            total_size_bytes=sum(f.size_bytes for f in files),
            selection=selection,
            results=tuple(results),
            pdf_count=pdf_count,
            download_dir=str(download_dir) if options.keep_files else None,
        )
        self._emit_stage(emit, project_number, ProjectStage.PERSISTING)
        await self._persist(outcome)
        return outcome

    async def _extract_all(
        self,
        files: Iterable[DownloadedFile],
        project_number: int,
    ) -> tuple[list[ExtractionResult], int]:
        results: list[ExtractionResult] = []
        pdf_count = 0
        for f in files:
            if not f.file_name.lower().endswith(".pdf"):
                continue
            pdf_count += 1
            try:
                results.append(await self._extractor.extract_async(f))
            except PdfExtractionError as e:
                logger.warning(
                    "pdf_extraction_failed",
                    project_number=project_number,
                    file_name=f.file_name,
                    error=str(e),
                    detail=e.info.detail,
                )
        return results, pdf_count

    async def _persist(self, outcome: ProjectOutcome) -> None:
        try:
            await self._sink.save_outcome(outcome)
        except Exception as e:
            logger.error("outcome_persist_failed", project_number=outcome.project_number, error=str(e))

    def _make_download_dir(self, project_number: int) -> Path:
        root = Path(self._settings.temp_download_root or Path(tempfile.gettempdir()) / "workfront-briefing-temp")
        target = root / f"temp_{current_time_ms()}_{project_number}"
        target.mkdir(parents=True, exist_ok=True)
        return target

    @staticmethod
    def _check_cancel(project_number: int, is_canceled: Optional[CancelCheck]) -> None:
        if is_canceled is not None and is_canceled(project_number):
            logger.info("project_cancelled", project_number=project_number)
            raise OperationCancelledError()

    @staticmethod
    def _emit_stage(emit: ProgressCallback, project_number: int, stage: ProjectStage) -> None:
        emit(ProgressEvent(type=ProgressEventType.STAGE, project_number=project_number, data={"stage": stage.value}))

    @staticmethod
    def _emit_meta(emit: ProgressCallback, project_number: int, dsid: str, *, provisional: bool) -> None:
        emit(
            ProgressEvent(
                type=ProgressEventType.PROJECT_META,
                project_number=project_number,
                data={"dsid": dsid, "provisional": provisional},
            )
        )


def _discard(event: ProgressEvent) -> None:
    return None


async def _close_quietly(driver: SessionDriver, project_number: int) -> None:
    try:
        await driver.close()
    except Exception as e:
        logger.warning("driver_close_failed", project_number=project_number, error=str(e))
