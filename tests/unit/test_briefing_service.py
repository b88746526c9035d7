from __future__ import annotations

import asyncio
import functools
from pathlib import Path

import pytest

from briefing_extractor.config.settings import BriefingSettings
from briefing_extractor.domain.errors import DatabaseError, NavigationTimeoutError, SessionStateError
from briefing_extractor.domain.models import (
    DownloadedFile,
    ExtractionResult,
    ProgressEvent,
    ProgressEventType,
    ProjectOutcome,
    ProjectStage,
)
from briefing_extractor.models.requests import ExtractionOptions
from briefing_extractor.scraping.playwright_session import launch_playwright_driver
from briefing_extractor.services.briefing_service import (
    NOT_STARTED_MESSAGE,
    UNEXPECTED_ERROR_MESSAGE,
    BriefingBatchService,
)
from briefing_extractor.services.discovery import FILE_SELECTORS
from briefing_extractor.services.downloader import DOWNLOAD_SELECTED_SELECTORS
from fakes import FakeDownload, FakeDriver, FakeElement, FakeFrame


def _url(n: int) -> str:
    return f"https://acme.my.workfront.com/project/{n}/documents"


def _briefing_frame(download_name: str = "5372048_briefing.pdf") -> FakeFrame:
    return FakeFrame(
        {
            FILE_SELECTORS[0]: [FakeElement("5372048_briefing.pdf"), FakeElement("notes.pdf")],
            DOWNLOAD_SELECTED_SELECTORS[0]: [FakeElement("Download selected")],
        },
        downloads=[FakeDownload(download_name)],
    )


class _ScriptedDriver(FakeDriver):
    """Per-URL behaviour: `delays` slow down open(), `failures` make it raise."""

    def __init__(self, frame: FakeFrame, delays: dict[str, float], failures: dict[str, Exception]):
        super().__init__(frame, title="Campaign_5372048_Q3")
        self._delays = delays
        self._failures = failures

    async def open(self, url: str) -> None:
        await super().open(url)
        await asyncio.sleep(self._delays.get(url, 0))
        if url in self._failures:
            raise self._failures[url]


class _DriverFactory:
    def __init__(self, frame_factory=_briefing_frame, delays=None, failures=None):
        self.frame_factory = frame_factory
        self.delays = delays or {}
        self.failures = failures or {}
        self.drivers: list[_ScriptedDriver] = []

    async def __call__(self, state_path: str, headless: bool) -> _ScriptedDriver:
        driver = _ScriptedDriver(self.frame_factory(), self.delays, self.failures)
        self.drivers.append(driver)
        return driver


class _StubExtractor:
    def __init__(self) -> None:
        self.seen: list[DownloadedFile] = []

    async def extract_async(self, downloaded: DownloadedFile) -> ExtractionResult:
        self.seen.append(downloaded)
        assert Path(downloaded.file_path).is_file()
        return ExtractionResult(
            file_name=downloaded.file_name,
            file_path=downloaded.file_path,
            size_bytes=downloaded.size_bytes,
            text="Headline: Power your ideas",
            page_count=1,
        )


class _RecordingSink:
    def __init__(self, error: Exception | None = None):
        self.saved: list[ProjectOutcome] = []
        self.error = error

    async def save_outcome(self, outcome: ProjectOutcome) -> None:
        self.saved.append(outcome)
        if self.error is not None:
            raise self.error


def _service(settings: BriefingSettings, factory: _DriverFactory, sink=None) -> BriefingBatchService:
    return BriefingBatchService(driver_factory=factory, extractor=_StubExtractor(), sink=sink, settings=settings)


def test_every_url_gets_one_outcome(settings: BriefingSettings) -> None:
    factory = _DriverFactory()
    sink = _RecordingSink()
    events: list[ProgressEvent] = []
    urls = [_url(n) for n in (1, 2, 3)]

    result = asyncio.run(
        _service(settings, factory, sink).process_projects(
            urls, ExtractionOptions(concurrency=2), progress=events.append
        )
    )

    assert [o.project_number for o in result.outcomes] == [1, 2, 3]
    assert all(o.success for o in result.outcomes)
    first = result.outcomes[0]
    assert first.project_name == "5372048"
    assert first.dsid == "5372048"
    assert first.files_downloaded == 1
    assert first.selection is not None and first.selection.candidate.file_name == "5372048_briefing.pdf"
    assert result.summary.total_files == 3
    assert result.summary.total_pdfs == 3
    assert result.summary.successful_extractions == 3
    assert result.summary.total_characters_extracted == 3 * len("Headline: Power your ideas")
    assert len(sink.saved) == 3
    assert all(d.closed for d in factory.drivers)
    assert events[0].type is ProgressEventType.START
    assert events[-1].type is ProgressEventType.COMPLETED
    stages = [e.data["stage"] for e in events if e.type is ProgressEventType.STAGE and e.project_number == 1]
    assert stages == [
        ProjectStage.NAVIGATING_BRIEFING_FOLDER.value,
        ProjectStage.DISCOVERING_FILES.value,
        ProjectStage.SELECTING_BRIEFING.value,
        ProjectStage.DOWNLOADING_AND_EXTRACTING.value,
        ProjectStage.PERSISTING.value,
    ]


def test_empty_briefing_folder_is_a_success_without_files(settings: BriefingSettings) -> None:
    factory = _DriverFactory(frame_factory=FakeFrame)
    result = asyncio.run(_service(settings, factory).process_projects([_url(1)]))

    outcome = result.outcomes[0]
    assert outcome.success
    assert outcome.files_downloaded == 0
    assert outcome.selection is None
    assert outcome.results == ()


def test_stop_on_first_failure_never_starts_remaining_projects(settings: BriefingSettings) -> None:
    factory = _DriverFactory(
        delays={_url(1): 0.05},
        failures={_url(2): NavigationTimeoutError("Tempo esgotado ao abrir o projeto")},
    )
    events: list[ProgressEvent] = []
    urls = [_url(n) for n in range(1, 6)]

    result = asyncio.run(
        _service(settings, factory).process_projects(
            urls,
            ExtractionOptions(concurrency=2, continue_on_error=False),
            progress=events.append,
        )
    )

    outcomes = {o.project_number: o for o in result.outcomes}
    assert len(outcomes) == 5
    assert outcomes[1].success
    assert outcomes[2].error == "Tempo esgotado ao abrir o projeto"
    for n in (3, 4, 5):
        assert not outcomes[n].success
        assert outcomes[n].error == NOT_STARTED_MESSAGE
    assert [url for d in factory.drivers for url in d.opened] == [_url(1), _url(2)]
    started = {e.project_number for e in events if e.type is ProgressEventType.PROJECT_START}
    assert started == {1, 2}


def test_continue_on_error_runs_everything(settings: BriefingSettings) -> None:
    factory = _DriverFactory(failures={_url(2): NavigationTimeoutError("Tempo esgotado")})
    result = asyncio.run(_service(settings, factory).process_projects([_url(n) for n in range(1, 5)]))
    assert [o.success for o in result.outcomes] == [True, False, True, True]
    assert len(factory.drivers) == 4


def test_unexpected_errors_become_failure_outcomes(settings: BriefingSettings) -> None:
    raw = RuntimeError(
        "Locator.click: Timeout 2000ms exceeded.\n"
        "Call log:\n"
        "  - waiting for locator(\"button:has-text(\\\"05. Briefing\\\")\")"
    )
    factory = _DriverFactory(failures={_url(1): raw})
    result = asyncio.run(_service(settings, factory).process_projects([_url(1)]))
    error = result.failed[0].error
    assert error == UNEXPECTED_ERROR_MESSAGE
    assert "locator(" not in error
    assert "Call log" not in error
    assert factory.drivers[0].closed


def test_cancelled_project_fails_with_cancel_message(settings: BriefingSettings) -> None:
    factory = _DriverFactory()
    result = asyncio.run(
        _service(settings, factory).process_projects([_url(1), _url(2)], is_canceled=lambda n: n == 1)
    )
    outcomes = {o.project_number: o for o in result.outcomes}
    assert outcomes[1].error == "Operação cancelada pelo usuário"
    assert outcomes[2].success
    cancelled = next(d for d in factory.drivers if d.opened == [_url(1)])
    assert cancelled.folders == []
    assert cancelled.closed


def test_missing_session_aborts_before_any_project(settings: BriefingSettings, tmp_path: Path) -> None:
    broken = settings.model_copy(update={"session_state_path": str(tmp_path / "missing.json")})
    factory = _DriverFactory()
    with pytest.raises(SessionStateError):
        asyncio.run(_service(broken, factory).process_projects([_url(1)]))
    assert factory.drivers == []


def test_temp_files_removed_unless_kept(settings: BriefingSettings) -> None:
    root = Path(settings.temp_download_root)

    result = asyncio.run(_service(settings, _DriverFactory()).process_projects([_url(1)]))
    assert result.outcomes[0].download_dir is None
    assert list(root.glob("temp_*")) == []

    result = asyncio.run(
        _service(settings, _DriverFactory()).process_projects([_url(1)], ExtractionOptions(keep_files=True))
    )
    kept = Path(result.outcomes[0].download_dir)
    assert kept.name.startswith("temp_") and kept.name.endswith("_1")
    assert (kept / "5372048_briefing.pdf").is_file()


def test_non_pdf_downloads_are_not_extracted(settings: BriefingSettings) -> None:
    factory = _DriverFactory(frame_factory=lambda: _briefing_frame("5372048_briefing.zip"))
    result = asyncio.run(_service(settings, factory).process_projects([_url(1)]))
    outcome = result.outcomes[0]
    assert outcome.files_downloaded == 1
    assert outcome.pdf_count == 0
    assert outcome.results == ()


def test_persistence_errors_do_not_fail_the_project(settings: BriefingSettings) -> None:
    sink = _RecordingSink(error=DatabaseError("database unavailable"))
    result = asyncio.run(_service(settings, _DriverFactory(), sink).process_projects([_url(1)]))
    assert result.outcomes[0].success
    assert len(sink.saved) == 1


class _TimelineDriver(_ScriptedDriver):
    def __init__(self, factory: "_TimelineFactory", *args):
        super().__init__(*args)
        self._factory = factory

    async def open(self, url: str) -> None:
        self._factory.timeline.append(("open", url))
        await super().open(url)

    async def close(self) -> None:
        await super().close()
        self._factory.in_flight -= 1
        self._factory.timeline.append(("close", self.opened[0]))


class _TimelineFactory(_DriverFactory):
    """Records open/close order and the peak number of live drivers."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.timeline: list[tuple[str, str]] = []
        self.in_flight = 0
        self.peak = 0

    async def __call__(self, state_path: str, headless: bool) -> _TimelineDriver:
        self.in_flight += 1
        self.peak = max(self.peak, self.in_flight)
        driver = _TimelineDriver(self, self.frame_factory(), self.delays, self.failures)
        self.drivers.append(driver)
        return driver


def test_rolling_window_starts_next_project_as_soon_as_one_finishes(settings: BriefingSettings) -> None:
    factory = _TimelineFactory(delays={_url(1): 0.3})
    urls = [_url(n) for n in range(1, 5)]

    result = asyncio.run(_service(settings, factory).process_projects(urls, ExtractionOptions(concurrency=2)))

    assert all(o.success for o in result.outcomes)
    assert factory.peak <= 2
    assert factory.in_flight == 0
    # Projects 3 and 4 run while the slow project 1 still holds its slot.
    assert factory.timeline.index(("open", _url(3))) < factory.timeline.index(("close", _url(1)))
    assert factory.timeline.index(("open", _url(4))) < factory.timeline.index(("close", _url(1)))


def test_default_driver_factory_uses_service_settings(settings: BriefingSettings) -> None:
    service = BriefingBatchService(settings=settings)
    factory = service._driver_factory
    assert isinstance(factory, functools.partial)
    assert factory.func is launch_playwright_driver
    assert factory.keywords["settings"] is settings
