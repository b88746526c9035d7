"""Materialize candidate files on local disk through the UI download flow."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

from ..domain.models import CandidateFile, DownloadedFile
from ..observability.logger import get_logger
from ..scraping.base import DownloadRef, SessionDriver
from ..utils.validators import sanitize_file_name

logger = get_logger(__name__)

DOWNLOAD_SELECTED_SELECTORS: tuple[str, ...] = (
    'button[data-testid="downloadselected"]',
    'button[title="Download selected"]',
    '[data-testid="downloadselected"]',
    'button:has-text("Download selected")',
)


def unique_target(target_dir: Path, file_name: str, taken: set[str]) -> Path:
    """`file_name` inside `target_dir`, suffixed when already used in this batch."""
    stem, ext = os.path.splitext(file_name)
    candidate = file_name
    n = 1
    while candidate in taken:
        n += 1
        candidate = f"{stem}_{n}{ext}"
    taken.add(candidate)
    return target_dir / candidate


class BatchDownloadOrchestrator:
    def __init__(
        self,
        *,
        bulk_wait_ms: int = 20000,
        single_timeout_ms: int = 15000,
        select_pause_ms: int = 300,
        settle_ms: int = 800,
        button_selectors: tuple[str, ...] = DOWNLOAD_SELECTED_SELECTORS,
    ):
        self._bulk_wait_ms = bulk_wait_ms
        self._single_timeout_ms = single_timeout_ms
        self._select_pause_ms = select_pause_ms
        self._settle_ms = settle_ms
        self._button_selectors = button_selectors

    async def download(
        self,
        driver: SessionDriver,
        candidates: Sequence[CandidateFile],
        target_dir: str | Path,
    ) -> list[DownloadedFile]:
        if not candidates:
            return []
        target = Path(target_dir)
        target.mkdir(parents=True, exist_ok=True)
        frame = driver.frame

        for candidate in candidates:
            if candidate.element is None:
                continue
            try:
                await driver.robust_click(candidate.element)
                await frame.wait(self._select_pause_ms)
            except Exception as e:
                logger.warning("file_select_failed", file_name=candidate.file_name, error=str(e))
        await frame.wait(self._settle_ms)

        button = await frame.first_visible(self._button_selectors)
        if button is None:
            logger.warning("download_selected_missing", fallback="per_file")
            return await self._download_individually(driver, candidates, target)

        async def press() -> None:
            try:
                await button.click(3000)
            except Exception:
                await button.click(2000, force=True)

        try:
            downloads = await frame.collect_downloads(press, expected=len(candidates), max_wait_ms=self._bulk_wait_ms)
        except Exception as e:
            logger.error("bulk_download_failed", error=str(e))
            downloads = []

        logger.info("bulk_download_received", expected=len(candidates), received=len(downloads))
        taken: set[str] = set()
        saved: list[DownloadedFile] = []
        for d in downloads:
            item = await self._persist(d, None, target, taken)
            if item is not None:
                saved.append(item)
        return saved

    async def _download_individually(
        self,
        driver: SessionDriver,
        candidates: Sequence[CandidateFile],
        target: Path,
    ) -> list[DownloadedFile]:
        taken: set[str] = set()
        saved: list[DownloadedFile] = []
        for candidate in candidates:
            element = candidate.element
            if element is None:
                logger.warning("file_element_missing", file_name=candidate.file_name)
                continue

            async def trigger(el=element) -> None:
                try:
                    await el.click(2000)
                except Exception as e:
                    logger.debug("download_trigger_click_failed", error=str(e))

            try:
                d = await driver.frame.expect_download(trigger, timeout_ms=self._single_timeout_ms)
            except Exception as e:
                logger.error("single_download_failed", file_name=candidate.file_name, error=str(e))
                continue
            item = await self._persist(d, candidate.file_name, target, taken)
            if item is not None:
                saved.append(item)
        return saved

    async def _persist(
        self,
        download: DownloadRef,
        fallback_name: str | None,
        target: Path,
        taken: set[str],
    ) -> DownloadedFile | None:
        try:
            name = sanitize_file_name(download.suggested_filename or fallback_name)
            path = unique_target(target, name, taken)
            await download.save_as(str(path))
            size = path.stat().st_size
        except Exception as e:
            logger.error("download_save_failed", error=str(e))
            return None
        logger.info("download_saved", file_name=path.name, size_bytes=size)
        return DownloadedFile(file_name=path.name, file_path=str(path.resolve()), size_bytes=size)
