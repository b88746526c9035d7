"""Playwright binding of the browser capability contracts."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence
from typing import Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Download,
    Error as PlaywrightError,
    FrameLocator,
    Locator,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from ..config.settings import BriefingSettings, get_settings
from ..domain.errors import NavigationError, NavigationTimeoutError
from ..observability.logger import get_logger
from .base import ContentFrame, DownloadRef, ElementRef, SessionDriver
from .clicks import robust_click
from .folders import navigate_to_folder

logger = get_logger(__name__)

# The application content lives inside an iframe hosted by the Experience Cloud shell.
FRAME_SELECTOR = 'iframe[src*="workfront"], iframe[src*="experience"], iframe'

TITLE_SELECTORS = (
    "h1",
    '[data-testid*="title"]',
    ".project-title",
    ".project-name",
)

OVERLAY_CLOSE_SELECTOR = '[data-testid="minix-header-close-btn"]'
OVERLAY_CONTAINER_SELECTOR = '[data-testid="minix-container"]'

_SCROLL_SCRIPT = """(body, dy) => {
    const sc = document.scrollingElement || document.documentElement || body;
    sc.scrollBy(0, dy);
}"""


class PlaywrightElement(ElementRef):
    def __init__(self, locator: Locator, page: Page):
        self._locator = locator
        self._page = page

    async def is_visible(self) -> bool:
        return await self._locator.is_visible()

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self._locator.get_attribute(name)

    async def nested_attribute(self, name: str) -> Optional[str]:
        nested = self._locator.locator(f"[{name}]").first
        if await nested.count() == 0:
            return None
        return await nested.get_attribute(name)

    async def text_content(self) -> Optional[str]:
        return await self._locator.text_content()

    async def scroll_into_view(self, timeout_ms: int) -> None:
        await self._locator.scroll_into_view_if_needed(timeout=timeout_ms)

    async def click(self, timeout_ms: int, *, force: bool = False) -> None:
        await self._locator.click(timeout=timeout_ms, force=force)

    async def bounding_box(self) -> Optional[dict[str, float]]:
        box = await self._locator.bounding_box()
        return dict(box) if box else None

    async def mouse_click(self, x: float, y: float) -> None:
        await self._page.mouse.click(x, y)

    async def dispatch_click(self) -> None:
        await self._locator.dispatch_event("click")


class PlaywrightDownload(DownloadRef):
    def __init__(self, download: Download):
        self._download = download

    @property
    def suggested_filename(self) -> str:
        return self._download.suggested_filename

    async def save_as(self, path: str) -> None:
        await self._download.save_as(path)


class PlaywrightContentFrame(ContentFrame):
    def __init__(self, frame: FrameLocator, page: Page):
        self._frame = frame
        self._page = page

    async def query_all(self, selector: str) -> list[ElementRef]:
        matches = self._frame.locator(selector)
        count = await matches.count()
        return [PlaywrightElement(matches.nth(i), self._page) for i in range(count)]

    async def first_visible(self, selectors: Sequence[str]) -> Optional[ElementRef]:
        for selector in selectors:
            candidate = self._frame.locator(selector).first
            try:
                if await candidate.count() > 0 and await candidate.is_visible():
                    return PlaywrightElement(candidate, self._page)
            except Exception as e:
                logger.debug("selector_probe_failed", selector=selector, error=str(e))
        return None

    async def wait(self, ms: int) -> None:
        await asyncio.sleep(max(0, ms) / 1000.0)

    async def scroll_by(self, dy: int) -> None:
        await self._frame.locator("body").evaluate(_SCROLL_SCRIPT, dy)

    async def collect_downloads(
        self,
        trigger: Callable[[], Awaitable[None]],
        expected: int,
        max_wait_ms: int,
    ) -> list[DownloadRef]:
        received: list[Download] = []
        on_download = received.append
        self._page.on("download", on_download)
        try:
            await trigger()
            deadline = time.monotonic() + max_wait_ms / 1000.0
            while time.monotonic() < deadline and len(received) < expected:
                await asyncio.sleep(1.0)
        finally:
            self._page.remove_listener("download", on_download)
        return [PlaywrightDownload(d) for d in received]

    async def expect_download(
        self,
        trigger: Callable[[], Awaitable[None]],
        timeout_ms: int,
    ) -> DownloadRef:
        async with self._page.expect_download(timeout=timeout_ms) as info:
            await trigger()
        return PlaywrightDownload(await info.value)


class PlaywrightSessionDriver(SessionDriver):
    """Owns one browser + isolated context for a single project run."""

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        page: Page,
        settings: BriefingSettings,
    ):
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._settings = settings
        self._frame = PlaywrightContentFrame(page.frame_locator(FRAME_SELECTOR).first, page)

    @classmethod
    async def launch(
        cls,
        storage_state_path: str,
        *,
        headless: bool = True,
        settings: BriefingSettings | None = None,
    ) -> "PlaywrightSessionDriver":
        settings = settings or get_settings()
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.launch(
                headless=headless,
                args=[] if headless else ["--start-maximized"],
            )
            context = await browser.new_context(
                storage_state=storage_state_path,
                accept_downloads=True,
                no_viewport=not headless,
            )
            page = await context.new_page()
        except Exception:
            await playwright.stop()
            raise
        return cls(playwright, browser, context, page, settings)

    @property
    def frame(self) -> ContentFrame:
        return self._frame

    async def open(self, url: str) -> None:
        logger.info("opening_project", url=url)
        try:
            await self._page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self._settings.navigation_timeout_ms,
            )
        except (asyncio.TimeoutError, PlaywrightTimeoutError) as e:
            raise NavigationTimeoutError("Tempo esgotado ao abrir o projeto", detail=str(e)) from e
        except PlaywrightError as e:
            raise NavigationError("Não foi possível abrir o projeto", detail=str(e)) from e
        await asyncio.sleep(self._settings.settle_delay_ms / 1000.0)

    async def project_title(self) -> Optional[str]:
        await self._frame.wait(self._settings.frame_settle_ms)
        frame = self._page.frame_locator(FRAME_SELECTOR).first
        for selector in TITLE_SELECTORS:
            try:
                element = frame.locator(selector).first
                if await element.count() == 0:
                    continue
                title = await element.text_content()
                if title and title.strip():
                    return title.strip()
            except Exception as e:
                logger.debug("title_probe_failed", selector=selector, error=str(e))
        return None

    async def robust_click(self, element: ElementRef) -> None:
        await robust_click(element, timeout_ms=self._settings.click_timeout_ms)

    async def navigate_to_folder(self, folder_label: str) -> None:
        await self._frame.wait(self._settings.frame_settle_ms)
        await self.close_intercepting_overlay()
        await navigate_to_folder(
            self._frame,
            folder_label,
            self.robust_click,
            attempts=self._settings.folder_attempts,
            delay_ms=self._settings.folder_delay_ms,
            after_click_ms=self._settings.folder_click_wait_ms,
        )

    async def close_intercepting_overlay(self) -> None:
        frame = self._page.frame_locator(FRAME_SELECTOR).first
        try:
            close_button = frame.locator(OVERLAY_CLOSE_SELECTOR).first
            if await close_button.count() > 0:
                await close_button.click(timeout=self._settings.click_timeout_ms)
                await frame.locator(OVERLAY_CONTAINER_SELECTOR).first.wait_for(state="hidden", timeout=3000)
                logger.info("overlay_closed")
        except Exception as e:
            logger.warning("overlay_close_failed", error=str(e))
        await asyncio.sleep(0.5)

    async def close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


async def launch_playwright_driver(
    storage_state_path: str,
    headless: bool,
    *,
    settings: BriefingSettings | None = None,
) -> SessionDriver:
    return await PlaywrightSessionDriver.launch(storage_state_path, headless=headless, settings=settings)
