"""Browser capability contracts.

Discovery, selection and download logic only talk to these interfaces, so
they can be exercised against in-memory fakes. `PlaywrightSessionDriver` is
the single concrete binding.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from typing import Optional


class ElementRef(ABC):
    """A handle on one element inside the content frame."""

    @abstractmethod
    async def is_visible(self) -> bool: ...

    @abstractmethod
    async def get_attribute(self, name: str) -> Optional[str]: ...

    @abstractmethod
    async def nested_attribute(self, name: str) -> Optional[str]:
        """Attribute value of the first descendant that carries `name`."""

    @abstractmethod
    async def text_content(self) -> Optional[str]: ...

    @abstractmethod
    async def scroll_into_view(self, timeout_ms: int) -> None: ...

    @abstractmethod
    async def click(self, timeout_ms: int, *, force: bool = False) -> None: ...

    @abstractmethod
    async def bounding_box(self) -> Optional[dict[str, float]]: ...

    @abstractmethod
    async def mouse_click(self, x: float, y: float) -> None: ...

    @abstractmethod
    async def dispatch_click(self) -> None: ...


class DownloadRef(ABC):
    """A browser download that has started but is not yet persisted."""

    @property
    @abstractmethod
    def suggested_filename(self) -> str: ...

    @abstractmethod
    async def save_as(self, path: str) -> None: ...


class ContentFrame(ABC):
    """The embedded application frame hosting the project's documents."""

    @abstractmethod
    async def query_all(self, selector: str) -> list[ElementRef]: ...

    @abstractmethod
    async def first_visible(self, selectors: Sequence[str]) -> Optional[ElementRef]:
        """First visible match walking `selectors` in order."""

    @abstractmethod
    async def wait(self, ms: int) -> None:
        """Fixed delay for UI animation/loading (an event-loop suspension point)."""

    @abstractmethod
    async def scroll_by(self, dy: int) -> None: ...

    @abstractmethod
    async def collect_downloads(
        self,
        trigger: Callable[[], Awaitable[None]],
        expected: int,
        max_wait_ms: int,
    ) -> list[DownloadRef]:
        """Run `trigger` and gather download events until `expected` or timeout."""

    @abstractmethod
    async def expect_download(
        self,
        trigger: Callable[[], Awaitable[None]],
        timeout_ms: int,
    ) -> DownloadRef: ...


class SessionDriver(ABC):
    """One isolated, authenticated browsing context bound to a project."""

    @property
    @abstractmethod
    def frame(self) -> ContentFrame: ...

    @abstractmethod
    async def open(self, url: str) -> None: ...

    @abstractmethod
    async def project_title(self) -> Optional[str]: ...

    @abstractmethod
    async def robust_click(self, element: ElementRef) -> None: ...

    @abstractmethod
    async def navigate_to_folder(self, folder_label: str) -> None: ...

    @abstractmethod
    async def close_intercepting_overlay(self) -> None: ...

    @abstractmethod
    async def close(self) -> None: ...


# (storage_state_path, headless) -> driver
SessionDriverFactory = Callable[[str, bool], Awaitable[SessionDriver]]
