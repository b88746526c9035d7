"""Click cascade tolerant of overlays, animations and detached layouts."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from ..domain.errors import ClickFailedError
from ..observability.logger import get_logger
from .base import ElementRef

logger = get_logger(__name__)

_RECOVERABLE_MARKERS = ("intercepts pointer events", "intercept", "timeout", "not visible", "no bounding box")


class _StrategyNotApplicable(Exception):
    pass


def is_recoverable_click_error(exc: BaseException) -> bool:
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError, _StrategyNotApplicable)):
        return True
    if type(exc).__name__ == "TimeoutError":
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _RECOVERABLE_MARKERS)


async def robust_click(
    element: ElementRef,
    *,
    timeout_ms: int = 2000,
    retry_pause_s: float = 0.4,
    delay_s: float = 0.3,
) -> str:
    """Click `element`, escalating through strategies until one succeeds.

    Returns the name of the strategy that worked. Raises `ClickFailedError`
    when every strategy failed or a non-recoverable error showed up.
    """
    try:
        await element.scroll_into_view(timeout_ms=min(1500, timeout_ms))
    except Exception as e:
        logger.debug("scroll_into_view_failed", error=str(e))

    async def plain() -> None:
        await element.click(timeout_ms)

    async def delayed() -> None:
        await asyncio.sleep(delay_s)
        await element.click(timeout_ms)

    async def forced() -> None:
        await element.click(timeout_ms, force=True)

    async def by_coordinates() -> None:
        box = await element.bounding_box()
        if not box:
            raise _StrategyNotApplicable("no bounding box")
        await element.mouse_click(box["x"] + box["width"] / 2, box["y"] + box["height"] / 2)

    async def scripted() -> None:
        await element.dispatch_click()

    strategies: tuple[tuple[str, Callable[[], Awaitable[None]]], ...] = (
        ("plain", plain),
        ("delayed", delayed),
        ("forced", forced),
        ("coordinates", by_coordinates),
        ("scripted", scripted),
    )

    last_error: BaseException | None = None
    for name, strategy in strategies:
        try:
            await strategy()
            return name
        except Exception as e:
            last_error = e
            if not is_recoverable_click_error(e):
                raise ClickFailedError("Não foi possível clicar no elemento", detail=str(e)) from e
            logger.debug("click_strategy_failed", strategy=name, error=str(e))
            await asyncio.sleep(retry_pause_s)

    raise ClickFailedError(
        "Não foi possível clicar no elemento",
        detail=str(last_error) if last_error else None,
    )
