"""Per-operation progress streams and single-project cancellation flags."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
from dataclasses import replace
from typing import Any, Optional

from ..domain.models import ProgressEvent, ProgressEventType, ProjectStage
from ..observability.logger import get_logger
from ..utils.time import utc_now_iso

logger = get_logger(__name__)

ProgressCallback = Callable[[ProgressEvent], None]
CancelCheck = Callable[[int], bool]


class ProgressRegistry:
    """Keeps one event queue and one cancel set per operation id.

    All methods must be called from the event loop thread.
    """

    def __init__(self) -> None:
        self._queues: dict[str, asyncio.Queue[Optional[ProgressEvent]]] = {}
        self._cancellations: dict[str, set[int]] = {}

    def create(self, operation_id: str) -> None:
        if operation_id in self._queues:
            return
        self._queues[operation_id] = asyncio.Queue()
        self._cancellations.setdefault(operation_id, set())
        logger.info("progress_stream_created", operation_id=operation_id)

    def exists(self, operation_id: str) -> bool:
        return operation_id in self._queues

    def emit(self, operation_id: str, event: ProgressEvent) -> None:
        queue = self._queues.get(operation_id)
        if queue is None:
            return
        queue.put_nowait(replace(event, operation_id=operation_id, timestamp=event.timestamp or utc_now_iso()))

    def emitter(self, operation_id: str) -> ProgressCallback:
        return lambda event: self.emit(operation_id, event)

    async def events(self, operation_id: str) -> AsyncIterator[ProgressEvent]:
        """Yield events until the operation completes. Unknown ids yield nothing."""
        queue = self._queues.get(operation_id)
        if queue is None:
            return
        while True:
            event = await queue.get()
            if event is None:
                return
            yield event

    def complete(self, operation_id: str) -> None:
        queue = self._queues.pop(operation_id, None)
        self._cancellations.pop(operation_id, None)
        if queue is not None:
            queue.put_nowait(None)
        logger.info("progress_stream_completed", operation_id=operation_id)

    def cancel(self, operation_id: str, project_number: int) -> None:
        self._cancellations.setdefault(operation_id, set()).add(project_number)
        self.emit(
            operation_id,
            ProgressEvent(
                type=ProgressEventType.STAGE,
                project_number=project_number,
                data={"stage": ProjectStage.CANCEL_REQUESTED.value},
            ),
        )
        logger.info("project_cancel_requested", operation_id=operation_id, project_number=project_number)

    def is_canceled(self, operation_id: str, project_number: int) -> bool:
        return project_number in self._cancellations.get(operation_id, ())

    def cancel_checker(self, operation_id: str) -> CancelCheck:
        return lambda project_number: self.is_canceled(operation_id, project_number)


def event_payload(event: ProgressEvent) -> dict[str, Any]:
    """JSON shape used on the wire (camelCase, projectNumber folded into data)."""
    data: dict[str, Any] = {}
    if event.project_number:
        data["projectNumber"] = event.project_number
    data.update(event.data)
    return {
        "operationId": event.operation_id,
        "type": event.type.value,
        "timestamp": event.timestamp,
        "data": data,
    }
