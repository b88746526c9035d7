"""FastAPI app: briefing extraction endpoints and progress streaming."""

from __future__ import annotations

import asyncio
import contextlib
import json
import uuid
from typing import Any, AsyncIterator

from fastapi import FastAPI, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from .domain.errors import BriefingDomainError, InvalidInputError, SessionStateError
from .lifespan import app_state
from .models.requests import ExtractionRequest
from .models.responses import serialize_batch
from .observability.logger import get_logger, log_context
from .services.briefing_service import BriefingBatchService
from .services.progress import ProgressRegistry, event_payload

logger = get_logger(__name__)

app = FastAPI(title="Workfront Briefing Extractor", version="0.1.0")


def _service() -> BriefingBatchService:
    service = app_state.get("briefing_service")
    if service is None:
        raise HTTPException(status_code=503, detail="briefing_service_unavailable")
    return service


def _registry() -> ProgressRegistry:
    registry = app_state.get("progress")
    if registry is None:
        raise HTTPException(status_code=503, detail="progress_registry_unavailable")
    return registry


def _parse_request(payload: dict) -> ExtractionRequest:
    try:
        return ExtractionRequest.model_validate(payload)
    except ValidationError as e:
        raise InvalidInputError("invalid extraction request", detail=str(e)) from e


def _http_error(exc: BriefingDomainError) -> HTTPException:
    status = 412 if isinstance(exc, SessionStateError) else 400
    info = getattr(exc, "info", None)
    return HTTPException(
        status_code=status,
        detail={
            "errorCode": info.code if info else "INTERNAL_ERROR",
            "errorMessage": str(exc),
        },
    )


def _serialize_event(payload: dict[str, Any]) -> bytes:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.post("/api/v1/briefings/extract")
async def extract_briefings(payload: dict) -> dict:
    service = _service()
    registry = _registry()
    try:
        request = _parse_request(payload)
    except InvalidInputError as exc:
        raise _http_error(exc) from exc

    operation_id = request.operation_id or str(uuid.uuid4())
    registry.create(operation_id)
    try:
        with log_context(operation_id=operation_id):
            result = await service.process_projects(
                request.project_urls,
                request.options,
                progress=registry.emitter(operation_id),
                is_canceled=registry.cancel_checker(operation_id),
            )
    except (InvalidInputError, SessionStateError) as exc:
        raise _http_error(exc) from exc
    finally:
        registry.complete(operation_id)

    body = serialize_batch(result)
    body["operationId"] = operation_id
    return body


@app.post("/api/v1/briefings/extract/stream")
async def extract_briefings_stream(payload: dict) -> StreamingResponse:
    service = _service()
    registry = _registry()
    try:
        request = _parse_request(payload)
    except InvalidInputError as exc:
        raise _http_error(exc) from exc

    operation_id = request.operation_id or str(uuid.uuid4())
    registry.create(operation_id)

    async def run() -> dict[str, Any]:
        try:
            with log_context(operation_id=operation_id):
                result = await service.process_projects(
                    request.project_urls,
                    request.options,
                    progress=registry.emitter(operation_id),
                    is_canceled=registry.cancel_checker(operation_id),
                )
            return serialize_batch(result)
        finally:
            registry.complete(operation_id)

    async def event_stream() -> AsyncIterator[bytes]:
        task = asyncio.create_task(run())
        try:
            async for ev in registry.events(operation_id):
                yield _serialize_event(event_payload(ev))
            body = await task
            yield _serialize_event({"type": "result", "operationId": operation_id, "data": body})
        except BriefingDomainError as exc:
            info = getattr(exc, "info", None)
            yield _serialize_event(
                {
                    "type": "error",
                    "operationId": operation_id,
                    "errorCode": info.code if info else "INTERNAL_ERROR",
                    "errorMessage": str(exc),
                }
            )
        except Exception as exc:
            logger.exception("briefing_stream_failed", operation_id=operation_id)
            yield _serialize_event(
                {
                    "type": "error",
                    "operationId": operation_id,
                    "errorCode": "INTERNAL_ERROR",
                    "errorMessage": str(exc),
                }
            )
        finally:
            if not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        yield b"data: [DONE]\n\n"

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
            "X-Operation-Id": operation_id,
        },
    )


@app.post("/api/v1/briefings/{operation_id}/cancel/{project_number}")
async def cancel_project(operation_id: str, project_number: int) -> dict:
    registry = _registry()
    if not registry.exists(operation_id):
        raise HTTPException(status_code=404, detail="operation_not_found")
    if project_number < 1:
        raise HTTPException(status_code=400, detail="invalid_project_number")
    registry.cancel(operation_id, project_number)
    return {"operationId": operation_id, "projectNumber": project_number, "cancelRequested": True}
