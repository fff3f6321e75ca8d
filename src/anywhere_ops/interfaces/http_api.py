"""HTTP API: FastAPI app wired to the operation router."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, Field

from anywhere_ops import __version__
from anywhere_ops.application.router import OperationSession
from anywhere_ops.config import load_config
from anywhere_ops.domain import OperationError, OperationRequest, OperationResult, StreamEvent, default_operations
from anywhere_ops.infrastructure import JsonCustomTaskStore
from anywhere_ops.interfaces.wiring import build_session

logger = logging.getLogger(__name__)

app = FastAPI(title="anywhere-ops", version=__version__)

# One session per process: POST /operations/cancel stops the stream it is reading.
_session: Optional[OperationSession] = None

# Failed results map to these statuses by error type; anything else is a 502.
_ERROR_STATUS = {
    "UnknownOperation": 404,
    "PromptTooLong": 413,
    "MissingApiKey": 400,
    "AudioFileNotFound": 400,
    "EmptyInput": 400,
    "ValidationError": 422,
}


def _get_session() -> OperationSession:
    global _session
    if _session is None:
        _session = build_session(load_config())
    return _session


class RunRequest(BaseModel):
    operation_type: str
    prompt: str = ""
    selected_text: Optional[str] = None
    options: Dict[str, str] = Field(default_factory=dict)
    audio_file_path: Optional[str] = None

    def to_request(self) -> OperationRequest:
        return OperationRequest(
            operation_type=self.operation_type,
            prompt=self.prompt,
            selected_text=self.selected_text,
            options=dict(self.options),
            audio_file_path=self.audio_file_path,
        )


@app.get("/health")
def health():
    return {"ok": True, "version": __version__}


@app.get("/operations")
def operations():
    """Built-in catalog (with prompt overrides applied) plus the custom tasks."""
    config = load_config()
    builtins = []
    for op in default_operations(config.system_prompts):
        entry = op.model_dump(by_alias=True, mode="json")
        entry["family"] = op.family.value
        entry["streaming"] = op.family.supports_streaming
        builtins.append(entry)
    custom = [t.model_dump(by_alias=True, mode="json") for t in JsonCustomTaskStore.from_config(config).list()]
    return {"operations": builtins, "custom_tasks": custom}


@app.post("/operations/run")
async def run(req: RunRequest):
    logger.info("POST /operations/run operation=%s prompt=%r", req.operation_type, req.prompt[:80])
    result = await _get_session().run(req.to_request(), stream=False)
    if result.success or result.cancelled:
        return result.to_dict()
    return JSONResponse(status_code=_ERROR_STATUS.get(result.error_type or "", 502), content=result.to_dict())


async def _sse_event_generator(
    event_queue: "asyncio.Queue[Dict[str, Any]]",
    worker: "asyncio.Task[None]",
    session: OperationSession,
    idle_timeout_s: float,
) -> AsyncIterator[str]:
    """Yield Server-Sent Events from the queue until the ``result`` event."""
    try:
        while True:
            try:
                event = await asyncio.wait_for(event_queue.get(), timeout=idle_timeout_s)
            except asyncio.TimeoutError:
                yield ": keep-alive timeout\n\n"
                break

            payload = json.dumps(event, ensure_ascii=False)
            yield f"data: {payload}\n\n"

            if event.get("kind") == "result":
                break
    finally:
        if not worker.done():
            # Client went away mid-stream
            session.cancel()


@app.post("/operations/stream")
async def run_stream(req: RunRequest):
    """Stream an operation as Server-Sent Events (text/event-stream).

    Each stream event is one JSON object::

        data: {"kind": "chunk", "content": "Hel", "done": false}\\n\\n
        data: {"kind": "chunk", "content": "lo", "done": false}\\n\\n
        data: {"kind": "done", "content": "", "done": true}\\n\\n
        data: {"kind": "result", "result": {"success": true, "content": "Hello", ...}}\\n\\n

    Non-streaming operations (image, audio) send only the ``result`` event.
    """
    logger.info("POST /operations/stream operation=%s prompt=%r", req.operation_type, req.prompt[:80])
    config = load_config()
    session = _get_session()
    # Unbounded so no delta is ever dropped
    event_queue: asyncio.Queue = asyncio.Queue()

    def _on_event(event: StreamEvent) -> None:
        event_queue.put_nowait(event.to_dict())

    async def _run_background() -> None:
        try:
            result = await session.run(req.to_request(), stream=True, on_event=_on_event)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Streaming operation %s crashed", req.operation_type)
            result = OperationResult.failure(exc)
        event_queue.put_nowait({"kind": "result", "result": result.to_dict()})

    worker = asyncio.create_task(_run_background())

    return StreamingResponse(
        _sse_event_generator(event_queue, worker, session, config.timeout_s + config.done_grace_s),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


@app.post("/operations/cancel")
def cancel():
    """Cancel the in-flight streaming operation; it ends at its next chunk."""
    _get_session().cancel()
    return {"ok": True}


@app.get("/models")
async def models():
    try:
        ids = await _get_session().router.list_models()
    except OperationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return {"models": ids}
