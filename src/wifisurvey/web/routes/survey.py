"""Survey routes: start/stop a run, poll status and results, SSE live push."""

import asyncio
import json

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sse_starlette.sse import EventSourceResponse

from ...core.config import SurveySettings, load_config
from ...core.constants import KIND_DONE
from ...core.events import ProgressMessage
from ...core.log import get_logger
from ..runner import (
    SurveyBusyError,
    get_context,
    poll_result,
    poll_status,
    start_survey,
    stop_survey,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/survey", tags=["survey"])


@router.post("/start")
async def start(request: Request):
    """Begin one survey run; poll /survey/results for completion."""
    body = {}
    if await request.body():
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return JSONResponse({"error": "Request body is not valid JSON"}, status_code=400)
    overrides = body.get("settings", {}) if isinstance(body, dict) else {}
    if not isinstance(overrides, dict):
        return JSONResponse({"error": "'settings' must be an object"}, status_code=400)

    config = load_config()
    try:
        settings = SurveySettings.from_config(config, overrides)
    except (TypeError, ValueError) as e:
        return JSONResponse({"error": f"Invalid settings: {e}"}, status_code=400)

    try:
        start_survey(settings, config)
    except SurveyBusyError as e:
        return JSONResponse({"error": str(e)}, status_code=409)
    except KeyError as e:
        return JSONResponse({"error": str(e)}, status_code=400)
    return JSONResponse("OK")


@router.post("/stop")
async def stop():
    stop_survey()
    return JSONResponse({"message": "Task stopped"})


@router.get("/status")
async def status():
    """Last published progress message (null before the first run)."""
    message = poll_status()
    return JSONResponse(message.to_dict() if message else None)


@router.get("/results")
async def results():
    """Last result: pending, done (with measurements) or error."""
    result = poll_result()
    return JSONResponse(result.to_dict() if result else None)


@router.get("/events")
async def events(request: Request):
    """SSE stream of progress messages for the active run."""
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[ProgressMessage] = asyncio.Queue()
    channel = get_context().progress

    def sink(message: ProgressMessage) -> None:
        # Called from the runner thread
        loop.call_soon_threadsafe(queue.put_nowait, message)

    channel.register_sink(sink)

    async def event_generator():
        try:
            latest = channel.latest
            if latest is not None:
                yield {"event": latest.kind, "data": json.dumps(latest.to_dict())}
                if latest.kind == KIND_DONE:
                    return
            while True:
                if await request.is_disconnected():
                    break
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=1.0)
                except asyncio.TimeoutError:
                    continue
                yield {"event": message.kind, "data": json.dumps(message.to_dict())}
                if message.kind == KIND_DONE:
                    break
        finally:
            channel.clear_sink(sink)

    return EventSourceResponse(event_generator())
