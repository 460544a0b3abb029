# api/ai_routes.py
# NOTE:
# /generate-stream always answers 200 with a text/plain body. Failures,
# including a missing credential, are reported in-band with the
# [[STREAM_ERROR]] sentinel. /generate-subtasks uses status codes:
# 503 when no client could be built, 500 for classified failures.
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from agents.client_factory import UNAVAILABLE_MESSAGE
from agents.schemas import GenerationRequest, SubtaskRequest
from agents.stream_relay import serialize_events
from core.exceptions import ClassifiedError, ClientUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate-stream")
async def generate_stream(req: GenerationRequest, request: Request):
    """Relay a streamed generation call as plain text."""
    relay = request.app.state.stream_relay
    events = relay.relay(req)
    return StreamingResponse(
        serialize_events(events, request.is_disconnected),
        media_type="text/plain; charset=utf-8",
    )


@router.post("/generate-subtasks")
async def generate_subtasks(req: SubtaskRequest, request: Request):
    """Break a task into subtasks; returns a JSON array of strings."""
    agent = request.app.state.subtask_agent
    try:
        return await agent.generate_subtasks(req)
    except ClientUnavailableError:
        return JSONResponse(status_code=503, content={"error": UNAVAILABLE_MESSAGE})
    except ClassifiedError as e:
        return JSONResponse(status_code=500, content=e.to_dict())
