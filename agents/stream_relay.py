# agents/stream_relay.py
# NOTE:
# The relay produces typed events (Fragment / StreamError). Only the
# transport boundary (serialize_events) turns a StreamError into the
# "[[STREAM_ERROR]]<p ...>" text that clients already understand. Once the
# first fragment is out the HTTP status is committed, so an in-band notice
# appended after the partial output is the only failure signal available.
import html
import logging
import time
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Dict, List, Optional, Union

import anyio

from agents.client_factory import UNAVAILABLE_MESSAGE, ClientFactory
from agents.error_classifier import classify
from agents.gemini_client import default_safety_settings, user_turn
from agents.schemas import GenerationRequest
from core import metrics
from core.config import GatewaySettings
from core.exceptions import ClassifiedError, ClientUnavailableError, ErrorKind
from core.request_context import get_request_id

logger = logging.getLogger(__name__)

STREAM_ERROR_MARKER = "[[STREAM_ERROR]]"
OPERATION = "generateAiContentStream"


@dataclass(frozen=True)
class Fragment:
    text: str


@dataclass(frozen=True)
class StreamError:
    error: ClassifiedError


StreamEvent = Union[Fragment, StreamError]


def build_contents(request: GenerationRequest) -> List[Dict]:
    """Filtered history followed by the user prompt, forwarded as-is."""
    contents = [turn.to_content() for turn in request.conversation_turns()]
    contents.append(user_turn(request.user_prompt))
    return contents


class StreamRelay:
    """
    Streams one generation call to the caller.

    Idle -> ClientResolving -> Unavailable | Streaming -> Completed | Failed
    """

    def __init__(self, client_factory: ClientFactory, settings: GatewaySettings):
        self.client_factory = client_factory
        self.settings = settings

    def build_config(self, request: GenerationRequest) -> Dict:
        config: Dict = {}
        system_instruction = request.system_instruction
        if system_instruction and system_instruction.strip():
            config["system_instruction"] = system_instruction
        if self.settings.safety_filters:
            config["safety_settings"] = default_safety_settings()
        return config

    async def relay(self, request: GenerationRequest) -> AsyncIterator[StreamEvent]:
        model = request.selected_model or self.settings.default_model
        request_id = get_request_id()
        client = None
        stream = None
        started_at: Optional[float] = None
        first_fragment = True
        # Anything that leaves without reaching a terminal state was closed by the caller
        status = "cancelled"

        metrics.record_stream_start()
        try:
            try:
                client = self.client_factory.resolve_client(request.custom_api_key)
            except ClientUnavailableError as e:
                status = "unavailable"
                logger.error("Stream rejected, no usable client", extra={
                    "request_id": request_id,
                    "model": model,
                    "reason": e.reason,
                })
                yield StreamError(ClassifiedError(
                    kind=ErrorKind.CREDENTIAL_MISSING,
                    message=UNAVAILABLE_MESSAGE,
                    model_used=model,
                    operation=OPERATION,
                ))
                return

            contents = build_contents(request)
            config = self.build_config(request)
            logger.info("Calling Gemini generateContentStream", extra={
                "request_id": request_id,
                "model": model,
            })

            started_at = time.monotonic()
            try:
                stream = await client.open_stream(model=model, contents=contents, config=config)
                async for text in stream:
                    if first_fragment:
                        logger.info("Gemini first fragment", extra={
                            "request_id": request_id,
                            "model": model,
                            "ttft_sec": round(time.monotonic() - started_at, 3),
                        })
                        first_fragment = False
                    yield Fragment(text)
            except Exception as e:
                status = "error"
                yield StreamError(classify(e, OPERATION, model))
                return

            status = "success"
        finally:
            # Shielded: a caller disconnect cancels the response task group,
            # which would otherwise cut the upstream close short
            with anyio.CancelScope(shield=True):
                if stream is not None:
                    await stream.aclose()
                if client is not None:
                    await client.close()
            duration = None if started_at is None else time.monotonic() - started_at
            metrics.record_stream_end(status, duration)
            logger.info("Stream finalized", extra={
                "request_id": request_id,
                "model": model,
                "status": status,
                "fragments_sent": not first_fragment,
            })


def render_stream_error(error: ClassifiedError) -> str:
    """Wire form of an in-band error; the message is escaped, never raw HTML."""
    return f'{STREAM_ERROR_MARKER}<p class="text-red-400 font-semibold">{html.escape(error.message)}</p>'


async def serialize_events(
    events: AsyncIterator[StreamEvent],
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
) -> AsyncIterator[str]:
    """
    Transport boundary: fragments become plain text, a StreamError becomes
    the sentinel notice. Stops without a notice once the caller is gone.
    """
    try:
        async for event in events:
            if is_disconnected is not None and await is_disconnected():
                logger.info("Caller disconnected, stopping relay", extra={
                    "request_id": get_request_id(),
                })
                break
            if isinstance(event, Fragment):
                yield event.text
            else:
                yield render_stream_error(event.error)
    finally:
        with anyio.CancelScope(shield=True):
            await events.aclose()
