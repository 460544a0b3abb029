# agents/gemini_client.py
# NOTE:
# This adapter is the only module that touches the google-genai SDK.
# It normalizes SDK responses to plain text so the relay and the
# subtask orchestrator never look at SDK response objects.
import asyncio
import logging
import time
from typing import Any, AsyncIterator, Dict, List, Optional

from core.request_context import get_request_id

logger = logging.getLogger(__name__)

SAFETY_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


def default_safety_settings() -> List[Dict[str, str]]:
    return [
        {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
        for category in SAFETY_CATEGORIES
    ]


def user_turn(text: str) -> Dict[str, Any]:
    return {"role": "user", "parts": [{"text": text}]}


# --- Text view over an SDK stream ---
class TextFragmentStream:
    """
    Async iterator of the non-empty text in each SDK chunk.

    A plain async generator would skip its `finally` when closed before the
    first `__anext__`, leaving the SDK stream open. aclose() here closes the
    SDK stream whether or not iteration ever started, and only once.
    """

    def __init__(self, raw_stream):
        self._raw = raw_stream
        self._iter = raw_stream.__aiter__()
        self._closed = False

    def __aiter__(self):
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration
        while True:
            chunk = await self._iter.__anext__()
            text = getattr(chunk, "text", None)
            # Chunks without text (e.g. usage-only frames) are skipped
            if isinstance(text, str) and text:
                return text

    async def aclose(self):
        if self._closed:
            return
        self._closed = True
        close = getattr(self._raw, "aclose", None) or getattr(self._iter, "aclose", None)
        if callable(close):
            await close()


# ----------------------------------------------------------------------
# Provider Adapter – normalizes Gemini responses to text
# ----------------------------------------------------------------------
class GeminiAdapter:
    """
    Wraps a `google.genai.Client` built for a single request.

    Exposes the two upstream calls the gateway needs:
      - open_stream(): lazy, finite, non-restartable text fragments
      - create_completion(): one text result
    """

    provider = "gemini"

    def __init__(self, client):
        self.client = client

    async def open_stream(
        self,
        *,
        model: str,
        contents: List[Dict[str, Any]],
        config: Optional[Dict[str, Any]] = None,
    ) -> AsyncIterator[str]:
        """Issue the streaming call. Returns a TextFragmentStream."""
        logger.info("Opening Gemini stream", extra={
            "request_id": get_request_id(),
            "model": model,
            "turns": len(contents),
        })
        raw_stream = await self.client.aio.models.generate_content_stream(
            model=model,
            contents=contents,
            config=config or {},
        )
        return TextFragmentStream(raw_stream)

    async def create_completion(
        self,
        *,
        model: str,
        contents: List[Dict[str, Any]],
        config: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Non-streaming call. Returns the reply text ('' when the reply has none)."""
        start = time.monotonic()
        response = await self.client.aio.models.generate_content(
            model=model,
            contents=contents,
            config=config or {},
        )
        text = getattr(response, "text", None)
        logger.info("Gemini completion received", extra={
            "request_id": get_request_id(),
            "model": model,
            "latency_sec": round(time.monotonic() - start, 3),
        })
        return text if isinstance(text, str) else ""

    async def close(self):
        """Close the underlying client if possible."""
        try:
            aio = getattr(self.client, "aio", None)
            close_method = getattr(aio, "aclose", None) or getattr(self.client, "close", None)
            if callable(close_method):
                maybe = close_method()
                if asyncio.iscoroutine(maybe):
                    await maybe
        except Exception as e:
            logger.warning("gemini_client_close_failed", extra={"error": str(e)})
