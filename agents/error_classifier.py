# agents/error_classifier.py
"""
Single place where upstream failures are turned into user-facing text.

Every call site routes failures through classify() instead of forwarding
raw SDK errors. classify() never raises.
"""

import logging
import re

from core import metrics
from core.exceptions import ClassifiedError, ErrorKind
from core.request_context import get_request_id

logger = logging.getLogger(__name__)

GENERIC_UPSTREAM_MESSAGE = "An error occurred while contacting the Gemini API from the backend."
BLOCKED_MESSAGE = "The requested content was blocked by the safety policy."

CREDENTIAL_MARKERS = (
    "api key not valid",
    "api key invalid",
    "api_key_invalid",
    "permission denied",
    "permission_denied",
)

_REDACTIONS = (
    (re.compile(r"AIza[0-9A-Za-z_\-]{20,}"), "[REDACTED]"),
    (re.compile(r"(key=)[^&\s\"']+", re.IGNORECASE), r"\1[REDACTED]"),
)


def redact(text: str) -> str:
    for pattern, replacement in _REDACTIONS:
        text = pattern.sub(replacement, text)
    return text


def _safe_str(value) -> str:
    try:
        return str(value) if value is not None else ""
    except Exception:
        return ""


def _raw_message(raw_error) -> str:
    if isinstance(raw_error, str):
        return raw_error
    # google.genai APIError keeps the human text in `.message`
    message = getattr(raw_error, "message", None)
    if isinstance(message, str) and message:
        return message
    return _safe_str(raw_error)


def classify(raw_error, operation_name: str, model_used: str) -> ClassifiedError:
    message = redact(_raw_message(raw_error))
    # str() of an SDK error also carries the status and reason codes
    lowered = f"{message} {_safe_str(raw_error)}".lower()

    if any(marker in lowered for marker in CREDENTIAL_MARKERS):
        kind = ErrorKind.CREDENTIAL_INVALID
        text = f"AI Error (Backend): the API key used ({model_used}) is invalid or lacks permission."
    elif "blocked" in lowered:
        kind = ErrorKind.UPSTREAM_FAILURE
        text = f"AI Error ({operation_name} - {model_used}): {BLOCKED_MESSAGE}"
    else:
        kind = ErrorKind.UPSTREAM_FAILURE
        text = f"AI Error ({operation_name} - {model_used}): {message or GENERIC_UPSTREAM_MESSAGE}"

    logger.error("Gemini SDK error", extra={
        "request_id": get_request_id(),
        "operation": operation_name,
        "model": model_used,
        "kind": kind.value,
        "error_type": type(raw_error).__name__,
        "error": message,
    })
    metrics.record_upstream_error(kind.value)

    return ClassifiedError(kind=kind, message=text, model_used=model_used, operation=operation_name)
