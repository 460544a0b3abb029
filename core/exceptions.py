# core/exceptions.py
"""
Centralized exception definitions for the AI gateway.

Why this exists:
- Avoid circular imports between the agents and the API layer
- Provide a common base exception (GatewayError)
- Keep the external error taxonomy (ErrorKind) in one place
- Allow structured catching at higher layers
"""

from enum import Enum
from typing import Any, Dict, Optional


# ============================================================
# Base Exceptions
# ============================================================

class GatewayError(Exception):
    """
    Root base exception for the entire application.
    All custom exceptions should inherit from this.
    """
    pass


class ErrorKind(str, Enum):
    CREDENTIAL_MISSING = "CredentialMissing"
    CREDENTIAL_INVALID = "CredentialInvalid"
    UPSTREAM_FAILURE = "UpstreamFailure"
    MALFORMED_RESPONSE = "MalformedResponse"


# ============================================================
# Client Resolution
# ============================================================

class ClientUnavailableError(GatewayError):
    """
    Raised when no upstream client can be built: no credential at all, or
    the SDK rejected the credential while constructing the client.

    This is reported before any call is attempted and is deliberately not
    part of the classified taxonomy.
    """

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


# ============================================================
# Classified Upstream Errors
# ============================================================

class ClassifiedError(GatewayError):
    """
    A failure shaped for end users. Built fresh for every failing call.

    `detail` carries diagnostic material (raw upstream text) and is only
    ever exposed in structured error bodies, never in stream notices.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        model_used: str,
        operation: str = "",
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.model_used = model_used
        self.operation = operation
        self.detail = detail

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "error": self.message,
            "kind": self.kind.value,
            "model": self.model_used,
        }
        if self.detail is not None:
            body["details"] = self.detail
        return body

    def __repr__(self) -> str:
        return f"ClassifiedError(kind={self.kind.value}, model={self.model_used!r}, message={self.message!r})"


# ============================================================
# Response Sanitizer
# ============================================================

class MalformedResponseError(GatewayError):
    """
    Raised when the upstream reply cannot be turned into the expected
    structure. `raw_text` is the untouched upstream reply.
    """

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text


class SyntaxInvalidError(MalformedResponseError):
    """The candidate text is not valid JSON."""

    def __init__(self, message: str, raw_text: str, candidate: str):
        super().__init__(message, raw_text)
        self.candidate = candidate


class ShapeInvalidError(MalformedResponseError):
    """The candidate parsed, but is not an array of strings."""

    def __init__(self, message: str, raw_text: str, parsed: Any):
        super().__init__(message, raw_text)
        self.parsed = parsed
