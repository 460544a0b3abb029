# tests/test_error_classifier.py
import pytest

from agents.error_classifier import GENERIC_UPSTREAM_MESSAGE, classify, redact
from core.exceptions import ErrorKind


@pytest.mark.parametrize("message", [
    "API key not valid. Please pass a valid API key.",
    "403 PERMISSION_DENIED",
    "Permission denied on resource",
    "reason: API_KEY_INVALID",
])
def test_credential_failures(message):
    err = classify(RuntimeError(message), "generateAiContentStream", "gemini-test")
    assert err.kind == ErrorKind.CREDENTIAL_INVALID
    assert "gemini-test" in err.message
    assert message not in err.message


def test_other_failures_wrap_raw_message():
    err = classify(RuntimeError("503 model overloaded"), "generateSubtasksForTask", "gemini-test")
    assert err.kind == ErrorKind.UPSTREAM_FAILURE
    assert "generateSubtasksForTask" in err.message
    assert "gemini-test" in err.message
    assert "503 model overloaded" in err.message
    assert err.model_used == "gemini-test"


def test_missing_message_uses_generic_text():
    err = classify(RuntimeError(), "op", "m")
    assert err.kind == ErrorKind.UPSTREAM_FAILURE
    assert GENERIC_UPSTREAM_MESSAGE in err.message


def test_classify_never_raises_on_odd_input():
    class Weird(Exception):
        def __str__(self):
            raise ValueError("boom")

    err = classify(Weird(), "op", "m")
    assert err.kind == ErrorKind.UPSTREAM_FAILURE
    assert classify(None, "op", "m").kind == ErrorKind.UPSTREAM_FAILURE


def test_safety_block_gets_fixed_message():
    err = classify(RuntimeError("Response was blocked due to SAFETY"), "op", "m")
    assert err.kind == ErrorKind.UPSTREAM_FAILURE
    assert "safety policy" in err.message


def test_keys_are_redacted():
    leaked = "AIza" + "x" * 35
    err = classify(RuntimeError(f"bad request for {leaked} at https://x/?key=secret123"), "op", "m")
    assert leaked not in err.message
    assert "secret123" not in err.message
    assert redact("key=abc&alt=sse") == "key=[REDACTED]&alt=sse"
