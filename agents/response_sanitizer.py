# agents/response_sanitizer.py
"""
Turns a model reply into a validated list of subtasks.

Two stages, kept apart on purpose so logs can tell them apart:
  1. extract_json() + parse_candidate(): is the reply valid JSON at all?
     (SyntaxInvalidError)
  2. validate_subtask_list(): is the parsed value an array of strings?
     (ShapeInvalidError)
Both are MalformedResponseError, which is all the API layer reports.
"""

import json
import re
from typing import Any, List, Optional

from core.exceptions import ShapeInvalidError, SyntaxInvalidError

# Optional language tag, optional newline, body, closing fence at the very end.
FENCE_RE = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)


def extract_json(raw_text: str) -> str:
    """Strip a surrounding ``` fence if present; always trims whitespace."""
    candidate = (raw_text or "").strip()
    match = FENCE_RE.match(candidate)
    if match and match.group(2):
        candidate = match.group(2).strip()
    return candidate


def parse_candidate(candidate: str, raw_text: Optional[str] = None) -> Any:
    raw = candidate if raw_text is None else raw_text
    try:
        return json.loads(candidate)
    except (json.JSONDecodeError, TypeError) as e:
        raise SyntaxInvalidError(f"Failed to parse AI subtask response: {e}", raw, candidate) from e


def validate_subtask_list(value: Any, raw_text: Optional[str] = None) -> List[str]:
    """
    Accept only a JSON array whose items are all strings.

    An already-valid list comes back unchanged, so validating twice is a no-op.
    """
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raw = raw_text if raw_text is not None else repr(value)
        raise ShapeInvalidError("AI returned an invalid format for subtasks.", raw, value)
    return value


def sanitize_subtasks(raw_text: str) -> List[str]:
    candidate = extract_json(raw_text)
    parsed = parse_candidate(candidate, raw_text)
    return validate_subtask_list(parsed, raw_text)
