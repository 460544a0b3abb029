# core/health.py

import importlib.util
from typing import Dict

from core.config import GatewaySettings


def check_credential(settings: GatewaySettings) -> str:
    return "ok" if settings.has_default_credential else "missing"


def check_sdk() -> str:
    try:
        return "ok" if importlib.util.find_spec("google.genai") is not None else "fail"
    except ModuleNotFoundError:
        return "fail"


async def full_health_check(settings: GatewaySettings) -> Dict:
    """
    Report whether the gateway can serve requests without a per-request key.

    A missing default credential only degrades the service: callers may
    still send their own key with each request.
    """
    results = {
        "gemini_credential": check_credential(settings),
        "sdk": check_sdk(),
    }

    overall = "ok" if all(v == "ok" for v in results.values()) else "degraded"

    return {
        "status": overall,
        "dependencies": results
    }
