# core/config.py
"""
Process-wide gateway configuration.

Settings are read once at startup and handed to the client factory, the
orchestrators and the FastAPI app. Nothing mutates them afterwards, so
concurrent requests only ever see read-only defaults.
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple

from dotenv import load_dotenv

DEFAULT_MODEL_NAME = "gemini-2.5-flash-preview-04-17"

# Checked in order; the first non-empty value wins.
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY", "GEMINI_APIKEY")


def _split_list(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(item.strip() for item in raw.split(",") if item.strip())


def _truthy(raw: Optional[str]) -> bool:
    return (raw or "").strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class GatewaySettings:
    default_api_key: Optional[str] = None
    default_model: str = DEFAULT_MODEL_NAME
    no_thinking_models: Tuple[str, ...] = (DEFAULT_MODEL_NAME,)
    safety_filters: bool = False
    route_prefix: str = "/api/ai"
    cors_origins: Tuple[str, ...] = ("*",)
    log_level: str = "INFO"

    @property
    def has_default_credential(self) -> bool:
        return bool(self.default_api_key)

    def __repr__(self) -> str:
        # Never leak the credential through logs or tracebacks
        return (
            f"GatewaySettings(default_model={self.default_model!r}, "
            f"credential={'set' if self.has_default_credential else 'missing'}, "
            f"route_prefix={self.route_prefix!r})"
        )


def load_settings(env_file: Optional[str] = None) -> GatewaySettings:
    """
    Build settings from the environment (and an optional .env file).

    Empty strings are treated as unset so that `API_KEY=` in a .env file
    behaves the same as a missing variable.
    """
    load_dotenv(env_file)

    api_key = None
    for name in API_KEY_ENV_VARS:
        value = (os.getenv(name) or "").strip()
        if value:
            api_key = value
            break

    no_thinking = os.getenv("GEMINI_NO_THINKING_MODELS")
    cors = os.getenv("CORS_ORIGINS")

    return GatewaySettings(
        default_api_key=api_key,
        default_model=(os.getenv("GEMINI_MODEL") or "").strip() or DEFAULT_MODEL_NAME,
        no_thinking_models=_split_list(no_thinking) if no_thinking is not None else (DEFAULT_MODEL_NAME,),
        safety_filters=_truthy(os.getenv("GEMINI_SAFETY_FILTERS")),
        route_prefix=(os.getenv("AI_ROUTE_PREFIX") or "/api/ai").rstrip("/"),
        cors_origins=_split_list(cors) or ("*",),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )
