# agents/client_factory.py
import logging
from typing import Callable, Optional

from google import genai

from agents.gemini_client import GeminiAdapter
from core.config import GatewaySettings
from core.exceptions import ClientUnavailableError

logger = logging.getLogger(__name__)

UNAVAILABLE_MESSAGE = "AI Service Unavailable on Backend (API Key issue)."


def _build_sdk_client(api_key: str):
    return genai.Client(api_key=api_key)


class ClientFactory:
    """
    Builds one upstream client per request.

    Clients are never cached: the credential override can change from one
    request to the next, and the default credential is read-only.
    """

    def __init__(
        self,
        settings: GatewaySettings,
        sdk_client_builder: Callable[[str], object] = _build_sdk_client,
    ):
        self.settings = settings
        self._build = sdk_client_builder

    def resolve_client(self, credential_override: Optional[str] = None) -> GeminiAdapter:
        """
        Return a client for the override (or the default credential).

        Raises ClientUnavailableError when there is no credential or the SDK
        refuses to build a client with it. No upstream call is made here.
        """
        api_key = (credential_override or "").strip() or self.settings.default_api_key
        if not api_key:
            logger.error("No API key configured and no override was provided")
            raise ClientUnavailableError("no credential available")

        try:
            client = self._build(api_key)
        except Exception as e:
            # Same outcome as a missing key: nothing can be called
            logger.error("Failed to initialize Gemini client", extra={
                "error_type": type(e).__name__,
                "override": bool(credential_override),
            })
            raise ClientUnavailableError("client construction failed") from e

        return GeminiAdapter(client)
