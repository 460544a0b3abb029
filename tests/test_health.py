# tests/test_health.py
import pytest

from core.config import GatewaySettings
from core.health import full_health_check


@pytest.mark.asyncio
async def test_health_ok():
    result = await full_health_check(GatewaySettings(default_api_key="k"))
    assert result["status"] == "ok"


@pytest.mark.asyncio
async def test_health_degraded_without_default_key():
    result = await full_health_check(GatewaySettings(default_api_key=None))
    assert result["status"] == "degraded"
    assert result["dependencies"]["gemini_credential"] == "missing"


def test_health_endpoint(keyless_client):
    resp = keyless_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "degraded"
