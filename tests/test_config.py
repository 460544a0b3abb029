# tests/test_config.py
import dataclasses

import pytest

from core.config import DEFAULT_MODEL_NAME, GatewaySettings, load_settings

ENV_VARS = (
    "GEMINI_API_KEY", "API_KEY", "GEMINI_APIKEY", "GEMINI_MODEL",
    "GEMINI_NO_THINKING_MODELS", "GEMINI_SAFETY_FILTERS", "AI_ROUTE_PREFIX",
    "CORS_ORIGINS", "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # setenv first so teardown also removes values loaded from .env files
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    # Keep any developer .env out of the picture
    monkeypatch.chdir(tmp_path)


def test_defaults(tmp_path):
    s = load_settings(str(tmp_path / "missing.env"))
    assert s.default_api_key is None
    assert s.default_model == DEFAULT_MODEL_NAME
    assert s.no_thinking_models == (DEFAULT_MODEL_NAME,)
    assert s.route_prefix == "/api/ai"
    assert s.safety_filters is False


def test_key_precedence(monkeypatch, tmp_path):
    monkeypatch.setenv("API_KEY", "legacy")
    monkeypatch.setenv("GEMINI_API_KEY", "")
    assert load_settings(str(tmp_path / "missing.env")).default_api_key == "legacy"
    monkeypatch.setenv("GEMINI_API_KEY", "primary")
    assert load_settings(str(tmp_path / "missing.env")).default_api_key == "primary"


def test_env_file(tmp_path):
    env = tmp_path / ".env"
    env.write_text("GEMINI_APIKEY=from-file\nGEMINI_MODEL=gemini-x\nGEMINI_SAFETY_FILTERS=true\n")
    s = load_settings(str(env))
    assert s.default_api_key == "from-file"
    assert s.default_model == "gemini-x"
    assert s.safety_filters is True


def test_settings_are_immutable_and_hide_key():
    s = GatewaySettings(default_api_key="super-secret")
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.default_model = "other"
    assert "super-secret" not in repr(s)
