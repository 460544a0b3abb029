# tests/conftest.py
import asyncio
import types

import pytest
from fastapi.testclient import TestClient

from agents.client_factory import ClientFactory
from api.app import create_app
from core.config import GatewaySettings


class FakeRawStream:
    """
    Stands in for the SDK's async stream of chunks.

    Closing awaits before flagging, like an HTTP response teardown, so a
    cancelled close leaves `stream_closed` False.
    """

    def __init__(self, models):
        self.models = models
        self._pending = list(models.fragments)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._pending:
            self.models.fragments_pulled += 1
            return types.SimpleNamespace(text=self._pending.pop(0))
        if self.models.stream_error is not None:
            raise self.models.stream_error
        if self.models.stall:
            await asyncio.Event().wait()
        raise StopAsyncIteration

    async def aclose(self):
        await asyncio.sleep(0)
        self.models.stream_closed = True


class FakeModels:
    """
    Stands in for `genai.Client(...).aio.models`.

    - fragments: texts yielded by the streaming call
    - stream_error: raised after the fragments have been yielded
    - stall: after the fragments, wait forever instead of finishing
    - call_error: raised when the call itself is issued
    - reply: text of the non-streaming reply
    """

    def __init__(self):
        self.fragments = []
        self.stream_error = None
        self.stall = False
        self.call_error = None
        self.reply = "[]"
        self.calls = []
        self.stream_closed = False
        self.fragments_pulled = 0

    async def generate_content_stream(self, *, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.call_error is not None:
            raise self.call_error
        return FakeRawStream(self)

    async def generate_content(self, *, model, contents, config):
        self.calls.append({"model": model, "contents": contents, "config": config})
        if self.call_error is not None:
            raise self.call_error
        return types.SimpleNamespace(text=self.reply)


class FakeGenaiClient:
    def __init__(self, models, api_key):
        self.api_key = api_key
        self.closed = False
        self.aio = types.SimpleNamespace(models=models, aclose=self._aclose)

    async def _aclose(self):
        self.closed = True


@pytest.fixture
def fake_models():
    return FakeModels()


@pytest.fixture
def built_clients():
    return []


@pytest.fixture
def settings():
    return GatewaySettings(default_api_key="test-key", default_model="gemini-test")


@pytest.fixture
def factory(settings, fake_models, built_clients):
    def build(api_key):
        client = FakeGenaiClient(fake_models, api_key)
        built_clients.append(client)
        return client

    return ClientFactory(settings, sdk_client_builder=build)


@pytest.fixture
def client(settings, factory):
    app = create_app(settings=settings, client_factory=factory, configure_logging=False)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def keyless_client(fake_models):
    settings = GatewaySettings(default_api_key=None, default_model="gemini-test")
    factory = ClientFactory(settings, sdk_client_builder=lambda key: FakeGenaiClient(fake_models, key))
    app = create_app(settings=settings, client_factory=factory, configure_logging=False)
    with TestClient(app) as c:
        yield c
