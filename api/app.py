# api/app.py
# NOTE:
# We intentionally rely on FastAPI's default exception handling for
# unexpected errors. The agents already convert upstream failures into
# classified errors; only truly unexpected exceptions propagate as 500.
# NOTE:
# Configuration is built once (load_settings) and injected. The app holds
# no other state across requests: a client is built per request.

import uuid
import json
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api.ai_routes import router as ai_router
from agents.client_factory import ClientFactory
from agents.stream_relay import StreamRelay
from agents.subtask_agent import SubtaskAgent
from core.config import GatewaySettings, load_settings
from core.health import full_health_check
from core.logging_config import setup_logging
from core.request_context import reset_request_id, set_request_id

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[GatewaySettings] = None,
    client_factory: Optional[ClientFactory] = None,
    configure_logging: bool = True,
) -> FastAPI:
    settings = settings or load_settings()
    client_factory = client_factory or ClientFactory(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: configure structured JSON logging
        if configure_logging:
            setup_logging(settings.log_level)

        if not settings.has_default_credential:
            logger.warning("No default API key is configured. AI features need a per-request key.")
        else:
            logger.info("Default API key is loaded", extra={"model": settings.default_model})

        yield

    app = FastAPI(
        title="AI Gateway",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.state.stream_relay = StreamRelay(client_factory, settings)
    app.state.subtask_agent = SubtaskAgent(client_factory, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Generate a unique request ID and store it in the context."""
        request_id = str(uuid.uuid4())
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            reset_request_id(token)
        response.headers["X-Request-ID"] = request_id
        return response

    app.include_router(ai_router, prefix=settings.route_prefix)

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "AI Gateway backend is running!"

    @app.get("/health")
    async def health():
        """Comprehensive health check for monitoring."""
        report = await full_health_check(settings)
        if report["dependencies"]["sdk"] != "ok":
            return Response(
                content=json.dumps(report),
                status_code=503,
                media_type="application/json"
            )
        return report

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
