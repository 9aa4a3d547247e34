"""FastAPI application factory - operational endpoints around the Advance Pay services"""

from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from sqlalchemy.orm import Session
from starlette.responses import Response

from advancepay_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from advancepay_gateway.container import build_services
from advancepay_gateway.infrastructure.observability.logging import setup_logging
from advancepay_gateway.config import settings


def create_app(session_factory: Optional[Callable[[], Session]] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        factory = session_factory
        if factory is None:
            from advancepay_gateway.infrastructure.database.session import SessionLocal

            factory = SessionLocal

        app.state.services = build_services(factory)
        try:
            yield
        finally:
            app.state.services.shutdown()

    app = FastAPI(
        title="Advance Pay Gateway",
        description="Advance Pay rollover and loan decision service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check(request: Request):
        services = getattr(request.app.state, "services", None)
        return {
            "status": "ok",
            "service": settings.service_name,
            "pending_rollover_completions": services.completions.pending_count() if services else 0,
        }

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    return app


app = create_app()
