from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Response
from sqlalchemy.exc import SQLAlchemyError

from agentlog.config import settings
from agentlog.logging_config import configure_logging
from agentlog.metrics import metrics_endpoint
from agentlog.middleware.logging_middleware import RequestLoggingMiddleware
from agentlog.routers import logs
from agentlog.services.pipeline import build_pipeline

log = structlog.get_logger(__name__)


async def _create_schemas(pipeline) -> None:
    for adapter in pipeline.adapters:
        if not adapter.available or not hasattr(adapter, "create_schema"):
            continue
        try:
            await adapter.create_schema()
            log.info("schema_ready", store=adapter.name)
        except (SQLAlchemyError, OSError) as exc:
            log.warning("schema_create_failed", store=adapter.name, error=str(exc))


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure structured logging before anything else
    configure_logging()

    # Alias conflicts raise here, before the app starts serving
    app.state.pipeline = build_pipeline(settings)

    if settings.auto_create_schema:
        await _create_schemas(app.state.pipeline)

    try:
        yield
    finally:
        await app.state.pipeline.close()


app = FastAPI(title=f"{settings.app_name} API", version="0.1.0", lifespan=lifespan)

# Register request logging middleware (runs on every request)
app.add_middleware(RequestLoggingMiddleware)

app.include_router(logs.router)

# Prometheus metrics endpoint
app.get("/metrics")(metrics_endpoint)


@app.get("/health")
async def health_check(response: Response):
    """Health check across the configured stores.

    Returns 200 if every bound store answers, 503 if any bound store fails.
    Stores that are not bound in this deployment are reported as
    "unconfigured" and do not affect the status.
    """
    checks = {}
    overall_healthy = True

    for adapter in app.state.pipeline.adapters:
        if not adapter.available:
            checks[adapter.name] = {"status": "unconfigured"}
            continue
        try:
            await adapter.ping()
            checks[adapter.name] = {"status": "healthy"}
        except Exception as e:
            checks[adapter.name] = {"status": "unhealthy", "error": str(e)}
            overall_healthy = False

    response.status_code = 200 if overall_healthy else 503
    return {"status": "healthy" if overall_healthy else "unhealthy", "checks": checks}
