from contextlib import asynccontextmanager
import logging
import time

from fastapi import FastAPI
from starlette.requests import Request

from nursejobs.api.router import api_router
from nursejobs.core.config import get_settings
from nursejobs.core.taxonomy import get_taxonomy_registry
from nursejobs.core.telemetry import setup_api_telemetry, shutdown_api_telemetry
from nursejobs.services.repository import get_repository

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The registry is immutable for the life of the process; build it before serving.
    taxonomy = get_taxonomy_registry()
    logger.info(
        "api starting environment=%s dimensions=%s",
        settings.environment,
        ",".join(f"{dimension.name}:{len(dimension)}" for dimension in taxonomy.dimensions()),
    )
    try:
        yield
    finally:
        shutdown_api_telemetry(app, app.state.telemetry)
        await get_repository().close()
        get_repository.cache_clear()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.state.telemetry = setup_api_telemetry(app, settings)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started_at = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started_at) * 1000.0
    level = logging.WARNING if response.status_code >= 500 else logging.INFO
    logger.log(
        level,
        "http request method=%s path=%s query=%s status=%s duration_ms=%.2f",
        request.method,
        request.url.path,
        request.url.query or "-",
        response.status_code,
        elapsed_ms,
    )
    return response


app.include_router(api_router)
