from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from joblands.api.v1.router import api_v1_router
from joblands.core.config import get_settings, validate_settings
from joblands.core.database import engine
from joblands.core.exceptions import (
    PipelineError,
    pipeline_error_handler,
    request_validation_error_handler,
)
from joblands.core.logging_config import configure_logging


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # Startup
    validate_settings(get_settings())
    yield
    # Shutdown
    await engine.dispose()


def create_app() -> FastAPI:
    settings = get_settings()
    configure_logging(settings)
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.include_router(api_v1_router, prefix="/api/v1")
    return app
