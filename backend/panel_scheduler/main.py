"""Application entry point."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api import api_router
from .api.deps import status_for
from .core.config import settings
from .core.errors import SchedulingError
from .core.logging import RequestIDMiddleware, init_logging
from .scheduling.service import InterviewService
from .storage import StorageError

logger = logging.getLogger(__name__)


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    return JSONResponse(
        status_code=status_for(exc.code),
        content={"error": exc.code, "message": str(exc)},
    )


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    logger.warning("Storage conflict on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=409,
        content={"error": "storage_conflict", "message": str(exc)},
    )


def create_app(service: Optional[InterviewService] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    init_logging(settings.LOG_LEVEL)

    app = FastAPI(title="Panel Scheduler")
    app.state.service = service or InterviewService.from_settings(settings)
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(SchedulingError, scheduling_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.include_router(api_router)
    return app


app = create_app()
