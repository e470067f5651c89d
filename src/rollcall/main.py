"""Main entry point for the Rollcall application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from rollcall import __version__
from rollcall.api.v1 import (
    checkin_router,
    overrides_router,
    system_router,
    verification_router,
)
from rollcall.core.errors import InvalidInput, PresenceError
from rollcall.core.logging_config import configure_logging
from rollcall.core.settings import settings
from rollcall.services.presence import get_presence_service
from rollcall.services.salt import SaltRotationWorker

logger = logging.getLogger(__name__)

VALUE_ERROR_PREFIX = "Value error, "

# Initialize FastAPI app
app = FastAPI(
    title="Rollcall API",
    description="Presence verification for classroom check-ins",
    version=__version__,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(verification_router, prefix="/api/v1")
app.include_router(checkin_router, prefix="/api/v1")
app.include_router(overrides_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(PresenceError)
async def presence_error_handler(request: Request, exc: PresenceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    message = str(first.get("msg", ""))
    if message.startswith(VALUE_ERROR_PREFIX):
        return message[len(VALUE_ERROR_PREFIX):]
    loc = [part for part in first.get("loc", ()) if isinstance(part, str)]
    field = loc[-1] if loc and loc[-1] not in {"body", "query"} else "request body"
    return f"Invalid {field}"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    error = InvalidInput(_describe_validation_error(exc))
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(settings.log_level)
    worker = SaltRotationWorker(get_presence_service().rotator)
    await worker.start()
    app.state.salt_worker = worker
    logger.info("Rollcall %s ready (device conflict policy: %s)",
                __version__, settings.device_conflict_policy)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: SaltRotationWorker | None = getattr(app.state, "salt_worker", None)
    if worker:
        await worker.stop()


@app.get("/health")
async def health_check() -> dict[str, bool]:
    """Health check endpoint to verify the service is running."""
    return {"ok": True}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Rollcall API",
        "version": __version__,
        "description": "Presence verification for classroom check-ins",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("rollcall.main:app", host="0.0.0.0", port=8080, reload=settings.debug)
