"""FastAPI application."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from hoteldocs.app.api.routes.blobs import router as blobs_router
from hoteldocs.app.api.routes.chat import router as chat_router
from hoteldocs.app.api.routes.documents import router as documents_router
from hoteldocs.app.api.routes.health import router as health_router
from hoteldocs.app.api.routes.metrics import router as metrics_router
from hoteldocs.app.api.routes.search import router as search_router
from hoteldocs.app.config import get_settings
from hoteldocs.app.errors import HotelDocsError, error_envelope
from hoteldocs.app.utils.logging import configure_logging

logger = logging.getLogger(__name__)

configure_logging(get_settings().log_level)

app = FastAPI(title="Hotel Document Search API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(search_router)
app.include_router(chat_router)
app.include_router(documents_router)
app.include_router(blobs_router)


@app.exception_handler(HotelDocsError)
async def hoteldocs_error_handler(request: Request, exc: HotelDocsError) -> JSONResponse:
    """Serialise domain errors into the failure envelope."""
    if exc.status_code >= 500:
        logger.error(f"[{request.method} {request.url.path}] {exc.summary}: {exc.details}")
    else:
        logger.info(f"[{request.method} {request.url.path}] {exc.summary}: {exc.details}")
    return JSONResponse(status_code=exc.status_code, content=error_envelope(exc))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies are client errors (400)."""
    errors = exc.errors()
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()) if p != 'body')}: {err.get('msg')}"
        for err in errors
    )
    return JSONResponse(status_code=400, content={"error": "Invalid input", "details": details})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler; never leaks a stack trace."""
    logger.exception(f"[{request.method} {request.url.path}] unhandled error")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": type(exc).__name__},
    )


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Hotel Document Search API", "version": "0.1.0"}
