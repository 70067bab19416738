"""
FastAPI application entry point.

Run with: uvicorn taxonkey.main:app --reload
"""

from contextlib import asynccontextmanager
import uuid

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from taxonkey.core.config import settings
from taxonkey.core.logging import configure_logging, get_logger, bind_context, clear_context
from taxonkey.core.matrix_loader import load_matrix
from taxonkey.api.routes import evaluation, health, matrix
from taxonkey.api.exception_handlers import setup_exception_handlers

# Configure logging before anything else
configure_logging()
log = get_logger(__name__)


# =============================================================================
# Correlation ID Middleware
# =============================================================================


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique correlation ID to each request.

    - Generates a UUID4 request_id for each incoming request
    - Binds it to structlog context for all logs in that request
    - Adds X-Request-ID header to responses
    """

    async def dispatch(self, request: Request, call_next):
        """Process request and add correlation ID."""
        request_id = str(uuid.uuid4())

        bind_context(request_id=request_id)

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Loads the trait matrix named by MATRIX_PATH at startup. Without one the
    service still starts, and identification routes answer 503 until a
    matrix is attached to app.state.
    """
    log.info(
        "application_starting",
        debug=settings.debug,
        matrix_path=str(settings.matrix_path) if settings.matrix_path else None,
    )

    if getattr(app.state, "matrix", None) is None:
        app.state.matrix = None
        if settings.matrix_path is not None:
            # Fail fast on a configured but unreadable matrix
            app.state.matrix = load_matrix(settings.matrix_path)
        else:
            log.warning("matrix_not_configured")

    log.info("application_started")

    yield

    log.info("application_shutting_down")


# Create FastAPI application
app = FastAPI(
    title="TaxonKey",
    description="Specimen identification by trait-matrix scoring and next-trait recommendation",
    version="0.1.0",
    lifespan=lifespan,
    debug=settings.debug,
)

# CORS middleware for development
if settings.debug:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(CorrelationIDMiddleware)

setup_exception_handlers(app)

app.include_router(health.router, tags=["system"])
app.include_router(evaluation.router)
app.include_router(matrix.router)


# Root endpoint
@app.get("/")
async def root():
    """Root endpoint with basic info."""
    return {"name": "TaxonKey", "version": "0.1.0", "status": "running"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "taxonkey.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
