"""
FastAPI application for Family Feed.

HTTP surface over the record synchronizer:
- Authentication (signup, login, logout, account deletion)
- Family member management, birth charts and important dates
- Upcoming important dates
- Health and local asset serving
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from src.api.auth_routes import router as auth_router
from src.api.member_routes import router as member_router
from src.api.middleware import RequestLoggingMiddleware, get_request_id
from src.api.models import HealthResponse
from src.config import get_settings
from src.services.backends import get_backends
from src.services.exceptions import (
    EmptyPayload,
    NotAuthenticated,
    OperationTimedOut,
    PayloadTooLarge,
    RecordNotFound,
    RecordAlreadyIdentified,
    RecordNotIdentified,
    RemoteError,
    SyncError,
)

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

# Most specific first; SyncError subclasses not listed fall back to 500
ERROR_STATUS_CODES: list[tuple[type[SyncError], int]] = [
    (NotAuthenticated, 401),
    (RecordNotIdentified, 400),
    (RecordAlreadyIdentified, 400),
    (RecordNotFound, 409),
    (EmptyPayload, 400),
    (PayloadTooLarge, 413),
    (OperationTimedOut, 504),
    (RemoteError, 502),
]


def status_code_for(exc: SyncError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return 500


# =============================================================================
# Application Lifecycle
# =============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    logger.info("Starting Family Feed API")
    if settings.is_production:
        settings.validate_production_config()

    backends = get_backends()
    if backends.provider == "local" and settings.is_development:
        from src.database import init_db

        await init_db()
    logger.info(f"Family Feed API started with {backends.provider} backend")

    yield

    logger.info("Shutting down Family Feed API")
    await backends.aclose()


# =============================================================================
# FastAPI Application
# =============================================================================


app = FastAPI(
    title="Family Feed API",
    description="""
# Family Feed API

Keeps track of family members, their birth charts and important dates.

## Authentication
1. **POST /auth/signup** or **POST /auth/login** returns a `session_token`
2. Send it as the `X-Session-Token` header on every other request

## Errors

Every failure returns `{"error_type", "message", "retryable"}`.

- **400** - Record not saved yet, or empty birth chart
- **401** - Missing or invalid session
- **409** - Record no longer exists
- **413** - Birth chart too large
- **422** - Validation error
- **502** - Backend failure
- **504** - Backend did not answer in time (retryable)
    """,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(RequestLoggingMiddleware)

app.include_router(auth_router)
app.include_router(member_router)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(SyncError)
async def sync_exception_handler(request, exc: SyncError):
    """Translate synchronizer failures into the error envelope."""
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.warning(
            f"[{get_request_id()}] {request.method} {request.url.path} failed: {exc.message}"
        )
    return JSONResponse(
        status_code=status_code,
        content={
            "error_type": exc.error_type,
            "message": exc.message,
            "retryable": exc.retryable,
        },
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request, exc: RequestValidationError):
    errors = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
    )
    return JSONResponse(
        status_code=422,
        content={
            "error_type": "validation_error",
            "message": errors,
            "retryable": False,
        },
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_type": "http_error",
            "message": exc.detail,
            "retryable": exc.status_code >= 500,
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"[{get_request_id()}] Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error_type": "internal_error",
            "message": "An unexpected error occurred",
            "retryable": True,
        },
    )


# =============================================================================
# Health & Assets
# =============================================================================


@app.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    tags=["System"],
)
async def health_check() -> HealthResponse:
    """Report API status and the configured backend."""
    backends = get_backends()
    return HealthResponse(status="healthy", version=API_VERSION, provider=backends.provider)


@app.get(
    "/assets/{name}",
    summary="Download a stored birth chart",
    tags=["System"],
    responses={200: {"content": {"image/jpeg": {}}}},
)
async def get_asset(name: str) -> Response:
    """
    Serve an asset from the local blob store.

    Only available with the local backend; Parse serves its own files.
    """
    from src.integrations.local import LocalBlobStore

    backends = get_backends()
    if not isinstance(backends.blobs, LocalBlobStore):
        raise HTTPException(status_code=404, detail="Assets are not served by this backend")

    stored = await backends.blobs.read(name)
    if stored is None:
        raise HTTPException(status_code=404, detail=f"Asset {name} not found")

    data, content_type = stored
    return Response(content=data, media_type=content_type)


# =============================================================================
# Run with Uvicorn
# =============================================================================


def run_server(host: str = "0.0.0.0", port: int = 8000, reload: bool = False):
    """Run the API server with Uvicorn."""
    import uvicorn

    uvicorn.run(
        "src.api.main:app",
        host=host,
        port=port,
        reload=reload,
    )


if __name__ == "__main__":
    settings = get_settings()
    run_server(host=settings.api_host, port=settings.api_port, reload=settings.api_reload)
