"""
Coordination API entry point.

Wires the event, hackathon and blog routers into one FastAPI app and
renders every failure as JSON: coordinator errors through
``format_error_response``, framework errors in an ``{"error": ...}`` envelope.
"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.routes import blog, events, submissions, teams
from config import settings
from integrations.appwrite.dependencies import get_appwrite_client
from services.errors import ServiceError, format_error_response


def setup_logging() -> None:
    """Send application logs to stdout at ``LOG_LEVEL``."""
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    # Request lines from uvicorn and httpx drown out coordinator logs
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


setup_logging()
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Community Platform Coordination API",
    description="Event registration, hackathon teams and submissions, and blog moderation",
    version=settings.API_VERSION,
    docs_url=f"/{settings.API_VERSION}/docs",
    redoc_url=f"/{settings.API_VERSION}/redoc",
    openapi_url="/openapi.json",
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

logger.info(f"CORS configured with allowed origins: {settings.cors_origins}")


# Routers
app.include_router(events.router)
app.include_router(teams.router)
app.include_router(submissions.router)
logger.info("Registered event and hackathon routes")
app.include_router(blog.router)
logger.info("Registered blog routes")


# Global Exception Handlers
def _envelope(request: Request, status_code: int, message: Any, **extra: Any) -> JSONResponse:
    """Framework-level errors share one ``{"error": {...}}`` body shape."""
    body = {"status_code": status_code, "message": message, **extra}
    body["path"] = str(request.url.path)
    return JSONResponse(status_code=status_code, content={"error": body})


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """
    Render a coordinator failure with its own status and error code.

    Client mistakes are logged at INFO, store and auth outages at ERROR.
    A 401 carries ``WWW-Authenticate`` so browsers and CLIs can prompt.
    """
    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"{request.method} {request.url.path} -> {exc.status_code} {exc.error_code}",
        extra={"error_code": exc.error_code, "status_code": exc.status_code},
    )

    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=format_error_response(exc, request.headers.get("x-request-id")),
        headers=headers,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes, wrong methods and other routing-level failures."""
    logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.detail}")
    return _envelope(request, exc.status_code, exc.detail)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Reject malformed request bodies and parameters.

    Only ``type``, ``loc`` and ``msg`` are kept per error; pydantic's
    ``ctx`` and ``input`` may hold values that do not serialize to JSON.
    """
    details = [
        {key: value for key, value in error.items() if key in ("type", "loc", "msg")}
        for error in exc.errors()
    ]
    logger.info(f"Rejected request body on {request.url.path}: {details}")
    return _envelope(
        request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", details=details
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled exception on {request.method} {request.url.path}: {exc}")
    return _envelope(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, Any]:
    """
    Liveness check.

    Does not touch Appwrite; use ``verify_appwrite.py`` to check the store.
    """
    return {
        "status": "healthy",
        "version": settings.API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.on_event("startup")
async def startup_event() -> None:
    logger.info(
        f"Coordination API {settings.API_VERSION} starting "
        f"(environment={settings.ENVIRONMENT}, log_level={settings.LOG_LEVEL})"
    )
    if not settings.APPWRITE_PROJECT_ID or not settings.APPWRITE_API_KEY:
        logger.warning("Appwrite credentials are not set; store-backed routes will return 503")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    """Close the pooled store connection, if one was opened."""
    if get_appwrite_client.cache_info().currsize:
        await get_appwrite_client().close()
    logger.info("Coordination API stopped")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )
