"""
Main application entry point for the Energy Measurements API service.
Initializes FastAPI app, database and error handling, and starts the service.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.routes import router as api_router
from src.config import settings
from src.database.service import db_service
from src.exceptions import InternalServerError, MeasurementAPIException
from src.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

HTTP_ERROR_NAMES = {
    400: "BadRequest",
    404: "NotFound",
    405: "MethodNotAllowed",
    500: "InternalServerError",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup and shutdown procedures.
    """
    # Startup
    setup_logging()
    await db_service.init_database()

    yield

    # Shutdown
    await db_service.close()


async def handle_api_exception(request: Request, exc: MeasurementAPIException) -> JSONResponse:
    """Render domain errors as {error, message, details}."""
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=exc.error_name)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework errors (unknown routes, wrong methods) in the same shape."""
    payload = {
        "error": HTTP_ERROR_NAMES.get(exc.status_code, "Error"),
        "message": exc.detail if exc.status_code != 404 else "Route not found.",
    }
    if exc.status_code == 404:
        payload["details"] = {"path": request.url.path}
    return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)


async def handle_unexpected_exception(request: Request, exc: Exception) -> JSONResponse:
    """Last resort for errors no other handler claimed; the cause is logged, not returned."""
    logger.error("Unhandled error", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=500, content=InternalServerError().to_payload())


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """
    app = FastAPI(
        title="Energy Measurements API",
        description="Yearly energy measurements per country - filtered queries, statistics and date ranges",
        version="1.0.0",
        docs_url="/docs" if settings.api_debug else None,
        redoc_url="/redoc" if settings.api_debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.add_exception_handler(MeasurementAPIException, handle_api_exception)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_exception)

    # Include API routes
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
        log_level=settings.log_level.lower(),
    )
