"""
Exam Portal - FastAPI Application
Main application entry point with middleware, error envelope and route configuration
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from exam_portal.api.v1 import api_router
from exam_portal.core.config import settings
from exam_portal.core.database import init_db
from exam_portal.core.logging import setup_logging
from exam_portal.schemas.common import ApiResponse, ok
from exam_portal.services.errors import ExamPortalError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    await init_db()
    logger.info("Database tables initialized")

    yield


def _envelope(status_code: int, message: str, data=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": jsonable_encoder(data)},
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Answer every error with the same {success, message, data} envelope."""

    @app.exception_handler(ExamPortalError)
    async def domain_error_handler(request: Request, exc: ExamPortalError):
        logger.warning(
            "%s on %s: %s", type(exc).__name__, request.url.path, exc.message,
            extra={"status_code": exc.status_code, "path": request.url.path},
        )
        return _envelope(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _envelope(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _envelope(422, "Invalid request", data=exc.errors())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path, extra={"path": request.url.path})
        return _envelope(500, "An unexpected error occurred.")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Timed multiple-choice tests for enrolled students",
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Include API routes
    app.include_router(api_router, prefix=settings.API_V1_PREFIX)

    @app.get("/health", tags=["Health"], response_model=ApiResponse[dict])
    async def health_check():
        """Health check endpoint."""
        return ok("healthy", {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
        })

    # Same check under the API prefix for proxies that only forward /api/v1
    @app.get(f"{settings.API_V1_PREFIX}/health", tags=["Health"], response_model=ApiResponse[dict])
    async def api_v1_health_check():
        """API V1 Health check."""
        return ok("healthy", {
            "status": "healthy",
            "version": settings.APP_VERSION,
        })

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "exam_portal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
