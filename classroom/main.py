# Standard library imports
from contextlib import asynccontextmanager

# Third-party imports
from fastapi import FastAPI, Request
from fastapi.exceptions import (
    HTTPException as StarletteHTTPException,
    RequestValidationError,
)
from fastapi.middleware.cors import CORSMiddleware

# Local imports
from classroom import __version__
from classroom.api.v1.routes.router import router as api_v1_router
from classroom.core.config import settings
from classroom.core.errors import ClassroomError
from classroom.core.logging_config import get_logger, setup_logging
from classroom.core.response import (
    classroom_error_response,
    error_response,
    validation_error_response,
)
from classroom.services.attempts.registry import attempt_registry
from classroom.services.identity import identity_service

# Initialize centralized logger
setup_logging()
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup and shutdown operations."""
    # Startup: live attempts follow the identity collaborator
    attempt_registry.configure(
        tick_seconds=settings.ATTEMPT_TICK_SECONDS,
        default_language=settings.DEFAULT_CODE_LANGUAGE,
    )
    unsubscribe = identity_service.add_listener(attempt_registry.handle_identity_change)
    logger.info(f"Classroom API {__version__} starting ({settings.ENVIRONMENT})")
    yield
    # Shutdown: stop every countdown, let in-flight submissions land
    unsubscribe()
    await attempt_registry.shutdown()


# Initialize FastAPI
app = FastAPI(
    title="C Classroom API",
    description="Lessons, timed exercises, submissions and grading for a C programming course",
    version=__version__,
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

# Include the router with prefix
app.include_router(
    api_v1_router,
    prefix="/api/v1",
)


# Custom exception handler
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Handle HTTP exceptions with logging"""
    # exc.detail might be a dict or str
    msg = exc.detail if isinstance(exc.detail, str) else str(exc.detail)

    logger.warning(
        f"HTTP Exception: {exc.status_code} - {msg}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
            "client_ip": request.client.host if request.client else None
        }
    )

    return error_response(msg, status_code=exc.status_code)


@app.exception_handler(ClassroomError)
async def classroom_exception_handler(request: Request, exc: ClassroomError):
    """Domain errors carry their own status code and error code."""
    logger.warning(
        f"{exc.error_code}: {exc.message}",
        extra={"path": request.url.path, "method": request.method},
    )
    return classroom_error_response(exc)


# Pydantic validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Structured validation error details with logging"""
    error_count = len(exc.errors())
    logger.warning(
        f"Validation Error: {error_count} field(s) failed validation",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_count": error_count,
        }
    )

    return validation_error_response(exc.errors(), status_code=422)


# Add CORS middleware
logger.info(f"Configuring CORS middleware with origins: {settings.ALLOWED_ORIGINS}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=settings.ALLOW_CREDENTIALS,
    allow_methods=settings.ALLOWED_METHODS,
    allow_headers=settings.ALLOWED_HEADERS,
)


# Run the app
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "classroom.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
