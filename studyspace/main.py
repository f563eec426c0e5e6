"""
Main FastAPI application
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
import time
from prometheus_client import make_asgi_app, Counter, Histogram
import uuid

from studyspace.config import settings
from studyspace.core.database import init_db, close_db
from studyspace.core.exceptions import StudySpaceException
from studyspace.core.redis import init_redis, close_redis
from studyspace.core.logging import setup_logging
from studyspace.schemas.response import ErrorDetail, ErrorResponse
from studyspace.api.v1.api import api_router
from studyspace.api.v1.endpoints import health

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)

# Prometheus metrics - use try/except to avoid duplicate registration
try:
    REQUEST_COUNT = Counter(
        "studyspace_requests_total",
        "Total requests",
        ["method", "endpoint", "status"]
    )
    REQUEST_DURATION = Histogram(
        "studyspace_request_duration_seconds",
        "Request duration",
        ["method", "endpoint"]
    )
except ValueError:
    # Metrics already registered, get them from registry
    from prometheus_client import REGISTRY
    REQUEST_COUNT = REGISTRY._names_to_collectors["studyspace_requests_total"]
    REQUEST_DURATION = REGISTRY._names_to_collectors["studyspace_request_duration_seconds"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager
    """
    # Startup
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")

    await init_db()
    logger.info("Database connection established")

    # Seat locks only need Redis in multi-worker deployments
    if settings.SEAT_LOCK_BACKEND == "redis":
        await init_redis()

    yield

    # Shutdown
    logger.info("Shutting down application")
    await close_db()
    if settings.SEAT_LOCK_BACKEND == "redis":
        await close_redis()


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="Study space seat reservations",
    version=settings.APP_VERSION,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request tracking middleware
@app.middleware("http")
async def track_requests(request: Request, call_next):
    """
    Track request metrics and add request ID
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time

    # Route template rather than raw path keeps label cardinality bounded
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)

    REQUEST_COUNT.labels(
        method=request.method,
        endpoint=endpoint,
        status=response.status_code
    ).inc()

    REQUEST_DURATION.labels(
        method=request.method,
        endpoint=endpoint
    ).observe(duration)

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(duration)

    return response


def error_response(status_code: int, code: str, message: str, details=None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details or {}))
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


# Exception handlers
@app.exception_handler(StudySpaceException)
async def studyspace_exception_handler(request: Request, exc: StudySpaceException):
    if exc.status_code >= 500:
        logger.error(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    else:
        logger.info(f"{exc.code} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.code, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    return error_response(400, "VALIDATION_ERROR", "Invalid request", {"errors": errors})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404:
        return error_response(404, "NOT_FOUND", "The requested resource was not found")
    return error_response(exc.status_code, "HTTP_ERROR", str(exc.detail))


@app.exception_handler(500)
async def internal_error_handler(request: Request, exc):
    logger.error(f"Internal server error: {exc}", exc_info=True)
    return error_response(500, "INTERNAL_ERROR", "An internal server error occurred")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "environment": settings.APP_ENV,
        "api_docs": "/docs" if settings.DEBUG else None
    }


# Probes live at the root for the orchestrator and under the API prefix
app.include_router(api_router, prefix=settings.API_PREFIX)
app.include_router(
    health.router,
    prefix="/health",
    tags=["health"]
)

# Mount Prometheus metrics endpoint
if settings.PROMETHEUS_ENABLED:
    metrics_app = make_asgi_app()
    app.mount("/metrics", metrics_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "studyspace.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
