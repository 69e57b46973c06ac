"""
Main FastAPI application with middleware and monitoring
"""
from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
import time
import uuid
from contextlib import asynccontextmanager

from globalacademy.config import settings
from globalacademy.core.logging import get_logger, setup_logging, request_id_var
from globalacademy.core.exceptions import GlobalAcademyError
from globalacademy.dependencies import get_storage, prepare_storage, shutdown_services
from globalacademy.routes import course_routes, module_routes, quiz_routes


logger = get_logger(__name__)

SERVICE_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    # Startup
    setup_logging()
    logger.info("Global Academy content service starting up",
               environment=settings.environment.value,
               storage_backend=settings.storage_backend.value,
               translation_backend=settings.translation_backend.value,
               debug=settings.debug)
    await prepare_storage(get_storage(), settings)

    yield

    # Shutdown
    logger.info("Global Academy content service shutting down")
    await shutdown_services()


app = FastAPI(
    title="Global Academy Content Service",
    version=SERVICE_VERSION,
    description="Localized course content with AI-generated quizzes, feedback and summaries",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing"""
    start_time = time.time()

    logger.info("request_received",
               method=request.method,
               path=request.url.path,
               client=request.client.host if request.client else None)

    try:
        response = await call_next(request)
        duration = time.time() - start_time

        logger.info("request_completed",
                   method=request.method,
                   path=request.url.path,
                   status_code=response.status_code,
                   duration_seconds=duration)

        response.headers["X-Process-Time"] = str(duration)
        return response

    except Exception as e:
        duration = time.time() - start_time
        logger.error("request_failed",
                    method=request.method,
                    path=request.url.path,
                    error=str(e),
                    duration_seconds=duration)
        raise


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    """Add request ID to all requests"""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request_id_var.set(request_id)

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id

    return response


@app.exception_handler(GlobalAcademyError)
async def handle_global_academy_error(request: Request, exc: GlobalAcademyError):
    """Handle custom exceptions"""
    log = logger.warning if exc.status_code < 500 else logger.error
    log("Application error",
        error=exc.message,
        details=exc.details,
        status_code=exc.status_code,
        path=request.url.path)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.message,
            "details": exc.details,
            "request_id": request_id_var.get()
        }
    )


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client errors"""
    logger.warning("Request validation failed",
                  path=request.url.path,
                  errors=len(exc.errors()))

    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "details": jsonable_encoder(exc.errors()),
            "request_id": request_id_var.get()
        }
    )


@app.exception_handler(Exception)
async def handle_generic_exception(request: Request, exc: Exception):
    """Handle unexpected exceptions"""
    logger.error("Unexpected error",
                error=str(exc),
                error_type=type(exc).__name__,
                path=request.url.path)

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": str(exc) if settings.debug else "An unexpected error occurred",
            "request_id": request_id_var.get()
        }
    )


# Include routers
app.include_router(course_routes.router)
app.include_router(module_routes.router)
app.include_router(quiz_routes.router)


@app.get("/health")
async def health():
    """Basic health check"""
    return {
        "status": "healthy",
        "service": "globalacademy-content",
        "version": SERVICE_VERSION,
        "environment": settings.environment.value
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Global Academy Content Service",
        "version": SERVICE_VERSION,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics"
    }
