# app/main.py
import asyncio
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .api.v1.router import api_router
from .database import AsyncSessionLocal, init_db, close_db, check_db_health
from .db.seed import seed_database
from .schemas.movie import Movie as MovieSchema
from .services.errors import (
    MovieConcurrencyConflict,
    MovieIdMismatch,
    MovieNotFound,
    MovieValidationError,
    collect_field_errors,
)

# ============================================================
# Setup Logging
# ============================================================
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# ============================================================
# Startup/Shutdown Events
# ============================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Create the schema and seed it before serving, dispose the engine after
    """
    # ✅ STARTUP
    logger.info(f"🚀 Starting {settings.APP_NAME}...")
    logger.info(f"🌐 Environment: {settings.ENVIRONMENT}")
    logger.info(f"🔒 Debug mode: {settings.DEBUG}")

    try:
        await init_db()
        if settings.SEED_ON_STARTUP:
            async with AsyncSessionLocal() as db:
                await seed_database(db)
    except Exception as e:
        logger.error(f"❌ Startup failed: {e}")
        raise

    logger.info("✅ Application startup complete!")

    yield  # Application runs

    # ❌ SHUTDOWN
    logger.info(f"🛑 Shutting down {settings.APP_NAME}...")
    await close_db()
    logger.info("👋 Goodbye!")


# ============================================================
# Create FastAPI Application
# ============================================================

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Movie catalog with admin-managed listings",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    openapi_url="/openapi.json" if settings.DEBUG else None,
    lifespan=lifespan,
)

# ============================================================
# Middleware Configuration
# ============================================================

# 1️⃣ CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    max_age=3600,
)

# 2️⃣ Request ID Middleware
@app.middleware("http")
async def add_request_id(request: Request, call_next: Callable):
    """Add unique request ID for tracing"""
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response

# 3️⃣ Request Logging Middleware
@app.middleware("http")
async def log_requests(request: Request, call_next: Callable):
    """Log all requests with timing"""
    start_time = time.time()

    logger.info(f"➡️ {request.method} {request.url.path}")

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"⬅️ {request.method} {request.url.path} "
        f"[{response.status_code}] {duration:.3f}s"
    )

    response.headers["X-Process-Time"] = str(duration)
    return response

# 4️⃣ Security Headers Middleware
@app.middleware("http")
async def add_security_headers(request: Request, call_next: Callable):
    """Add security headers to all responses"""
    response = await call_next(request)

    if settings.is_production:
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    return response

# ============================================================
# API Routers
# ============================================================

app.include_router(api_router, prefix="/api/v1")

# ============================================================
# Root Endpoints
# ============================================================

@app.get("/", tags=["Root"])
async def root() -> dict:
    """API information endpoint"""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "movies": "/api/v1/movies",
        "health": "/health"
    }


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """
    Fast health check endpoint for load balancers
    Returns immediately without checking dependencies
    """
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": asyncio.get_running_loop().time()
    }


@app.get("/health/detailed", tags=["Health"])
async def health_check_detailed() -> dict:
    """
    Detailed health check endpoint
    Checks database connectivity
    """
    db_healthy = await check_db_health()
    return {
        "status": "healthy" if db_healthy else "degraded",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "database": "connected" if db_healthy else "disconnected",
    }

# ============================================================
# Exception Handlers
# ============================================================

@app.exception_handler(MovieValidationError)
async def movie_validation_handler(request: Request, exc: MovieValidationError):
    return JSONResponse(
        status_code=422,
        content={"detail": "Invalid movie", "errors": exc.errors},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Same per-field shape as MovieValidationError"""
    return JSONResponse(
        status_code=422,
        content={"detail": "Invalid request", "errors": collect_field_errors(exc.errors())},
    )


@app.exception_handler(MovieNotFound)
async def movie_not_found_handler(request: Request, exc: MovieNotFound):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": "Movie not found", "movie_id": exc.movie_id},
    )


@app.exception_handler(MovieIdMismatch)
async def movie_id_mismatch_handler(request: Request, exc: MovieIdMismatch):
    # Reported as not found: the route/body pair is untrusted input
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"detail": "Movie not found", "movie_id": exc.route_id},
    )


@app.exception_handler(MovieConcurrencyConflict)
async def movie_conflict_handler(request: Request, exc: MovieConcurrencyConflict):
    current = (
        MovieSchema.model_validate(exc.current).model_dump(mode="json")
        if exc.current is not None else None
    )
    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content={
            "detail": "The movie was modified by another user. Review the current values and save again.",
            "movie_id": exc.movie_id,
            "expected_version": exc.expected_version,
            "current": current,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler"""
    request_id = getattr(request.state, "request_id", "unknown")

    logger.error(
        f"❌ Unhandled exception [Request ID: {request_id}]: {str(exc)}",
        exc_info=True
    )

    # Hide internal errors in production
    error_detail = str(exc) if settings.DEBUG else "Internal server error"

    return JSONResponse(
        status_code=500,
        content={
            "detail": error_detail,
            "request_id": request_id
        }
    )

# ============================================================
# Run Application
# ============================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
        proxy_headers=True,
        forwarded_allow_ips="*",
    )
