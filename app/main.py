from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from slowapi.errors import RateLimitExceeded
import time
import uuid

from .config import settings
from .database import create_tables
from .utils.logging_config import setup_logging, get_logger, set_request_context, clear_request_context
from .utils.rate_limiter import limiter

# Import all routers
from .routers import auth, contracts, inspections, bookings, company_config, notifications, health

setup_logging(level=settings.log_level, json_format=settings.log_json or settings.is_production)
logger = get_logger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting alquilo-backoffice ({settings.environment})")

    # Production schema is managed by alembic
    if not settings.is_production:
        create_tables()

    logger.info(
        f"Contracts: tax {settings.contract_tax_rate}, base version {settings.contract_base_version}, "
        f"inspection links at {settings.inspection_base_url}"
    )
    yield

    logger.info("Shutting down alquilo-backoffice")


# Create FastAPI app
app = FastAPI(
    title="Alquilo Backoffice API",
    description="Contratos de alquiler, inspecciones y reservas",
    version=API_VERSION,
    lifespan=lifespan
)

# Rate limiter state
app.state.limiter = limiter


# ================================
# CORS MIDDLEWARE - MUST BE FIRST!
# ================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


# Request ID Middleware
class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        # Client-supplied ids are trusted only up to a sane length
        request_id = request.headers.get("X-Request-ID", "")[:64] or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        set_request_context(request_id)
        start = time.time()
        try:
            response = await call_next(request)
            duration_ms = round((time.time() - start) * 1000, 2)
            if not request.url.path.startswith("/health"):
                logger.api_request(request.method, request.url.path, response.status_code, duration_ms)
            response.headers["X-Request-ID"] = request_id
            return response
        finally:
            clear_request_context()


# Add other middleware AFTER CORS
app.add_middleware(RequestIdMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


# Rate limit handler
@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Demasiadas peticiones, inténtelo más tarde"}
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Error interno del servidor"}
    )


# Include routers
app.include_router(auth.router)
app.include_router(contracts.router)
app.include_router(inspections.router)
app.include_router(bookings.router)
app.include_router(company_config.router)
app.include_router(notifications.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {
        "message": "Alquilo Backoffice API",
        "version": API_VERSION,
        "docs": "/docs",
        "status": "running"
    }
