"""
app/main.py

Purpose: Application entry point

- Builds the FastAPI app for the registration backend
- Opens and closes the database engine with the app lifespan
- Mounts the registration and utility routers under API_PREFIX
- Request IDs and in/out request logging
- Exposes health, readiness, liveness and metrics probes
"""

from contextlib import asynccontextmanager
import resource
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import registration, utility
from app.core.config import settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.logging import LogContext, get_logger, setup_logging
from app.db.database import check_database_health, close_database_connection, connect_to_database
from app.services.location_service import location_service
from app.services.session_service import generate_timestamped_id
from utils.time_utils import utc_isoformat

setup_logging()
logger = get_logger(__name__)

APP_VERSION = "1.0.0"
SLOW_REQUEST_SECONDS = 5.0
REQUEST_ID_PREFIX = "req"
STARTED_AT = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Validates settings and connects the database before serving.
    A failed health check is logged, not fatal; /ready reports it.
    """
    logger.info(f"🚀 Starting Udyam registration backend ({settings.ENVIRONMENT})")

    try:
        validate_settings()
        await connect_to_database()
    except Exception as e:
        logger.critical(f"Startup failed: {e}", exc_info=True)
        raise

    if await check_database_health():
        logger.info("✅ Database reachable")
    else:
        logger.warning("⚠️ Database not reachable at startup")

    yield

    logger.info("🛑 Shutting down")
    await close_database_connection()


app = FastAPI(
    title="Udyam Registration",
    description="Backend for the Udyam MSME registration form (Aadhaar and PAN steps)",
    version=APP_VERSION,
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_logging(request: Request, call_next):
    """
    Tags every request with an ID (X-Request-ID) and logs it in and out
    with its duration.
    """
    request_id = request.headers.get("X-Request-ID") or generate_timestamped_id(REQUEST_ID_PREFIX)

    with LogContext(request_id=request_id):
        logger.info(f"Incoming request: {request.method} {request.url.path}")
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        logger.info(f"Outgoing response: {response.status_code} in {elapsed * 1000:.1f}ms")
        if elapsed > SLOW_REQUEST_SECONDS:
            logger.warning(f"Slow request: {request.method} {request.url.path} took {elapsed:.2f}s")

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    return response


add_exception_handlers(app)

for module, tag in ((registration, "Registration"), (utility, "Utility")):
    app.include_router(module.router, prefix=settings.API_PREFIX, tags=[tag])


@app.get("/", tags=["Health"])
async def root():
    return {
        "name": "Udyam Registration API",
        "version": APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "api_prefix": settings.API_PREFIX,
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Database connectivity report; 503 while the database is unreachable.
    """
    db_ok = await check_database_health()
    body = {
        "status": "healthy" if db_ok else "unhealthy",
        "version": APP_VERSION,
        "checks": {"database": "connected" if db_ok else "disconnected"},
    }
    return JSONResponse(content=body, status_code=200 if db_ok else 503)


@app.get("/ready", tags=["Health"])
async def readiness_check():
    if await check_database_health():
        return {"status": "ready"}
    return JSONResponse(status_code=503, content={"status": "not_ready", "reason": "database_unavailable"})


@app.get("/live", tags=["Health"])
async def liveness_check():
    return {"status": "alive"}


@app.get("/metrics", tags=["Health"])
async def metrics():
    """
    Process uptime and memory, plus the location cache size.
    """
    usage = resource.getrusage(resource.RUSAGE_SELF)
    return {
        "uptime_seconds": round(time.monotonic() - STARTED_AT, 3),
        "memory": {"max_rss_kb": usage.ru_maxrss},
        "location_cache_entries": location_service.cache_size,
        "timestamp": utc_isoformat(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower(),
    )
