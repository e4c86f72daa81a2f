"""
FastAPI application entry point
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine
import logging

from libseat.api import reservations, seats, zones
from libseat.core.clock import Clock, ParseError, system_clock
from libseat.core.config import Settings, settings as default_settings
from libseat.core.database import create_engine, create_session_factory, init_db
from libseat.core.logging_config import setup_logging
from libseat.core.metrics import CONTENT_TYPE_LATEST, get_metrics
from libseat.core.redis import RedisClient
from libseat.middleware.rate_limiter import limiter
from libseat.middleware.tracing import TracingMiddleware
from libseat.services.container import Services
from libseat.services.errors import ReservationError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for startup and shutdown"""
    settings: Settings = app.state.settings
    engine: AsyncEngine = app.state.engine
    services: Services = app.state.services

    logger.info("🚀 Starting up Library Seat Reservation System...")

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("✅ Database connection successful")
    except Exception as e:
        logger.error(f"❌ Database connection failed: {e}")
        raise

    if engine.url.get_backend_name() == "sqlite":
        await init_db(engine)

    redis_client: Optional[RedisClient] = app.state.redis
    if redis_client is not None:
        logger.info("🔴 Connecting to Redis...")
        await redis_client.connect()

    if settings.EXPIRY_WORKER_ENABLED:
        await services.expiry_worker.start()

    yield

    logger.info("🛑 Shutting down...")
    await services.expiry_worker.stop()
    if redis_client is not None:
        await redis_client.close()
    await engine.dispose()
    logger.info("✅ Cleanup complete")


async def reservation_error_handler(request: Request, exc: ReservationError):
    """Domain outcomes, not failures: logged at INFO"""
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code} {exc.code}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


async def parse_error_handler(request: Request, exc: ParseError):
    return JSONResponse(
        status_code=400,
        content={"error": "validation_error", "message": str(exc)},
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"⚠️ Rate limit exceeded for {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "message": "Too many requests. Please slow down.",
        },
        headers={"Retry-After": "60"},
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "internal_error", "message": "Internal server error"},
    )


def create_app(
    settings: Settings = default_settings,
    engine: Optional[AsyncEngine] = None,
    clock: Clock = system_clock,
    cache=None,
) -> FastAPI:
    """Build the application; tests pass their own engine, clock and cache"""
    engine = engine or create_engine(settings.DATABASE_URL, echo=settings.DEBUG)

    redis_client = None
    if cache is None and settings.SEATS_CACHE_BACKEND.lower() == "redis":
        redis_client = RedisClient(settings.REDIS_URL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Library seat reservation service with real-time seat status",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.redis = redis_client
    app.state.services = Services(
        create_session_factory(engine),
        settings=settings,
        clock=clock,
        cache=cache,
        redis_client=redis_client,
    )
    app.state.limiter = limiter

    app.add_exception_handler(ReservationError, reservation_error_handler)
    app.add_exception_handler(ParseError, parse_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.add_middleware(TracingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["Health"])
    async def health_check():
        """Health check endpoint"""
        redis_status = "disabled"
        if redis_client is not None:
            redis_status = "healthy" if redis_client.redis else "unavailable"
        return {
            "status": "healthy",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "redis": redis_status,
        }

    @app.get("/metrics", tags=["Health"])
    async def metrics():
        return Response(content=get_metrics(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": "Welcome to the Library Seat Reservation API",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health",
        }

    app.include_router(seats.router, prefix="/api/v1", tags=["Seats"])
    app.include_router(zones.router, prefix="/api/v1", tags=["Zones"])
    app.include_router(reservations.router, prefix="/api/v1", tags=["Reservations"])

    return app


setup_logging()
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "libseat.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info"
    )
