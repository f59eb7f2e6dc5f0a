"""
app/main.py

Purpose: Application entry point

- Builds the FastAPI app and its middleware
- Startup: validate settings, connect to MongoDB, ensure indexes
- Shutdown: close the MongoDB client
- Health probes for the container platform
- No business logic should be written here
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api import webhook
from app.core.config import settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.db.indexes import create_indexes
from app.db.mongo import connect_to_mongo, close_mongo_connection, check_database_health
from app.services.telegram_service import get_telegram_service

VERSION = "1.0.0"
SLOW_REQUEST_SECONDS = 5.0

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup failures abort the process; shutdown failures are only logged."""
    logger.info(f"🚀 Starting Chat4Bread backend ({settings.ENVIRONMENT})")

    try:
        validate_settings()
        await connect_to_mongo()
        await create_indexes()
    except Exception as e:
        logger.critical(f"Failed to start application: {e}", exc_info=True)
        raise

    if not get_telegram_service().is_configured():
        logger.warning("TELEGRAM_BOT_TOKEN is not set, replies will not be delivered")

    logger.info("🎉 Chat4Bread backend ready")

    yield

    logger.info("🛑 Shutting down Chat4Bread backend...")
    try:
        await close_mongo_connection()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}", exc_info=True)


app = FastAPI(
    title="Chat4Bread - Farmers' Market Bot",
    description="Telegram-based peer-to-peer farmers' market",
    version=VERSION,
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
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    # Telegram waits on the webhook answer, so slow updates are worth a warning
    if process_time > SLOW_REQUEST_SECONDS:
        logger.warning(f"Slow request: {request.method} {request.url.path} took {process_time:.2f}s")

    return response


add_exception_handlers(app)

app.include_router(webhook.router, prefix=settings.API_PREFIX, tags=["Webhook"])


@app.get("/", tags=["Health"])
async def root():
    return {
        "name": "Chat4Bread API",
        "version": VERSION,
        "status": "running",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Reports the database and the outbound channel.

    Only the database decides the status code; a missing bot token is
    reported but does not make the service unhealthy.
    """
    db_healthy = await check_database_health()
    checks = {
        "database": "healthy" if db_healthy else "unhealthy",
        "telegram": "configured" if get_telegram_service().is_configured() else "not_configured",
    }
    return JSONResponse(
        status_code=200 if db_healthy else 503,
        content={
            "status": "healthy" if db_healthy else "degraded",
            "timestamp": time.time(),
            "version": VERSION,
            "checks": checks,
        }
    )


@app.get("/ready", tags=["Health"])
async def readiness_check():
    """Readiness probe: traffic only once MongoDB answers."""
    if await check_database_health():
        return {"status": "ready"}
    return JSONResponse(
        status_code=503,
        content={"status": "not_ready", "reason": "database_unavailable"}
    )


@app.get("/live", tags=["Health"])
async def liveness_check():
    """Liveness probe."""
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
