"""
k6-stat - Main Application Entry Point

FastAPI application serving k6 load-test results stored in ClickHouse.
"""

from contextlib import asynccontextmanager
from typing import Any, cast

import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from k6stat import __version__
from k6stat.config import settings
from k6stat.connectors import clickhouse_client
from k6stat.api.routes import tests

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format=settings.LOG_FORMAT,
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler(settings.LOG_FILE)
        if settings.LOG_FILE
        else logging.NullHandler(),
    ],
)

# Request-level httpx logging is too chatty at INFO.
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - handles startup and shutdown events.
    """
    logger.info("k6-stat %s starting up, listening on %s", __version__, settings.K6_STAT_LISTEN)
    logger.info(f"Environment: {'Development' if settings.APP_DEBUG else 'Production'}")

    try:
        logger.info("Initializing ClickHouse client...")
        client = clickhouse_client.get_default_client()
        await client.initialize()
    except Exception as e:
        logger.error(f"Failed to initialize ClickHouse client: {e}")
        logger.warning("Application starting without a database connection")

    yield

    logger.info("k6-stat shutting down...")
    try:
        await clickhouse_client.close_default_client()
    except Exception as e:
        logger.error(f"Error closing ClickHouse client: {e}")


app = FastAPI(
    title="k6-stat",
    description="Latency and status statistics of k6 load tests stored in ClickHouse",
    version=__version__,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

app.add_middleware(
    cast(Any, CORSMiddleware),
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
logger.debug(f"CORS enabled for origins: {settings.CORS_ORIGINS}")


@app.get("/health")
async def health_check():
    """
    Health check endpoint for monitoring and load balancers.

    Returns:
        dict: Service health status and version information
    """
    health_status: dict[str, Any] = {
        "status": "healthy",
        "service": "k6-stat",
        "version": __version__,
        "checks": {},
    }

    try:
        client = clickhouse_client.get_default_client()
        is_healthy = await client.is_healthy()
        health_status["checks"]["clickhouse"] = {
            "status": "healthy" if is_healthy else "unhealthy",
            "address": client.address,
            "database": client.database,
        }
        if not is_healthy:
            health_status["status"] = "degraded"
    except Exception as e:
        health_status["checks"]["clickhouse"] = {"status": "unhealthy", "error": str(e)}
        health_status["status"] = "degraded"

    return health_status


app.include_router(tests.router, prefix="/api", tags=["tests"])


def run():
    import uvicorn

    uvicorn.run(
        "k6stat.main:app",
        host=settings.listen_host,
        port=settings.listen_port,
        reload=settings.APP_RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()
