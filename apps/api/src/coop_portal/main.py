"""
Cooperative Portal API

Builds the FastAPI application: the backing services started in the
lifespan, the versioned API router, CORS and the system health endpoints
used by the super admin dashboard.
"""

import logging
from collections.abc import Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from coop_portal.api import api_router
from coop_portal.core.config import settings
from coop_portal.core.database import async_session_maker, close_db, init_db
from coop_portal.core.redis import close_redis, init_redis, redis_status
from coop_portal.core.storage import StorageError, get_storage, init_storage

logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger("coop_portal")


async def _start(component: str, starter: Callable[[], Awaitable[object]]) -> None:
    """Start one backing service. Outside production a failure is only logged."""
    try:
        await starter()
        logger.info(f"{component} ready")
    except Exception as e:
        logger.error(f"{component} failed to start: {e}")
        if settings.is_production:
            raise


async def _init_storage() -> None:
    init_storage(settings)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Start Redis, the database and document storage, then close them on shutdown.

    Without Redis the rate limiter counts in memory.
    """
    logger.info(f"Starting Cooperative Portal API ({settings.python_env})")

    await _start("Redis", init_redis)
    await _start("Database", init_db)
    await _start(f"Storage (bucket {settings.storage_bucket})", _init_storage)

    yield

    await close_redis()
    await close_db()
    logger.info("Cooperative Portal API stopped")


app = FastAPI(
    title="Cooperative Portal API",
    description="County cooperative registration, compliance and oversight portal",
    version="0.1.0",
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "healthy"}


async def _database_status() -> str:
    try:
        async with async_session_maker() as session:
            await session.execute(text("SELECT 1"))
        return "up"
    except Exception as e:
        logger.warning(f"Health: database check failed: {e}")
        return "down"


async def _storage_status() -> str:
    try:
        await get_storage().check_bucket()
        return "up"
    except (RuntimeError, StorageError) as e:
        logger.warning(f"Health: storage check failed: {e}")
        return "down"


@app.get("/ready", tags=["Health"])
async def readiness_check() -> dict:
    """
    Report each backing service for the system health view.

    Redis is optional: ``disabled`` does not make the API unready.
    """
    components = {
        "database": await _database_status(),
        "redis": await redis_status(),
        "storage": await _storage_status(),
    }
    ready = components["database"] == "up" and components["storage"] == "up"
    return {"status": "ready" if ready else "degraded", "components": components}
