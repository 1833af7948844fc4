"""FastAPI application factory"""

import asyncio
import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles

from combat_relay import __version__
from combat_relay.core.config import Settings, get_settings
from combat_relay.core.logging import setup_logging
from combat_relay.routers import events_router, stats_router, viewer_router
from combat_relay.services import (
    BroadcastHub,
    SnapshotStore,
    StatsIngestService,
    StatsPersistence,
    build_persistence,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "combat-relay"


async def _heartbeat(app: FastAPI, interval: int = 300) -> None:
    """Periodic heartbeat: log uptime, viewers and persistence status"""
    state = app.state
    while True:
        await asyncio.sleep(interval)
        uptime = int(time.time() - state.start_time)
        db_ok = await state.persistence.is_available()
        logger.info(
            f"Heartbeat: uptime={uptime}s, viewers={state.hub.viewer_count}, "
            f"history={len(state.store)}, persistence={db_ok}"
        )


async def _persistence_retry_loop(persistence: StatsPersistence) -> None:
    """Keep trying to reach the durable store after a failed startup connect."""
    delay = 5
    max_delay = 60
    while True:
        await asyncio.sleep(delay)
        try:
            await persistence.connect()
            logger.info("Persistence connected (background retry)")
            return
        except asyncio.CancelledError:
            return
        except Exception as e:
            delay = min(delay * 2, max_delay)
            logger.warning(
                f"Persistence retry failed: {type(e).__name__}: {e}, next retry in {delay}s"
            )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle startup and shutdown"""
    state = app.state
    settings: Settings = state.settings
    persistence: StatsPersistence = state.persistence
    state.start_time = time.time()
    background: list[asyncio.Task] = []

    logger.info("Starting combat stats relay")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Allowed viewer origins: {', '.join(settings.cors_origins) or '-'}")
    logger.info(f"History capacity: {state.store.capacity}")

    # Wait up to 30s for the durable store; ingest works without it either way
    try:
        await asyncio.wait_for(persistence.connect(), timeout=30)
        if persistence.enabled:
            logger.info("Persistence connected")
    except TimeoutError:
        logger.warning("Persistence connection timed out, running memory-only and retrying")
        background.append(asyncio.create_task(_persistence_retry_loop(persistence)))
    except Exception as e:
        logger.error(
            f"Persistence connection failed: {type(e).__name__}: {e}, "
            f"running memory-only and retrying"
        )
        background.append(asyncio.create_task(_persistence_retry_loop(persistence)))

    if settings.enable_keep_alive:
        background.append(asyncio.create_task(_heartbeat(app, settings.keep_alive_interval)))
        logger.info(f"Heartbeat started (interval={settings.keep_alive_interval}s)")

    yield

    logger.info("Shutting down combat stats relay")
    for task in background:
        task.cancel()
    await asyncio.gather(*background, return_exceptions=True)
    try:
        await state.hub.close()
        await state.ingest.drain()
        await persistence.disconnect()
    except Exception as e:
        logger.exception(f"Error during shutdown: {e}")


def create_app(
    settings: Settings | None = None,
    persistence: StatsPersistence | None = None,
) -> FastAPI:
    """Create and configure FastAPI application"""
    settings = settings or get_settings()

    setup_logging(settings)

    app = FastAPI(
        title="Combat Stats Relay",
        description="Relays combat statistics from the game client to live dashboards",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # Wire services once per app instance
    store = SnapshotStore(capacity=settings.history_capacity)
    hub = BroadcastHub(store)
    persistence = persistence or build_persistence(settings.database_url)
    app.state.settings = settings
    app.state.store = store
    app.state.hub = hub
    app.state.persistence = persistence
    app.state.ingest = StatsIngestService(store, hub, persistence)
    app.state.start_time = time.time()

    origins = settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.include_router(stats_router.router)
    app.include_router(events_router.router)
    app.include_router(viewer_router.router)

    @app.get("/api/health")
    async def health_check(request: Request):
        """Liveness probe; persistence is reported, never required"""
        return {
            "status": "ok",
            "persistenceAvailable": await request.app.state.persistence.is_available(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/status")
    async def status(request: Request):
        """Detailed status endpoint"""
        state = request.app.state
        return {
            "service": SERVICE_NAME,
            "version": __version__,
            "uptimeSeconds": int(time.time() - state.start_time),
            "viewers": state.hub.viewer_count,
            "historySize": len(state.store),
            "persistenceEnabled": state.persistence.enabled,
            "persistenceAvailable": await state.persistence.is_available(),
            "environment": settings.environment,
        }

    @app.api_route("/ping", methods=["GET", "HEAD"], response_class=PlainTextResponse)
    async def ping():
        """Ping endpoint"""
        return "pong"

    dashboard_dir = Path(settings.dashboard_dir) if settings.dashboard_dir else None
    if settings.is_production and dashboard_dir is not None and dashboard_dir.is_dir():
        app.mount("/", StaticFiles(directory=dashboard_dir, html=True), name="dashboard")
        logger.info(f"Serving dashboard from {dashboard_dir}")
    else:

        @app.get("/")
        async def root():
            """Root endpoint - minimal service info"""
            return {"service": SERVICE_NAME, "status": "running"}

    logger.info("FastAPI application configured")

    return app
