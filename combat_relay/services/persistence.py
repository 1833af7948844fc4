"""Best-effort durable storage of snapshots and events.

Nothing here may raise into the ingest path: every failure is logged and
reported as a ``False`` return. Without a configured database the relay
runs in memory-only mode through ``NullPersistence``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from combat_relay.core.database import DatabaseManager
from combat_relay.migrations.runner import MigrationRunner
from combat_relay.models import GameEvent, StatsSnapshot
from combat_relay.repositories import CombatStatsRepository

logger = logging.getLogger(__name__)


class StatsPersistence(Protocol):
    enabled: bool

    async def connect(self) -> None: ...

    async def disconnect(self) -> None: ...

    async def save_snapshot(self, snapshot: StatsSnapshot) -> bool: ...

    async def save_event(self, event: GameEvent) -> bool: ...

    async def is_available(self) -> bool: ...


class NullPersistence:
    """Memory-only mode: every write is a no-op that succeeds."""

    enabled = False

    async def connect(self) -> None:
        logger.info("No DATABASE_URL configured, running in memory-only mode")

    async def disconnect(self) -> None:
        return None

    async def save_snapshot(self, snapshot: StatsSnapshot) -> bool:
        return True

    async def save_event(self, event: GameEvent) -> bool:
        return True

    async def is_available(self) -> bool:
        return False


class PostgresPersistence:
    """Write-through to PostgreSQL via asyncpg.

    Writes are skipped while the pool is down; no catch-up happens once it
    comes back.
    """

    enabled = True

    def __init__(self, db_manager: DatabaseManager) -> None:
        self.db = db_manager

    async def connect(self) -> None:
        """Open the pool and bring the schema up to date. Raises on failure."""
        await self.db.connect()
        await MigrationRunner(self.db.pool).run_pending()

    async def disconnect(self) -> None:
        await self.db.disconnect()

    async def save_snapshot(self, snapshot: StatsSnapshot) -> bool:
        if not self.db.is_connected:
            logger.debug("Skipping snapshot write, database not connected")
            return False
        try:
            await CombatStatsRepository(self.db.pool).insert_snapshot(snapshot)
            return True
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Failed to persist snapshot: {type(e).__name__}: {e}")
            return False

    async def save_event(self, event: GameEvent) -> bool:
        if not self.db.is_connected:
            logger.debug(f"Skipping event write ({event.event_type}), database not connected")
            return False
        try:
            await CombatStatsRepository(self.db.pool).insert_event(event)
            return True
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                f"Failed to persist event '{event.event_type}': {type(e).__name__}: {e}"
            )
            return False

    async def is_available(self) -> bool:
        return await self.db.check_health()


def build_persistence(database_url: str) -> StatsPersistence:
    """Pick the persistence backend for the configured database URL."""
    if not database_url.strip():
        return NullPersistence()
    return PostgresPersistence(DatabaseManager(database_url))
