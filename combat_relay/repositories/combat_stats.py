"""Repository for combat_stats and game_events tables."""

from __future__ import annotations

import json
import logging

import asyncpg

from combat_relay.models import GameEvent, StatsSnapshot

logger = logging.getLogger(__name__)


class CombatStatsRepository:
    """Pure SQL operations for the durable copy of snapshots and events."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    # ==================== Snapshots ====================

    async def insert_snapshot(self, snapshot: StatsSnapshot) -> int:
        """Store one snapshot. Returns the row ID."""
        async with self.pool.acquire() as conn:
            row_id = await conn.fetchval(
                """
                INSERT INTO combat_stats (
                    total_attacks, punch_count, kick_count, hits_landed,
                    hits_missed, dash_count, hit_rate, session_duration, recorded_at
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                RETURNING id
                """,
                snapshot.total_attacks,
                snapshot.punch_count,
                snapshot.kick_count,
                snapshot.hits_landed,
                snapshot.hits_missed,
                snapshot.dash_count,
                snapshot.hit_rate,
                snapshot.session_duration,
                snapshot.timestamp,
            )
            if row_id is None:
                raise ValueError("Failed to store snapshot: no ID returned")
            return int(row_id)

    # ==================== Events ====================

    async def insert_event(self, event: GameEvent) -> int:
        """Store one game event. ``data`` is kept as JSONB."""
        async with self.pool.acquire() as conn:
            row_id = await conn.fetchval(
                """
                INSERT INTO game_events (event_type, data, occurred_at)
                VALUES ($1, $2::jsonb, $3)
                RETURNING id
                """,
                event.event_type,
                json.dumps(event.data),
                event.timestamp,
            )
            if row_id is None:
                raise ValueError("Failed to store event: no ID returned")
            return int(row_id)
