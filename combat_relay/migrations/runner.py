"""Applies the relay's bundled SQL schema files to the durable store."""

from __future__ import annotations

import logging
from pathlib import Path

import asyncpg

logger = logging.getLogger(__name__)

SCHEMA_DIR = Path(__file__).resolve().parent / "versions"

_CREATE_TRACKING = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version    TEXT PRIMARY KEY,
    name       TEXT NOT NULL,
    applied_at TIMESTAMPTZ DEFAULT NOW()
)
"""
_RECORD_VERSION = "INSERT INTO schema_migrations (version, name) VALUES ($1, $2)"


class MigrationRunner:
    """Bring the combat_stats/game_events schema up to date.

    Each ``versions/NNN_name.sql`` file runs once, in filename order, inside
    its own transaction. Its stem is recorded in ``schema_migrations``.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def run_pending(self) -> list[str]:
        """Apply unapplied schema files; returns the versions applied now."""
        applied_now: list[str] = []
        async with self.pool.acquire() as conn:
            await conn.execute(_CREATE_TRACKING)
            done = {row["version"] for row in await conn.fetch("SELECT version FROM schema_migrations")}

            for path in sorted(SCHEMA_DIR.glob("*.sql")):
                if path.stem in done:
                    continue
                logger.info(f"Applying schema {path.stem}")
                async with conn.transaction():
                    await conn.execute(path.read_text(encoding="utf-8"))
                    await conn.execute(_RECORD_VERSION, path.stem, path.name)
                applied_now.append(path.stem)

        if applied_now:
            logger.info(f"Schema updated: {', '.join(applied_now)}")
        else:
            logger.debug("Schema already current")
        return applied_now
