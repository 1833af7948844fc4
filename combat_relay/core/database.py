"""PostgreSQL connection pool management for the durable store."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

import asyncpg

logger = logging.getLogger(__name__)


@dataclass
class PoolConfig:
    """Database pool configuration with sensible defaults."""

    min_size: int = 0
    max_size: int = 5
    timeout: float = 5.0
    command_timeout: float = 15.0
    max_inactive_connection_lifetime: float = 60.0
    max_retries: int = 3
    retry_delay: float = 2.0
    ssl: str = "prefer"


class DatabaseManager:
    """Manages PostgreSQL connection pool lifecycle.

    The relay keeps running without a pool; callers check ``is_connected``
    before borrowing connections.
    """

    def __init__(self, database_url: str, config: PoolConfig | None = None):
        self.database_url = database_url
        self.config = config or PoolConfig()
        self._pool: asyncpg.Pool | None = None

    def _pool_kwargs(self) -> dict[str, Any]:
        cfg = self.config
        return {
            "dsn": self.database_url,
            "min_size": cfg.min_size,
            "max_size": cfg.max_size,
            "timeout": cfg.timeout,
            "command_timeout": cfg.command_timeout,
            "ssl": cfg.ssl,
            "max_inactive_connection_lifetime": cfg.max_inactive_connection_lifetime,
        }

    # ── Lifecycle ────────────────────────────────────────────────────

    async def connect(self) -> None:
        """Initialize database connection pool with retry."""
        if self._pool is not None:
            logger.warning("Database pool already initialized")
            return

        cfg = self.config
        for attempt in range(1, cfg.max_retries + 1):
            try:
                self._pool = await asyncpg.create_pool(**self._pool_kwargs())

                # Verify pool is usable
                async with self._pool.acquire() as conn:
                    await conn.fetchval("SELECT 1")

                logger.info(f"Database pool created and verified (size={cfg.min_size}-{cfg.max_size})")
                return
            except Exception as e:
                if self._pool is not None:
                    try:
                        await self._pool.close()
                    except Exception as close_exc:
                        logger.debug(f"Ignoring error while closing failed pool: {close_exc}")
                    self._pool = None

                if attempt < cfg.max_retries:
                    delay = cfg.retry_delay * (2 ** (attempt - 1))
                    logger.warning(
                        f"Database connection attempt {attempt}/{cfg.max_retries} failed: "
                        f"{type(e).__name__}: {e or repr(e)}, retrying in {delay}s..."
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(
                        f"Database connection failed after {cfg.max_retries} attempts: "
                        f"{type(e).__name__}: {e or repr(e)}"
                    )
                    raise

    async def disconnect(self) -> None:
        """Close database connection pool."""
        if self._pool is None:
            return

        try:
            await self._pool.close()
            logger.info("Database pool closed")
        except Exception as e:
            logger.exception(f"Error closing database pool: {e}")
        finally:
            self._pool = None

    async def check_health(self) -> bool:
        """Test if pool can actually execute a query."""
        if self._pool is None:
            return False
        try:
            async with self._pool.acquire(timeout=2.0) as conn:
                await conn.fetchval("SELECT 1")
            return True
        except Exception:
            return False

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the database connection pool. Raises if not initialized."""
        if self._pool is None:
            raise RuntimeError("Database pool not initialized. Call connect() first.")
        return self._pool
