"""Producer-facing operations: snapshot ingest, custom events and reset"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from combat_relay.models import EventPayload, GameEvent, StatsPayload, StatsSnapshot

from .broadcast_hub import BroadcastHub
from .persistence import StatsPersistence
from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)


class StatsIngestService:
    """Applies producer input to the store, the durable store and the viewers.

    Returns as soon as the store is updated and the persistence write has been
    scheduled; neither the write nor viewer delivery is awaited.
    """

    def __init__(
        self,
        store: SnapshotStore,
        hub: BroadcastHub,
        persistence: StatsPersistence,
    ) -> None:
        self.store = store
        self.hub = hub
        self.persistence = persistence
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def ingest_snapshot(self, payload: StatsPayload) -> StatsSnapshot:
        snapshot = StatsSnapshot.from_payload(payload)
        self.store.replace(snapshot)
        self._dispatch(self.persistence.save_snapshot(snapshot), "snapshot")
        viewers = self.hub.push_update(snapshot)
        logger.debug(
            f"Snapshot ingested: attacks={snapshot.total_attacks}, "
            f"hit_rate={snapshot.hit_rate:.1f}, viewers={viewers}"
        )
        return snapshot

    async def ingest_event(self, payload: EventPayload) -> GameEvent:
        event = GameEvent.from_payload(payload)
        viewers = self.hub.push_event(event)
        self._dispatch(self.persistence.save_event(event), f"event '{event.event_type}'")
        logger.debug(f"Game event relayed: {event.event_type} (viewers={viewers})")
        return event

    async def reset(self) -> StatsSnapshot:
        zero = self.store.reset()
        viewers = self.hub.push_reset(zero)
        logger.info(f"Stats reset (viewers={viewers})")
        return zero

    # ==================== Background writes ====================

    def _dispatch(self, write: Coroutine[Any, Any, bool], what: str) -> None:
        task = asyncio.create_task(self._run_write(write, what))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_write(self, write: Coroutine[Any, Any, bool], what: str) -> None:
        try:
            ok = await write
            if not ok and self.persistence.enabled:
                logger.debug(f"Persistence skipped or failed for {what}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Persistence error for {what}: {type(e).__name__}: {e}")

    async def drain(self) -> None:
        """Wait for in-flight persistence writes (shutdown)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
