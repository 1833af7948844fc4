"""Combat statistics API routes"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from combat_relay.core.dependencies import get_ingest_service, get_store
from combat_relay.models import StatsPayload, StatsSnapshot
from combat_relay.services import SnapshotStore, StatsIngestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/stats", tags=["stats"])


@router.post("")
async def receive_stats(
    body: StatsPayload,
    ingest: StatsIngestService = Depends(get_ingest_service),
) -> dict:
    """Receive a full snapshot from the game client"""
    try:
        await ingest.ingest_snapshot(body)
        return {"success": True, "message": "Stats received"}
    except Exception as e:
        logger.exception(f"Failed to ingest stats: {e}")
        raise HTTPException(status_code=500, detail="Failed to ingest stats") from None


@router.get("", response_model=StatsSnapshot)
async def get_current_stats(
    store: SnapshotStore = Depends(get_store),
) -> StatsSnapshot:
    """Get the latest snapshot (zeroed before the first one arrives)"""
    return store.current()


@router.get("/history", response_model=list[StatsSnapshot])
async def get_stats_history(
    limit: int = Query(default=100, ge=1, description="Max snapshots to return"),
    store: SnapshotStore = Depends(get_store),
) -> list[StatsSnapshot]:
    """Get the most recent snapshots, oldest first"""
    return store.history(limit)


@router.post("/reset")
async def reset_stats(
    ingest: StatsIngestService = Depends(get_ingest_service),
) -> dict:
    """Zero the current snapshot, clear history and notify viewers"""
    try:
        await ingest.reset()
        return {"success": True, "message": "Stats reset"}
    except Exception as e:
        logger.exception(f"Failed to reset stats: {e}")
        raise HTTPException(status_code=500, detail="Failed to reset stats") from None
