"""Custom game event API routes"""

import logging

from fastapi import APIRouter, Depends, HTTPException

from combat_relay.core.dependencies import get_ingest_service
from combat_relay.models import EventPayload
from combat_relay.services import StatsIngestService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["events"])


@router.post("")
async def receive_event(
    body: EventPayload,
    ingest: StatsIngestService = Depends(get_ingest_service),
) -> dict:
    """Relay a custom event to viewers; does not touch the current snapshot"""
    try:
        await ingest.ingest_event(body)
        return {"success": True}
    except Exception as e:
        logger.exception(f"Failed to relay event '{body.event_type}': {e}")
        raise HTTPException(status_code=500, detail="Failed to relay event") from None
