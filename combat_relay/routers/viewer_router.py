"""Real-time viewer channel (WebSocket)

On connect the viewer immediately receives a ``statsUpdate`` with the current
snapshot, then every subsequent update, event and reset. Viewers may send
``requestStats`` to get the current snapshot again, or ``resetStats``.
"""

import logging
from functools import partial

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from combat_relay.models import ViewerRequest
from combat_relay.models import messages
from combat_relay.services import BroadcastHub, StatsIngestService, ViewerSession

logger = logging.getLogger(__name__)

router = APIRouter(tags=["viewers"])


def _origin_allowed(origin: str | None, allowed: list[str]) -> bool:
    if origin is None or "*" in allowed:
        return True
    return origin.rstrip("/") in {o.rstrip("/") for o in allowed}


@router.websocket("/ws")
async def viewer_channel(websocket: WebSocket) -> None:
    state = websocket.app.state
    origin = websocket.headers.get("origin")
    if not _origin_allowed(origin, state.settings.cors_origins):
        logger.warning(f"Rejected viewer from disallowed origin: {origin}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    hub: BroadcastHub = state.hub
    ingest: StatsIngestService = state.ingest
    session = ViewerSession(
        send=websocket.send_json,
        max_queue=state.settings.viewer_queue_size,
        close=partial(websocket.close, code=status.WS_1011_INTERNAL_ERROR),
    )
    hub.subscribe(session)

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                request = messages.parse_request(raw)
            except ValueError as e:
                hub.send_to(session, messages.error_message(str(e)))
                continue

            if request is ViewerRequest.REQUEST_STATS:
                hub.send_to(session, messages.stats_update(ingest.store.current()))
            elif request is ViewerRequest.RESET_STATS:
                logger.info(f"Viewer {session.session_id} requested stats reset")
                await ingest.reset()
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"Viewer {session.session_id} channel error: {type(e).__name__}: {e}")
    finally:
        hub.unsubscribe(session)
