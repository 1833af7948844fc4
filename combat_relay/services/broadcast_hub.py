"""Fan-out of snapshot, event and reset pushes to connected viewers.

Each viewer gets its own bounded outbound queue drained by a dedicated
sender task. Publishing only enqueues, so a slow or dead viewer can never
stall the ingest path or the other viewers.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from combat_relay.models import GameEvent, StatsSnapshot
from combat_relay.models import messages

from .snapshot_store import SnapshotStore

logger = logging.getLogger(__name__)

SendFunc = Callable[[dict[str, Any]], Awaitable[None]]
CloseFunc = Callable[[], Awaitable[None]]


@dataclass(eq=False)
class ViewerSession:
    """A connected viewer. Lives only as long as its transport."""

    send: SendFunc
    max_queue: int = 64
    close: CloseFunc | None = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    connected_at: float = field(default_factory=time.time)
    dropped: int = 0
    queue: asyncio.Queue = field(init=False, repr=False)
    task: asyncio.Task | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        self.queue = asyncio.Queue(maxsize=self.max_queue)

    def offer(self, message: dict[str, Any]) -> None:
        """Enqueue without waiting; when full, the oldest pending push is dropped."""
        while True:
            try:
                self.queue.put_nowait(message)
                return
            except asyncio.QueueFull:
                try:
                    self.queue.get_nowait()
                    self.dropped += 1
                except asyncio.QueueEmpty:
                    pass


class BroadcastHub:
    """Registry of viewer sessions and the pushes sent to them."""

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store
        self._sessions: dict[str, ViewerSession] = {}

    @property
    def viewer_count(self) -> int:
        return len(self._sessions)

    def is_subscribed(self, session: ViewerSession) -> bool:
        return session.session_id in self._sessions

    # ==================== Membership ====================

    def subscribe(self, session: ViewerSession) -> None:
        """Register a viewer; its first push is the snapshot current right now."""
        # No await between reading current and registering, so no update can slip in between
        session.offer(messages.stats_update(self._store.current()))
        self._sessions[session.session_id] = session
        session.task = asyncio.create_task(
            self._sender(session), name=f"viewer-{session.session_id}"
        )
        logger.info(f"Viewer connected: {session.session_id} (viewers={self.viewer_count})")

    def unsubscribe(self, session: ViewerSession) -> None:
        """Remove a viewer. Safe to call more than once."""
        if self._sessions.pop(session.session_id, None) is None:
            return

        task = session.task
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()
        logger.info(f"Viewer disconnected: {session.session_id} (viewers={self.viewer_count})")

    # ==================== Pushes ====================

    def push_update(self, snapshot: StatsSnapshot) -> int:
        return self._broadcast(messages.stats_update(snapshot))

    def push_event(self, event: GameEvent) -> int:
        return self._broadcast(messages.game_event(event))

    def push_reset(self, snapshot: StatsSnapshot) -> int:
        return self._broadcast(messages.stats_reset(snapshot))

    def send_to(self, session: ViewerSession, message: dict[str, Any]) -> None:
        """Push to a single viewer through its queue."""
        if self.is_subscribed(session):
            session.offer(message)

    def _broadcast(self, message: dict[str, Any]) -> int:
        # Copy so sessions may leave while we iterate
        sessions = list(self._sessions.values())
        for session in sessions:
            session.offer(message)
        return len(sessions)

    # ==================== Delivery ====================

    async def _sender(self, session: ViewerSession) -> None:
        try:
            while True:
                message = await session.queue.get()
                await session.send(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(
                f"Delivery to viewer {session.session_id} failed: {type(e).__name__}: {e}"
            )
            self.unsubscribe(session)
            await self._close_transport(session)

    async def _close_transport(self, session: ViewerSession) -> None:
        if session.close is None:
            return
        try:
            await session.close()
        except Exception as e:
            logger.debug(f"Closing viewer {session.session_id} transport failed: {e}")

    async def close(self) -> None:
        """Cancel every sender task (shutdown)."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        tasks = [s.task for s in sessions if s.task is not None and not s.task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"Broadcast hub closed ({len(sessions)} viewer(s) dropped)")


def _current_task() -> asyncio.Task | None:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None
