"""Data models shared by the relay services and routers."""

from .messages import ServerMessage, ViewerRequest
from .stats import EventPayload, GameEvent, StatsPayload, StatsSnapshot

__all__ = [
    "EventPayload",
    "GameEvent",
    "ServerMessage",
    "StatsPayload",
    "StatsSnapshot",
    "ViewerRequest",
]
