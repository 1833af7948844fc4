"""Viewer channel message shapes.

Every frame is a JSON object ``{"type": <str>, "data": <payload>}``.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from .stats import GameEvent, StatsSnapshot


class ServerMessage(StrEnum):
    """Pushes sent from the relay to viewers."""

    STATS_UPDATE = "statsUpdate"
    GAME_EVENT = "gameEvent"
    STATS_RESET = "statsReset"
    ERROR = "error"


class ViewerRequest(StrEnum):
    """Requests a viewer may send to the relay."""

    REQUEST_STATS = "requestStats"
    RESET_STATS = "resetStats"


def build_message(kind: ServerMessage, data: Any) -> dict[str, Any]:
    return {"type": kind.value, "data": data}


def stats_update(snapshot: StatsSnapshot) -> dict[str, Any]:
    return build_message(ServerMessage.STATS_UPDATE, snapshot.to_wire())


def stats_reset(snapshot: StatsSnapshot) -> dict[str, Any]:
    return build_message(ServerMessage.STATS_RESET, snapshot.to_wire())


def game_event(event: GameEvent) -> dict[str, Any]:
    return build_message(ServerMessage.GAME_EVENT, event.to_wire())


def error_message(message: str) -> dict[str, Any]:
    return build_message(ServerMessage.ERROR, {"message": message})


def parse_request(raw: str) -> ViewerRequest:
    """Parse a viewer frame into a request type.

    Accepts either a JSON object with a ``type`` key or a bare request name.
    Raises ValueError for anything else.
    """
    text = raw.strip()
    try:
        frame = json.loads(text)
    except json.JSONDecodeError:
        frame = text

    if isinstance(frame, dict):
        frame = frame.get("type")
    if not isinstance(frame, str):
        raise ValueError("Request must be a string or an object with a 'type' field")

    try:
        return ViewerRequest(frame)
    except ValueError:
        raise ValueError(f"Unknown request type: {frame}") from None
