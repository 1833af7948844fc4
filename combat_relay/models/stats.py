"""Data models for combat statistics and game events.

Field names are snake_case in Python and camelCase on the wire, matching
what the game client posts and what the dashboard reads.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class StatsPayload(CamelModel):
    """Snapshot body as posted by the game client.

    The client is authoritative: hit_rate is accepted as sent and the
    punch/kick split is not cross-checked against total_attacks. Values are
    taken strictly: "10" or true is not a counter, and floats must be finite.
    """

    model_config = ConfigDict(strict=True, allow_inf_nan=False)

    total_attacks: int = Field(ge=0)
    punch_count: int = Field(ge=0)
    kick_count: int = Field(ge=0)
    hits_landed: int = Field(ge=0)
    hits_missed: int = Field(ge=0)
    dash_count: int = Field(ge=0)
    hit_rate: float = Field(ge=0, le=100)
    session_duration: float = Field(ge=0)


class StatsSnapshot(StatsPayload):
    """One full statistics reading, stamped with the relay's receipt time."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utc_now)

    @classmethod
    def zero(cls) -> StatsSnapshot:
        return cls(
            total_attacks=0,
            punch_count=0,
            kick_count=0,
            hits_landed=0,
            hits_missed=0,
            dash_count=0,
            hit_rate=0.0,
            session_duration=0.0,
        )

    @classmethod
    def from_payload(
        cls, payload: StatsPayload, received_at: datetime | None = None
    ) -> StatsSnapshot:
        """Build a snapshot from client data, overriding any client timestamp."""
        fields = payload.model_dump(exclude={"timestamp"})
        return cls(**fields, timestamp=received_at or utc_now())

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class EventPayload(CamelModel):
    """Custom event body as posted by the game client."""

    event_type: str = Field(min_length=1)
    data: Any = None


class GameEvent(EventPayload):
    """Relayed game event. Never aggregated into the snapshot."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=utc_now)

    @classmethod
    def from_payload(
        cls, payload: EventPayload, received_at: datetime | None = None
    ) -> GameEvent:
        return cls(
            event_type=payload.event_type,
            data=payload.data,
            timestamp=received_at or utc_now(),
        )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)
