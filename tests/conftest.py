"""Shared fixtures and fakes for the relay tests."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from combat_relay.app import create_app
from combat_relay.core.config import Settings
from combat_relay.models import GameEvent, StatsPayload, StatsSnapshot

SAMPLE_STATS = {
    "totalAttacks": 10,
    "hitsLanded": 7,
    "hitsMissed": 3,
    "punchCount": 6,
    "kickCount": 4,
    "dashCount": 2,
    "hitRate": 70.0,
    "sessionDuration": 45.2,
}


def make_snapshot(**overrides) -> StatsSnapshot:
    payload = StatsPayload.model_validate({**SAMPLE_STATS, **overrides})
    return StatsSnapshot.from_payload(payload)


async def settle(rounds: int = 10) -> None:
    """Let sender tasks drain their queues."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeViewer:
    """Records pushes; optionally starts failing after ``fail_after`` deliveries."""

    def __init__(self, fail_after: int | None = None):
        self.received: list[dict] = []
        self.fail_after = fail_after
        self.closed = False

    async def send(self, message: dict) -> None:
        if self.fail_after is not None and len(self.received) >= self.fail_after:
            raise ConnectionResetError("viewer went away")
        self.received.append(message)

    async def close(self) -> None:
        self.closed = True

    @property
    def types(self) -> list[str]:
        return [m["type"] for m in self.received]


class RecordingPersistence:
    enabled = True

    def __init__(self):
        self.snapshots: list[StatsSnapshot] = []
        self.events: list[GameEvent] = []
        self.connected = False

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def save_snapshot(self, snapshot: StatsSnapshot) -> bool:
        self.snapshots.append(snapshot)
        return True

    async def save_event(self, event: GameEvent) -> bool:
        self.events.append(event)
        return True

    async def is_available(self) -> bool:
        return self.connected


class FailingPersistence:
    """Simulates a durable-store outage on every call."""

    enabled = True

    async def connect(self) -> None:
        raise ConnectionError("database unreachable")

    async def disconnect(self) -> None:
        return None

    async def save_snapshot(self, snapshot: StatsSnapshot) -> bool:
        raise ConnectionError("database unreachable")

    async def save_event(self, event: GameEvent) -> bool:
        raise ConnectionError("database unreachable")

    async def is_available(self) -> bool:
        return False


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        database_url="",
        client_url="http://localhost:3000",
        enable_keep_alive=False,
        environment="development",
        viewer_queue_size=64,
        history_capacity=1000,
    )


@pytest.fixture
def client(settings):
    with TestClient(create_app(settings)) as c:
        yield c
