"""
Tests: persistence backends never raise into callers; schema migrations apply once
"""
import asyncio
import json

from combat_relay.core.database import DatabaseManager
from combat_relay.migrations.runner import MigrationRunner
from combat_relay.models import GameEvent
from combat_relay.services import NullPersistence, PostgresPersistence, build_persistence
from tests.conftest import make_snapshot


class FakeConnection:
    """Minimal stand-in for asyncpg.Connection."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[tuple[str, tuple]] = []
        self.applied_versions: set[str] = set()

    def _check(self):
        if self.fail:
            raise ConnectionError("connection reset by peer")

    async def fetchval(self, query, *args):
        self._check()
        self.calls.append((query, args))
        return 1 if "SELECT 1" in query else len(self.calls)

    async def execute(self, query, *args):
        self._check()
        self.calls.append((query, args))
        if "INSERT INTO schema_migrations" in query:
            self.applied_versions.add(args[0])
        return "OK"

    async def fetch(self, query, *args):
        self._check()
        return [{"version": v} for v in sorted(self.applied_versions)]

    def transaction(self):
        return _NullContext(None)


class _NullContext:
    def __init__(self, value):
        self.value = value

    async def __aenter__(self):
        return self.value

    async def __aexit__(self, *exc):
        return False


class FakePool:
    def __init__(self, conn: FakeConnection):
        self.conn = conn

    def acquire(self, timeout=None):
        return _NullContext(self.conn)

    async def close(self):
        return None


def _postgres(conn: FakeConnection | None) -> PostgresPersistence:
    manager = DatabaseManager("postgresql://relay@localhost/combat")
    if conn is not None:
        manager._pool = FakePool(conn)
    return PostgresPersistence(manager)


def test_build_persistence_picks_backend_from_url():
    assert isinstance(build_persistence(""), NullPersistence)
    assert isinstance(build_persistence("   "), NullPersistence)
    assert isinstance(build_persistence("postgresql://relay@localhost/combat"), PostgresPersistence)


def test_null_persistence_always_succeeds_and_reports_unavailable():
    async def scenario():
        persistence = NullPersistence()
        await persistence.connect()
        assert await persistence.save_snapshot(make_snapshot()) is True
        assert await persistence.save_event(GameEvent(event_type="hit")) is True
        assert await persistence.is_available() is False
        assert persistence.enabled is False

    asyncio.run(scenario())


def test_postgres_writes_snapshot_row():
    async def scenario():
        conn = FakeConnection()
        snapshot = make_snapshot()

        assert await _postgres(conn).save_snapshot(snapshot) is True

        query, args = conn.calls[-1]
        assert "INSERT INTO combat_stats" in query
        assert args == (10, 6, 4, 7, 3, 2, 70.0, 45.2, snapshot.timestamp)

    asyncio.run(scenario())


def test_postgres_writes_event_data_as_json():
    async def scenario():
        conn = FakeConnection()
        event = GameEvent(event_type="combo", data={"hits": 3, "finisher": "kick"})

        assert await _postgres(conn).save_event(event) is True

        query, args = conn.calls[-1]
        assert "INSERT INTO game_events" in query
        assert args[0] == "combo"
        assert json.loads(args[1]) == {"hits": 3, "finisher": "kick"}

    asyncio.run(scenario())


def test_postgres_failures_are_swallowed():
    async def scenario():
        persistence = _postgres(FakeConnection(fail=True))

        assert await persistence.save_snapshot(make_snapshot()) is False
        assert await persistence.save_event(GameEvent(event_type="hit")) is False
        assert await persistence.is_available() is False

    asyncio.run(scenario())


def test_postgres_skips_writes_when_not_connected():
    async def scenario():
        persistence = _postgres(None)

        assert await persistence.save_snapshot(make_snapshot()) is False
        assert await persistence.save_event(GameEvent(event_type="hit")) is False
        assert await persistence.is_available() is False

    asyncio.run(scenario())


def test_postgres_available_when_pool_answers():
    async def scenario():
        assert await _postgres(FakeConnection()).is_available() is True

    asyncio.run(scenario())


def test_migrations_apply_once():
    async def scenario():
        conn = FakeConnection()
        runner = MigrationRunner(FakePool(conn))

        first = await runner.run_pending()
        second = await runner.run_pending()

        assert first == ["000_combat_schema"]
        assert second == []
        executed = " ".join(q for q, _ in conn.calls)
        assert "CREATE TABLE IF NOT EXISTS combat_stats" in executed
        assert "CREATE TABLE IF NOT EXISTS game_events" in executed

    asyncio.run(scenario())
