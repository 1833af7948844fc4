"""Dependency injection utilities for FastAPI

Services are owned by the application instance (``app.state``) rather than
module globals, so each app built by ``create_app`` is fully isolated.
"""

from fastapi import Request

from combat_relay.services import SnapshotStore, StatsIngestService


def get_store(request: Request) -> SnapshotStore:
    return request.app.state.store


def get_ingest_service(request: Request) -> StatsIngestService:
    return request.app.state.ingest
