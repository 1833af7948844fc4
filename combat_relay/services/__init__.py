"""Services layer - relay state, fan-out and persistence

Services are created once per application in ``create_app`` and reached
from the routers through dependency injection.
"""

from .broadcast_hub import BroadcastHub, ViewerSession
from .ingest import StatsIngestService
from .persistence import NullPersistence, PostgresPersistence, StatsPersistence, build_persistence
from .snapshot_store import SnapshotStore

__all__ = [
    "BroadcastHub",
    "NullPersistence",
    "PostgresPersistence",
    "SnapshotStore",
    "StatsIngestService",
    "StatsPersistence",
    "ViewerSession",
    "build_persistence",
]
