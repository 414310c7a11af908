"""Profile editing session: debounced recompute and serialized saves."""

from goalfit.session.orchestrator import OrchestratorState, ProfileOrchestrator
from goalfit.session.store import RecordStore, SQLiteRecordStore

__all__ = [
    "OrchestratorState",
    "ProfileOrchestrator",
    "RecordStore",
    "SQLiteRecordStore",
]
