"""
Sync Progress Tracking

Shared state describing the in-flight and the last completed
synchronization pass. Written by the synchronizer, read by tools.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class SyncStatus(Enum):
    """
    Status of synchronization passes.

    ::: This is-in-layer Utility-Layer.
    ::: This is a value-object.
    """
    IDLE = "idle"           # No pass has run yet
    SYNCING = "syncing"     # Pass in progress
    READY = "ready"         # Last pass completed
    ERROR = "error"         # Last pass failed


class SyncPhase(Enum):
    """
    Current phase of a synchronization pass.

    ::: This is-in-layer Utility-Layer.
    ::: This is a value-object.
    """
    IDLE = "idle"
    ACQUIRING = "acquiring"       # Reuse-or-rebuild decision
    RECONCILING = "reconciling"   # Directory walk and open buffers
    PUBLISHING = "publishing"     # Swapping in the new snapshot
    COMPLETE = "complete"


@dataclass
class SyncProgress:
    """
    Progress of the synchronizer.

    ::: This is-in-layer Utility-Layer.
    ::: This is a value-object.

    Only the synchronizer's writer thread updates these fields; readers
    take a to_dict() copy.
    """
    sync_status: SyncStatus = SyncStatus.IDLE
    sync_phase: SyncPhase = SyncPhase.IDLE
    sync_message: str = ""
    sync_error: Optional[str] = None
    sync_started_at: Optional[datetime] = None
    sync_completed_at: Optional[datetime] = None

    passes_completed: int = 0
    passes_queued: int = 0
    units_total: int = 0
    last_added: int = 0
    last_removed: int = 0
    last_walk_errors: int = 0

    def update(self, **kwargs) -> None:
        """Update progress fields."""
        for key, value in kwargs.items():
            if hasattr(self, key) and not key.startswith('_'):
                setattr(self, key, value)

    def is_busy(self) -> bool:
        return self.sync_status == SyncStatus.SYNCING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.sync_status.value,
            "phase": self.sync_phase.value,
            "message": self.sync_message,
            "error": self.sync_error,
            "started_at": self.sync_started_at.isoformat() if self.sync_started_at else None,
            "completed_at": self.sync_completed_at.isoformat() if self.sync_completed_at else None,
            "passes_completed": self.passes_completed,
            "passes_queued": self.passes_queued,
            "units_total": self.units_total,
            "last_added": self.last_added,
            "last_removed": self.last_removed,
            "last_walk_errors": self.last_walk_errors,
        }
