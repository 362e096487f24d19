"""
Workspace Sync - incremental workspace synchronizer

Keeps a program model (one source unit per source file) consistent with
on-disk files, live editor buffers and an index filter across repeated
open/change/save/close events, rebuilding only what changed.
"""

__version__ = "0.1.0"

from .models import (
    ProgramModelSnapshot,
    SourceOrigin,
    SourceUnit,
    SourceUnitInfo,
    SyncResult,
)
from .sync_exceptions import (
    ConfigurationError,
    DuplicateSourceUnitError,
    SourceReadError,
    SourceUnitError,
    SynchronizerShutDownError,
    WorkspaceSyncError,
)

# Service classes are lazy-imported to keep the compiler <-> services
# import order acyclic
_SERVICE_ATTRS = {
    "WorkspaceSynchronizer": "workspace_synchronizer",
    "get_synchronizer": "workspace_synchronizer",
    "shutdown_synchronizer": "workspace_synchronizer",
    "FileContentsTracker": "content_tracker",
    "IndexFilter": "index_filter",
    "ProgramModelCache": "program_model_cache",
    "DirectoryReconciler": "directory_reconciler",
}


def __getattr__(name):
    if name in _SERVICE_ATTRS:
        import importlib
        module = importlib.import_module(f".services.{_SERVICE_ATTRS[name]}", __name__)
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "ProgramModelSnapshot",
    "SourceOrigin",
    "SourceUnit",
    "SourceUnitInfo",
    "SyncResult",
    "WorkspaceSyncError",
    "SourceUnitError",
    "DuplicateSourceUnitError",
    "SourceReadError",
    "ConfigurationError",
    "SynchronizerShutDownError",
    "WorkspaceSynchronizer",
    "get_synchronizer",
    "shutdown_synchronizer",
    "FileContentsTracker",
    "IndexFilter",
    "ProgramModelCache",
    "DirectoryReconciler",
]
