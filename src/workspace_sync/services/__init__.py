"""
Service Classes for the workspace synchronizer

Each service has a single responsibility: filter, contents tracker,
classpath resolution, program model cache, directory reconciler,
synchronizer, file watcher, configuration and tool registration.
"""


def __getattr__(name):
    """Lazy-import service classes (they depend on the compiler module)."""
    if name == "WorkspaceSynchronizer":
        from .workspace_synchronizer import WorkspaceSynchronizer
        return WorkspaceSynchronizer
    if name == "DirectoryReconciler":
        from .directory_reconciler import DirectoryReconciler
        return DirectoryReconciler
    if name == "ProgramModelCache":
        from .program_model_cache import ProgramModelCache
        return ProgramModelCache
    if name == "FileContentsTracker":
        from .content_tracker import FileContentsTracker
        return FileContentsTracker
    if name == "IndexFilter":
        from .index_filter import IndexFilter
        return IndexFilter
    if name in ("ConfigLoader", "load_config", "get_config_loader"):
        from . import config_loader
        return getattr(config_loader, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
