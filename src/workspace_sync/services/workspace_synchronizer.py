"""
Workspace Synchronizer

Owns the program model and runs synchronization passes over it with
single-writer discipline:

- every pass and every cache mutation runs under one write lock
- readers get the snapshot published by the last complete pass and never
  block on, or observe, a pass in progress
- background requests are coalesced: while a pass runs, any number of
  request_sync() calls collapse into one follow-up pass, which picks up
  every change accumulated by the contents tracker in the meantime

A process-wide instance is created lazily by get_synchronizer() and torn
down by shutdown_synchronizer().
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from ..logging_config import configure_logger_for_debug_trace
from ..models import ProgramModelSnapshot, SourceUnit, SyncResult
from ..sync_exceptions import ConfigurationError, SynchronizerShutDownError
from .content_tracker import FileContentsTracker
from .directory_reconciler import DEFAULT_SOURCE_EXTENSION, DirectoryReconciler
from .file_watcher import FileWatcher
from .index_filter import IndexFilter
from .program_model_cache import ProgramModelCache
from .sync_progress import SyncPhase, SyncProgress, SyncStatus
from .utils import normalize_uri

logger = configure_logger_for_debug_trace(__name__)


class WorkspaceSynchronizer:
    """
    Keeps the program model consistent with disk, editor buffers and the
    index filter.

    ::: This is-in-layer Service-Layer.
    ::: This is a manager.
    ::: This is stateful.
    ::: This is thread-safe.
    """

    def __init__(
        self,
        workspace_root: Optional[Path] = None,
        index_files: Any = None,
        tracker: Optional[FileContentsTracker] = None,
        cache: Optional[ProgramModelCache] = None,
        source_extension: str = DEFAULT_SOURCE_EXTENSION,
    ):
        self._write_lock = threading.Lock()
        self._worker_cond = threading.Condition()
        self._tracker = tracker or FileContentsTracker()
        self._cache = cache or ProgramModelCache()
        self._reconciler = DirectoryReconciler(self._tracker, source_extension)
        self._workspace_root = self._validate_root(workspace_root)
        self._index_filter = IndexFilter.from_value(index_files)

        self._snapshot = ProgramModelSnapshot()
        self._generation = 0
        self._last_result: Optional[SyncResult] = None
        self._progress = SyncProgress()

        self._worker: Optional[threading.Thread] = None
        self._worker_active = False
        self._pending = False
        self._closed = False
        self._watcher: Optional[FileWatcher] = None

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_root(workspace_root: Optional[Path]) -> Optional[Path]:
        if workspace_root is None:
            return None
        root = Path(workspace_root).absolute()
        if root.exists() and not root.is_dir():
            raise ConfigurationError(f"Workspace root is not a directory: {root}")
        return root

    @property
    def tracker(self) -> FileContentsTracker:
        return self._tracker

    @property
    def workspace_root(self) -> Optional[Path]:
        return self._workspace_root

    @property
    def index_filter(self) -> IndexFilter:
        return self._index_filter

    @property
    def source_extension(self) -> str:
        return self._reconciler.source_extension

    @property
    def progress(self) -> SyncProgress:
        return self._progress

    @property
    def last_result(self) -> Optional[SyncResult]:
        return self._last_result

    def configure(self, workspace_root: Optional[Path], index_files: Any = None) -> None:
        """
        Set the workspace root and index filter used by subsequent passes.

        The existing program model is kept; the next pass prunes what the new
        root/filter no longer admits and adds what it newly admits.
        """
        root = self._validate_root(workspace_root)
        index_filter = IndexFilter.from_value(index_files)
        with self._write_lock:
            root_changed = root != self._workspace_root
            self._workspace_root = root
            self._index_filter = index_filter
        logger.info(f"[Synchronizer] Workspace root={root} filter={index_filter!r}")
        if root_changed and self._watcher is not None:
            self.stop_file_watcher()
            self.start_file_watcher()

    def set_index_filter(self, index_files: Any) -> IndexFilter:
        index_filter = IndexFilter.from_value(index_files)
        with self._write_lock:
            self._index_filter = index_filter
        return index_filter

    def set_additional_classpath(self, entries: Optional[Iterable[str]]) -> None:
        """Replace the classpath; the next pass rebuilds the program model."""
        with self._write_lock:
            self._cache.set_additional_classpath(list(entries or []))

    def invalidate(self) -> None:
        with self._write_lock:
            self._cache.invalidate()

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def synchronize(self) -> SyncResult:
        """
        Run one synchronization pass and publish its snapshot.

        Blocks until any pass already in progress has finished.
        """
        if self._closed:
            raise SynchronizerShutDownError("Synchronizer has been shut down")
        with self._write_lock:
            return self._run_pass()

    def _run_pass(self) -> SyncResult:
        self._progress.update(
            sync_status=SyncStatus.SYNCING,
            sync_phase=SyncPhase.ACQUIRING,
            sync_message="Synchronizing workspace...",
            sync_started_at=datetime.now(),
            sync_error=None,
        )
        changed = self._tracker.take_changed_uris()
        try:
            compilation_unit, fresh = self._cache.acquire()
            self._progress.update(sync_phase=SyncPhase.RECONCILING)
            result = self._reconciler.reconcile(
                compilation_unit,
                self._workspace_root,
                None if fresh else changed,
                self._index_filter,
            )
        except Exception as e:
            # Keep the changes for the next pass and start that pass from scratch
            self._tracker.mark_changed(changed)
            self._cache.invalidate()
            self._progress.update(
                sync_status=SyncStatus.ERROR,
                sync_phase=SyncPhase.COMPLETE,
                sync_error=str(e),
                sync_message="Synchronization failed",
                sync_completed_at=datetime.now(),
            )
            logger.exception(f"[Synchronizer] Pass failed: {e}")
            raise

        self._progress.update(sync_phase=SyncPhase.PUBLISHING)
        self._generation += 1
        result.generation = self._generation
        result.rebuilt_context = fresh
        self._snapshot = compilation_unit.snapshot(self._generation)
        self._last_result = result

        self._progress.update(
            sync_status=SyncStatus.READY,
            sync_phase=SyncPhase.COMPLETE,
            sync_message=f"Sync complete: {result.unit_count} source units",
            sync_completed_at=datetime.now(),
            passes_completed=self._progress.passes_completed + 1,
            units_total=result.unit_count,
            last_added=len(result.added),
            last_removed=len(result.removed),
            last_walk_errors=result.walk_errors,
        )
        logger.debug(
            f"[Synchronizer] Generation {self._generation}: +{len(result.added)} "
            f"-{len(result.removed)} ({result.unit_count} units)"
        )
        return result

    def request_sync(self) -> None:
        """
        Schedule a pass on the background worker (non-blocking).

        If a pass is running, one follow-up pass is queued instead; further
        requests before it starts are absorbed by it.
        """
        with self._worker_cond:
            if self._closed:
                return
            if self._worker_active:
                self._pending = True
                self._progress.update(passes_queued=1)
                return
            self._worker_active = True
            self._worker = threading.Thread(
                target=self._background_loop,
                name="WorkspaceSync",
                daemon=True,
            )
            self._worker.start()

    def _background_loop(self) -> None:
        while True:
            try:
                self.synchronize()
            except SynchronizerShutDownError:
                pass
            except Exception as e:
                logger.error(f"[Synchronizer] Background pass failed: {e}")

            with self._worker_cond:
                if self._pending and not self._closed:
                    self._pending = False
                    self._progress.update(passes_queued=0)
                    continue
                self._worker_active = False
                self._worker_cond.notify_all()
                return

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Wait until no background pass is running or queued."""
        with self._worker_cond:
            return self._worker_cond.wait_for(lambda: not self._worker_active, timeout)

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def current_model(self) -> ProgramModelSnapshot:
        """Program model as of the last complete pass."""
        return self._snapshot

    def get_source_unit(self, uri: str) -> Optional[SourceUnit]:
        return self._snapshot.get(normalize_uri(uri))

    # ------------------------------------------------------------------
    # File watching and lifecycle
    # ------------------------------------------------------------------

    def start_file_watcher(self) -> bool:
        if self._workspace_root is None:
            return False
        if self._watcher is None:
            self._watcher = FileWatcher(
                self._workspace_root,
                self._tracker,
                self.source_extension,
                on_change=self.request_sync,
            )
        return self._watcher.start()

    def stop_file_watcher(self) -> None:
        if self._watcher is not None:
            self._watcher.stop()
            self._watcher = None

    def shutdown(self, timeout: float = 5.0) -> None:
        """Stop watching, let the in-flight pass finish and drop the model."""
        with self._worker_cond:
            self._closed = True
            self._pending = False
        self.stop_file_watcher()
        self.wait_idle(timeout)
        with self._write_lock:
            self._cache.invalidate()
            self._snapshot = ProgramModelSnapshot()
        logger.info("[Synchronizer] Shut down")


# Process-wide instance
_synchronizer: Optional[WorkspaceSynchronizer] = None
_synchronizer_lock = threading.Lock()


def get_synchronizer() -> WorkspaceSynchronizer:
    """Get the process-wide synchronizer, creating it from config on first use."""
    global _synchronizer
    with _synchronizer_lock:
        if _synchronizer is None:
            from .config_loader import get_sync_config
            _synchronizer = create_synchronizer(get_sync_config())
        return _synchronizer


def create_synchronizer(config) -> WorkspaceSynchronizer:
    """Build a synchronizer from a SyncConfig."""
    synchronizer = WorkspaceSynchronizer(
        workspace_root=config.workspace_root,
        index_files=config.index_filter,
        cache=ProgramModelCache(config.classpath),
        source_extension=config.source_extension,
    )
    if config.watch:
        synchronizer.start_file_watcher()
    return synchronizer


def shutdown_synchronizer() -> None:
    """Tear down the process-wide synchronizer (server shutdown)."""
    global _synchronizer
    with _synchronizer_lock:
        synchronizer, _synchronizer = _synchronizer, None
    if synchronizer is not None:
        synchronizer.shutdown()
