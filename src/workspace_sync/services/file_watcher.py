"""
File Watcher

Watches the workspace root with watchdog and reports on-disk changes to the
contents tracker, so files edited outside the editor (or created, deleted,
moved) are part of the next pass's change set.
"""

import os
import threading
from pathlib import Path
from typing import Callable, Dict, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from ..logging_config import configure_logger_for_debug_trace, debug_log
from .content_tracker import FileContentsTracker
from .utils import path_to_uri

logger = configure_logger_for_debug_trace(__name__)


class _SourceChangeHandler(FileSystemEventHandler):
    """
    Watchdog event handler that marks changed source files.

    Specific handlers (on_created, on_deleted, on_modified, on_moved) are
    used instead of on_any_event so file reads (atime updates, open/close
    events) are not reported as changes. Modified events whose mtime did
    not move are dropped as well.
    """

    def __init__(self, watcher: "FileWatcher"):
        super().__init__()
        self._watcher = watcher
        self._last_mtime: Dict[str, float] = {}

    def _handle_path(self, raw_path, check_mtime: bool = False) -> bool:
        path = Path(os.fsdecode(raw_path))
        if not path.name.endswith(self._watcher.source_extension):
            return False

        if check_mtime:
            try:
                current_mtime = path.stat().st_mtime
            except OSError:
                # Gone already; report it
                current_mtime = None
            if current_mtime is not None:
                key = str(path)
                if self._last_mtime.get(key) == current_mtime:
                    return False
                self._last_mtime[key] = current_mtime

        self._watcher.tracker.mark_changed([path_to_uri(path)])
        return True

    def _handle_event(self, event: FileSystemEvent, check_mtime: bool = False, forget_src: bool = False) -> None:
        if event.is_directory:
            return
        if forget_src:
            # The source path no longer exists
            self._last_mtime.pop(str(Path(os.fsdecode(event.src_path))), None)
        changed = self._handle_path(event.src_path, check_mtime=check_mtime)
        dest_path = getattr(event, "dest_path", None)
        if dest_path:
            changed = self._handle_path(dest_path) or changed
        if changed:
            debug_log(f"[FileWatcher] Change detected: {os.fsdecode(event.src_path)} ({event.event_type})")
            self._watcher.notify()

    def on_created(self, event: FileSystemEvent) -> None:
        self._handle_event(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._handle_event(event, forget_src=True)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._handle_event(event, check_mtime=True)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._handle_event(event, forget_src=True)


class FileWatcher:
    """
    Filesystem watcher for the workspace root.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a watcher.
    ::: This is stateful.
    """

    def __init__(
        self,
        root: Path,
        tracker: FileContentsTracker,
        source_extension: str,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self.root = root
        self.tracker = tracker
        self.source_extension = source_extension
        self._on_change = on_change
        self._observer: Optional[Observer] = None
        self._lock = threading.Lock()
        self.handler = _SourceChangeHandler(self)

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def notify(self) -> None:
        if self._on_change is not None:
            self._on_change()

    def start(self) -> bool:
        """
        Start watching the root recursively.

        Returns:
            True if the observer is running, False if it could not be started
        """
        with self._lock:
            if self._observer is not None:
                return True
            if not self.root.is_dir():
                logger.warning(f"[FileWatcher] Not watching missing directory {self.root}")
                return False
            observer = Observer()
            try:
                observer.schedule(self.handler, str(self.root), recursive=True)
                observer.start()
            except OSError as e:
                logger.error(f"[FileWatcher] Failed to start: {e}")
                return False
            self._observer = observer
        logger.info(f"[FileWatcher] Started watching {self.root}")
        return True

    def stop(self) -> None:
        with self._lock:
            observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join(timeout=2.0)
        logger.info("[FileWatcher] Stopped")
