"""
File Contents Tracker

Tracks open editor buffers and their live text, separately from what is on
disk, and records which files changed since the last synchronization pass.

Notifications follow the editor protocol lifecycle:
- did_open / did_change replace the live text and mark the file changed
- did_close drops the live text and marks the file changed, so the next
  pass rebuilds it from disk
- did_save does not change the text and marks nothing
- mark_changed is used for on-disk changes reported by the file watcher
"""

import threading
from typing import Dict, FrozenSet, Iterable, Optional, Set

from ..logging_config import debug_log
from .utils import normalize_uri


class FileContentsTracker:
    """
    Live buffer contents and changed-identifier bookkeeping.

    ::: This is-in-layer Service-Layer.
    ::: This is a tracker.
    ::: This is stateful.
    ::: This is thread-safe.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._open_files: Dict[str, str] = {}
        self._changed_uris: Set[str] = set()

    # ------------------------------------------------------------------
    # Editor notifications
    # ------------------------------------------------------------------

    def did_open(self, uri: str, text: str) -> str:
        uri = normalize_uri(uri)
        with self._lock:
            self._open_files[uri] = text
            self._changed_uris.add(uri)
        debug_log(f"[Tracker] open {uri}")
        return uri

    def did_change(self, uri: str, text: str) -> str:
        uri = normalize_uri(uri)
        with self._lock:
            self._open_files[uri] = text
            self._changed_uris.add(uri)
        return uri

    def did_close(self, uri: str) -> str:
        uri = normalize_uri(uri)
        with self._lock:
            self._open_files.pop(uri, None)
            self._changed_uris.add(uri)
        debug_log(f"[Tracker] close {uri}")
        return uri

    def did_save(self, uri: str) -> str:
        # Saved text already matches the buffer we hold
        return normalize_uri(uri)

    def mark_changed(self, uris: Iterable[str]) -> None:
        """Mark identifiers changed without touching buffer text."""
        normalized = {normalize_uri(uri) for uri in uris}
        with self._lock:
            self._changed_uris.update(normalized)

    # ------------------------------------------------------------------
    # Queries used by the reconciler
    # ------------------------------------------------------------------

    def get_open_uris(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._open_files)

    def is_open(self, uri: str) -> bool:
        with self._lock:
            return uri in self._open_files

    def get_contents(self, uri: str) -> Optional[str]:
        """Live text of an open file, or None if it is not open."""
        with self._lock:
            return self._open_files.get(uri)

    def get_changed_uris(self) -> FrozenSet[str]:
        with self._lock:
            return frozenset(self._changed_uris)

    def reset_changed_uris(self) -> None:
        with self._lock:
            self._changed_uris.clear()

    def take_changed_uris(self) -> FrozenSet[str]:
        """Return the changed identifiers and reset them in one step."""
        with self._lock:
            changed = frozenset(self._changed_uris)
            self._changed_uris.clear()
            return changed
