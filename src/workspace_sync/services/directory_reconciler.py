"""
Directory Reconciler

Brings a compilation unit in line with the workspace in one pass:

1. Units for changed identifiers are removed before anything is added.
2. The workspace tree is walked; each file either is skipped (filtered out,
   wrong extension, open in an editor, unchanged) or gets a unit built from
   disk content.
3. Open buffers under the workspace root (every open buffer when there is
   no root) get units built from the live buffer text.
4. Units for files that are no longer indexable (deleted, removed from the
   filter, outside the root) are pruned. Unchanged units under a directory
   the walk failed to read are kept.

A unit is never replaced in place: replacement is always remove-then-add,
so a compilation unit never holds two units for one identifier.
"""

import os
import time
from pathlib import Path
from typing import FrozenSet, List, Optional, Set

from ..compiler import CompilationUnit
from ..logging_config import configure_logger_for_debug_trace
from ..models import SourceOrigin, SyncResult
from ..sync_exceptions import SourceUnitError
from .content_tracker import FileContentsTracker
from .index_filter import IndexFilter
from .utils import is_under_root, path_to_uri, uri_to_path

logger = configure_logger_for_debug_trace(__name__)

DEFAULT_SOURCE_EXTENSION = ".groovy"


class DirectoryReconciler:
    """
    Per-file add/skip/remove decisions for one synchronization pass.

    ::: This is-in-layer Service-Layer.
    ::: This is a reconciler.
    ::: This is stateless.

    Holds no source units between passes.
    """

    def __init__(self, tracker: FileContentsTracker, source_extension: str = DEFAULT_SOURCE_EXTENSION):
        self._tracker = tracker
        self._extension = source_extension

    @property
    def source_extension(self) -> str:
        return self._extension

    def is_indexable(self, base_name: str, index_filter: IndexFilter) -> bool:
        """Single membership predicate: allowed by the filter and a source file."""
        return index_filter.allows(base_name) and base_name.endswith(self._extension)

    def reconcile(
        self,
        compilation_unit: CompilationUnit,
        workspace_root: Optional[Path],
        changed_uris: Optional[FrozenSet[str]],
        index_filter: IndexFilter,
    ) -> SyncResult:
        """
        Run one pass against compilation_unit (mutated in place).

        Args:
            compilation_unit: Program model to update
            workspace_root: Root to walk, or None for open-buffers-only mode
            changed_uris: Identifiers changed since the last pass, or None on
                a first pass (every file is new)
            index_filter: Allow-list of base names

        Returns:
            SyncResult with added/removed identifiers and error counts
        """
        start = time.time()
        result = SyncResult(first_pass=changed_uris is None)
        expected: Set[str] = set()
        unwalked: List[Path] = []

        if changed_uris:
            stale = [unit for unit in compilation_unit if unit.uri in changed_uris]
            for unit in compilation_unit.remove_sources(stale):
                result.removed.append(unit.uri)

        if workspace_root is not None:
            if workspace_root.is_dir():
                self._walk_directory(
                    workspace_root, compilation_unit, changed_uris, index_filter, expected, unwalked, result
                )
            else:
                logger.warning(f"[Reconciler] Workspace root does not exist: {workspace_root}")

        for uri in sorted(self._tracker.get_open_uris()):
            path = uri_to_path(uri)
            if not is_under_root(path, workspace_root):
                continue
            if not self.is_indexable(path.name, index_filter):
                continue
            expected.add(uri)
            if self._is_unchanged(uri, compilation_unit, changed_uris):
                continue
            contents = self._tracker.get_contents(uri)
            if contents is None:
                # Closed since the open set was read; the close marked it changed
                expected.discard(uri)
                continue
            self._remove_existing(uri, compilation_unit, result)
            compilation_unit.add_source_text(str(path), contents, uri=uri, origin=SourceOrigin.BUFFER)
            result.added.append(uri)

        pruned = [
            unit for unit in compilation_unit
            if unit.uri not in expected
            and not self._in_unwalked_directory(unit.uri, unwalked, changed_uris, index_filter)
        ]
        for unit in compilation_unit.remove_sources(pruned):
            if unit.uri not in result.removed:
                result.removed.append(unit.uri)

        result.unit_count = len(compilation_unit)
        result.duration = time.time() - start
        logger.debug(
            f"[Reconciler] pass: +{len(result.added)} -{len(result.removed)} "
            f"filtered={result.skipped_filtered} errors={result.walk_errors + result.read_errors} "
            f"units={result.unit_count} in {result.duration:.3f}s"
        )
        return result

    def _walk_directory(
        self,
        root: Path,
        compilation_unit: CompilationUnit,
        changed_uris: Optional[FrozenSet[str]],
        index_filter: IndexFilter,
        expected: Set[str],
        unwalked: List[Path],
        result: SyncResult,
    ) -> None:
        def on_error(error: OSError) -> None:
            logger.error(f"Failed to walk directory for source files: {error.filename}: {error.strerror}")
            result.walk_errors += 1
            if error.filename:
                unwalked.append(Path(os.fsdecode(error.filename)))

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            dirnames.sort()
            for filename in sorted(filenames):
                if not index_filter.allows(filename):
                    result.skipped_filtered += 1
                    continue
                if not filename.endswith(self._extension):
                    continue

                file_path = Path(dirpath) / filename
                if not file_path.is_file():
                    continue
                uri = path_to_uri(file_path)
                if self._tracker.is_open(uri):
                    # Open files are built from the live buffer, never from disk
                    continue

                expected.add(uri)
                if self._is_unchanged(uri, compilation_unit, changed_uris):
                    continue

                self._remove_existing(uri, compilation_unit, result)
                try:
                    compilation_unit.add_source(file_path)
                except SourceUnitError as e:
                    logger.error(f"[Reconciler] Skipping {file_path}: {e}")
                    result.read_errors += 1
                    continue
                result.added.append(uri)

    @staticmethod
    def _is_unchanged(
        uri: str,
        compilation_unit: CompilationUnit,
        changed_uris: Optional[FrozenSet[str]],
    ) -> bool:
        # A file already in the model and absent from the change set keeps
        # its unit; a file missing from the model is always added
        return changed_uris is not None and uri not in changed_uris and uri in compilation_unit

    def _in_unwalked_directory(
        self,
        uri: str,
        unwalked: List[Path],
        changed_uris: Optional[FrozenSet[str]],
        index_filter: IndexFilter,
    ) -> bool:
        # Disk state under a directory the walk could not read is unknown;
        # its unchanged units are kept until a later pass can read it
        if not unwalked or changed_uris is None or uri in changed_uris:
            return False
        path = uri_to_path(uri)
        if not self.is_indexable(path.name, index_filter):
            return False
        return any(is_under_root(path, directory) for directory in unwalked)

    @staticmethod
    def _remove_existing(uri: str, compilation_unit: CompilationUnit, result: SyncResult) -> None:
        existing = compilation_unit.get(uri)
        if existing is None:
            return
        compilation_unit.remove_sources([existing])
        if uri not in result.removed:
            result.removed.append(uri)
