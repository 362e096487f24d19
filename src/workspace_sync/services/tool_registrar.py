"""
Sync Tool Registrar

Registers the MCP tools that drive the synchronizer from an editor or agent:

- initialize_workspace: set workspace root and index filter, run first pass
- did_open / did_change / did_close / did_save: editor buffer notifications
- synchronize: run a pass now
- set_classpath: replace classpath entries (rebuilds the program model)
- list_source_units / get_source_unit: read the current program model
- sync_status: progress of the last pass
"""

from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastmcp import FastMCP

from ..logging_config import configure_logger_for_debug_trace
from ..models import SourceUnitInfo, SyncResult
from ..sync_exceptions import WorkspaceSyncError
from .utils import uri_to_path
from .workspace_synchronizer import WorkspaceSynchronizer, get_synchronizer

logger = configure_logger_for_debug_trace(__name__)


def handle_sync_errors(func: Callable[..., Dict[str, Any]]) -> Callable[..., Dict[str, Any]]:
    """
    Decorator converting WorkspaceSyncError into an error response.

    Example:
        @handle_sync_errors
        def my_tool(...) -> Dict[str, Any]:
            ...
    """
    @wraps(func)
    def wrapper(*args, **kwargs) -> Dict[str, Any]:
        try:
            return func(*args, **kwargs)
        except WorkspaceSyncError as e:
            logger.warning(f"[Tools] {func.__name__} failed: {e}")
            return {
                "success": False,
                "error": str(e),
                "error_type": type(e).__name__,
            }
    return wrapper


def _result_payload(result: SyncResult) -> Dict[str, Any]:
    payload = result.model_dump(mode="json")
    payload["success"] = True
    return payload


class SyncToolRegistrar:
    """
    Registers synchronizer tools with FastMCP.

    ::: This is-in-layer Presentation-Layer.
    ::: This is a registrar.
    ::: This is stateless.
    """

    def __init__(self, synchronizer_provider: Callable[[], WorkspaceSynchronizer] = get_synchronizer):
        self._provider = synchronizer_provider

    @property
    def synchronizer(self) -> WorkspaceSynchronizer:
        return self._provider()

    # ------------------------------------------------------------------
    # Tool implementations
    # ------------------------------------------------------------------

    @handle_sync_errors
    def initialize_workspace(self, root: Optional[str] = None, index_files: Any = None) -> Dict[str, Any]:
        workspace_root: Optional[Path] = uri_to_path(root) if root else None
        synchronizer = self.synchronizer
        synchronizer.configure(workspace_root, index_files)
        payload = _result_payload(synchronizer.synchronize())
        payload["workspace_root"] = str(synchronizer.workspace_root) if synchronizer.workspace_root else None
        payload["index_files"] = sorted(synchronizer.index_filter.names)
        return payload

    @handle_sync_errors
    def did_open(self, uri: str, text: str) -> Dict[str, Any]:
        self.synchronizer.tracker.did_open(uri, text)
        return _result_payload(self.synchronizer.synchronize())

    @handle_sync_errors
    def did_change(self, uri: str, text: str) -> Dict[str, Any]:
        self.synchronizer.tracker.did_change(uri, text)
        return _result_payload(self.synchronizer.synchronize())

    @handle_sync_errors
    def did_close(self, uri: str) -> Dict[str, Any]:
        self.synchronizer.tracker.did_close(uri)
        return _result_payload(self.synchronizer.synchronize())

    @handle_sync_errors
    def did_save(self, uri: str) -> Dict[str, Any]:
        self.synchronizer.tracker.did_save(uri)
        return _result_payload(self.synchronizer.synchronize())

    @handle_sync_errors
    def synchronize(self) -> Dict[str, Any]:
        return _result_payload(self.synchronizer.synchronize())

    @handle_sync_errors
    def set_classpath(self, entries: List[str]) -> Dict[str, Any]:
        self.synchronizer.set_additional_classpath(entries)
        payload = _result_payload(self.synchronizer.synchronize())
        payload["classpath"] = list(self.synchronizer.current_model().classpath)
        return payload

    @handle_sync_errors
    def list_source_units(self) -> Dict[str, Any]:
        model = self.synchronizer.current_model()
        return {
            "success": True,
            "generation": model.generation,
            "count": len(model),
            "units": [SourceUnitInfo.from_unit(unit).model_dump(mode="json") for unit in model.units()],
        }

    @handle_sync_errors
    def get_source_unit(self, uri: str, include_text: bool = False) -> Dict[str, Any]:
        unit = self.synchronizer.get_source_unit(uri)
        if unit is None:
            return {"success": False, "error": f"No source unit for {uri}"}
        return {
            "success": True,
            "unit": SourceUnitInfo.from_unit(unit, include_text=include_text).model_dump(mode="json"),
        }

    @handle_sync_errors
    def sync_status(self) -> Dict[str, Any]:
        synchronizer = self.synchronizer
        status = synchronizer.progress.to_dict()
        status["success"] = True
        status["workspace_root"] = str(synchronizer.workspace_root) if synchronizer.workspace_root else None
        status["index_files"] = sorted(synchronizer.index_filter.names)
        status["open_files"] = sorted(synchronizer.tracker.get_open_uris())
        return status

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, app: FastMCP) -> None:
        """Register all synchronizer tools."""
        registrar = self

        @app.tool()
        def initialize_workspace(root: Optional[str] = None, index_files: Any = None) -> Dict[str, Any]:
            """
            Set the workspace root and index filter, then run a pass.

            Args:
                root: Workspace directory (path or file:// URI). Omit for
                    single-file mode where only open buffers are indexed.
                index_files: Base file names to index. Omit or pass [] to
                    index every source file.
            """
            return registrar.initialize_workspace(root, index_files)

        @app.tool()
        def did_open(uri: str, text: str) -> Dict[str, Any]:
            """Report a file opened in the editor with its buffer text."""
            return registrar.did_open(uri, text)

        @app.tool()
        def did_change(uri: str, text: str) -> Dict[str, Any]:
            """Report the full new buffer text of an open file."""
            return registrar.did_change(uri, text)

        @app.tool()
        def did_close(uri: str) -> Dict[str, Any]:
            """Report a file closed in the editor; it is rebuilt from disk."""
            return registrar.did_close(uri)

        @app.tool()
        def did_save(uri: str) -> Dict[str, Any]:
            """Report a file saved in the editor."""
            return registrar.did_save(uri)

        @app.tool()
        def synchronize() -> Dict[str, Any]:
            """Run a synchronization pass now."""
            return registrar.synchronize()

        @app.tool()
        def set_classpath(entries: List[str]) -> Dict[str, Any]:
            """
            Replace the classpath entries and rebuild the program model.

            Entries ending in "*" expand to the archives in that directory;
            missing entries are skipped.
            """
            return registrar.set_classpath(entries)

        @app.tool()
        def list_source_units() -> Dict[str, Any]:
            """List the source units of the current program model."""
            return registrar.list_source_units()

        @app.tool()
        def get_source_unit(uri: str, include_text: bool = False) -> Dict[str, Any]:
            """Get one source unit by file URI."""
            return registrar.get_source_unit(uri, include_text)

        @app.tool()
        def sync_status() -> Dict[str, Any]:
            """Status of the last synchronization pass."""
            return registrar.sync_status()
