"""
Logging Configuration for the workspace synchronizer.

Provides centralized logger setup for the debug trace log.
The trace logger writes to a file in the log directory and to stderr.

The log directory can change once configuration is loaded (workspace_sync.json
sets log_dir, debug_log or the workspace root); ensure_debug_trace_configured()
re-points the file handler of every configured logger when it does.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Optional, Set

# Log directory priority:
# 1. WORKSPACE_SYNC_LOG_DIR (explicit)
# 2. <project root>/.workspace_sync (root passed to ensure_debug_trace_configured)
# 3. WORKSPACE_SYNC_ROOT/.workspace_sync (if set)
# 4. CWD/.workspace_sync (fallback)
_log_root: Optional[Path] = None


def _get_log_directory() -> Path:
    """Get the log directory path."""
    log_dir = os.getenv("WORKSPACE_SYNC_LOG_DIR")
    if not log_dir:
        workspace_root = _log_root or os.getenv("WORKSPACE_SYNC_ROOT")
        if workspace_root:
            log_dir = str(Path(workspace_root) / ".workspace_sync")
        else:
            log_dir = str(Path.cwd() / ".workspace_sync")
    return Path(log_dir)


def _debug_log_enabled() -> bool:
    # Set WORKSPACE_SYNC_DEBUG_LOG="" to disable the file log
    value = os.getenv("WORKSPACE_SYNC_DEBUG_LOG")
    return value is None or value != ""


_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class _DirectoryCreatingFileHandler(logging.FileHandler):
    """FileHandler that creates its directory when the first record is written."""

    def _open(self):
        Path(self.baseFilename).parent.mkdir(parents=True, exist_ok=True)
        return super()._open()


def _create_file_handler(log_filename: str) -> Optional[logging.FileHandler]:
    """
    Create a file handler for the specified log file.

    The file (and its directory) is only created when the first record is
    written, so a handler replaced before use leaves nothing on disk.

    Args:
        log_filename: Name of the log file (e.g., 'debug_trace.log')

    Returns:
        Configured FileHandler, or None if file logging is disabled
    """
    if not _debug_log_enabled():
        return None

    handler = _DirectoryCreatingFileHandler(
        _get_log_directory() / log_filename, mode='a', encoding='utf-8', delay=True
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FORMAT))
    return handler


class FlushingStreamHandler(logging.StreamHandler):
    """StreamHandler that flushes after every emit.

    ::: This is-in-layer Infrastructure-Layer.
    ::: This is a handler.
    ::: This is stateless.
    """
    def emit(self, record):
        super().emit(record)
        self.flush()


def _create_stderr_handler() -> logging.StreamHandler:
    """Create a stderr handler for console output with auto-flush."""
    handler = FlushingStreamHandler(sys.stderr)
    handler.setLevel(logging.INFO)
    handler.setFormatter(logging.Formatter(_FORMAT))
    return handler


_stderr_suppressed = False

TRACE_LOGGER_NAME = "workspace_sync.debug_trace"

# File handler shared by the trace logger and every configured logger, and
# the directory it writes to (None when file logging is disabled)
_file_handler: Optional[logging.FileHandler] = None
_configured_log_dir: Optional[Path] = None
_configured_loggers: Set[str] = set()


def get_debug_trace_logger() -> logging.Logger:
    """
    Get the debug trace logger for synchronization passes.

    Output goes to <log dir>/debug_trace.log and stderr.

    Returns:
        Configured logger instance
    """
    global _file_handler, _configured_log_dir
    logger = logging.getLogger(TRACE_LOGGER_NAME)

    # Only configure once
    if not logger.handlers:
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        _file_handler = _create_file_handler("debug_trace.log")
        if _file_handler:
            logger.addHandler(_file_handler)
            _configured_log_dir = _get_log_directory()

        logger.addHandler(_create_stderr_handler())

    return logger


def configure_logger_for_debug_trace(logger_name: str) -> logging.Logger:
    """
    Configure a logger to also write to debug_trace.log.

    Args:
        logger_name: Name of the logger to configure (e.g., __name__)

    Returns:
        Configured logger instance
    """
    trace_logger = get_debug_trace_logger()
    logger = logging.getLogger(logger_name)
    logger.setLevel(logging.DEBUG)
    for handler in trace_logger.handlers:
        if handler not in logger.handlers:
            logger.addHandler(handler)
    _configured_loggers.add(logger_name)
    return logger


def ensure_debug_trace_configured(project_root: Optional[Path] = None) -> logging.Logger:
    """
    Ensure the debug trace file points at the current log directory.

    Call this after configuration is loaded (environment variables may have
    changed) and when the project root becomes known.

    Args:
        project_root: Project root whose .workspace_sync directory holds the
            log unless WORKSPACE_SYNC_LOG_DIR is set

    Returns:
        Configured trace logger
    """
    global _file_handler, _configured_log_dir, _log_root

    if project_root is not None:
        _log_root = Path(project_root)
    trace_logger = get_debug_trace_logger()
    current_dir = _get_log_directory() if _debug_log_enabled() else None

    # Reconfigure only if the directory changed or file logging was toggled
    if current_dir == _configured_log_dir:
        return trace_logger

    old_handler = _file_handler
    _file_handler = _create_file_handler("debug_trace.log")
    _configured_log_dir = current_dir if _file_handler else None

    for name in [TRACE_LOGGER_NAME, *sorted(_configured_loggers)]:
        logger = logging.getLogger(name)
        if old_handler is not None:
            logger.removeHandler(old_handler)
        if _file_handler is not None:
            logger.addHandler(_file_handler)
    if old_handler is not None:
        old_handler.close()
    return trace_logger


def debug_log(msg: str) -> None:
    """Write a debug message to the trace log."""
    get_debug_trace_logger().debug(msg)


def is_stderr_suppressed() -> bool:
    return _stderr_suppressed


def suppress_stderr_logging() -> None:
    """
    Suppress stderr logging for the trace logger.

    Call this while a Rich console display is active to avoid log spam.
    File logging continues to work normally.
    """
    global _stderr_suppressed
    _stderr_suppressed = True
    for handler in get_debug_trace_logger().handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(logging.CRITICAL + 1)


def restore_stderr_logging() -> None:
    """Restore stderr logging after the Rich display is done."""
    global _stderr_suppressed
    _stderr_suppressed = False
    for handler in get_debug_trace_logger().handlers:
        if isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler):
            handler.setLevel(logging.INFO)
