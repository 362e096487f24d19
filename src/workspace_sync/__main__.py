"""
Workspace Sync entry point.

Run with: python -m workspace_sync [scan|serve] [options]

    workspace-sync scan PROJECT_DIR --index-file Main.groovy --classpath "lib/*"
    workspace-sync serve
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from .logging_config import ensure_debug_trace_configured
from .services.config_loader import get_sync_config, load_config
from .services.console_progress import ConsoleProgress
from .services.index_filter import IndexFilter
from .services.program_model_cache import ProgramModelCache
from .services.workspace_synchronizer import WorkspaceSynchronizer
from .sync_exceptions import WorkspaceSyncError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="workspace-sync", description="Incremental workspace synchronizer")
    subparsers = parser.add_subparsers(dest="command")

    scan = subparsers.add_parser("scan", help="Run one synchronization pass and print the program model")
    scan.add_argument("root", nargs="?", help="Workspace root (default: configured root or CWD)")
    scan.add_argument("--index-file", action="append", dest="index_files", default=None,
                      help="Base file name to index (repeatable; default: all)")
    scan.add_argument("--classpath", action="append", default=None,
                      help="Classpath entry; 'dir/*' expands to its archives (repeatable)")
    scan.add_argument("--extension", default=None, help="Source file extension (default: .groovy)")
    scan.add_argument("--summary-only", action="store_true", help="Do not list individual source units")

    subparsers.add_parser("serve", help="Run the MCP server on stdio")
    return parser


def _scan(args: argparse.Namespace) -> int:
    root = Path(args.root).absolute() if args.root else None
    load_config(root)
    config = get_sync_config()

    workspace_root = root or config.workspace_root or Path.cwd()
    ensure_debug_trace_configured(workspace_root)
    index_filter = IndexFilter.from_value(args.index_files) if args.index_files else config.index_filter
    classpath = args.classpath if args.classpath is not None else config.classpath
    extension = args.extension or config.source_extension
    if not extension.startswith("."):
        extension = "." + extension

    synchronizer = WorkspaceSynchronizer(
        workspace_root=workspace_root,
        index_files=index_filter,
        cache=ProgramModelCache(classpath),
        source_extension=extension,
    )
    console = ConsoleProgress()
    try:
        result = console.run_pass(synchronizer)
        model = synchronizer.current_model()
    finally:
        synchronizer.shutdown()
    console.render_summary(result, model, workspace_root,
                           show_units=not args.summary_only)
    return 1 if result.walk_errors or result.read_errors else 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        from .mcp_server import create_server
        create_server().run()
        return 0
    if args.command == "scan":
        try:
            return _scan(args)
        except WorkspaceSyncError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
