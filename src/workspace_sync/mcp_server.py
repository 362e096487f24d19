"""
Workspace Sync MCP Server

Exposes the incremental workspace synchronizer over the Model Context
Protocol so an editor or agent can report buffer events and read the
program model.
"""

import signal
import sys

from fastmcp import FastMCP

from .logging_config import configure_logger_for_debug_trace
from .services.config_loader import load_config
from .services.tool_registrar import SyncToolRegistrar
from .services.workspace_synchronizer import get_synchronizer, shutdown_synchronizer

logger = configure_logger_for_debug_trace(__name__)


class WorkspaceSyncServer:
    """
    MCP server wrapping the process-wide synchronizer.

    ::: This is-in-layer Presentation-Layer.
    ::: This is a model-context-protocol-server.
    ::: This is a process-entry-point.
    ::: This is stateless.
    """

    def __init__(self):
        load_config()
        self.tool_registrar = SyncToolRegistrar(get_synchronizer)
        self.app = FastMCP(
            "workspace-sync",
            instructions="""Workspace Sync keeps a program model of the project's source files up to date.

Call `initialize_workspace(root=..., index_files=[...])` first. Report editor
events with `did_open`, `did_change`, `did_close` and `did_save`; each runs an
incremental pass. Read the model with `list_source_units` and `get_source_unit`.""",
        )

    def run(self):
        """
        Start the MCP server with graceful shutdown support.
        """
        def signal_handler(signum, frame):
            """Handle shutdown signals gracefully"""
            sig_name = signal.Signals(signum).name
            logger.warning("Received %s, initiating graceful shutdown...", sig_name)
            sys.exit(0)

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        try:
            logger.info("Workspace Sync MCP Server starting...")
            self.tool_registrar.register(self.app)
            self.app.run()
        except KeyboardInterrupt:
            logger.warning("Keyboard interrupt received, shutting down...")
        finally:
            shutdown_synchronizer()
            logger.info("Server shutdown complete")


def create_server() -> WorkspaceSyncServer:
    """Factory function to create server instance"""
    return WorkspaceSyncServer()
