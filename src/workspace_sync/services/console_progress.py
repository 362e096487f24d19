"""
Console output for one-shot scans.

Rich-based rendering of a synchronization pass: a spinner while the pass
runs and a summary table of the resulting program model.
"""

from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..logging_config import restore_stderr_logging, suppress_stderr_logging
from ..models import ProgramModelSnapshot, SyncResult
from .utils import make_path_relative, uri_to_path


class ConsoleProgress:
    """Rich console display for scan runs."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def run_pass(self, synchronizer) -> SyncResult:
        """Run synchronizer.synchronize() behind a status spinner."""
        suppress_stderr_logging()
        try:
            with self.console.status("[bold blue]Synchronizing workspace..."):
                return synchronizer.synchronize()
        finally:
            restore_stderr_logging()

    def render_summary(
        self,
        result: SyncResult,
        model: ProgramModelSnapshot,
        workspace_root: Optional[Path],
        show_units: bool = True,
    ) -> None:
        summary = Table.grid(padding=(0, 2))
        summary.add_column(style="bold")
        summary.add_column()
        summary.add_row("Workspace", str(workspace_root) if workspace_root else "(open buffers only)")
        summary.add_row("Source units", str(result.unit_count))
        summary.add_row("Added / removed", f"{len(result.added)} / {len(result.removed)}")
        summary.add_row("Filtered out", str(result.skipped_filtered))
        summary.add_row("Classpath entries", str(len(model.classpath)))
        if result.walk_errors or result.read_errors:
            summary.add_row("Errors", f"[red]{result.walk_errors + result.read_errors}[/red]")
        summary.add_row("Duration", f"{result.duration:.3f}s")
        self.console.print(Panel(summary, title="Workspace Sync", expand=False))

        if not show_units or not len(model):
            return

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("File")
        table.add_column("Origin")
        table.add_column("Lines", justify="right")
        table.add_column("Declares")
        for unit in model.units():
            path = uri_to_path(unit.uri)
            table.add_row(
                make_path_relative(path, workspace_root),
                unit.origin.value,
                str(unit.line_count),
                ", ".join(unit.symbols),
            )
        self.console.print(table)
