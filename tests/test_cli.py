"""
Tests for the scan command and its rich summary.
"""

import io
import json
import os

from rich.console import Console

from workspace_sync.__main__ import main
from workspace_sync.logging_config import ensure_debug_trace_configured
from workspace_sync.services.console_progress import ConsoleProgress
from workspace_sync.services.workspace_synchronizer import WorkspaceSynchronizer

from conftest import write_file


def test_scan_lists_units(workspace, capsys):
    assert main(["scan", str(workspace)]) == 0

    out = capsys.readouterr().out
    assert "Workspace Sync" in out
    assert "src/A.groovy" in out
    assert "src/nested/C.groovy" in out
    assert "README.txt" not in out


def test_scan_with_index_filter_and_summary_only(workspace, capsys):
    assert main(["scan", str(workspace), "--index-file", "B.groovy", "--summary-only"]) == 0

    out = capsys.readouterr().out
    assert "Source units" in out
    assert "src/B.groovy" not in out


def test_scan_reports_root_that_is_a_file(tmp_path, capsys):
    path = write_file(tmp_path, "Main.groovy", "class Main {}")

    assert main(["scan", str(path)]) == 2
    assert "not a directory" in capsys.readouterr().err


def test_render_summary_shows_origin_and_symbols(workspace):
    buffer = io.StringIO()
    progress = ConsoleProgress(Console(file=buffer, width=120))
    sync = WorkspaceSynchronizer(workspace_root=workspace, index_files=["C.groovy"])
    try:
        result = progress.run_pass(sync)
        progress.render_summary(result, sync.current_model(), workspace)
    finally:
        sync.shutdown()

    out = buffer.getvalue()
    assert "nested.C" in out
    assert "disk" in out


def test_scan_writes_debug_log_where_configured(workspace, tmp_path, monkeypatch):
    logs = tmp_path / "logs"
    (workspace / "workspace_sync.json").write_text(json.dumps({"log_dir": str(logs)}), encoding="utf-8")
    cwd = tmp_path / "cwd"
    cwd.mkdir()
    monkeypatch.chdir(cwd)
    monkeypatch.setattr("workspace_sync.services.config_loader._config_loader", None)
    monkeypatch.delenv("WORKSPACE_SYNC_DEBUG_LOG")

    try:
        assert main(["scan", str(workspace), "--summary-only"]) == 0
    finally:
        os.environ["WORKSPACE_SYNC_DEBUG_LOG"] = ""
        ensure_debug_trace_configured()

    assert (logs / "debug_trace.log").is_file()
    assert not (cwd / ".workspace_sync").exists()
