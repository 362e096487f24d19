"""
Tests for ConfigLoader: config file, environment precedence and defaults.
"""

import json
import os

from workspace_sync.logging_config import configure_logger_for_debug_trace, ensure_debug_trace_configured
from workspace_sync.services import config_loader as config_loader_module
from workspace_sync.services.config_loader import ConfigLoader, load_config


def _write_config(root, data):
    root.mkdir(parents=True, exist_ok=True)
    (root / "workspace_sync.json").write_text(json.dumps(data), encoding="utf-8")


def test_defaults_without_file_or_env(tmp_path):
    loader = ConfigLoader()

    assert not loader.load(tmp_path)
    config = loader.get_sync_config()

    assert config.workspace_root is None
    assert config.index_filter.is_unrestricted
    assert config.classpath == []
    assert config.source_extension == ".groovy"
    assert config.watch is False


def test_config_file_values_are_applied(tmp_path):
    _write_config(tmp_path, {
        "workspace_root": str(tmp_path),
        "index_files": ["A.groovy", "B.groovy"],
        "classpath": ["lib/*", "extra.jar"],
        "source_extension": "gradle",
        "watch": True,
    })
    loader = ConfigLoader()

    assert loader.load(tmp_path)
    config = loader.get_sync_config()

    assert config.workspace_root == tmp_path
    assert config.index_filter.names == frozenset({"A.groovy", "B.groovy"})
    assert config.classpath == ["lib/*", "extra.jar"]
    assert config.source_extension == ".gradle"
    assert config.watch is True
    assert loader.config_path == tmp_path / "workspace_sync.json"


def test_environment_overrides_config_file(tmp_path):
    _write_config(tmp_path, {"index_files": ["A.groovy"], "watch": True})
    os.environ["WORKSPACE_SYNC_INDEX_FILES"] = "B.groovy,C.groovy"
    os.environ["WORKSPACE_SYNC_WATCH"] = "false"
    loader = ConfigLoader()

    loader.load(tmp_path)
    config = loader.get_sync_config()

    assert config.index_filter.names == frozenset({"B.groovy", "C.groovy"})
    assert config.watch is False


def test_malformed_index_files_are_unrestricted(tmp_path):
    _write_config(tmp_path, {"index_files": {"A.groovy": True}})
    loader = ConfigLoader()

    loader.load(tmp_path)

    assert loader.get_sync_config().index_filter.is_unrestricted


def test_invalid_json_is_ignored(tmp_path):
    (tmp_path / "workspace_sync.json").write_text("{not json", encoding="utf-8")
    loader = ConfigLoader()

    assert not loader.load(tmp_path)
    assert loader.get_sync_config().index_filter.is_unrestricted


def test_debug_log_false_disables_file_log(tmp_path):
    _write_config(tmp_path, {"debug_log": False})
    os.environ.pop("WORKSPACE_SYNC_DEBUG_LOG", None)
    loader = ConfigLoader()

    loader.load(tmp_path)

    assert os.environ["WORKSPACE_SYNC_DEBUG_LOG"] == ""


def test_relative_paths_resolve_against_config_directory(tmp_path, monkeypatch):
    project = tmp_path / "project"
    _write_config(project, {"workspace_root": "src", "log_dir": "logs"})
    elsewhere = tmp_path / "elsewhere"
    elsewhere.mkdir()
    monkeypatch.chdir(elsewhere)
    loader = ConfigLoader()

    loader.load(project)

    assert loader.get_sync_config().workspace_root == project / "src"
    assert os.environ["WORKSPACE_SYNC_LOG_DIR"] == str(project / "logs")


def test_load_config_moves_debug_log_to_configured_directory(tmp_path, monkeypatch):
    project = tmp_path / "project"
    _write_config(project, {"log_dir": "logs"})
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_loader_module, "_config_loader", None)
    monkeypatch.delenv("WORKSPACE_SYNC_DEBUG_LOG")

    try:
        load_config(project)
        configure_logger_for_debug_trace("workspace_sync.config_test").debug("after config")
    finally:
        os.environ["WORKSPACE_SYNC_DEBUG_LOG"] = ""
        ensure_debug_trace_configured()

    assert "after config" in (project / "logs" / "debug_trace.log").read_text(encoding="utf-8")
    assert not (tmp_path / ".workspace_sync").exists()


def test_debug_log_disabled_after_load_writes_nothing(tmp_path, monkeypatch):
    project = tmp_path / "project"
    _write_config(project, {"debug_log": False})
    monkeypatch.setattr(config_loader_module, "_config_loader", None)
    monkeypatch.setenv("WORKSPACE_SYNC_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("WORKSPACE_SYNC_DEBUG_LOG")

    load_config(project)
    configure_logger_for_debug_trace("workspace_sync.config_test").debug("not written")

    assert not (tmp_path / "logs").exists()
