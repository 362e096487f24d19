"""
Tests for WorkspaceSynchronizer: passes, snapshots, coalescing and lifecycle.
"""

import threading
from unittest.mock import patch

import pytest

from workspace_sync.models import SourceOrigin
from workspace_sync.services import workspace_synchronizer as synchronizer_module
from workspace_sync.services.directory_reconciler import DirectoryReconciler
from workspace_sync.services.sync_progress import SyncStatus
from workspace_sync.services.workspace_synchronizer import (
    WorkspaceSynchronizer,
    get_synchronizer,
    shutdown_synchronizer,
)
from workspace_sync.sync_exceptions import ConfigurationError, SynchronizerShutDownError

from conftest import write_file


class TestSynchronize:

    def test_first_pass_builds_model(self, synchronizer, uri_of):
        result = synchronizer.synchronize()

        model = synchronizer.current_model()
        assert result.first_pass
        assert result.rebuilt_context
        assert result.generation == 1
        assert model.generation == 1
        assert model.uris() == frozenset({
            uri_of("src/A.groovy"), uri_of("src/B.groovy"), uri_of("src/nested/C.groovy"),
        })

    def test_second_pass_without_changes_is_idempotent(self, synchronizer):
        synchronizer.synchronize()
        before = {uri: unit.unit_id for uri, unit in synchronizer.current_model().items()}

        result = synchronizer.synchronize()

        after = {uri: unit.unit_id for uri, unit in synchronizer.current_model().items()}
        assert after == before
        assert not result.first_pass
        assert not result.has_changes

    def test_edit_open_and_sync_uses_buffer(self, synchronizer, tracker, uri_of):
        synchronizer.synchronize()

        tracker.did_open(uri_of("src/A.groovy"), "class Live {}")
        synchronizer.synchronize()

        unit = synchronizer.get_source_unit(uri_of("src/A.groovy"))
        assert unit.origin is SourceOrigin.BUFFER
        assert unit.symbols == ("Live",)
        assert len(synchronizer.current_model()) == 3

    def test_change_set_is_consumed_by_a_pass(self, synchronizer, tracker, uri_of):
        synchronizer.synchronize()
        tracker.mark_changed([uri_of("src/A.groovy")])

        first = synchronizer.synchronize()
        second = synchronizer.synchronize()

        assert first.added == [uri_of("src/A.groovy")]
        assert second.added == []
        assert tracker.get_changed_uris() == frozenset()

    def test_published_snapshot_is_not_mutated_by_later_passes(self, synchronizer, workspace, uri_of):
        synchronizer.synchronize()
        old_model = synchronizer.current_model()

        (workspace / "src" / "B.groovy").unlink()
        synchronizer.synchronize()

        assert uri_of("src/B.groovy") in old_model
        assert uri_of("src/B.groovy") not in synchronizer.current_model()

    def test_classpath_change_rebuilds_everything(self, synchronizer, tmp_path):
        synchronizer.synchronize()
        before = {unit.unit_id for unit in synchronizer.current_model().values()}
        jar = tmp_path / "dep.jar"
        jar.write_bytes(b"")

        synchronizer.set_additional_classpath([str(jar)])
        result = synchronizer.synchronize()

        after = {unit.unit_id for unit in synchronizer.current_model().values()}
        assert result.rebuilt_context
        assert result.first_pass
        assert before.isdisjoint(after)
        assert synchronizer.current_model().classpath == (str(jar),)

    def test_configure_filter_reevaluates_membership(self, synchronizer, workspace, uri_of):
        synchronizer.synchronize()

        synchronizer.configure(workspace, ["B.groovy"])
        synchronizer.synchronize()

        assert synchronizer.current_model().uris() == frozenset({uri_of("src/B.groovy")})

    def test_malformed_filter_is_unrestricted(self, workspace, tracker):
        sync = WorkspaceSynchronizer(workspace_root=workspace, index_files={"bad": 1}, tracker=tracker)

        sync.synchronize()

        assert sync.index_filter.is_unrestricted
        assert len(sync.current_model()) == 3
        sync.shutdown()

    def test_no_root_mode_tracks_open_buffers(self, tracker, tmp_path):
        sync = WorkspaceSynchronizer(tracker=tracker)
        uri = tracker.did_open((tmp_path / "Solo.groovy").as_uri(), "class Solo {}")

        sync.synchronize()

        assert sync.current_model().uris() == frozenset({uri})
        sync.shutdown()

    def test_root_that_is_a_file_is_rejected(self, tmp_path):
        path = write_file(tmp_path, "file.groovy", "")
        with pytest.raises(ConfigurationError):
            WorkspaceSynchronizer(workspace_root=path)

    def test_failed_pass_keeps_changes_and_rebuilds(self, synchronizer, tracker, uri_of):
        synchronizer.synchronize()
        tracker.mark_changed([uri_of("src/A.groovy")])

        with patch.object(DirectoryReconciler, "reconcile", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                synchronizer.synchronize()

        assert uri_of("src/A.groovy") in tracker.get_changed_uris()
        assert synchronizer.progress.sync_status is SyncStatus.ERROR
        result = synchronizer.synchronize()
        assert result.first_pass
        assert len(synchronizer.current_model()) == 3
        assert synchronizer.progress.sync_status is SyncStatus.READY


class TestBackgroundPasses:

    def test_request_sync_runs_in_background(self, synchronizer):
        synchronizer.request_sync()

        assert synchronizer.wait_idle(timeout=5)
        assert len(synchronizer.current_model()) == 3

    def test_requests_during_a_pass_are_coalesced(self, synchronizer):
        entered = threading.Event()
        release = threading.Event()
        calls = []
        original = DirectoryReconciler.reconcile

        def slow_reconcile(self, *args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                entered.set()
                release.wait(timeout=5)
            return original(self, *args, **kwargs)

        with patch.object(DirectoryReconciler, "reconcile", slow_reconcile):
            synchronizer.request_sync()
            assert entered.wait(timeout=5)
            for _ in range(5):
                synchronizer.request_sync()
            release.set()
            assert synchronizer.wait_idle(timeout=5)

        assert len(calls) == 2
        assert synchronizer.progress.passes_completed == 2

    def test_readers_see_last_complete_pass_while_syncing(self, synchronizer, workspace):
        synchronizer.synchronize()
        write_file(workspace, "src/D.groovy", "class D {}")
        entered = threading.Event()
        release = threading.Event()
        original = DirectoryReconciler.reconcile

        def slow_reconcile(self, *args, **kwargs):
            result = original(self, *args, **kwargs)
            entered.set()
            release.wait(timeout=5)
            return result

        with patch.object(DirectoryReconciler, "reconcile", slow_reconcile):
            synchronizer.request_sync()
            assert entered.wait(timeout=5)
            assert len(synchronizer.current_model()) == 3
            release.set()
            assert synchronizer.wait_idle(timeout=5)

        assert len(synchronizer.current_model()) == 4


class TestLifecycle:

    def test_synchronize_after_shutdown_raises(self, workspace):
        sync = WorkspaceSynchronizer(workspace_root=workspace)
        sync.synchronize()

        sync.shutdown()

        assert len(sync.current_model()) == 0
        with pytest.raises(SynchronizerShutDownError):
            sync.synchronize()

    def test_process_wide_instance_is_lazy(self, workspace, monkeypatch):
        monkeypatch.setenv("WORKSPACE_SYNC_ROOT", str(workspace))
        monkeypatch.setenv("WORKSPACE_SYNC_INDEX_FILES", "A.groovy")
        monkeypatch.setattr(synchronizer_module, "_synchronizer", None)
        monkeypatch.setattr("workspace_sync.services.config_loader._config_loader", None)

        first = get_synchronizer()
        try:
            assert get_synchronizer() is first
            assert first.workspace_root == workspace
            assert first.index_filter.names == frozenset({"A.groovy"})
        finally:
            shutdown_synchronizer()

        assert synchronizer_module._synchronizer is None
