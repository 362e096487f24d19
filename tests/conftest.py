"""
Shared pytest fixtures for workspace synchronizer tests.
"""

import os
from pathlib import Path
from unittest.mock import patch

# Keep the debug trace log out of the working directory
os.environ["WORKSPACE_SYNC_DEBUG_LOG"] = ""

import pytest

from workspace_sync.services.content_tracker import FileContentsTracker
from workspace_sync.services.utils import path_to_uri
from workspace_sync.services.workspace_synchronizer import WorkspaceSynchronizer


@pytest.fixture(autouse=True)
def isolated_environment():
    """Restore os.environ after each test (ConfigLoader writes into it)."""
    with patch.dict(os.environ):
        for key in list(os.environ):
            if key.startswith("WORKSPACE_SYNC_") and key != "WORKSPACE_SYNC_DEBUG_LOG":
                del os.environ[key]
        yield


def write_file(root: Path, rel_path: str, text: str = "") -> Path:
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture
def workspace(tmp_path):
    """
    Workspace with three Groovy sources and one non-source file.

        src/A.groovy, src/B.groovy, src/nested/C.groovy, README.txt
    """
    root = tmp_path / "project"
    write_file(root, "src/A.groovy", "class A {}\n")
    write_file(root, "src/B.groovy", "class B {}\n")
    write_file(root, "src/nested/C.groovy", "package nested\nclass C {}\n")
    write_file(root, "README.txt", "not a source\n")
    return root


@pytest.fixture
def uri_of(workspace):
    def _uri(rel_path: str) -> str:
        return path_to_uri(workspace / rel_path)
    return _uri


@pytest.fixture
def tracker():
    return FileContentsTracker()


@pytest.fixture
def synchronizer(workspace, tracker):
    sync = WorkspaceSynchronizer(workspace_root=workspace, tracker=tracker)
    yield sync
    sync.shutdown()
