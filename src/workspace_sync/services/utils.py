"""
Utility functions for services

Path and URI helpers shared across service classes.
"""

import os
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse
from urllib.request import url2pathname


def path_to_uri(path: Union[str, Path]) -> str:
    """
    Convert a file system path to a normalized file:// URI.

    The path is made absolute and normalized but symlinks are not resolved,
    so the URI matches what an editor reports for the same file.
    """
    absolute = Path(os.path.normpath(os.path.abspath(path)))
    return absolute.as_uri()


def uri_to_path(uri: str) -> Path:
    """
    Convert a file:// URI back to a Path.

    Plain paths are accepted as well and returned unchanged.
    """
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return Path(uri)
    path = url2pathname(parsed.path)
    if parsed.netloc and parsed.netloc != "localhost":
        path = f"//{parsed.netloc}{path}"
    return Path(path)


def normalize_uri(uri: str) -> str:
    """Normalize a file URI (or plain path) so equal files compare equal."""
    return path_to_uri(uri_to_path(uri))


def is_under_root(path: Union[str, Path], root: Optional[Path]) -> bool:
    """Check whether a path lies under root (always True when root is None)."""
    if root is None:
        return True
    candidate = Path(os.path.normpath(os.path.abspath(path)))
    base = Path(os.path.normpath(os.path.abspath(root)))
    return candidate == base or base in candidate.parents


def make_path_relative(absolute_path: Path, root: Optional[Path] = None) -> str:
    """
    Convert an absolute path to be relative to root (or the current directory).
    Uses forward slashes for consistency across platforms.
    Falls back to the absolute path if relativization fails.
    """
    try:
        base = root if root is not None else Path.cwd()
        return absolute_path.relative_to(base).as_posix()
    except ValueError:
        return absolute_path.as_posix()
