"""
Classpath resolution.

Turns the configured classpath entries into the ordered list of archive
files handed to the compiler configuration:

- "lib/*"      -> every archive directly inside lib/ (lib must be a directory)
- "lib"        -> same as above when lib is a directory
- "a/b.jar"    -> the archive itself
- missing path -> skipped silently
"""

from pathlib import Path
from typing import Iterable, List, Optional

from ..logging_config import debug_log

ARCHIVE_EXTENSION = ".jar"


def resolve_classpath(entries: Optional[Iterable[str]]) -> List[str]:
    """
    Expand classpath entries into archive paths.

    Args:
        entries: Configured classpath entries, or None

    Returns:
        Ordered list of existing archive paths (duplicates removed)
    """
    result: List[str] = []
    if not entries:
        return result

    for entry in entries:
        if not entry:
            continue
        must_be_directory = False
        if entry.endswith("*"):
            entry = entry[:-1]
            must_be_directory = True

        path = Path(entry) if entry else Path(".")
        if not path.exists():
            debug_log(f"[Classpath] Skipping missing entry: {entry}")
            continue

        if path.is_dir():
            try:
                children = sorted(path.iterdir())
            except OSError as e:
                debug_log(f"[Classpath] Cannot list {entry}: {e}")
                continue
            for child in children:
                if child.is_file() and child.name.endswith(ARCHIVE_EXTENSION):
                    _append_unique(result, str(child))
        elif not must_be_directory and path.is_file():
            if path.name.endswith(ARCHIVE_EXTENSION):
                _append_unique(result, entry)

    return result


def _append_unique(result: List[str], entry: str) -> None:
    if entry not in result:
        result.append(entry)
