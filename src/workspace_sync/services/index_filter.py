"""
Index Filter

Immutable allow-list of base file names restricting which source files are
indexed. An empty filter means every file with the source extension is
indexed.

Filter values arrive from several places (initialization options, the
config file, environment variables) so from_value() accepts the shapes
those produce and treats anything it cannot interpret as unrestricted.
"""

import json
from dataclasses import dataclass
from typing import Any, FrozenSet, Iterable

from ..logging_config import configure_logger_for_debug_trace

logger = configure_logger_for_debug_trace(__name__)


@dataclass(frozen=True)
class IndexFilter:
    """
    Allow-list of base file names.

    ::: This is-in-layer Domain-Layer.
    ::: This is a value-object.
    ::: This is stateless.
    """
    names: FrozenSet[str] = frozenset()

    @classmethod
    def unrestricted(cls) -> "IndexFilter":
        return cls()

    @classmethod
    def of(cls, names: Iterable[str]) -> "IndexFilter":
        cleaned = {name.strip() for name in names if name and name.strip()}
        return cls(frozenset(cleaned))

    @classmethod
    def from_value(cls, value: Any) -> "IndexFilter":
        """
        Build a filter from an untyped value.

        Accepted:
        - None -> unrestricted
        - an IndexFilter -> returned as is
        - a list/tuple/set/frozenset of strings
        - a string: JSON array, or comma separated names

        Anything else (numbers, dicts, lists containing non-strings, invalid
        JSON arrays) is logged and treated as unrestricted.
        """
        if value is None:
            return cls.unrestricted()
        if isinstance(value, IndexFilter):
            return value
        if isinstance(value, str):
            return cls._from_string(value)
        if isinstance(value, (list, tuple, set, frozenset)):
            if all(isinstance(item, str) for item in value):
                return cls.of(value)
            logger.warning(f"[IndexFilter] Ignoring filter with non-string entries: {value!r}")
            return cls.unrestricted()

        logger.warning(f"[IndexFilter] Ignoring malformed filter of type {type(value).__name__}")
        return cls.unrestricted()

    @classmethod
    def _from_string(cls, value: str) -> "IndexFilter":
        text = value.strip()
        if not text:
            return cls.unrestricted()
        if text[0] in "[{":
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError as e:
                logger.warning(f"[IndexFilter] Invalid JSON filter {text!r}: {e}")
                return cls.unrestricted()
            return cls.from_value(parsed)
        return cls.of(text.split(","))

    @property
    def is_unrestricted(self) -> bool:
        return not self.names

    def allows(self, base_name: str) -> bool:
        """True if a file with this base name may be indexed."""
        return not self.names or base_name in self.names

    def __len__(self) -> int:
        return len(self.names)

    def __repr__(self) -> str:
        if not self.names:
            return "IndexFilter(unrestricted)"
        return f"IndexFilter({sorted(self.names)})"
