"""
Data models for the workspace synchronizer.

Source units are plain frozen dataclasses owned by the compilation unit.
Pass results and tool payloads are Pydantic models so they serialize
directly through the MCP tool surface.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field


FileIdentifier = str


# ============================================================================
# Source Units
# ============================================================================

class SourceOrigin(str, Enum):
    """Where the text of a source unit came from"""
    DISK = "disk"        # Read from the file system
    BUFFER = "buffer"    # Live editor buffer text


@dataclass(frozen=True)
class SourceUnit:
    """
    Compiled representation of one source file's content at a point in time.

    ::: This is-in-layer Domain-Layer.
    ::: This is a value-object.
    ::: This is stateless.
    """
    unit_id: int
    name: str
    uri: FileIdentifier
    text: str
    origin: SourceOrigin
    symbols: Tuple[str, ...] = field(default=())

    @property
    def line_count(self) -> int:
        if not self.text:
            return 0
        return self.text.count("\n") + (0 if self.text.endswith("\n") else 1)


class ProgramModelSnapshot(Mapping[FileIdentifier, SourceUnit]):
    """
    Read-only view of the program model as of the last complete pass.

    ::: This is-in-layer Domain-Layer.
    ::: This is a value-object.
    ::: This is stateless.

    Feature providers query this; they never see a pass in progress.
    """

    def __init__(
        self,
        units: Optional[Dict[FileIdentifier, SourceUnit]] = None,
        generation: int = 0,
        classpath: Tuple[str, ...] = (),
    ):
        self._units = MappingProxyType(dict(units or {}))
        self.generation = generation
        self.classpath = classpath

    def __getitem__(self, uri: FileIdentifier) -> SourceUnit:
        return self._units[uri]

    def __iter__(self) -> Iterator[FileIdentifier]:
        return iter(self._units)

    def __len__(self) -> int:
        return len(self._units)

    def units(self) -> List[SourceUnit]:
        """All source units ordered by identifier."""
        return [self._units[uri] for uri in sorted(self._units)]

    def uris(self) -> FrozenSet[FileIdentifier]:
        return frozenset(self._units)

    def __repr__(self) -> str:
        return f"ProgramModelSnapshot(generation={self.generation}, units={len(self._units)})"


# ============================================================================
# Pass Results
# ============================================================================

class SyncResult(BaseModel):
    """Counters describing one completed synchronization pass"""
    generation: int = 0
    first_pass: bool = False
    rebuilt_context: bool = False
    added: List[FileIdentifier] = Field(default_factory=list)
    removed: List[FileIdentifier] = Field(default_factory=list)
    skipped_filtered: int = 0
    walk_errors: int = 0
    read_errors: int = 0
    unit_count: int = 0
    duration: float = 0.0
    completed_at: datetime = Field(default_factory=datetime.now)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)


class SourceUnitInfo(BaseModel):
    """Tool-facing description of a source unit"""
    uri: FileIdentifier
    name: str
    origin: SourceOrigin
    unit_id: int
    line_count: int
    symbols: List[str] = Field(default_factory=list)
    text: Optional[str] = None

    @classmethod
    def from_unit(cls, unit: SourceUnit, include_text: bool = False) -> "SourceUnitInfo":
        return cls(
            uri=unit.uri,
            name=unit.name,
            origin=unit.origin,
            unit_id=unit.unit_id,
            line_count=unit.line_count,
            symbols=list(unit.symbols),
            text=unit.text if include_text else None,
        )
