"""
Compiler frontend used by the synchronizer.

The frontend is deliberately shallow: it turns a file (or a buffer) into a
SourceUnit carrying the text and the type names it declares. Everything the
synchronizer cares about lives here:

- CompilerConfiguration: classpath + documentation extraction flag
- ClasspathContext: execution context built from a configuration
- CompilationUnit: the program model, at most one SourceUnit per URI
"""

import itertools
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

from .models import ProgramModelSnapshot, SourceOrigin, SourceUnit
from .services.utils import path_to_uri
from .sync_exceptions import DuplicateSourceUnitError, SourceReadError

_unit_ids = itertools.count(1)
_context_ids = itertools.count(1)

# class Foo / interface Foo / trait Foo / enum Foo / record Foo / @interface Foo
_DECLARATION_RE = re.compile(
    r"^\s*(?:(?:public|protected|private|abstract|final|static|sealed)\s+)*"
    r"(?:class|interface|trait|enum|record|@interface)\s+([A-Za-z_$][\w$]*)",
    re.MULTILINE,
)
_PACKAGE_RE = re.compile(r"^\s*package\s+([\w.]+)", re.MULTILINE)


@dataclass(frozen=True)
class CompilerConfiguration:
    """
    Compiler options shared by every source unit of a compilation unit.

    ::: This is-in-layer Domain-Layer.
    ::: This is a value-object.
    ::: This is stateless.
    """
    classpath: Tuple[str, ...] = ()
    groovydoc: bool = True
    source_encoding: str = "utf-8"


@dataclass
class ClasspathContext:
    """
    Execution context derived from a configuration's classpath.

    ::: This is-in-layer Domain-Layer.
    ::: This is a context.
    ::: This is stateful.

    A context stays valid for as long as the resolved classpath it was built
    from is unchanged.
    """
    classpath: Tuple[str, ...]
    context_id: int = field(default_factory=lambda: next(_context_ids))

    def is_valid_for(self, classpath: Iterable[str]) -> bool:
        return self.classpath == tuple(classpath)


class ErrorCollector:
    """Collects frontend messages per source identifier."""

    def __init__(self):
        self._messages: Dict[str, List[str]] = {}

    def add(self, uri: str, message: str) -> None:
        self._messages.setdefault(uri, []).append(message)

    def clear(self, uri: str) -> None:
        self._messages.pop(uri, None)

    def get(self, uri: str) -> List[str]:
        return list(self._messages.get(uri, []))

    def has_errors(self) -> bool:
        return bool(self._messages)


def extract_symbols(text: str) -> Tuple[str, ...]:
    """Names of the types declared in a source text, package qualified."""
    package_match = _PACKAGE_RE.search(text)
    prefix = f"{package_match.group(1)}." if package_match else ""
    return tuple(prefix + name for name in _DECLARATION_RE.findall(text))


class CompilationUnit:
    """
    The program model: every current SourceUnit plus shared configuration.

    ::: This is-in-layer Domain-Layer.
    ::: This is a aggregate.
    ::: This is stateful.

    Not thread-safe; callers hold the synchronizer's write lock.
    """

    def __init__(self, configuration: CompilerConfiguration, context: ClasspathContext):
        self.configuration = configuration
        self.context = context
        self.error_collector = ErrorCollector()
        self._units: Dict[str, SourceUnit] = {}

    def set_context(self, context: ClasspathContext) -> None:
        self.context = context

    def add_source(self, path: Union[str, Path]) -> SourceUnit:
        """
        Add a source unit built from disk content.

        Raises:
            SourceReadError: the file cannot be read
            DuplicateSourceUnitError: a unit for this file already exists
        """
        path = Path(path)
        uri = path_to_uri(path)
        if uri in self._units:
            raise DuplicateSourceUnitError(uri)
        try:
            text = path.read_text(encoding=self.configuration.source_encoding, errors="replace")
        except OSError as e:
            raise SourceReadError(f"Cannot read {path}: {e}") from e
        return self._add(str(path), uri, text, SourceOrigin.DISK)

    def add_source_text(
        self,
        name: str,
        text: str,
        uri: Optional[str] = None,
        origin: SourceOrigin = SourceOrigin.BUFFER,
    ) -> SourceUnit:
        """Add a source unit built from in-memory text."""
        uri = uri or path_to_uri(name)
        if uri in self._units:
            raise DuplicateSourceUnitError(uri)
        return self._add(name, uri, text, origin)

    def _add(self, name: str, uri: str, text: str, origin: SourceOrigin) -> SourceUnit:
        unit = SourceUnit(
            unit_id=next(_unit_ids),
            name=name,
            uri=uri,
            text=text,
            origin=origin,
            symbols=extract_symbols(text),
        )
        if text.count("{") != text.count("}"):
            self.error_collector.add(uri, "Unbalanced braces")
        self._units[uri] = unit
        return unit

    def remove_sources(self, units: Iterable[SourceUnit]) -> List[SourceUnit]:
        """
        Remove source units by identity.

        Units that are no longer members (already removed or replaced) are
        ignored. Returns the units actually removed.
        """
        removed = []
        for unit in units:
            current = self._units.get(unit.uri)
            if current is not None and current.unit_id == unit.unit_id:
                del self._units[unit.uri]
                self.error_collector.clear(unit.uri)
                removed.append(unit)
        return removed

    def get(self, uri: str) -> Optional[SourceUnit]:
        return self._units.get(uri)

    def uris(self) -> List[str]:
        return list(self._units)

    def __iter__(self) -> Iterator[SourceUnit]:
        return iter(list(self._units.values()))

    def __len__(self) -> int:
        return len(self._units)

    def __contains__(self, uri: object) -> bool:
        return uri in self._units

    def snapshot(self, generation: int) -> ProgramModelSnapshot:
        return ProgramModelSnapshot(
            self._units,
            generation=generation,
            classpath=self.configuration.classpath,
        )
