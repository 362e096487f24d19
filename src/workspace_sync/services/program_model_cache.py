"""
Program Model Cache

Holds the compilation unit produced by the previous synchronization pass,
together with its configuration and execution context, and decides whether
it can be reused or must be rebuilt from scratch.

A rebuild happens when:
- there is no compilation unit yet (first pass)
- the additional classpath list was replaced
- the classpath resolved from the current list differs from the one the
  execution context was built with (an archive appeared or disappeared)
- invalidate() was called

A rebuilt compilation unit is empty, so the pass that follows treats every
file as new (no change set).
"""

from typing import List, Optional, Sequence, Tuple

from ..compiler import ClasspathContext, CompilationUnit, CompilerConfiguration
from ..logging_config import configure_logger_for_debug_trace
from .classpath import resolve_classpath

logger = configure_logger_for_debug_trace(__name__)


class ProgramModelCache:
    """
    Reuse-or-rebuild decisions for the program model.

    ::: This is-in-layer Service-Layer.
    ::: This is a cache.
    ::: This is stateful.

    Not thread-safe on its own; the synchronizer calls it under its write lock.
    """

    def __init__(self, additional_classpath: Optional[Sequence[str]] = None, groovydoc: bool = True):
        self._additional_classpath: List[str] = list(additional_classpath or [])
        self._groovydoc = groovydoc
        self._compilation_unit: Optional[CompilationUnit] = None
        self._config: Optional[CompilerConfiguration] = None
        self._context: Optional[ClasspathContext] = None

    @property
    def additional_classpath(self) -> List[str]:
        return list(self._additional_classpath)

    def set_additional_classpath(self, entries: Optional[Sequence[str]]) -> None:
        """Replace the classpath entries; the next acquire() rebuilds."""
        self._additional_classpath = list(entries or [])
        self.invalidate()

    def invalidate(self) -> None:
        """Drop the compilation unit, configuration and execution context."""
        if self._compilation_unit is not None:
            logger.info("[ModelCache] Invalidating program model")
        self._compilation_unit = None
        self._config = None
        self._context = None

    @property
    def compilation_unit(self) -> Optional[CompilationUnit]:
        return self._compilation_unit

    def acquire(self) -> Tuple[CompilationUnit, bool]:
        """
        Get the compilation unit for the next pass.

        Returns:
            (compilation_unit, fresh) where fresh is True when the unit was
            just built and holds no source units
        """
        classpath = tuple(resolve_classpath(self._additional_classpath))

        if self._context is not None and not self._context.is_valid_for(classpath):
            logger.info("[ModelCache] Classpath changed, rebuilding program model")
            self.invalidate()

        if self._config is None:
            self._config = self._build_configuration(classpath)
        if self._context is None:
            self._context = ClasspathContext(classpath=self._config.classpath)

        if self._compilation_unit is None:
            self._compilation_unit = CompilationUnit(self._config, self._context)
            logger.debug(
                f"[ModelCache] New program model (context {self._context.context_id}, "
                f"{len(classpath)} classpath entries)"
            )
            return self._compilation_unit, True

        self._compilation_unit.set_context(self._context)
        return self._compilation_unit, False

    def _build_configuration(self, classpath: Tuple[str, ...]) -> CompilerConfiguration:
        return CompilerConfiguration(classpath=classpath, groovydoc=self._groovydoc)
