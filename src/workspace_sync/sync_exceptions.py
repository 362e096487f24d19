"""
Workspace Sync Exception Hierarchy

Contains all exception classes used by the synchronizer and compiler frontend.
"""


class WorkspaceSyncError(Exception):
    """
    Base exception for all workspace synchronization operations.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """
    pass


class SourceUnitError(WorkspaceSyncError):
    """
    Exception for operations on individual source units.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """
    pass


class DuplicateSourceUnitError(SourceUnitError):
    """
    Raised when a second source unit is added for an identifier that
    already has one in the compilation unit.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """

    def __init__(self, uri: str):
        super().__init__(f"Source unit already present for {uri}")
        self.uri = uri


class SourceReadError(SourceUnitError):
    """
    Raised when a source file cannot be read from disk.

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """
    pass


class ConfigurationError(WorkspaceSyncError):
    """
    Raised for unusable configuration (e.g. a workspace root that is a file).

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """
    pass


class SynchronizerShutDownError(WorkspaceSyncError):
    """
    Raised when a synchronization is requested after shutdown().

    ::: This is-in-layer Utility-Layer.
    ::: This is a exception.
    ::: This is stateless.
    """
    pass


__all__ = [
    "WorkspaceSyncError",
    "SourceUnitError",
    "DuplicateSourceUnitError",
    "SourceReadError",
    "ConfigurationError",
    "SynchronizerShutDownError",
]
