from __future__ import annotations


class SadfilesError(RuntimeError):
    """Base class for acquisition failures."""


class PreconditionError(SadfilesError):
    """Raised when the archiving tool or the acquisition target is missing."""


class StageError(SadfilesError):
    """Raised when a pipeline stage cannot complete."""


class ArchiverError(StageError):
    """Raised when the archiving backend cannot be prepared or run."""
