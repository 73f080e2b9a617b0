"""Storage error taxonomy.

Every error raised by the storage layer derives from StorageError. Callers
render the message to the user; RemoteUnavailableError is the one category the
unified facade absorbs (it falls back to local storage instead).
"""

from __future__ import annotations


class StorageError(Exception):
    """Base class for all storage failures."""


class NotFoundError(StorageError, LookupError):
    """A referenced project/document/folder/persona/snippet does not exist."""


class ValidationFailure(StorageError, ValueError):
    """Input rejected before any mutation was attempted."""


class StructuralViolation(StorageError):
    """A structural invariant of the folder tree would be broken."""


class CircularReferenceError(StructuralViolation):
    """Moving a folder would make it its own ancestor."""


class FolderNotEmptyError(StructuralViolation):
    """A folder still has child folders or documents assigned to it."""


class QuotaExceededError(StorageError):
    """The local key-value engine ran out of capacity."""


class RemoteUnavailableError(StorageError):
    """The cloud backend could not be reached or returned an error."""
