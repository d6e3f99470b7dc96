from __future__ import annotations


class BackupError(Exception):
    """Base error for the dataset backup routine."""


class CatalogError(BackupError):
    """Raised when talking to the catalog fails (network, HTTP status, bad payload)."""


class CatalogNotFound(BackupError):
    """Raised by the client when the catalog reports that an entity does not exist."""


class NamingViolation(BackupError):
    """Raised when a resource filename has no extension separator."""


class IdentifierError(BackupError):
    """Raised when no dataset identifier can be derived from a unit of work."""
