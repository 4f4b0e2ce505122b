"""Exceptions raised by zipset."""

from __future__ import annotations


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------


class ZipSetError(Exception):
    """Base exception for zipset operations."""

    pass


class InvalidPathError(ZipSetError, ValueError):
    """Raised when an entry path is empty or malformed."""

    pass


class NullArgumentError(ZipSetError, TypeError):
    """Raised when a required argument is missing."""

    pass


class ArchiveFormatError(ZipSetError):
    """Raised when a base or nested base cannot be read as a zip archive."""

    pass


class PlanError(ZipSetError):
    """Raised when a build plan document is invalid."""

    pass


def require(value: object, name: str) -> None:
    """Raise NullArgumentError if value is None."""
    if value is None:
        raise NullArgumentError(f"{name} must not be None")
