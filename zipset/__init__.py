"""
zipset: lazy set-algebra views over zip archives.

Collect additions, replacements and deletions in memory, then write the
result in a single pass, merging into an optional base archive and any
archives nested inside it. No temporary files are written.

Usage:
    from zipset import ArchiveSet

    archive = ArchiveSet("base.zip")
    archive.add("docs/readme.txt", b"hello")
    archive.add("lib/inner.zip!/config.json", b"{}")
    archive.remove("obsolete.txt")
    archive.build_file("out.zip")
"""

from .archive_set import ArchiveSet
from .entries import Bytes, Entry, ExternalResource, Nested, Tombstone
from .errors import (
    ArchiveFormatError,
    InvalidPathError,
    NullArgumentError,
    PlanError,
    ZipSetError,
)
from .paths import EntryPath
from .runtime import BuildConfig, get_global_config, set_global_config

__version__ = "0.1.0"

__all__ = [
    # Overlay
    "ArchiveSet",
    "EntryPath",
    # Values
    "Entry",
    "Bytes",
    "ExternalResource",
    "Nested",
    "Tombstone",
    # Config
    "BuildConfig",
    "get_global_config",
    "set_global_config",
    # Exceptions
    "ZipSetError",
    "InvalidPathError",
    "NullArgumentError",
    "ArchiveFormatError",
    "PlanError",
]
