"""
Filesystem resources.

Walks a file or directory that was added to an overlay and yields the
zip entries it expands to. Nothing is read until the entry is written.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from .paths import directory_entry_name, file_entry_name, join_entry_name


@dataclass(frozen=True, slots=True)
class ResourceEntry:
    """
    One zip entry produced by a filesystem resource.

    Attributes:
        name: Entry name inside the archive
        path: Filesystem location of the entry's content
        is_dir: Whether the entry is a directory
    """

    name: str
    path: Path
    is_dir: bool


def walk_resource(name: str, path: Path) -> Iterator[ResourceEntry]:
    """
    Expand a filesystem resource into zip entries.

    A directory yields its own entry first, then every descendant depth
    first in sorted order. Empty directories still get an entry.

    Args:
        name: Entry name the resource was added under
        path: File or directory on the filesystem

    Yields:
        ResourceEntry for each directory and file

    Raises:
        FileNotFoundError: If the resource does not exist
    """
    if path.is_dir():
        yield ResourceEntry(name=directory_entry_name(name), path=path, is_dir=True)
        for child in sorted(path.iterdir(), key=lambda p: p.name):
            yield from walk_resource(join_entry_name(name, child.name), child)
    elif path.exists():
        yield ResourceEntry(name=file_entry_name(name), path=path, is_dir=False)
    else:
        raise FileNotFoundError(f"Resource not found: {path}")
