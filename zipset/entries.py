"""
Overlay values.

Every name in an ArchiveSet maps to exactly one of these variants.
Consumers dispatch with ``match`` over the closed ``Entry`` union.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Union

if TYPE_CHECKING:
    from .archive_set import ArchiveSet


@dataclass(frozen=True, slots=True)
class Bytes:
    """A literal payload owned by the overlay."""

    content: bytes

    def __post_init__(self) -> None:
        # Copy bytearray/memoryview so later caller mutation can't leak in
        object.__setattr__(self, "content", bytes(self.content))


@dataclass(frozen=True, slots=True)
class ExternalResource:
    """
    A file or directory on the filesystem.

    Read lazily at build time. The overlay only borrows the path and never
    modifies what it points to.
    """

    path: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(os.fspath(self.path)))


@dataclass(frozen=True, slots=True)
class Nested:
    """Modifications to an archive nested at this name."""

    archive: ArchiveSet


@dataclass(frozen=True, slots=True)
class Tombstone:
    """Exclude this name from the output, even if the base has it."""


Entry = Union[Bytes, ExternalResource, Nested, Tombstone]

TOMBSTONE = Tombstone()
