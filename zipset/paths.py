"""
Entry path addressing.

An entry path names an entry inside an archive, possibly through any
number of nested archives. Segments are separated by ``!``:

    inner.zip!sub.zip!file.txt

Each segment may begin with ``/`` (stripped). A segment ending in ``/``
names a directory.
"""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidPathError, require

# Separates nesting levels in a compound path
NESTING_DELIMITER = "!"

# Separates directories inside a single archive
SEPARATOR = "/"


# -----------------------------------------------------------------------------
# Entry naming
# -----------------------------------------------------------------------------


def is_directory_name(name: str) -> bool:
    """Check if an entry name denotes a directory."""
    return name.endswith(SEPARATOR)


def directory_entry_name(name: str) -> str:
    """Return the zip entry name for a directory (exactly one trailing /)."""
    return name.rstrip(SEPARATOR) + SEPARATOR


def file_entry_name(name: str) -> str:
    """Return the zip entry name for a file (no trailing /)."""
    return name.rstrip(SEPARATOR)


def join_entry_name(parent: str, child: str) -> str:
    """Join a child name onto a parent directory name."""
    return parent.rstrip(SEPARATOR) + SEPARATOR + child


# -----------------------------------------------------------------------------
# Entry path
# -----------------------------------------------------------------------------


def _normalize_segment(segment: str) -> str:
    require(segment, "segment")
    if segment.startswith(SEPARATOR):
        segment = segment[1:]
    if not segment:
        raise InvalidPathError("Entry path segments cannot be empty")
    return segment


@dataclass(frozen=True, slots=True)
class EntryPath:
    """
    An absolute entry path that may be nested.

    Immutable after creation. Always holds at least one segment, and no
    segment keeps a leading separator.

    Attributes:
        segments: The path elements, outermost first
    """

    segments: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.segments:
            raise InvalidPathError("An EntryPath cannot be empty")
        normalized = tuple(_normalize_segment(s) for s in self.segments)
        object.__setattr__(self, "segments", normalized)

    @classmethod
    def parse(cls, text: str) -> EntryPath:
        """
        Build an EntryPath from a compound string.

        Args:
            text: Path such as ``"inner.zip!/file.txt"``

        Returns:
            A new path

        Raises:
            InvalidPathError: If the text is empty or has an empty segment
        """
        require(text, "path")
        return cls(tuple(text.split(NESTING_DELIMITER)))

    @classmethod
    def from_segments(cls, *segments: str) -> EntryPath:
        """Build an EntryPath from explicit path elements."""
        return cls(tuple(segments))

    @classmethod
    def of(cls, path: str | EntryPath) -> EntryPath:
        """Coerce a string or EntryPath into an EntryPath."""
        require(path, "path")
        if isinstance(path, EntryPath):
            return path
        if isinstance(path, str):
            return cls.parse(path)
        raise TypeError(f"Expected str or EntryPath, got {type(path).__name__}")

    @property
    def head(self) -> str:
        """The uppermost element of the path."""
        return self.segments[0]

    def is_nested(self) -> bool:
        """Whether the path reaches into a nested archive."""
        return len(self.segments) > 1

    def tail(self) -> EntryPath:
        """
        The path without its first element.

        Reduces the nesting by one. A path that is not nested is returned
        unchanged.
        """
        if self.is_nested():
            return EntryPath(self.segments[1:])
        return self

    def __len__(self) -> int:
        return len(self.segments)

    def __str__(self) -> str:
        return NESTING_DELIMITER.join(self.segments)
