"""
Lazy archive overlays.

An ArchiveSet is a lazy set of entries that can be turned into a zip
archive at any time. It can be mutated like other sets but does no I/O
until one of the ``build`` methods is called.

Usage:
    # Start from an existing archive
    archive = ArchiveSet("source.zip")

    # Lazily add some entries
    archive.add("test.txt", b"1234")            # A byte payload
    archive.add("test.png", Path("test.png"))   # A file on the filesystem
    archive.add("inner.zip", ArchiveSet())      # Another ArchiveSet

    # Lazily add an entry to a nested archive
    archive.add("inner.zip!/123.txt", Path("123.txt"))

    # Exclude some entries
    archive.remove("delete.txt")
    archive.remove("inner.zip!/example.txt")

    # Write a new archive with every modification in a single pass
    archive.build_file("output.zip")
"""

from __future__ import annotations

import os
from io import BytesIO
from pathlib import Path
from typing import IO, Iterator

from .codec import EMPTY_ARCHIVE, ArchiveReader, ArchiveWriter
from .entries import TOMBSTONE, Bytes, Entry, ExternalResource, Nested, Tombstone
from .errors import require
from .paths import EntryPath, directory_entry_name, is_directory_name
from .resources import walk_resource
from .runtime import BuildConfig, get_global_config

_MISSING = object()


class ArchiveSet:
    """
    An overlay of additions, replacements and deletions over an optional
    base archive.

    Not thread safe: mutating an ArchiveSet while a build of it is running
    is undefined. Concurrent builds of an unchanged ArchiveSet are fine as
    long as the files it references are not modified meanwhile.

    Attributes:
        base: Path or raw bytes of the archive to merge against, or None
    """

    def __init__(self, base: str | os.PathLike | bytes | None = None) -> None:
        """
        Create an empty overlay.

        Args:
            base: Optional archive (path or raw bytes) to use as the base
        """
        if isinstance(base, (bytes, bytearray, memoryview)):
            base = bytes(base)
        elif base is not None:
            base = Path(os.fspath(base))

        self._base: Path | bytes | None = base
        self._content: dict[str, Entry] = {}

    @property
    def base(self) -> Path | bytes | None:
        return self._base

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add(self, path: str | EntryPath, value: object = _MISSING) -> "ArchiveSet":
        """
        Add a resource at the given path.

        The value decides what is stored:

        - bytes-like: a literal payload
        - ``os.PathLike``: a file or directory read at build time
        - ArchiveSet: a nested archive (a copy is stored)

        Without a value, an empty directory is added.

        Args:
            path: Entry path, e.g. ``"inner.zip!docs/readme.txt"``
            value: The resource to add

        Returns:
            self

        Raises:
            NullArgumentError: If path or value is None
            InvalidPathError: If the path is malformed
            TypeError: If the value has an unsupported type
        """
        if value is _MISSING:
            return self.add_directory(path)

        require(path, "path")
        require(value, "value")
        return self._insert(EntryPath.of(path), _to_entry(value))

    def add_directory(self, path: str | EntryPath) -> "ArchiveSet":
        """Add an empty directory; a trailing / is appended if missing."""
        require(path, "path")
        entry_path = EntryPath.of(path)
        *outer, last = entry_path.segments
        return self._insert(
            EntryPath.from_segments(*outer, directory_entry_name(last)),
            Bytes(b""),
        )

    def remove(self, path: str | EntryPath) -> "ArchiveSet":
        """
        Exclude the entry at the given path.

        The entry is dropped from the base archive at build time and any
        overlay value previously added there is discarded.
        """
        require(path, "path")
        return self._insert(EntryPath.of(path), TOMBSTONE)

    def _insert(self, path: EntryPath, entry: Entry) -> "ArchiveSet":
        if path.is_nested():
            self._nested_child(path.head)._insert(path.tail(), entry)
        else:
            self._content[path.head] = entry
        return self

    def _nested_child(self, name: str) -> "ArchiveSet":
        """Get the nested overlay at name, converting what is there into one."""
        match self._content.get(name):
            case Nested(archive):
                return archive
            case None:
                child = ArchiveSet()
            case ExternalResource(path):
                child = ArchiveSet(path)
            case Bytes(content):
                child = ArchiveSet(content)
            case Tombstone():
                # Keep the base entry deleted
                child = ArchiveSet(EMPTY_ARCHIVE)

        self._content[name] = Nested(child)
        return child

    # -------------------------------------------------------------------------
    # Inspection
    # -------------------------------------------------------------------------

    def get(self, path: str | EntryPath) -> Entry | None:
        """Get the overlay value stored at a path, or None."""
        entry_path = EntryPath.of(path)
        entry = self._content.get(entry_path.head)
        if not entry_path.is_nested():
            return entry

        match entry:
            case Nested(archive):
                return archive.get(entry_path.tail())
            case _:
                return None

    def copy(self) -> "ArchiveSet":
        """
        Copy the overlay.

        Nested overlays are copied recursively. Filesystem resources are
        still only referenced.
        """
        other = ArchiveSet(self._base)
        for name, entry in self._content.items():
            match entry:
                case Nested(archive):
                    other._content[name] = Nested(archive.copy())
                case _:
                    other._content[name] = entry
        return other

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, EntryPath)):
            return False
        return self.get(path) is not None

    def __len__(self) -> int:
        return len(self._content)

    def __iter__(self) -> Iterator[str]:
        return iter(self._content)

    def __repr__(self) -> str:
        return f"ArchiveSet(base={_describe_base(self._base)}, entries={len(self)})"

    # -------------------------------------------------------------------------
    # Build
    # -------------------------------------------------------------------------

    def build(self, out: IO[bytes], *, config: BuildConfig | None = None) -> None:
        """
        Write the final archive to a binary stream.

        Does not mutate the ArchiveSet, so successive calls produce the same
        entries. The stream is flushed but not closed.

        Args:
            out: Writable binary stream
            config: Build configuration (default: global config)

        Raises:
            ArchiveFormatError: If the base or a merged nested base is not a
                zip archive
            OSError: If reading a resource or writing the stream fails
        """
        require(out, "out")
        cfg = config or get_global_config()

        with self._open_base() as reader:
            self._build_into(reader, out, cfg, depth=0)

    def build_bytes(self, *, config: BuildConfig | None = None) -> bytes:
        """Build the final archive into memory and return its bytes."""
        buffer = BytesIO()
        self.build(buffer, config=config)
        return buffer.getvalue()

    def build_file(self, path: str | os.PathLike, *, config: BuildConfig | None = None) -> Path:
        """
        Write the final archive to a file.

        Args:
            path: Output file (created or truncated)
            config: Build configuration (default: global config)

        Returns:
            Path to the written archive
        """
        require(path, "path")
        output_path = Path(path)
        cfg = config or get_global_config()

        # A missing or invalid base fails before the output is created
        with self._open_base() as reader:
            with open(output_path, "wb") as f:
                self._build_into(reader, f, cfg, depth=0)
        return output_path

    def _open_base(self) -> ArchiveReader:
        return ArchiveReader(self._base, label=_describe_base(self._base))

    def _build_into(
        self,
        reader: ArchiveReader,
        out: IO[bytes],
        config: BuildConfig,
        depth: int,
    ) -> None:
        writer = ArchiveWriter(out, config)
        try:
            self._merge(reader, writer, depth)
        except BaseException:
            writer.discard()
            raise
        writer.finish()

    def _merge(self, reader: ArchiveReader, writer: ArchiveWriter, depth: int) -> None:
        """Merge the base entries from reader with the overlay into writer."""
        report = writer.config.report
        pending = set(self._content)

        for info in reader.entries():
            name = info.filename
            entry = self._content.get(name)

            if entry is None:
                # No overlay value; copy the entry exactly
                report(depth, "copy", name)
                writer.copy_entry(reader, info)
                continue

            pending.discard(name)

            match entry:
                case Nested(archive) if archive.base is None:
                    # Merge the overlay into the base's nested archive
                    report(depth, "merge", name)
                    with reader.open_nested(info) as nested_reader:
                        with writer.open_entry(name) as dest:
                            archive._build_into(nested_reader, dest, writer.config, depth + 1)
                case Tombstone():
                    report(depth, "delete", name)
                case _:
                    report(depth, "replace", name)
                    self._write_entry(writer, name, entry, depth)

        # Whatever the base didn't have
        for name in sorted(pending):
            self._write_entry(writer, name, self._content[name], depth)

    def _write_entry(self, writer: ArchiveWriter, name: str, entry: Entry, depth: int) -> None:
        report = writer.config.report

        match entry:
            case Bytes(content):
                if is_directory_name(name):
                    report(depth, "dir", name)
                    writer.write_directory(name)
                else:
                    report(depth, "add", name)
                    writer.write_bytes(name, content)
            case ExternalResource(path):
                for resource in walk_resource(name, path):
                    if resource.is_dir:
                        report(depth, "dir", resource.name)
                        writer.write_directory(resource.name)
                    else:
                        report(depth, "add", resource.name)
                        writer.write_file(resource.name, resource.path)
            case Nested(archive):
                report(depth, "add", name)
                with archive._open_base() as nested_reader:
                    with writer.open_entry(name) as dest:
                        archive._build_into(nested_reader, dest, writer.config, depth + 1)
            case Tombstone():
                # Nothing to delete
                pass


def _to_entry(value: object) -> Entry:
    match value:
        case ArchiveSet():
            return Nested(value.copy())
        case bytes() | bytearray() | memoryview():
            return Bytes(value)
        case str():
            raise TypeError(
                "Ambiguous str value: pass bytes for content or a Path for a file"
            )
        case os.PathLike():
            return ExternalResource(value)
        case _:
            raise TypeError(f"Cannot add value of type {type(value).__name__}")


def _describe_base(base: Path | bytes | None) -> str:
    if isinstance(base, bytes):
        return f"<{len(base)} bytes>"
    return str(base) if base is not None else "None"
