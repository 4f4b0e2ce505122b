"""
Zip codec adapter.

Wraps ``zipfile`` behind the two operations a build needs:

- ArchiveReader: sequential entry iteration over a base archive
- ArchiveWriter: begin entry / write into it / end entry, then finish

Finishing a writer writes the central directory of that archive only. The
stream it writes into is never closed, so a writer can target an entry
of an enclosing archive.
"""

from __future__ import annotations

import os
import shutil
import time
import zipfile
from contextlib import contextmanager
from io import BytesIO
from pathlib import Path
from typing import IO, BinaryIO, Iterator

from .errors import ArchiveFormatError
from .paths import directory_entry_name, file_entry_name
from .runtime import BuildConfig

# Compression methods zipfile can write
WRITABLE_METHODS: frozenset[int] = frozenset(
    {
        zipfile.ZIP_STORED,
        zipfile.ZIP_DEFLATED,
        zipfile.ZIP_BZIP2,
        zipfile.ZIP_LZMA,
    }
)

# Empty archive: just an end of central directory record
EMPTY_ARCHIVE = b"PK\x05\x06" + b"\x00" * 18

FILE_MODE = 0o644 << 16
DIRECTORY_MODE = (0o40755 << 16) | 0x10  # MS-DOS directory flag


# -----------------------------------------------------------------------------
# Reader
# -----------------------------------------------------------------------------


class ArchiveReader:
    """
    Sequential read access to a zip archive.

    The source may be a filesystem path, the raw bytes of an archive, a
    seekable binary stream, or None for an archive with no entries.

    Usage:
        with ArchiveReader("base.zip") as reader:
            for info in reader.entries():
                print(info.filename)
    """

    def __init__(
        self,
        source: str | os.PathLike | bytes | BinaryIO | None,
        *,
        label: str | None = None,
    ) -> None:
        """
        Open a zip archive for reading.

        Args:
            source: Archive path, archive bytes, binary stream, or None
            label: Name used in error messages

        Raises:
            ArchiveFormatError: If the source is not a zip archive
            OSError: If the source cannot be read
        """
        self.label = label or _describe(source)
        self._zip_file: zipfile.ZipFile | None = None

        if source is None:
            return

        if isinstance(source, (bytes, bytearray, memoryview)):
            source = BytesIO(bytes(source))
        elif isinstance(source, (str, os.PathLike)):
            source = Path(source)

        try:
            self._zip_file = zipfile.ZipFile(source, "r")
        except zipfile.BadZipFile as e:
            raise ArchiveFormatError(f"Not a zip archive: {self.label}") from e

    def __enter__(self) -> "ArchiveReader":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._zip_file is not None:
            self._zip_file.close()
            self._zip_file = None

    def entries(self) -> Iterator[zipfile.ZipInfo]:
        """Yield entries in their stored order."""
        if self._zip_file is None:
            return
        yield from self._zip_file.infolist()

    def read(self, info: zipfile.ZipInfo) -> bytes:
        """Read the decompressed payload of an entry into memory."""
        with self._guard(info):
            return self._zip_file.read(info)  # type: ignore[union-attr]

    def copy_to(self, info: zipfile.ZipInfo, dest: IO[bytes], chunk_size: int) -> None:
        """Stream the decompressed payload of an entry into dest."""
        with self._guard(info):
            with self._zip_file.open(info) as src:  # type: ignore[union-attr]
                shutil.copyfileobj(src, dest, chunk_size)

    def open_nested(self, info: zipfile.ZipInfo) -> "ArchiveReader":
        """
        Open the payload of an entry as an archive in its own right.

        Zip keeps its directory at the end of the archive, so the payload is
        buffered in memory to make it seekable.
        """
        return ArchiveReader(self.read(info), label=f"{self.label}!{info.filename}")

    @contextmanager
    def _guard(self, info: zipfile.ZipInfo) -> Iterator[None]:
        if info.flag_bits & 0x1:
            # zipfile would raise a bare RuntimeError asking for a password
            raise ArchiveFormatError(f"Encrypted entry {info.filename} in {self.label}")
        try:
            yield
        except zipfile.BadZipFile as e:
            raise ArchiveFormatError(f"Corrupt entry {info.filename} in {self.label}: {e}") from e
        except NotImplementedError as e:
            # Unsupported compression method
            raise ArchiveFormatError(f"Cannot read {info.filename} in {self.label}: {e}") from e


def _describe(source: object) -> str:
    if source is None:
        return "<empty>"
    if isinstance(source, (str, os.PathLike)):
        return str(source)
    if isinstance(source, (bytes, bytearray, memoryview)):
        return "<bytes>"
    return getattr(source, "name", None) or "<stream>"


# -----------------------------------------------------------------------------
# Writer
# -----------------------------------------------------------------------------


class ArchiveWriter:
    """
    Sequential write access to a zip archive.

    Entries are written one at a time into ``out``. ``finish`` writes the
    central directory; it flushes but does not close ``out``.

    Note: compresslevel from the config applies to byte payloads. Streamed
    entries (files, nested archives, copies) use the codec default level.
    """

    def __init__(self, out: IO[bytes], config: BuildConfig) -> None:
        self.config = config
        self._out = out
        # A file object is passed, so ZipFile.close() leaves it open
        self._zip_file = zipfile.ZipFile(
            out,
            "w",
            compression=config.compression,
            compresslevel=config.compresslevel,
        )

    def finish(self) -> None:
        """Write the central directory. Safe to call more than once."""
        if self._zip_file.fp is None:
            return
        self._zip_file.close()
        self._out.flush()

    def write_directory(self, name: str) -> None:
        """Write an empty directory entry."""
        info = self._new_info(directory_entry_name(name))
        info.compress_type = zipfile.ZIP_STORED
        info.external_attr = DIRECTORY_MODE
        self._zip_file.writestr(info, b"")

    def write_bytes(self, name: str, data: bytes) -> None:
        """Write a file entry with the given payload."""
        info = self._new_info(file_entry_name(name))
        self._zip_file.writestr(info, data, compresslevel=self.config.compresslevel)

    def write_file(self, name: str, path: Path) -> None:
        """
        Write a file entry streamed from the filesystem.

        The entry keeps ``name`` as given; only the file's mtime and mode
        are taken from the filesystem.
        """
        info = self._new_info(file_entry_name(name))
        st = path.stat()
        date_time = time.localtime(st.st_mtime)[:6]
        if date_time[0] >= 1980:
            info.date_time = date_time
        info.external_attr = (st.st_mode & 0xFFFF) << 16
        info.file_size = st.st_size

        with open(path, "rb") as src:
            with self._zip_file.open(info, "w", force_zip64=self.config.force_zip64) as dest:
                shutil.copyfileobj(src, dest, self.config.chunk_size)

    def discard(self) -> None:
        """
        Abandon the archive without writing its central directory.

        Used when a build fails, so nothing reaches ``out`` afterwards, not
        even when the underlying ZipFile is garbage collected.
        """
        self._zip_file.fp = None

    @contextmanager
    def open_entry(self, name: str) -> Iterator[IO[bytes]]:
        """Begin a file entry; the entry ends when the context exits."""
        info = self._new_info(file_entry_name(name))
        with self._zip_file.open(info, "w", force_zip64=self.config.force_zip64) as dest:
            yield dest

    def copy_entry(self, reader: ArchiveReader, source: zipfile.ZipInfo) -> None:
        """
        Copy an entry from a base archive.

        Keeps the entry's name, timestamp, attributes, comment and (when it
        can be written) compression method.
        """
        info = zipfile.ZipInfo(source.filename, date_time=source.date_time)
        info.external_attr = source.external_attr
        info.create_system = source.create_system
        info.comment = source.comment

        if source.is_dir():
            info.compress_type = zipfile.ZIP_STORED
            self._zip_file.writestr(info, b"")
            return

        if source.compress_type in WRITABLE_METHODS:
            info.compress_type = source.compress_type
        else:
            info.compress_type = self.config.compression

        # Known size lets zipfile decide on zip64 up front
        info.file_size = source.file_size
        with self._zip_file.open(info, "w", force_zip64=self.config.force_zip64) as dest:
            reader.copy_to(source, dest, self.config.chunk_size)

    def _new_info(self, name: str) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(name, date_time=time.localtime(time.time())[:6])
        info.compress_type = self.config.compression
        info.external_attr = FILE_MODE
        return info
