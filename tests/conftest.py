from __future__ import annotations

import io
import zipfile
from typing import Callable, Dict

import pytest

from zipset import runtime


@pytest.fixture
def make_zip() -> Callable[..., bytes]:
    """Build zip bytes from a name -> payload mapping (names ending in / are directories)."""

    def _make_zip(entries: Dict[str, bytes], compression: int = zipfile.ZIP_DEFLATED) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", compression) as zf:
            for name, data in entries.items():
                zf.writestr(name, data)
        return buffer.getvalue()

    return _make_zip


@pytest.fixture
def read_zip() -> Callable[[bytes], Dict[str, bytes]]:
    """Decode zip bytes into a name -> payload mapping, in stored order."""

    def _read_zip(data: bytes) -> Dict[str, bytes]:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            return {info.filename: zf.read(info) for info in zf.infolist()}

    return _read_zip


@pytest.fixture(autouse=True)
def reset_global_config(monkeypatch):
    """Keep global config changes (e.g. from the CLI) inside one test."""
    monkeypatch.setattr(runtime, "_global_config", None)


@pytest.fixture
def mark_encrypted() -> Callable[[bytes], bytes]:
    """Set the encryption flag on every entry of zip bytes, leaving payloads as they are."""

    def _mark_encrypted(data: bytes) -> bytes:
        patched = bytearray(data)
        # General purpose flags sit at offset 6 of local headers, 8 of central ones
        for signature, offset in ((b"PK\x03\x04", 6), (b"PK\x01\x02", 8)):
            start = patched.find(signature)
            while start != -1:
                patched[start + offset] |= 0x1
                start = patched.find(signature, start + 4)
        return bytes(patched)

    return _mark_encrypted
