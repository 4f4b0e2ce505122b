"""
Runtime configuration for zipset.

Controls how new entries are compressed and whether builds report
progress. A global configuration is used when a build is not given one.
"""

from __future__ import annotations

import sys
import zipfile
from dataclasses import dataclass
from typing import TextIO


@dataclass
class BuildConfig:
    """
    Configuration for building archives.

    Attributes:
        compression: Compression method for written entries
        compresslevel: Compression level (None for the codec default)
        force_zip64: Write zip64 headers for streamed entries of unknown size
        chunk_size: Buffer size for stream copies
        verbose: Print one line per emitted entry
        stream: Where verbose output goes
    """

    compression: int = zipfile.ZIP_DEFLATED
    compresslevel: int | None = None
    force_zip64: bool = False

    chunk_size: int = 64 * 1024

    # Debug
    verbose: bool = False
    stream: TextIO | None = None

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive: {self.chunk_size}")
        if self.compression == zipfile.ZIP_STORED:
            # Stored entries take no level
            self.compresslevel = None

    def report(self, depth: int, action: str, name: str) -> None:
        """Print a progress line when verbose."""
        if self.verbose:
            indent = "  " * (depth + 1)
            print(f"{indent}[{action}] {name}", file=self.stream or sys.stderr)


def get_build_config(
    compression: int | None = None,
    compresslevel: int | None = None,
    force_zip64: bool = False,
    verbose: bool = False,
) -> BuildConfig:
    """
    Create a build configuration with sensible defaults.

    Args:
        compression: Override the compression method
        compresslevel: Override the compression level
        force_zip64: Always write zip64 headers for streamed entries
        verbose: Enable verbose output

    Returns:
        Configured BuildConfig instance
    """
    if compression is None:
        compression = zipfile.ZIP_DEFLATED

    return BuildConfig(
        compression=compression,
        compresslevel=compresslevel,
        force_zip64=force_zip64,
        verbose=verbose,
    )


# Global config instance (can be set by the CLI)
_global_config: BuildConfig | None = None


def set_global_config(config: BuildConfig) -> None:
    """Set the global build configuration."""
    global _global_config
    _global_config = config


def get_global_config() -> BuildConfig:
    """Get the global build configuration, creating default if needed."""
    global _global_config
    if _global_config is None:
        _global_config = BuildConfig()
    return _global_config
