"""Matching engine: per-file matcher and the parallel scanner."""

from convlint.engine.matcher import FileScan, scan_file
from convlint.engine.scanner import (
    DEFAULT_EXCLUDES,
    FileResult,
    discover_files,
    scan_files,
    scan_one,
)

__all__ = [
    "DEFAULT_EXCLUDES",
    "FileResult",
    "FileScan",
    "discover_files",
    "scan_file",
    "scan_files",
    "scan_one",
]
