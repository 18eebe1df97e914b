"""Parallel file scanning: discover files and run the matcher on each in a worker pool."""

from __future__ import annotations

import fnmatch
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from convlint.engine.matcher import scan_file
from convlint.errors import ScanIOError
from convlint.rules.model import Finding

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from convlint.rules.model import RuleSet

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDES: tuple[str, ...] = (
    ".git",
    ".hg",
    ".svn",
    ".convlint",
    ".venv",
    "venv",
    "__pycache__",
    "node_modules",
    "vendor",
)
DEFAULT_MAX_FILE_SIZE_BYTES = 1_000_000


@dataclass(frozen=True)
class FileResult:
    """Findings produced by scanning one file."""

    path: str
    findings: tuple[Finding, ...]

    @property
    def failed(self) -> bool:
        return any(f.kind == "io-error" for f in self.findings)


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------


def _is_excluded(relative: Path, exclude: Iterable[str]) -> bool:
    posix = relative.as_posix()
    for pattern in exclude:
        if fnmatch.fnmatch(posix, pattern):
            return True
        if any(fnmatch.fnmatch(part, pattern) for part in relative.parts):
            return True
    return False


def _is_included(relative: Path, include: tuple[str, ...]) -> bool:
    if not include:
        return True
    posix = relative.as_posix()
    return any(fnmatch.fnmatch(posix, g) or fnmatch.fnmatch(relative.name, g) for g in include)


def discover_files(
    paths: Iterable[Path],
    *,
    include: tuple[str, ...] = (),
    exclude: tuple[str, ...] = DEFAULT_EXCLUDES,
) -> list[Path]:
    """Expand *paths* into a sorted, de-duplicated list of files.

    Directories are walked recursively; entries whose relative path (or any
    path component) matches an *exclude* glob are skipped, and when
    *include* is non-empty only files matching one of its globs are kept.
    Paths named explicitly are always kept, even if they do not exist, so
    that the scan can report them as unreadable.
    """
    found: set[Path] = set()
    for path in paths:
        if not path.is_dir():
            found.add(path)
            continue
        for candidate in path.rglob("*"):
            if not candidate.is_file():
                continue
            relative = candidate.relative_to(path)
            if _is_excluded(relative, exclude) or not _is_included(relative, include):
                continue
            found.add(candidate)
    return sorted(found)


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


def _display_path(path: Path, root: Path | None) -> str:
    if root is not None:
        try:
            return path.resolve().relative_to(root.resolve()).as_posix()
        except ValueError:
            pass
    return path.as_posix()


def _read_text(path: Path, display: str, max_file_size_bytes: int) -> str:
    try:
        size = path.stat().st_size
        if size > max_file_size_bytes:
            msg = f"file is {size} bytes, limit is {max_file_size_bytes}"
            raise ScanIOError(display, msg)
        return path.read_text(encoding="utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ScanIOError(display, f"not valid UTF-8 ({exc.reason})") from exc
    except ScanIOError:
        raise
    except OSError as exc:
        raise ScanIOError(display, exc.strerror or str(exc)) from exc


def scan_one(
    rule_set: RuleSet,
    path: Path,
    *,
    root: Path | None = None,
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES,
) -> FileResult:
    """Read and scan a single file; unreadable files become an ``io-error`` finding."""
    display = _display_path(path, root)
    try:
        text = _read_text(path, display, max_file_size_bytes)
    except ScanIOError as exc:
        logger.warning("%s", exc)
        finding = Finding(
            path=display,
            line=1,
            column=1,
            end_line=1,
            end_column=1,
            rule_id=None,
            severity="warning",
            message=str(exc),
            kind="io-error",
        )
        return FileResult(display, (finding,))
    return FileResult(display, tuple(scan_file(rule_set, display, text)))


def scan_files(
    rule_set: RuleSet,
    files: Iterable[Path],
    *,
    max_workers: int | None = None,
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES,
    root: Path | None = None,
) -> Iterator[FileResult]:
    """Scan *files* concurrently, yielding each result as it completes.

    Every file is scanned by an independent task in a fixed-size thread pool
    (``max_workers=None`` uses the executor default).  Results arrive in
    completion order; callers that need a stable order sort afterwards.
    A failure in one file never cancels the others.
    """
    file_list = list(files)
    if not file_list:
        return

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="convlint-scan") as pool:
        futures = [
            pool.submit(
                scan_one,
                rule_set,
                path,
                root=root,
                max_file_size_bytes=max_file_size_bytes,
            )
            for path in file_list
        ]
        for future in as_completed(futures):
            yield future.result()
