"""Depth-first enumeration of source files under a snapshot root, bounded by a scan budget."""

import logging
import os
import threading
import time
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

SKIPPED_DIRECTORIES = frozenset({
    "node_modules",
    ".git",
    "dist",
    "build",
    ".next",
    "out",
    "coverage",
    "vendor",
    "__pycache__",
    ".venv",
    "venv",
    "target",
})

SOURCE_EXTENSIONS = frozenset({
    ".js",
    ".ts",
    ".jsx",
    ".tsx",
    ".py",
    ".rb",
    ".php",
    ".java",
    ".go",
    ".rs",
    ".c",
    ".cpp",
    ".cs",
})


class ScanError(Exception):
    """Base class for errors that abort a scan."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ScanTimeoutError(ScanError):
    """Raised when the scan exceeds its wall-clock budget."""


class ScanCancelledError(ScanError):
    """Raised when the cancellation event is set while the scan is running."""


class ScanBudget:
    """
    Resource limits shared by the scanners of one scan.

    max_files caps how many source files the walk yields; the deadline, the
    caller's cancellation event, and abort() stop the scan with an exception.
    """

    def __init__(
        self,
        max_files: int,
        timeout_sec: float,
        max_file_bytes: int,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.max_files = max_files
        self.max_file_bytes = max_file_bytes
        self.deadline = time.monotonic() + timeout_sec
        self.timeout_sec = timeout_sec
        self.cancel_event = cancel_event
        self._aborted = threading.Event()

    def abort(self) -> None:
        """Stop work still running for this scan (e.g. after a sibling scanner failed)."""
        self._aborted.set()

    def check(self) -> None:
        """Raise if the scan was cancelled or ran past its deadline."""
        if self._aborted.is_set() or (self.cancel_event is not None and self.cancel_event.is_set()):
            raise ScanCancelledError("Scan was cancelled.")
        if time.monotonic() > self.deadline:
            raise ScanTimeoutError(
                f"Scan exceeded its time budget of {self.timeout_sec:g} seconds."
            )


def is_source_file(path: str | Path) -> bool:
    return Path(path).suffix.lower() in SOURCE_EXTENSIONS


def iter_source_files(root: str | Path, budget: ScanBudget) -> Iterator[Path]:
    """
    Yield source files under root, depth-first, in sorted order.

    Skipped directories are never entered and inaccessible directories are
    skipped silently. Stops after budget.max_files files.
    """
    yielded = 0
    stack = [Path(root)]
    while stack:
        budget.check()
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.debug("Skipping inaccessible directory %s: %s", current, e)
            continue

        subdirs: list[Path] = []
        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    if entry.name not in SKIPPED_DIRECTORIES:
                        subdirs.append(Path(entry.path))
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
            except OSError:
                continue
            if not is_source_file(entry.name):
                continue
            if yielded >= budget.max_files:
                logger.warning(
                    "File budget reached; remaining files are not scanned",
                    extra={"root": str(root), "max_files": budget.max_files},
                )
                return
            yielded += 1
            yield Path(entry.path)

        # Reverse so the alphabetically first subdirectory is visited next.
        stack.extend(reversed(subdirs))
