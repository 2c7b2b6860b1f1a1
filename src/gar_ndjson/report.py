"""Append-only warning log shared by every file in a run."""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from gar_ndjson.records import SkippedRecord, StreamResult

log = logging.getLogger(__name__)


def format_count_mismatch(path: str | Path, expected: int, processed: int) -> str:
    return f"expected {expected} records but processed {processed} in {path}"


def format_skipped(path: str | Path, skipped: SkippedRecord) -> str:
    return f"{path}: {skipped}"


class WarningLog:
    """Appends one line per warning to a text file.

    The file is opened for each write, so nothing is held between files.
    Writes are serialized so several converters may share one log.
    ``path=None`` keeps the warnings in the Python log only.
    """

    def __init__(self, path: str | Path | None = None, encoding: str = "utf-8"):
        self._path = Path(path) if path is not None else None
        self._encoding = encoding
        self._lock = threading.Lock()
        self._count = 0

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def count(self) -> int:
        """Warnings written so far."""
        return self._count

    def warn(self, message: str) -> None:
        log.warning(message)
        with self._lock:
            if self._path is not None:
                with open(self._path, "a", encoding=self._encoding) as fh:
                    fh.write(message)
                    fh.write("\n")
            self._count += 1

    def report(self, path: str | Path, result: StreamResult) -> None:
        """Write the count mismatch (if any) and every skipped record."""
        if result.expected_count is not None and result.count_mismatch:
            self.warn(format_count_mismatch(path, result.expected_count, result.processed_count))
        for skipped in result.skipped:
            self.warn(format_skipped(path, skipped))
