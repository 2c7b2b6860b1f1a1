"""Records produced while streaming a data file."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Record:
    """A flattened XML element."""

    element: str
    attributes: dict[str, str] = field(default_factory=dict)
    content: str = ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "element": self.element,
            "attributes": self.attributes,
        }
        if self.content:
            data["content"] = self.content
        return data

    def to_json(self) -> str:
        """Serialize as a single JSON line (without the trailing newline)."""
        return json.dumps(self.to_dict(), ensure_ascii=False)


@dataclass(frozen=True)
class SkippedRecord:
    """A target element that was not emitted."""

    index: int  # 1-based among attempted target elements
    byte_offset: int  # Offset of the element's start-tag
    element: str
    error: str

    def __str__(self) -> str:
        return (
            f"skipped record #{self.index} at byte {self.byte_offset} "
            f"for element {self.element}: {self.error}"
        )


@dataclass
class StreamResult:
    """Outcome of streaming one data file."""

    expected_count: int | None = None
    processed_count: int = 0
    skipped: list[SkippedRecord] = field(default_factory=list)
    element: str | None = None  # Target element, once resolved

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def encountered_count(self) -> int:
        """Number of target elements seen, emitted or not."""
        return self.processed_count + len(self.skipped)

    @property
    def count_mismatch(self) -> bool:
        return (
            self.expected_count is not None
            and self.expected_count != self.processed_count
        )
