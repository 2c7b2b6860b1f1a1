"""Streaming extraction of GAR records.

A GAR data file is a root element holding a long run of identical child
elements, for example::

    <HOUSES>
        <HOUSE ID="1" OBJECTID="10" HOUSENUM="1" ... />
        <HOUSE ID="2" OBJECTID="11" HOUSENUM="2" ... />
    </HOUSES>

Each child of the root that matches the target element becomes one JSON
line. Only the child's own attributes and direct text are kept; anything
nested inside it is skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from enum import Enum
from pathlib import Path
from typing import TextIO

from gar_ndjson.errors import MalformedXML
from gar_ndjson.records import Record, SkippedRecord, StreamResult
from gar_ndjson.tokens import (
    DEFAULT_CHUNK_SIZE,
    EndTag,
    StartTag,
    Text,
    TokenStream,
    XmlTokenError,
)

log = logging.getLogger(__name__)

ROOT_DEPTH = 1
RECORD_DEPTH = 2


class TargetState(Enum):
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"


class TargetName:
    """The element name records are extracted from.

    Starts unresolved when no name is given; the first child of the root
    then fixes it for the rest of the file.
    """

    def __init__(self, name: str | None = None):
        self._name = name or None
        self._state = TargetState.RESOLVED if self._name else TargetState.UNRESOLVED

    @property
    def state(self) -> TargetState:
        return self._state

    @property
    def name(self) -> str | None:
        return self._name

    def matches(self, name: str) -> bool:
        """Check a child-of-root name, resolving the target on first use."""
        if self._state == TargetState.UNRESOLVED:
            self._name = name
            self._state = TargetState.RESOLVED
            log.debug("Resolved target element to %s", name)
        return name == self._name


def _malformed(path: Path, error: XmlTokenError, result: StreamResult | None = None) -> MalformedXML:
    return MalformedXML(
        path,
        error.message,
        byte_offset=error.byte_offset,
        line=error.line,
        column=error.column,
        result=result,
    )


def detect_root(path: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Return the local name of the document's root element.

    Only the input up to the first start-tag has to be well-formed.
    """
    path = Path(path)
    with open(path, "rb") as fh:
        stream = TokenStream(fh, chunk_size)
        try:
            for token in stream:
                if isinstance(token, StartTag):
                    return token.name
        except XmlTokenError as e:
            raise _malformed(path, e) from e
    raise MalformedXML(path, "root element not found")


def count_elements(
    path: str | Path,
    element: str | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> tuple[str | None, int]:
    """Count target elements without building records.

    Returns:
        The target element name (None for a root with no children) and
        the number of matching children of the root.
    """
    path = Path(path)
    target = TargetName(element)
    count = 0
    depth = 0

    with open(path, "rb") as fh:
        stream = TokenStream(fh, chunk_size)
        try:
            for token in stream:
                if isinstance(token, StartTag):
                    depth += 1
                    if depth < RECORD_DEPTH:
                        continue
                    if target.matches(token.name):
                        count += 1
                    stream.skip()
                    depth -= 1
                elif isinstance(token, EndTag):
                    depth -= 1
        except XmlTokenError as e:
            raise _malformed(path, e) from e

    log.debug("Counted %d %s elements in %s", count, target.name, path)
    return target.name, count


class StreamDecoder:
    """Extracts, validates and writes the records of one data file.

    Args:
        path: Data file to read.
        out: Text sink receiving one JSON object per line.
        element: Target element name; None to use the root's first child.
        required: Element name to required attribute names.
        expected: Expected record count, carried into the result.
    """

    def __init__(
        self,
        path: str | Path,
        out: TextIO,
        element: str | None = None,
        required: Mapping[str, Sequence[str]] | None = None,
        expected: int | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self._path = Path(path)
        self._out = out
        self._target = TargetName(element)
        self._required = required or {}
        self._chunk_size = chunk_size
        self._result = StreamResult(expected_count=expected)
        self._index = 0

    @property
    def target(self) -> TargetName:
        return self._target

    def run(self) -> StreamResult:
        """Stream the whole file.

        Raises:
            MalformedXML: If the file is not well-formed outside a record,
                or a broken record cannot be stepped over.
        """
        with open(self._path, "rb") as fh:
            stream = TokenStream(fh, self._chunk_size)
            try:
                self._scan(stream)
            except XmlTokenError as e:
                raise _malformed(self._path, e, self._finish()) from e
        return self._finish()

    def _finish(self) -> StreamResult:
        self._result.element = self._target.name
        return self._result

    def _scan(self, stream: TokenStream) -> None:
        depth = 0
        for token in stream:
            if isinstance(token, StartTag):
                depth += 1
                if depth < RECORD_DEPTH:
                    continue
                if self._target.matches(token.name):
                    self._process(stream, token)
                else:
                    stream.skip()
                depth -= 1
            elif isinstance(token, EndTag):
                depth -= 1

    def _process(self, stream: TokenStream, start: StartTag) -> None:
        self._index += 1
        try:
            record = self._build_record(stream, start)
        except XmlTokenError as e:
            self._skip(start, e.message)
            try:
                stream.skip()
            except XmlTokenError as resync:
                raise XmlTokenError(
                    f"cannot resume after record #{self._index}: {resync.message}",
                    byte_offset=resync.byte_offset,
                    line=resync.line,
                    column=resync.column,
                ) from resync
            return

        missing = self._missing_attributes(record)
        if missing:
            self._skip(start, f"missing required attribute(s): {', '.join(missing)}")
            return

        self._out.write(record.to_json())
        self._out.write("\n")
        self._result.processed_count += 1

    def _build_record(self, stream: TokenStream, start: StartTag) -> Record:
        parts: list[str] = []
        while True:
            token = stream.next()
            if token is None:
                raise XmlTokenError("unexpected end of input", byte_offset=stream.byte_offset)
            if isinstance(token, Text):
                data = token.data.strip()
                if data:
                    parts.append(data)
            elif isinstance(token, StartTag):
                stream.skip()
            elif isinstance(token, EndTag):
                return Record(
                    element=start.name,
                    attributes=dict(start.attributes),
                    content=" ".join(parts),
                )

    def _missing_attributes(self, record: Record) -> list[str]:
        required = self._required.get(record.element, ())
        return [name for name in required if name not in record.attributes]

    def _skip(self, start: StartTag, error: str) -> None:
        self._result.skipped.append(SkippedRecord(
            index=self._index,
            byte_offset=start.byte_offset,
            element=start.name,
            error=error,
        ))


def stream_elements(
    path: str | Path,
    out: TextIO,
    element: str | None = None,
    required: Mapping[str, Sequence[str]] | None = None,
    expected: int | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> StreamResult:
    """Write every valid target element of a file to ``out`` as NDJSON."""
    decoder = StreamDecoder(
        path,
        out,
        element=element,
        required=required,
        expected=expected,
        chunk_size=chunk_size,
    )
    return decoder.run()
