"""Pull tokenizer for large XML data files.

The tokenizer feeds the file to expat in fixed-size chunks and hands back
start-tag, end-tag and text tokens one at a time, each start-tag carrying
the byte offset of its ``<``. Only the tokens of one chunk are buffered.
Character data between two markup events always arrives as a single text
token, whatever the chunk boundaries. Comments, CDATA section edges and
processing instructions end a text token.

Errors are sticky: once the parser has failed, every later call to
:meth:`TokenStream.next` raises the same :class:`XmlTokenError`, after the
tokens that preceded the failure have been handed out.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import BinaryIO, Union
from xml.parsers import expat

DEFAULT_CHUNK_SIZE = 64 * 1024


def local_name(name: str) -> str:
    """Drop a ``prefix:`` from a raw tag or attribute name."""
    return name.rsplit(":", 1)[-1]


def is_namespace_declaration(name: str) -> bool:
    return name == "xmlns" or name.startswith("xmlns:")


@dataclass(frozen=True)
class StartTag:
    name: str  # Local name
    attributes: dict[str, str] = field(default_factory=dict)
    byte_offset: int = 0
    line: int = 0


@dataclass(frozen=True)
class EndTag:
    name: str
    byte_offset: int = 0


@dataclass(frozen=True)
class Text:
    data: str


Token = Union[StartTag, EndTag, Text]


class XmlTokenError(Exception):
    """The underlying parser rejected the input."""

    def __init__(self, message: str, byte_offset: int = -1, line: int = 0, column: int = 0):
        super().__init__(message)
        self.message = message
        self.byte_offset = byte_offset
        self.line = line
        self.column = column


class TokenStream:
    """Forward-only token reader over a binary file object.

    Example:
        with open(path, "rb") as fh:
            for token in TokenStream(fh):
                ...
    """

    def __init__(self, source: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._source = source
        self._chunk_size = chunk_size
        self._pending: deque[Token] = deque()
        self._finished = False
        self._error: XmlTokenError | None = None
        self._text_open = False  # Last pending Text may still grow

        parser = expat.ParserCreate()
        parser.buffer_text = True
        parser.StartElementHandler = self._on_start
        parser.EndElementHandler = self._on_end
        parser.CharacterDataHandler = self._on_text
        parser.CommentHandler = self._on_break
        parser.StartCdataSectionHandler = self._on_break
        parser.EndCdataSectionHandler = self._on_break
        parser.ProcessingInstructionHandler = self._on_break
        self._parser = parser

    @property
    def byte_offset(self) -> int:
        """Bytes consumed by the parser so far."""
        return self._parser.CurrentByteIndex

    def _on_start(self, name: str, attrs: dict[str, str]) -> None:
        self._text_open = False
        attributes = {
            local_name(key): value
            for key, value in attrs.items()
            if not is_namespace_declaration(key)
        }
        self._pending.append(StartTag(
            name=local_name(name),
            attributes=attributes,
            byte_offset=self._parser.CurrentByteIndex,
            line=self._parser.CurrentLineNumber,
        ))

    def _on_end(self, name: str) -> None:
        self._text_open = False
        self._pending.append(EndTag(
            name=local_name(name),
            byte_offset=self._parser.CurrentByteIndex,
        ))

    def _on_text(self, data: str) -> None:
        # Character data is split at chunk boundaries; keep it in one token.
        if self._text_open and self._pending and isinstance(self._pending[-1], Text):
            data = self._pending.pop().data + data
        self._pending.append(Text(data))
        self._text_open = True

    def _on_break(self, *args: object) -> None:
        """Close the current text token at a comment, CDATA edge or PI."""
        self._text_open = False

    def _ready(self) -> bool:
        """Whether the head token is complete.

        A lone open text token may still grow with the next chunk.
        """
        if not self._pending:
            return False
        if len(self._pending) > 1:
            return True
        return not (self._text_open and isinstance(self._pending[0], Text))

    def _fill(self) -> None:
        """Parse chunks until a complete token is pending or input ends."""
        while not self._ready() and not self._finished and self._error is None:
            chunk = self._source.read(self._chunk_size)
            final = not chunk
            try:
                self._parser.Parse(chunk, final)
            except expat.ExpatError as e:
                self._error = XmlTokenError(
                    expat.ErrorString(e.code),
                    byte_offset=self._parser.ErrorByteIndex,
                    line=e.lineno,
                    column=e.offset,
                )
            if final:
                self._finished = True

    def next(self) -> Token | None:
        """Return the next token, or None at end of input.

        Raises:
            XmlTokenError: If the input is not well-formed at this point.
        """
        self._fill()
        if self._pending:
            return self._pending.popleft()
        if self._error is not None:
            raise self._error
        return None

    def skip(self) -> None:
        """Consume tokens through the end-tag of the last start-tag read."""
        level = 1
        while level:
            token = self.next()
            if token is None:
                raise XmlTokenError("unexpected end of input", byte_offset=self.byte_offset)
            if isinstance(token, StartTag):
                level += 1
            elif isinstance(token, EndTag):
                level -= 1

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next()
            if token is None:
                return
            yield token
