"""Error types and matching modes for GAR conversion."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gar_ndjson.records import StreamResult


class MatchMode(Enum):
    """How data files are matched to schemas."""

    PREFIX = "prefix"  # Dataset prefix derived from the file name
    ROOT = "root"  # Root element name declared by the schema


class GarError(Exception):
    """Base class for all conversion errors."""


class SchemaLoadError(GarError):
    """The schema directory could not be turned into a catalog."""


class NoSchemasFound(SchemaLoadError):
    """No schema files were found in the schema directory."""

    def __init__(self, directory: str | Path):
        super().__init__(f"no schemas found in {directory}")
        self.directory = Path(directory)


class DuplicateSchemaPrefix(SchemaLoadError):
    """Two schema files resolve to the same catalog key."""

    def __init__(self, key: str, first: str | Path, second: str | Path):
        super().__init__(
            f"schemas {first} and {second} both resolve to '{key}'"
        )
        self.key = key
        self.first = Path(first)
        self.second = Path(second)


class SchemaParseError(SchemaLoadError):
    """A schema file is malformed or declares no root element."""

    def __init__(self, path: str | Path, cause: str):
        super().__init__(f"{path}: {cause}")
        self.path = Path(path)
        self.cause = cause


class SchemaNotFound(GarError):
    """No schema in the catalog matches a data file."""

    def __init__(self, path: str | Path, key: str):
        super().__init__(f"no schema found for '{key}' in {path}")
        self.path = Path(path)
        self.key = key


class RootElementMismatch(GarError):
    """A data file's root element differs from its schema's root."""

    def __init__(self, path: str | Path, expected: str, actual: str):
        super().__init__(
            f"root element '{actual}' in {path} does not match "
            f"schema root element '{expected}'"
        )
        self.path = Path(path)
        self.expected = expected
        self.actual = actual


class MalformedXML(GarError):
    """A data file could not be tokenized.

    ``result`` holds whatever was processed before the failure, when the
    failure happened during extraction.
    """

    def __init__(
        self,
        path: str | Path,
        message: str,
        byte_offset: int = -1,
        line: int = 0,
        column: int = 0,
        result: StreamResult | None = None,
    ):
        location = f"{path}"
        if line:
            location = f"{location}:{line}:{column}"
        if byte_offset >= 0:
            location = f"{location} (byte {byte_offset})"
        super().__init__(f"malformed XML in {location}: {message}")
        self.path = Path(path)
        self.message = message
        self.byte_offset = byte_offset
        self.line = line
        self.column = column
        self.result = result


class NoXmlFilesFound(GarError):
    """An input directory holds no XML files."""

    def __init__(self, directory: str | Path):
        super().__init__(f"no xml files found in {directory}")
        self.directory = Path(directory)
