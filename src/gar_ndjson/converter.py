"""GAR to NDJSON converter - entry point for conversion."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

from gar_ndjson.catalog import SchemaCatalog, SchemaDescriptor, find_schema
from gar_ndjson.decoder import count_elements, detect_root, stream_elements
from gar_ndjson.errors import MalformedXML, MatchMode, NoXmlFilesFound, RootElementMismatch
from gar_ndjson.prefix import derive_prefix
from gar_ndjson.records import StreamResult
from gar_ndjson.report import WarningLog, format_skipped
from gar_ndjson.tokens import DEFAULT_CHUNK_SIZE

log = logging.getLogger(__name__)

XML_SUFFIX = ".xml"


@dataclass
class ConversionOptions:
    """Settings for one conversion run."""

    schema_dir: Path = Path("gar_schemas")
    element: str | None = None  # None: first child of the root
    expected_count: int | None = None  # Fixed count for every file
    verify_count: bool = True  # Count records in a first pass
    match_mode: MatchMode = MatchMode.PREFIX
    chunk_size: int = DEFAULT_CHUNK_SIZE
    warn_log: Path | None = Path("validation.log")


@dataclass
class FileReport:
    """What happened to one data file."""

    path: Path
    schema: SchemaDescriptor
    root_element: str
    result: StreamResult

    @property
    def has_warnings(self) -> bool:
        return self.result.count_mismatch or bool(self.result.skipped)


def collect_xml_files(path: str | Path) -> list[Path]:
    """Expand a file or directory argument into the data files to convert.

    Directories are not searched recursively. Files are returned in sorted
    order.
    """
    path = Path(path)
    if not path.is_dir():
        return [path]
    files = sorted(
        p for p in path.iterdir()
        if p.is_file() and p.suffix.lower() == XML_SUFFIX
    )
    if not files:
        raise NoXmlFilesFound(path)
    return files


class Converter:
    """Converts GAR data files to NDJSON using a loaded schema catalog.

    Example:
        catalog = SchemaCatalog.load("gar_schemas")
        converter = Converter(catalog, WarningLog("validation.log"))
        report = converter.convert_file("AS_HOUSES_20240101_x.XML", sys.stdout)
    """

    def __init__(
        self,
        catalog: SchemaCatalog,
        warnings: WarningLog,
        element: str | None = None,
        expected_count: int | None = None,
        verify_count: bool = True,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        self._catalog = catalog
        self._warnings = warnings
        self._element = element or None
        self._expected_count = expected_count
        self._verify_count = verify_count
        self._chunk_size = chunk_size

    @classmethod
    def from_options(cls, options: ConversionOptions, warnings: WarningLog | None = None) -> Converter:
        catalog = SchemaCatalog.load(options.schema_dir, options.match_mode)
        return cls(
            catalog,
            warnings if warnings is not None else WarningLog(options.warn_log),
            element=options.element,
            expected_count=options.expected_count,
            verify_count=options.verify_count,
            chunk_size=options.chunk_size,
        )

    @property
    def catalog(self) -> SchemaCatalog:
        return self._catalog

    @property
    def warnings(self) -> WarningLog:
        return self._warnings

    def match_schema(self, path: Path, root_element: str) -> SchemaDescriptor:
        """Find the schema for a data file.

        Raises:
            SchemaNotFound: If no schema matches.
            RootElementMismatch: If the file-name match disagrees with the
                document's root element.
        """
        if self._catalog.match_mode == MatchMode.ROOT:
            return find_schema(self._catalog, path, root_element)

        schema = find_schema(self._catalog, path, derive_prefix(path.name))
        if schema.root_element != root_element:
            raise RootElementMismatch(path, schema.root_element, root_element)
        return schema

    def _expected_for(self, path: Path) -> int | None:
        if self._expected_count is not None:
            return self._expected_count
        if not self._verify_count:
            return None
        _, count = count_elements(path, self._element, self._chunk_size)
        return count

    def convert_file(self, path: str | Path, out: TextIO) -> FileReport:
        """Convert one data file, writing its records to ``out``.

        Record-level problems are written to the warning log; anything
        that stops the file from being read raises.
        """
        path = Path(path)
        root_element = detect_root(path, self._chunk_size)
        schema = self.match_schema(path, root_element)
        log.info(
            "Using schema %s for root element %s in %s",
            schema.path, schema.root_element, path,
        )

        expected = self._expected_for(path)
        try:
            result = stream_elements(
                path,
                out,
                element=self._element,
                required=schema.required_attributes,
                expected=expected,
                chunk_size=self._chunk_size,
            )
        except MalformedXML as e:
            # Records skipped before the failure are still reported.
            if e.result is not None:
                for skipped in e.result.skipped:
                    self._warnings.warn(format_skipped(path, skipped))
            raise
        self._warnings.report(path, result)
        return FileReport(path=path, schema=schema, root_element=root_element, result=result)

    def convert_all(self, paths: Iterable[str | Path], out: TextIO) -> list[FileReport]:
        """Convert files in order, stopping at the first fatal error."""
        return [self.convert_file(path, out) for path in paths]
