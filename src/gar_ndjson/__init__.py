"""gar-ndjson - stream GAR/FIAS address-registry XML into NDJSON.

Each child of a GAR file's root element becomes one JSON line. Records
missing an attribute that the matching XSD marks ``use="required"`` are
skipped and reported instead of emitted.

Example:
    import sys
    from gar_ndjson import Converter, SchemaCatalog, WarningLog

    catalog = SchemaCatalog.load("gar_schemas")
    converter = Converter(catalog, WarningLog("validation.log"))
    report = converter.convert_file("AS_HOUSES_20240101_x.XML", sys.stdout)
    print(report.result.processed_count, len(report.result.skipped))

    # Lower-level streaming without schema matching
    from gar_ndjson import stream_elements

    with open("houses.ndjson", "w", encoding="utf-8") as out:
        result = stream_elements("houses.xml", out, required={"HOUSE": ["ID"]})
"""

from gar_ndjson.catalog import SchemaCatalog, SchemaDescriptor, find_schema
from gar_ndjson.converter import (
    ConversionOptions,
    Converter,
    FileReport,
    collect_xml_files,
)
from gar_ndjson.decoder import (
    StreamDecoder,
    TargetName,
    TargetState,
    count_elements,
    detect_root,
    stream_elements,
)
from gar_ndjson.errors import (
    DuplicateSchemaPrefix,
    GarError,
    MalformedXML,
    MatchMode,
    NoSchemasFound,
    NoXmlFilesFound,
    RootElementMismatch,
    SchemaLoadError,
    SchemaNotFound,
    SchemaParseError,
)
from gar_ndjson.prefix import derive_prefix, normalize_prefix
from gar_ndjson.records import Record, SkippedRecord, StreamResult
from gar_ndjson.report import WarningLog

__version__ = "0.1.0"

__all__ = [
    # Main API
    "Converter",
    "ConversionOptions",
    "FileReport",
    "collect_xml_files",
    # Schemas
    "SchemaCatalog",
    "SchemaDescriptor",
    "find_schema",
    "derive_prefix",
    "normalize_prefix",
    "MatchMode",
    # Streaming
    "StreamDecoder",
    "TargetName",
    "TargetState",
    "count_elements",
    "detect_root",
    "stream_elements",
    # Results
    "Record",
    "SkippedRecord",
    "StreamResult",
    "WarningLog",
    # Errors
    "GarError",
    "SchemaLoadError",
    "NoSchemasFound",
    "DuplicateSchemaPrefix",
    "SchemaParseError",
    "SchemaNotFound",
    "RootElementMismatch",
    "MalformedXML",
    "NoXmlFilesFound",
]
