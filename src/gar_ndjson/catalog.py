"""Catalog of GAR XSD schemas.

Each schema contributes its root element name and, for every declared
element, the attribute names marked ``use="required"``. Nothing else in the
XSD is interpreted.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType

from lxml import etree

from gar_ndjson.errors import (
    DuplicateSchemaPrefix,
    MatchMode,
    NoSchemasFound,
    SchemaNotFound,
    SchemaParseError,
)
from gar_ndjson.prefix import derive_prefix, lookup_candidates

log = logging.getLogger(__name__)

SCHEMA_SUFFIX = ".xsd"


def local_name(tag: str) -> str:
    """Strip a Clark-notation namespace or a ``prefix:`` from a tag."""
    if tag.startswith("{"):
        return tag.rsplit("}", 1)[-1]
    return tag.rsplit(":", 1)[-1]


@dataclass(frozen=True)
class SchemaDescriptor:
    """What the converter needs to know about one XSD file."""

    path: Path
    dataset_prefix: str
    root_element: str
    required_attributes: Mapping[str, tuple[str, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def required_for(self, element: str) -> tuple[str, ...]:
        """Required attribute names for an element (empty if none)."""
        return self.required_attributes.get(element, ())


@dataclass(frozen=True)
class _DeclarationContext:
    """An open ``element`` declaration while scanning a schema."""

    name: str
    required: frozenset[str] = frozenset()

    @property
    def active(self) -> bool:
        return bool(self.name)


class _DeclarationStack:
    """Stack of open element declarations."""

    def __init__(self) -> None:
        self._stack: list[_DeclarationContext] = []

    def push(self, name: str) -> None:
        self._stack.append(_DeclarationContext(name=name))

    def pop(self) -> _DeclarationContext | None:
        if self._stack:
            return self._stack.pop()
        return None

    def add_required(self, attribute: str) -> None:
        """Record a required attribute on the innermost named declaration."""
        if not self._stack or not self._stack[-1].active:
            return
        current = self._stack[-1]
        self._stack[-1] = replace(current, required=current.required | {attribute})

    def __len__(self) -> int:
        return len(self._stack)


def scan_schema(path: str | Path) -> tuple[str, dict[str, tuple[str, ...]]]:
    """Read an XSD and return its root element and required attributes.

    Raises:
        SchemaParseError: If the file is not well-formed XML or declares
            no named element.
    """
    path = Path(path)
    root_element = ""
    stack = _DeclarationStack()
    required: dict[str, set[str]] = {}

    try:
        with open(path, "rb") as fh:
            for event, elem in etree.iterparse(fh, events=("start", "end")):
                if not isinstance(elem.tag, str):
                    continue
                tag = local_name(elem.tag)

                if event == "start":
                    if tag == "element":
                        name = elem.get("name", "")
                        if name and not root_element:
                            root_element = name
                        stack.push(name)
                    elif tag == "attribute":
                        name = elem.get("name", "")
                        if name and elem.get("use") == "required":
                            stack.add_required(name)
                    continue

                if tag == "element":
                    ctx = stack.pop()
                    if ctx is not None and ctx.active and ctx.required:
                        required.setdefault(ctx.name, set()).update(ctx.required)
                elem.clear()
    except etree.XMLSyntaxError as e:
        raise SchemaParseError(path, str(e)) from e

    if not root_element:
        raise SchemaParseError(path, "root element not found")

    return root_element, {name: tuple(sorted(attrs)) for name, attrs in required.items()}


def load_schema(path: str | Path) -> SchemaDescriptor:
    """Build a descriptor for a single schema file."""
    path = Path(path)
    root_element, required = scan_schema(path)
    return SchemaDescriptor(
        path=path,
        dataset_prefix=derive_prefix(path.name),
        root_element=root_element,
        required_attributes=MappingProxyType(required),
    )


def find_schema_files(directory: str | Path) -> list[Path]:
    """List schema files in a directory (not recursive), sorted by name."""
    directory = Path(directory)
    return sorted(
        p for p in directory.iterdir()
        if p.is_file() and p.suffix.lower() == SCHEMA_SUFFIX
    )


class SchemaCatalog(Mapping[str, SchemaDescriptor]):
    """Read-only mapping from catalog key to schema descriptor.

    Keys are dataset prefixes, or root element names when the catalog is
    built with ``MatchMode.ROOT``.
    """

    def __init__(
        self,
        schemas: Mapping[str, SchemaDescriptor],
        match_mode: MatchMode = MatchMode.PREFIX,
    ):
        self._schemas = MappingProxyType(dict(schemas))
        self._match_mode = match_mode

    @classmethod
    def load(
        cls,
        directory: str | Path,
        match_mode: MatchMode = MatchMode.PREFIX,
    ) -> SchemaCatalog:
        """Load every schema in a directory.

        Raises:
            NoSchemasFound: If the directory holds no schema files.
            DuplicateSchemaPrefix: If two schemas share a key.
            SchemaParseError: If a schema cannot be read.
        """
        directory = Path(directory)
        try:
            paths = find_schema_files(directory)
        except FileNotFoundError as e:
            raise NoSchemasFound(directory) from e
        if not paths:
            raise NoSchemasFound(directory)

        schemas: dict[str, SchemaDescriptor] = {}
        for path in paths:
            descriptor = load_schema(path)
            key = cls.key_for(descriptor, match_mode)
            existing = schemas.get(key)
            if existing is not None:
                raise DuplicateSchemaPrefix(key, existing.path, path)
            schemas[key] = descriptor

        log.info("Loaded %d schemas from %s", len(schemas), directory)
        return cls(schemas, match_mode)

    @staticmethod
    def key_for(descriptor: SchemaDescriptor, match_mode: MatchMode) -> str:
        if match_mode == MatchMode.ROOT:
            return descriptor.root_element
        return descriptor.dataset_prefix

    @property
    def match_mode(self) -> MatchMode:
        return self._match_mode

    def resolve(self, key: str) -> SchemaDescriptor | None:
        """Look up a key, falling back to its normalized alias.

        Root element keys are matched exactly.
        """
        if self._match_mode == MatchMode.ROOT:
            return self._schemas.get(key)
        for candidate in lookup_candidates(key):
            descriptor = self._schemas.get(candidate)
            if descriptor is not None:
                return descriptor
        return None

    def __getitem__(self, key: str) -> SchemaDescriptor:
        return self._schemas[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._schemas)

    def __len__(self) -> int:
        return len(self._schemas)


def find_schema(catalog: SchemaCatalog, path: str | Path, key: str) -> SchemaDescriptor:
    """Resolve a key for a data file, raising when nothing matches."""
    descriptor = catalog.resolve(key)
    if descriptor is None:
        raise SchemaNotFound(path, key)
    return descriptor
