"""pytest configuration and fixtures for gar_ndjson tests."""

from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from gar_ndjson import SchemaCatalog, WarningLog
from tests.fixture_loader import ITEM_SCHEMA, SCHEMAS_DIR, XML_DIR


@pytest.fixture
def schema_dir() -> Path:
    """Directory with GAR-like schemas."""
    return SCHEMAS_DIR


@pytest.fixture
def xml_dir() -> Path:
    """Directory with GAR-like data files."""
    return XML_DIR


@pytest.fixture
def catalog(schema_dir: Path) -> SchemaCatalog:
    return SchemaCatalog.load(schema_dir)


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    """Write text to a file under tmp_path and return its path."""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def item_schema_dir(tmp_path: Path) -> Path:
    """Schema directory holding a single ROOT/ITEM schema."""
    directory = tmp_path / "schemas"
    directory.mkdir()
    (directory / "ROOT_1_0.xsd").write_text(ITEM_SCHEMA, encoding="utf-8")
    return directory


@pytest.fixture
def warning_log(tmp_path: Path) -> WarningLog:
    return WarningLog(tmp_path / "validation.log")
