"""Tests for the command-line interface."""

from __future__ import annotations

import shutil
from pathlib import Path

import pytest
from click.testing import CliRunner

from gar_ndjson.cli import main
from tests.fixture_loader import HOUSES_XML, parse_ndjson


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestCli:
    """Tests for the gar-ndjson command."""

    def test_convert_directory(
        self, runner: CliRunner, schema_dir: Path, xml_dir: Path, tmp_path: Path
    ) -> None:
        warn_log = tmp_path / "validation.log"

        result = runner.invoke(
            main,
            [str(xml_dir), "--schema-dir", str(schema_dir), "--warn-log", str(warn_log)],
        )

        assert result.exit_code == 0, result.output
        records = parse_ndjson(result.output)
        assert len(records) == 7
        assert {r["element"] for r in records} == {"OBJECT", "HOUSE", "PARAM"}
        assert not warn_log.exists()

    def test_single_file_quiet(
        self, runner: CliRunner, schema_dir: Path, tmp_path: Path
    ) -> None:
        result = runner.invoke(
            main,
            [
                str(HOUSES_XML),
                "-s", str(schema_dir),
                "--warn-log", str(tmp_path / "w.log"),
                "--quiet",
            ],
        )

        assert result.exit_code == 0, result.output
        records = parse_ndjson(result.output)
        assert [r["attributes"]["ID"] for r in records] == ["1", "2", "3"]
        assert "Summary" not in result.output

    def test_skipped_records_do_not_fail(
        self, runner: CliRunner, schema_dir: Path, tmp_path: Path
    ) -> None:
        data = tmp_path / "AS_HOUSES_20240101_x.xml"
        data.write_text('<HOUSES><HOUSE ID="1"/></HOUSES>', encoding="utf-8")
        warn_log = tmp_path / "validation.log"

        result = runner.invoke(
            main,
            [str(data), "-s", str(schema_dir), "--warn-log", str(warn_log), "-q"],
        )

        assert result.exit_code == 0, result.output
        assert parse_ndjson(result.output) == []
        lines = warn_log.read_text(encoding="utf-8").splitlines()
        assert lines[0] == f"expected 1 records but processed 0 in {data}"
        assert "skipped record #1 at byte 8 for element HOUSE" in lines[1]

    def test_expected_count_option(
        self, runner: CliRunner, schema_dir: Path, tmp_path: Path
    ) -> None:
        warn_log = tmp_path / "validation.log"

        result = runner.invoke(
            main,
            [
                str(HOUSES_XML),
                "-s", str(schema_dir),
                "--expected-count", "4",
                "--warn-log", str(warn_log),
                "-q",
            ],
        )

        assert result.exit_code == 0, result.output
        assert warn_log.read_text(encoding="utf-8").startswith("expected 4 records but processed 3")

    def test_element_option(
        self, runner: CliRunner, schema_dir: Path, tmp_path: Path
    ) -> None:
        result = runner.invoke(
            main,
            [
                str(HOUSES_XML),
                "-s", str(schema_dir),
                "--element", "PARAM",
                "--warn-log", str(tmp_path / "w.log"),
                "-q",
            ],
        )

        assert result.exit_code == 0, result.output
        assert parse_ndjson(result.output) == []

    def test_schema_dir_from_environment(
        self, runner: CliRunner, schema_dir: Path, tmp_path: Path
    ) -> None:
        result = runner.invoke(
            main,
            [str(HOUSES_XML), "-q"],
            env={"GAR_SCHEMA_DIR": str(schema_dir), "GAR_WARN_LOG": str(tmp_path / "w.log")},
        )

        assert result.exit_code == 0, result.output
        assert len(parse_ndjson(result.output)) == 3

    def test_match_by_root(
        self, runner: CliRunner, schema_dir: Path, tmp_path: Path
    ) -> None:
        data = tmp_path / "houses.xml"
        shutil.copy(HOUSES_XML, data)

        result = runner.invoke(
            main,
            [
                str(data),
                "-s", str(schema_dir),
                "--match", "root",
                "--warn-log", str(tmp_path / "w.log"),
                "-q",
            ],
        )

        assert result.exit_code == 0, result.output
        assert len(parse_ndjson(result.output)) == 3

    def test_no_schemas(self, runner: CliRunner, tmp_path: Path) -> None:
        empty = tmp_path / "schemas"
        empty.mkdir()

        result = runner.invoke(main, [str(HOUSES_XML), "-s", str(empty)])

        assert result.exit_code == 1
        assert "no schemas found" in result.output

    def test_no_xml_files(self, runner: CliRunner, schema_dir: Path, tmp_path: Path) -> None:
        empty = tmp_path / "data"
        empty.mkdir()

        result = runner.invoke(main, [str(empty), "-s", str(schema_dir)])

        assert result.exit_code == 1
        assert "no xml files found" in result.output

    def test_unmatched_file(self, runner: CliRunner, schema_dir: Path, tmp_path: Path) -> None:
        data = tmp_path / "AS_STEADS_1.xml"
        data.write_text("<STEADS/>", encoding="utf-8")

        result = runner.invoke(
            main,
            [str(data), "-s", str(schema_dir), "--warn-log", str(tmp_path / "w.log")],
        )

        assert result.exit_code == 1
        assert "no schema found" in result.output

    def test_malformed_xml(self, runner: CliRunner, schema_dir: Path, tmp_path: Path) -> None:
        data = tmp_path / "AS_HOUSES_1.xml"
        data.write_text("<HOUSES><HOUSE></HOUSES>", encoding="utf-8")

        result = runner.invoke(
            main,
            [str(data), "-s", str(schema_dir), "--warn-log", str(tmp_path / "w.log")],
        )

        assert result.exit_code == 1
        assert "malformed XML" in result.output

    def test_missing_input(self, runner: CliRunner, schema_dir: Path, tmp_path: Path) -> None:
        result = runner.invoke(main, [str(tmp_path / "missing.xml"), "-s", str(schema_dir)])
        assert result.exit_code == 2
