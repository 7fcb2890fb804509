"""
Tests for the command line interface.
"""
import json

import pytest
from typer.testing import CliRunner

from ..app import app
from ..core.loader import dump_fixture
from .builders import apple_card_statement, schwab_statement

runner = CliRunner()


@pytest.fixture
def schwab_fixture(tmp_path):
    path = tmp_path / "schwab.json"
    dump_fixture(schwab_statement(), path)
    return path


class TestParseCommand:

    def test_writes_report(self, schwab_fixture, tmp_path):
        output = tmp_path / "report.json"
        result = runner.invoke(app, ["parse", str(schwab_fixture), "--out", str(output)])

        assert result.exit_code == 0
        report = json.loads(output.read_text())
        assert report["sources"][0]["source"] == "schwab"
        assert len(report["sources"][0]["transactions"]) == 3

    def test_errors_exit_code(self, tmp_path):
        path = tmp_path / "apple.json"
        dump_fixture(apple_card_statement(daily_cash_total="$1.00"), path)

        result = runner.invoke(app, ["parse", str(path), "-o", str(tmp_path / "out.json")])
        assert result.exit_code == 2

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["parse", str(tmp_path / "missing.json")])
        assert result.exit_code == 1

    def test_unknown_source(self, schwab_fixture):
        result = runner.invoke(app, ["parse", str(schwab_fixture), "--source", "chase"])
        assert result.exit_code == 1

    def test_corrupt_pdf(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")

        result = runner.invoke(app, ["parse", str(path)])
        assert result.exit_code == 1
        assert result.exception is None or isinstance(result.exception, SystemExit)


class TestOtherCommands:

    def test_detect(self, schwab_fixture):
        result = runner.invoke(app, ["detect", str(schwab_fixture)])
        assert result.exit_code == 0
        assert "schwab" in result.output

    def test_validate(self, schwab_fixture, tmp_path):
        output = tmp_path / "report.json"
        runner.invoke(app, ["parse", str(schwab_fixture), "--out", str(output)])

        result = runner.invoke(app, ["validate", str(output)])
        assert result.exit_code == 0

    def test_validate_rejects_fixture(self, schwab_fixture):
        result = runner.invoke(app, ["validate", str(schwab_fixture)])
        assert result.exit_code == 1

    def test_tags(self):
        result = runner.invoke(app, ["tags", "lunch #work #trip-2025"])
        assert result.exit_code == 0
        assert "#trip (2025)" in result.output
