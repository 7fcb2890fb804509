"""
Tests for end-to-end parsing and report building.
"""
import pytest

from ..core.loader import dump_fixture
from ..core.runner import SOURCES, build_report, error_record, parse_file, parse_statement, run_source
from ..core.errors import ParseStatementError
from .builders import amex_statement, schwab_statement, statement, text


class TestRunSource:

    def test_known_sources(self):
        assert set(SOURCES) == {"schwab", "amex", "apple_card"}

    def test_run_source(self, schwab):
        results = run_source(schwab, "schwab")

        assert results.source == "schwab"
        assert len(results.metadata) == 1
        assert len(results.transactions) == 3
        assert results.errors == []

    def test_unknown_source(self, schwab):
        with pytest.raises(ValueError, match="Unknown source"):
            run_source(schwab, "chase")


class TestParseStatement:

    def test_detects_source(self, amex):
        results = parse_statement(amex)
        assert [r.source for r in results] == ["amex"]

    def test_explicit_source(self, amex):
        results = parse_statement(amex, ["schwab"])
        assert [r.source for r in results] == ["schwab"]
        assert results[0].transactions == []
        assert len(results[0].errors) == 1

    def test_undetected_runs_everything(self):
        results = parse_statement(statement([text("Quarterly newsletter", 40, 700)]))
        assert [r.source for r in results] == list(SOURCES)
        assert all(r.transactions == [] for r in results)


class TestReport:

    def test_build_report(self, schwab):
        report = build_report("schwab.pdf", parse_statement(schwab))

        assert report.file == "schwab.pdf"
        source = report.sources[0]
        assert source.source == "schwab"
        assert source.ok
        assert source.metadata[0]["type"] == "SchwabStatementSummary"
        assert source.metadata[0]["ending_balance"] == 96500
        assert source.metadata[0]["closing_date"] == "2024-01-31"
        assert len(source.transactions) == 3

    def test_error_records(self):
        report = build_report("schwab.pdf", parse_statement(schwab_statement(ending_balance="$964.99")))
        errors = report.sources[0].errors

        assert len(errors) == 1
        assert errors[0].kind == "InvalidValue"
        assert errors[0].type == "InvalidStatementSummaryError"
        assert errors[0].summary_value == 96499
        assert errors[0].computed_value == 96500
        assert not report.sources[0].ok

    def test_error_record_with_location(self, schwab):
        error = ParseStatementError.missing_value(
            "Amount not found",
            page_number=3,
            search_from_text=schwab.pages[0].texts[0],
        )
        record = error_record(error)
        assert record.kind == "MissingValue"
        assert record.page_number == 3
        assert record.search_from_text == "Statement Period"

    def test_error_record_for_other_errors(self):
        record = error_record(RuntimeError("boom"))
        assert record.type == "RuntimeError"
        assert record.message == "boom"

    def test_parse_file(self, tmp_path):
        path = tmp_path / "amex.json"
        dump_fixture(amex_statement(), path)

        report = parse_file(path)
        assert report.sources[0].source == "amex"
        assert len(report.sources[0].transactions) == 4
        assert report.sources[0].errors == []
