"""
Tests for the result type and the page-at-a-time parsing helpers.
"""
import pytest

from ..core.combinators import AccumulationParser, OnceParser
from ..core.errors import ParseStatementError
from ..core.page import Page
from ..core.result import Result
from .builders import text


def pages(*labels):
    return [Page(number, [text(label, 40, 700)]) for number, label in enumerate(labels, 1)]


def find_title(page):
    if page.navigator.find("Title") is None:
        return Result.err(ParseStatementError.missing_label("No title", page_number=page.page_number))
    return Result.ok(page.page_number)


def count_rows(page, previous, context):
    if page.navigator.find("Row") is None:
        yield Result.err(ParseStatementError.missing_label("No rows", page_number=page.page_number))
        return previous
    yield Result.ok(f"row on page {page.page_number}")
    return previous + context


class TestResult:

    def test_ok(self):
        result = Result.ok(5)
        assert result.is_ok and not result.is_err
        assert result.value == 5
        assert result.unwrap() == 5
        assert result.map(lambda v: v * 2) == Result.ok(10)
        with pytest.raises(ValueError):
            result.error

    def test_err(self):
        error = ParseStatementError.missing_value("missing")
        result = Result.err(error)
        assert result.is_err
        assert result.error is error
        assert result.map(lambda v: v * 2) is result
        with pytest.raises(ValueError):
            result.value
        with pytest.raises(ParseStatementError):
            result.unwrap()

    def test_all(self):
        assert Result.all([Result.ok(1), Result.ok(2)]) == Result.ok([1, 2])
        error = ParseStatementError.invalid_value("bad")
        combined = Result.all([Result.ok(1), Result.err(error), Result.err(ParseStatementError.invalid_value("later"))])
        assert combined.error is error


class TestOnceParser:

    def test_stops_after_first_success(self):
        parser = OnceParser(find_title)
        results = [list(parser.parse_page(page)) for page in pages("Intro", "Title", "Title")]

        assert [len(r) for r in results] == [1, 1, 0]
        assert results[0][0].is_err
        assert results[1][0] == Result.ok(2)
        assert parser.done
        assert parser.parsed == 2

    def test_never_succeeds(self):
        parser = OnceParser(find_title)
        for page in pages("Intro", "Body"):
            assert list(parser.parse_page(page))[0].is_err
        assert not parser.done
        assert parser.parsed is None

    def test_passes_context(self):
        parser = OnceParser(lambda page, context: Result.ok((page.page_number, context)))
        assert list(parser.parse_page(pages("Any")[0], "ctx")) == [Result.ok((1, "ctx"))]


class TestAccumulationParser:

    def test_threads_value_between_pages(self):
        parser = AccumulationParser(count_rows, 0)
        yielded = []
        for page in pages("Row", "Other", "Row"):
            yielded.extend(parser.parse_page(page, 10))

        assert parser.parsed == 20
        assert [r.is_ok for r in yielded] == [True, False, True]
        assert yielded[2].value == "row on page 3"

    def test_initial_value(self):
        assert AccumulationParser(count_rows, 7).parsed == 7
