"""
Tests for money parsing.
"""
import pytest

from ..core.money import MONEY_PATTERN, ParseMoneyError, format_cents, parse_amount


class TestParseAmount:
    """Accepted and rejected money strings."""

    @pytest.mark.parametrize("value,expected", [
        ("0", 0),
        ("$0.00", 0),
        ("$123.45", 12345),
        ("$9,123.45", 912345),
        ("($9,123.45)", -912345),
        (" (  $9,123.45 )   ", -912345),
        ("-$9,123.45", -912345),
        (" -  $9,123.45    ", -912345),
        ("+$123.45", 12345),
        ("1,000", 100000),
    ])
    def test_valid_amounts(self, value, expected):
        result = parse_amount(value)
        assert result.is_ok
        assert result.value == expected

    @pytest.mark.parametrize("value", ["", "abc", "$abc", "$123.456", "($123.456)", " (  $123.456 )   ", "$,"])
    def test_format_errors(self, value):
        result = parse_amount(value)
        assert result.is_err
        assert isinstance(result.error, ParseMoneyError)
        assert str(result.error) == f"Money does not match expected format: {value}"

    def test_mismatched_parentheses(self):
        result = parse_amount(" ( 0 ")
        assert result.is_err
        assert str(result.error) == "Money has mismatched parentheses:  ( 0 "

    def test_sign_and_parentheses(self):
        result = parse_amount("-($123.45)")
        assert result.is_err
        assert str(result.error) == "Money cannot have both a sign and parentheses: -($123.45)"

    def test_unwrap_raises_money_error(self):
        with pytest.raises(ParseMoneyError):
            parse_amount("twelve dollars").unwrap()

    def test_pattern_is_anchored(self):
        assert MONEY_PATTERN.search("$12.00") is not None
        assert MONEY_PATTERN.search("Total $12.00") is None


class TestFormatCents:

    def test_format(self):
        assert format_cents(0) == "$0.00"
        assert format_cents(5) == "$0.05"
        assert format_cents(123456) == "$1,234.56"
        assert format_cents(-96500) == "-$965.00"

    @pytest.mark.parametrize("cents", [0, 1, 99, 100, 96500, -5000, 123456789])
    def test_parse_formatted(self, cents):
        assert parse_amount(format_cents(cents)).value == cents
