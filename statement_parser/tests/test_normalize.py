"""
Tests for text and date normalization.
"""
from datetime import date

from ..core.normalize import month_day, normalize_date, normalize_text, tidy_bank_description


class TestNormalizeText:

    def test_collapses_whitespace(self):
        assert normalize_text("  COFFEE   SHOP\n ") == "COFFEE SHOP"

    def test_empty(self):
        assert normalize_text("") == ""


class TestDates:

    def test_first_matching_format(self):
        assert normalize_date("Jan 5, 2024", ["%m/%d/%y", "%b %d, %Y"]) == date(2024, 1, 5)

    def test_no_format_matches(self):
        assert normalize_date("sometime", ["%m/%d/%y"]) is None

    def test_blank(self):
        assert normalize_date("   ", ["%m/%d/%y"]) is None

    def test_month_day(self):
        assert month_day("1/05", 2024) == date(2024, 1, 5)

    def test_month_day_invalid(self):
        assert month_day("2/30", 2024) is None
        assert month_day("Jan 5", 2024) is None


class TestTidyBankDescription:

    def test_processor_prefix(self):
        assert tidy_bank_description("SQ *COFFEE SHOP").text == "COFFEE SHOP"

    def test_plain(self):
        result = tidy_bank_description("HARDWARE STORE")
        assert result.text == "HARDWARE STORE"
        assert not result.amazon

    def test_doordash(self):
        result = tidy_bank_description("DOORDASH*PIZZA PLACE")
        assert result.doordash
        assert result.text == "PIZZA PLACE"

    def test_amazon(self):
        assert tidy_bank_description("AMAZON.COM*AB12CD").amazon

    def test_venmo(self):
        assert tidy_bank_description("VENMO PAYMENT").venmo
