"""
Tests for the Apple Card pipeline.
"""
from datetime import date

import pytest

from ..core.errors import ErrorKind, InvalidStatementSummaryError
from ..models.schema import ImportedTransactionKind
from ..sources.apple_card import (
    AppleCardStatementSummary,
    AppleCardTransaction,
    parse_statement,
    parse_statement_summary,
    parse_transactions,
)
from .builders import apple_card_statement, statement


class TestSummary:

    def test_summary(self, apple_card):
        summary = parse_statement_summary(apple_card).unwrap()

        assert summary.start_date == date(2024, 1, 1)
        assert summary.closing_date == date(2024, 1, 31)
        assert summary.payment_due_date == date(2024, 2, 28)
        assert summary.minimum_payment_due == 2500
        assert summary.previous_balance == -30000
        assert summary.total_payments == 30000
        assert summary.total_transactions == -47500
        assert summary.total_daily_cash == 950
        assert summary.interest_charged == 0
        assert summary.total_balance == -47500
        assert summary.account == "apple-card"

    def test_missing_heading(self, apple_card):
        texts = [t for t in apple_card.pages[0].texts if t.text != "Statement"]
        result = parse_statement_summary(statement(texts, list(apple_card.pages[1].texts)))
        assert result.error.kind is ErrorKind.MISSING_LABEL
        assert result.error.page_number == 1

    def test_missing_balance_label(self, apple_card):
        texts = [t for t in apple_card.pages[0].texts if t.text != "Your January Balance"]
        result = parse_statement_summary(statement(texts, list(apple_card.pages[1].texts)))
        assert result.error.kind is ErrorKind.MISSING_LABEL
        assert result.error.page_number == 1


class TestTransactions:

    def test_rows(self, apple_card):
        transactions = [r.unwrap() for r in parse_transactions(apple_card)]

        assert [(t.kind, t.date, t.amount, t.statement_description) for t in transactions] == [
            (ImportedTransactionKind.CHARGE, date(2024, 1, 3), -500, "COFFEE SHOP SEATTLE WA"),
            (ImportedTransactionKind.CHARGE, date(2024, 1, 10), -50000, "HARDWARE STORE"),
            (ImportedTransactionKind.CREDIT, date(2024, 1, 15), 3000, "HARDWARE STORE RETURN"),
        ]
        assert all(isinstance(t, AppleCardTransaction) for t in transactions)
        assert all(t.page_number == 2 for t in transactions)

    def test_daily_cash(self, apple_card):
        transactions = [r.unwrap() for r in parse_transactions(apple_card)]

        assert [t.daily_cash_amount for t in transactions] == [10, 1000, -60]
        assert transactions[0].daily_cash_percent == pytest.approx(2.0)
        assert transactions[2].daily_cash_percent == pytest.approx(2.0)


class TestParseStatement:

    def test_full_statement(self, apple_card):
        results = list(parse_statement(apple_card))

        assert all(r.is_ok for r in results)
        assert isinstance(results[0].value, AppleCardStatementSummary)
        assert len(results) == 4

    def test_daily_cash_mismatch(self):
        results = list(parse_statement(apple_card_statement(daily_cash_total="$9.00")))
        errors = [r.error for r in results if r.is_err]

        assert len(errors) == 1
        error = errors[0]
        assert isinstance(error, InvalidStatementSummaryError)
        assert error.summary_value == 900
        assert error.computed_value == 950
        assert error.page_number == 1

    def test_missing_summary_still_parses_rows(self, apple_card):
        texts = [t for t in apple_card.pages[0].texts if t.text != "Statement"]
        results = list(parse_statement(statement(texts, list(apple_card.pages[1].texts))))

        assert results[0].is_err
        assert len([r for r in results if r.is_ok]) == 3
        assert len(results) == 4
