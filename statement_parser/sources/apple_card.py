"""
Apple Card statements.

Expects a summary with the statement period, balance, payment due and the
"Account Activity" totals, then one or more "Transactions by <name>" tables,
usually spread across several pages.
"""
import re
import datetime
import logging
from typing import Iterator, Optional

from ..core.errors import InvalidStatementSummaryError, ParseStatementError, SearchDirection
from ..core.money import MONEY_PATTERN, parse_amount
from ..core.navigation import PageTextLocation
from ..core.normalize import normalize_date
from ..core.page import Statement
from ..core.result import Result
from ..models.schema import ImportedTransaction, ImportedTransactionKind, StatementMetadata

logger = logging.getLogger(__name__)

SOURCE_ID = "apple_card"

MMM_DD_YYYY_PATTERN = re.compile(r"^\s*\w+ \d{1,2}, \d{4}\s*$")
MMM_DD_PATTERN = re.compile(r"^\s*\w+ \d{1,2}(, \d{4})?\s*$")
MM_DD_YYYY_PATTERN = re.compile(r"^\s*\d{1,2}/\d{1,2}/\d{4}\s*$")
BALANCE_LABEL_PATTERN = re.compile(r"Your \w+ Balance")
TRANSACTIONS_HEADING_PATTERN = re.compile(r"Transactions by \w+")
WORD_PATTERN = re.compile(r"\w+")
DIGITS_PATTERN = re.compile(r"\d+")

LONG_DATE_FORMATS = ["%b %d, %Y", "%B %d, %Y"]
SHORT_DATE_FORMATS = ["%b %d %Y", "%B %d %Y"]
ROW_DATE_FORMATS = ["%m/%d/%Y"]

ACTIVITY_TOTALS = [
    ("total_payments", re.compile(r"Total payments for this period")),
    ("total_transactions", re.compile(r"Total charges, credits, and returns for this period")),
    ("total_daily_cash", re.compile(r"Total Daily Cash to account")),
    ("interest_charged", re.compile(r"Total interest for this month")),
]


class AppleCardStatementSummary(StatementMetadata):
    """
    Statement summary. Balances owed are negative; daily cash earned is positive.
    """
    start_date: datetime.date
    payment_due_date: datetime.date
    minimum_payment_due: int
    previous_balance: int
    total_payments: int
    total_transactions: int
    total_daily_cash: int
    interest_charged: int
    total_balance: int


class AppleCardTransaction(ImportedTransaction):
    daily_cash_percent: float
    daily_cash_amount: int


def _money_right(label, name: str) -> Result[int, ParseStatementError]:
    value = label.find_right(MONEY_PATTERN)
    if value is None:
        return Result.err(ParseStatementError.missing_value(
            f"Missing {name} value",
            page_number=label.page_number,
            search_from_text=label.text,
            search_direction=SearchDirection.RIGHT,
        ))
    return _amount(value, name)


def _amount(value, name: str) -> Result[int, ParseStatementError]:
    amount = parse_amount(value.text.text)
    if amount.is_err:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid {name}: {value.text.text}",
            page_number=value.page_number,
            content_text=value.text,
            cause=amount.error,
        ))
    return amount


def _label_page(statement: Statement, total: str) -> Optional[int]:
    label = statement.navigator.find(dict(ACTIVITY_TOTALS)[total])
    return label.page_number if label else None


def _period_start(value: str, closing_date: datetime.date) -> Optional[datetime.date]:
    start = normalize_date(value, LONG_DATE_FORMATS)
    if start is not None:
        return start
    start = normalize_date(f"{value.strip()} {closing_date.year}", SHORT_DATE_FORMATS)
    if start is None:
        return None
    if start > closing_date:
        start = start.replace(year=closing_date.year - 1)
    return start


def parse_statement_summary(statement: Statement) -> Result[AppleCardStatementSummary, ParseStatementError]:
    """
    Read the statement summary.

    Args:
        statement: Statement to search, from the first page on

    Returns:
        Ok with the summary, or the first label or value that could not be read
    """
    navigator = statement.navigator

    heading = navigator.find("Statement")
    if heading is None:
        return Result.err(ParseStatementError.missing_label(
            "Missing statement heading",
            page_number=statement.pages[0].page_number if statement.pages else None,
        ))

    closing_value = heading.find_down(MMM_DD_YYYY_PATTERN, alignment="right", max_gap=50)
    if closing_value is None:
        return Result.err(ParseStatementError.missing_value(
            "Missing closing date value",
            page_number=heading.page_number,
            search_from_text=heading.text,
            search_direction=SearchDirection.DOWN,
        ))
    closing_date = normalize_date(closing_value.text.text, LONG_DATE_FORMATS)
    if closing_date is None:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid closing date: {closing_value.text.text}",
            page_number=closing_value.page_number,
            content_text=closing_value.text,
        ))

    start_value = closing_value.find_left(MMM_DD_PATTERN)
    if start_value is None:
        return Result.err(ParseStatementError.missing_value(
            "Missing start date value",
            page_number=closing_value.page_number,
            search_from_text=closing_value.text,
            search_direction=SearchDirection.LEFT,
        ))
    start_date = _period_start(start_value.text.text, closing_date)
    if start_date is None:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid start date: {start_value.text.text}",
            page_number=start_value.page_number,
            content_text=start_value.text,
        ))

    balance_label = navigator.find(BALANCE_LABEL_PATTERN)
    if balance_label is None:
        return Result.err(ParseStatementError.missing_label("Missing balance label", page_number=heading.page_number))

    balance_value = balance_label.find_down(MONEY_PATTERN, alignment="left", max_gap=50)
    if balance_value is None:
        return Result.err(ParseStatementError.missing_value(
            "Missing balance value",
            page_number=balance_label.page_number,
            search_from_text=balance_label.text,
            search_direction=SearchDirection.DOWN,
        ))
    balance = _amount(balance_value, "balance")
    if balance.is_err:
        return balance

    minimum_value = balance_value.find_right(MONEY_PATTERN)
    if minimum_value is None:
        return Result.err(ParseStatementError.missing_value(
            "Missing minimum payment due value",
            page_number=balance_value.page_number,
            search_from_text=balance_value.text,
            search_direction=SearchDirection.RIGHT,
        ))
    minimum_payment = _amount(minimum_value, "minimum payment due")
    if minimum_payment.is_err:
        return minimum_payment

    due_date_value = minimum_value.find_right(MMM_DD_YYYY_PATTERN)
    due_date = normalize_date(due_date_value.text.text, LONG_DATE_FORMATS) if due_date_value else None
    if due_date is None:
        return Result.err(ParseStatementError.missing_value(
            "Missing payment due date value",
            page_number=minimum_value.page_number,
            content_text=due_date_value.text if due_date_value else None,
            search_from_text=minimum_value.text,
            search_direction=SearchDirection.RIGHT,
        ))

    previous_label = due_date_value.find_down(re.compile(r"Previous Total Balance"), alignment="left")
    if previous_label is None:
        return Result.err(ParseStatementError.missing_label(
            "Missing previous balance label",
            page_number=due_date_value.page_number,
            search_from_text=due_date_value.text,
            search_direction=SearchDirection.DOWN,
        ))
    previous_balance = _money_right(previous_label, "previous balance")
    if previous_balance.is_err:
        return previous_balance

    label = navigator.find(re.compile(r"Account Activity"))
    if label is None:
        return Result.err(ParseStatementError.missing_label(
            'Missing "Account Activity" label', page_number=heading.page_number
        ))

    totals = {}
    for name, pattern in ACTIVITY_TOTALS:
        next_label = label.find_down(pattern, alignment="left")
        if next_label is None:
            return Result.err(ParseStatementError.missing_label(
                f'Missing "{pattern.pattern}" label',
                page_number=label.page_number,
                search_from_text=label.text,
                search_direction=SearchDirection.DOWN,
            ))
        label = next_label
        amount = _money_right(label, name.replace("_", " "))
        if amount.is_err:
            return amount
        totals[name] = amount.value

    return Result.ok(AppleCardStatementSummary(
        closing_date=closing_date,
        account="apple-card",
        account_name="Apple Card",
        start_date=start_date,
        payment_due_date=due_date,
        minimum_payment_due=minimum_payment.value,
        previous_balance=-previous_balance.value,
        total_payments=-totals["total_payments"],
        total_transactions=-totals["total_transactions"],
        total_daily_cash=totals["total_daily_cash"],
        interest_charged=-totals["interest_charged"],
        total_balance=-balance.value,
    ))


def parse_transaction_row(date_value: PageTextLocation) -> Result[AppleCardTransaction, ParseStatementError]:
    """
    Parse one transaction row.

    A row whose description has a "Daily Cash Adjustment" line under it is a
    return: its daily cash is on the adjustment line and it credits the account.
    """
    transaction_date = normalize_date(date_value.text.text, ROW_DATE_FORMATS)
    if transaction_date is None:
        return Result.err(ParseStatementError.invalid_value(
            "Invalid transaction date",
            page_number=date_value.page_number,
            content_text=date_value.text,
        ))

    description_value = date_value.find_right(WORD_PATTERN)
    if description_value is None:
        return Result.err(ParseStatementError.missing_value(
            "Missing transaction description",
            page_number=date_value.page_number,
            search_from_text=date_value.text,
            search_direction=SearchDirection.RIGHT,
        ))

    adjustment_label = description_value.find_down("Daily Cash Adjustment", alignment="left", max_gap=10)

    if adjustment_label is not None:
        kind = ImportedTransactionKind.CREDIT
        percent_value = adjustment_label.find_right(DIGITS_PATTERN)
        daily_cash_value = percent_value.find_right(MONEY_PATTERN) if percent_value else None
        amount_value = description_value.find_right(MONEY_PATTERN)
        search_from = adjustment_label
    else:
        kind = ImportedTransactionKind.CHARGE
        cells = date_value.collect_right(WORD_PATTERN)
        if len(cells) != 4:
            return Result.err(ParseStatementError.missing_value(
                f"Unexpected transaction data: expected 4 cells, found {len(cells)}",
                page_number=date_value.page_number,
                search_from_text=date_value.text,
                search_direction=SearchDirection.RIGHT,
            ))
        description_value, percent_value, daily_cash_value, amount_value = cells
        search_from = description_value

    if percent_value is None or daily_cash_value is None or amount_value is None:
        return Result.err(ParseStatementError.missing_value(
            "Missing daily cash or amount value",
            page_number=date_value.page_number,
            search_from_text=search_from.text,
            search_direction=SearchDirection.RIGHT,
        ))

    daily_cash = _amount(daily_cash_value, "daily cash amount")
    if daily_cash.is_err:
        return daily_cash
    amount = _amount(amount_value, "transaction amount")
    if amount.is_err:
        return amount

    try:
        percent = float(percent_value.text.text.strip().replace("%", ""))
    except ValueError as e:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid daily cash percent: {percent_value.text.text}",
            page_number=percent_value.page_number,
            content_text=percent_value.text,
            cause=e,
        ))

    return Result.ok(AppleCardTransaction(
        kind=kind,
        date=transaction_date,
        amount=-amount.value,
        statement_description=description_value.text.text.strip(),
        page_number=date_value.page_number,
        daily_cash_percent=percent,
        daily_cash_amount=daily_cash.value,
    ))


def parse_transactions(statement: Statement) -> Iterator[Result[AppleCardTransaction, ParseStatementError]]:
    """Parse the rows of every "Transactions by ..." table, in statement order."""
    for heading in statement.navigator.find_all(TRANSACTIONS_HEADING_PATTERN):
        date_header = heading.find_down("Date", alignment="left", max_alignment_error=2)
        if date_header is None:
            yield Result.err(ParseStatementError.missing_label(
                'Missing "Date" table header label',
                page_number=heading.page_number,
                search_from_text=heading.text,
                search_direction=SearchDirection.DOWN,
            ))
            continue

        first_date = date_header.find_down(MM_DD_YYYY_PATTERN, alignment="left", max_gap=30, max_alignment_error=2)
        if first_date is None:
            yield Result.err(ParseStatementError.missing_value(
                "Missing first date value",
                page_number=date_header.page_number,
                search_from_text=date_header.text,
                search_direction=SearchDirection.DOWN,
            ))
            continue

        date_value: Optional[PageTextLocation] = first_date.page_location
        while date_value is not None:
            yield parse_transaction_row(date_value)
            date_value = date_value.find_down(MM_DD_YYYY_PATTERN, alignment="left", max_gap=30)


def parse_statement(statement: Statement) -> Iterator[Result]:
    """
    Parse an Apple Card statement.

    Yields the summary, then every transaction. If the summary was read, the
    transactions are checked against its charges, credits and returns total and
    its daily cash total.
    """
    summary = parse_statement_summary(statement)
    yield summary
    if summary.is_ok:
        logger.info(f"Apple Card statement {summary.value.start_date} to {summary.value.closing_date}")

    computed = 0
    daily_cash = 0
    for result in parse_transactions(statement):
        if result.is_ok:
            computed += result.value.amount
            daily_cash += result.value.daily_cash_amount
        else:
            logger.warning(f"Skipping transaction row: {result.error.describe()}")
        yield result

    if summary.is_ok and computed != summary.value.total_transactions:
        yield Result.err(InvalidStatementSummaryError(
            "Total charges, credits, and returns do not match computed value",
            summary.value, summary.value.total_transactions, computed,
            page_number=_label_page(statement, "total_transactions"),
        ))

    if summary.is_ok and daily_cash != summary.value.total_daily_cash:
        yield Result.err(InvalidStatementSummaryError(
            "Total Daily Cash does not match computed value",
            summary.value, summary.value.total_daily_cash, daily_cash,
            page_number=_label_page(statement, "total_daily_cash"),
        ))
