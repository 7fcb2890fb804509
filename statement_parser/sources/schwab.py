"""
Schwab checking statements.

Expects the account identity and the statement period at the top of the first
page, a summary table of balances under the account name, and an "Activity"
table on one or more consecutive pages. Activity totals are reconciled against
the summary table.
"""
import re
import datetime
import logging
from dataclasses import dataclass, field, replace
from typing import Iterator, List, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from ..core.combinators import AccumulationParser, OnceParser
from ..core.errors import (
    InvalidStatementSummaryError,
    InvalidTransactionError,
    ParseStatementError,
    SearchDirection,
)
from ..core.money import format_cents, parse_amount
from ..core.navigation import PageTextLocation, not_empty
from ..core.normalize import normalize_date
from ..core.page import Page, Statement
from ..core.result import Result
from ..models.schema import (
    ImportedTransaction,
    ImportedTransactionKind,
    StatementMetadata,
    StatementPeriod,
)

logger = logging.getLogger(__name__)

SOURCE_ID = "schwab"

ACCOUNT_NUMBER_PATTERN = re.compile(r"Account Number: (.+)")
ACCOUNT_NAME_PATTERN = re.compile(r"\w{5,}")
DIGITS_PATTERN = re.compile(r"\d+")
ONE_LINE_PERIOD_PATTERN = re.compile(r"^(\w+) (\d+)-(\d+), (\d+)$")
PERIOD_START_PATTERN = re.compile(r"^(\w+) (\d+), (\d+) to$")
PERIOD_END_PATTERN = re.compile(r"^(\w+) (\d+), (\d+)$")
PERIOD_DATE_FORMATS = ["%B %d, %Y", "%b %d, %Y"]

SUMMARY_LABELS = [
    "Beginning Balance",
    "Deposits and Credits",
    "Interest Paid",
    "Withdrawals and Other Debits",
    "Other Fees",
    "Ending Balance",
]

ACTIVITY_PATTERN = re.compile(r"^\s*Activity\s*$")
DATE_HEADER_PATTERN = re.compile(r"^\s*Date\s*$")
POSTED_HEADER_PATTERN = re.compile(r"^\s*Posted\s*$")
DESCRIPTION_HEADER_PATTERN = re.compile(r"^\s*Description\s*$")
DEBITS_HEADER_PATTERN = re.compile(r"^\s*Debits\s*$")
CREDITS_HEADER_PATTERN = re.compile(r"^\s*Credits\s*$")
BALANCE_HEADER_PATTERN = re.compile(r"^\s*Balance\s*$")
ENTRY_DATE_PATTERN = re.compile(r"^(\d+)/(\d+)$")


class SchwabStatementMetadata(StatementMetadata):
    period: StatementPeriod


class SchwabStatementSummary(SchwabStatementMetadata):
    """Statement identity plus the balances from the summary table, in cents."""
    beginning_balance: int
    deposits_and_credits: int
    interest_paid: int
    withdrawals_and_debits: int
    other_fees: int
    ending_balance: int

    @property
    def stated_credits(self) -> int:
        return self.deposits_and_credits + self.interest_paid

    @property
    def stated_debits(self) -> int:
        # Debits are printed either signed or in parentheses; they always reduce the balance.
        return -(abs(self.withdrawals_and_debits) + abs(self.other_fees))


class ActivityEntry(BaseModel):
    """One row of the activity table."""
    model_config = ConfigDict(frozen=True)

    date: datetime.date
    type: str
    description: Optional[str] = None
    debit: Optional[int] = None
    credit: Optional[int] = None
    balance: int
    page_number: int

    @property
    def statement_description(self) -> str:
        return f"{self.type} {self.description}" if self.description else self.type


class ActivityTable(NamedTuple):
    """Header cells of an activity table."""
    activity: PageTextLocation
    date: PageTextLocation
    posted: PageTextLocation
    description: PageTextLocation
    debits: PageTextLocation
    credits: PageTextLocation
    balance: PageTextLocation


@dataclass(frozen=True)
class ActivityTotals:
    """Running totals of parsed activity, in cents."""
    credits: int = 0
    debits: int = 0
    pages: Tuple[int, ...] = field(default_factory=tuple)


def parse_statement_period(first_line: str, second_line: Optional[str] = None) -> Result[StatementPeriod, ParseStatementError]:
    """
    Parse the statement period printed under the "Statement Period" label.

    Two layouts exist: "January 1-31, 2024" on one line, or
    "December 1, 2023 to" / "January 5, 2024" over two lines.

    Args:
        first_line: First line under the label
        second_line: Line below it, if any

    Returns:
        Ok with the period, or an InvalidValue error
    """
    first_line = first_line.strip()
    one_line = ONE_LINE_PERIOD_PATTERN.match(first_line)

    if one_line:
        month, start_day, end_day, year = one_line.groups()
        start = normalize_date(f"{month} {start_day}, {year}", PERIOD_DATE_FORMATS)
        end = normalize_date(f"{month} {end_day}, {year}", PERIOD_DATE_FORMATS)
    else:
        start_match = PERIOD_START_PATTERN.match(first_line)
        if not start_match:
            return Result.err(ParseStatementError.invalid_value(
                f"Statement period line does not match expected format: {first_line}"
            ))
        if second_line is None:
            return Result.err(ParseStatementError.missing_value(
                f"Statement period end not found after: {first_line}"
            ))
        end_match = PERIOD_END_PATTERN.match(second_line.strip())
        if not end_match:
            return Result.err(ParseStatementError.invalid_value(
                f"Statement period line does not match expected format: {second_line}"
            ))
        start = normalize_date("{} {}, {}".format(*start_match.groups()), PERIOD_DATE_FORMATS)
        end = normalize_date("{} {}, {}".format(*end_match.groups()), PERIOD_DATE_FORMATS)

    if start is None or end is None or end < start:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid statement period: {first_line} {second_line or ''}".strip()
        ))

    return Result.ok(StatementPeriod(start=start, end=end))


def _find_account_labels(page: Page) -> Result[Tuple[PageTextLocation, PageTextLocation], ParseStatementError]:
    account_label = page.navigator.find(ACCOUNT_NUMBER_PATTERN)
    if account_label is None:
        return Result.err(ParseStatementError.missing_label(
            '"Account Number" label not found', page_number=page.page_number
        ))

    name_label = account_label.find_left(ACCOUNT_NAME_PATTERN)
    if name_label is None:
        return Result.err(ParseStatementError.missing_value(
            "Account name not found",
            page_number=page.page_number,
            search_from_text=account_label.text,
            search_direction=SearchDirection.LEFT,
        ))

    return Result.ok((account_label, name_label))


def parse_statement_identity(page: Page) -> Result[SchwabStatementMetadata, ParseStatementError]:
    """
    Find the account number, account name and statement period on a page.

    Args:
        page: Page to search

    Returns:
        Ok with the statement metadata, or the first thing that could not be found
    """
    labels = _find_account_labels(page)
    if labels.is_err:
        return labels
    account_label, name_label = labels.value

    period_label = account_label.find_before("Statement Period") or page.navigator.find("Statement Period")
    if period_label is None:
        return Result.err(ParseStatementError.missing_label(
            '"Statement Period" label not found', page_number=page.page_number
        ))

    first_line = period_label.find_down(DIGITS_PATTERN, alignment="left", max_gap=10)
    if first_line is None:
        return Result.err(ParseStatementError.missing_value(
            "Statement period not found",
            page_number=page.page_number,
            search_from_text=period_label.text,
            search_direction=SearchDirection.DOWN,
        ))
    second_line = first_line.find_down(DIGITS_PATTERN, alignment="left", max_gap=10)

    period = parse_statement_period(first_line.text.text, second_line.text.text if second_line else None)
    if period.is_err:
        error = period.error
        error.page_number = page.page_number
        error.content_text = first_line.text
        return Result.err(error)

    account = ACCOUNT_NUMBER_PATTERN.search(account_label.text.text).group(1).strip()

    return Result.ok(SchwabStatementMetadata(
        closing_date=period.value.end,
        account=account,
        account_name=name_label.text.text.strip(),
        period=period.value,
    ))


def parse_statement_summary(page: Page, identity: SchwabStatementMetadata) -> Result[SchwabStatementSummary, ParseStatementError]:
    """
    Read the balance summary table under the account name.

    Args:
        page: Page the statement identity was found on
        identity: Statement identity from that page

    Returns:
        Ok with the summary, or an error locating or parsing the table
    """
    labels = _find_account_labels(page)
    if labels.is_err:
        return labels
    _, name_label = labels.value

    beginning_label = name_label.find_down("Beginning Balance", alignment="left")
    if beginning_label is None:
        return Result.err(ParseStatementError.missing_label(
            '"Beginning Balance" label not found',
            page_number=page.page_number,
            search_from_text=name_label.text,
            search_direction=SearchDirection.DOWN,
        ))

    entries = beginning_label.find_table(
        SUMMARY_LABELS,
        [DIGITS_PATTERN] * len(SUMMARY_LABELS),
        label_alignment="left",
        value_alignment="right",
        max_gap=20,
    )
    if entries is None:
        return Result.err(ParseStatementError.missing_value(
            "Summary table not found",
            page_number=page.page_number,
            search_from_text=beginning_label.text,
            search_direction=SearchDirection.DOWN,
        ))

    amounts = []
    for label, value in entries:
        amount = parse_amount(value.text.text)
        if amount.is_err:
            return Result.err(ParseStatementError.invalid_value(
                f'Invalid amount for "{label.text.text}"',
                page_number=page.page_number,
                content_text=value.text,
                search_from_text=label.text,
                search_direction=SearchDirection.RIGHT,
                cause=amount.error,
            ))
        amounts.append(amount.value)

    beginning, deposits, interest, withdrawals, fees, ending = amounts
    return Result.ok(SchwabStatementSummary(
        closing_date=identity.closing_date,
        account=identity.account,
        account_name=identity.account_name,
        period=identity.period,
        beginning_balance=beginning,
        deposits_and_credits=deposits,
        interest_paid=interest,
        withdrawals_and_debits=withdrawals,
        other_fees=fees,
        ending_balance=ending,
    ))


def find_activity_table(page: Page) -> Optional[Result[ActivityTable, ParseStatementError]]:
    """
    Locate the headers of the activity table on a page.

    Returns:
        None if the page has no "Activity" section, otherwise Ok with the header
        cells or a MissingLabel error for the first header not found
    """
    activity = page.navigator.find(ACTIVITY_PATTERN)
    if activity is None:
        return None

    steps = [
        ("Date", DATE_HEADER_PATTERN, SearchDirection.DOWN),
        ("Posted", POSTED_HEADER_PATTERN, SearchDirection.DOWN),
        ("Description", DESCRIPTION_HEADER_PATTERN, SearchDirection.RIGHT),
        ("Debits", DEBITS_HEADER_PATTERN, SearchDirection.RIGHT),
        ("Credits", CREDITS_HEADER_PATTERN, SearchDirection.RIGHT),
        ("Balance", BALANCE_HEADER_PATTERN, SearchDirection.RIGHT),
    ]

    headers = [activity]
    for name, pattern, direction in steps:
        previous = headers[-1]
        if direction is SearchDirection.DOWN:
            header = previous.find_down(pattern, alignment="left")
        else:
            header = previous.find_right(pattern)
        if header is None:
            return Result.err(ParseStatementError.missing_label(
                f'Activity header "{name}" not found',
                page_number=page.page_number,
                search_from_text=previous.text,
                search_direction=direction,
            ))
        headers.append(header)

    return Result.ok(ActivityTable(*headers))


def _parse_cell_amount(column: str, cell: Optional[PageTextLocation], date_label: PageTextLocation) -> Result[Optional[int], ParseStatementError]:
    if cell is None:
        return Result.ok(None)
    amount = parse_amount(cell.text.text)
    if amount.is_err:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid amount in column '{column}': {cell.text.text}",
            page_number=cell.page_number,
            content_text=cell.text,
            search_from_text=date_label.text,
            search_direction=SearchDirection.RIGHT,
            cause=amount.error,
        ))
    return amount


def parse_activity_row(table: ActivityTable, date_label: PageTextLocation, period: StatementPeriod) -> Result[ActivityEntry, ParseStatementError]:
    """
    Parse the activity row whose date cell is `date_label`.

    Cells to the right of the date are assigned to columns by lining them up
    with the column headers, so empty columns are simply absent.
    """
    type_cell = debit_cell = credit_cell = balance_cell = None
    seen = []
    cell = date_label.find_right(not_empty)
    while cell is not None and cell not in seen:
        seen.append(cell)
        if cell.text.is_vertically_aligned_with(table.description.text, alignment="left"):
            type_cell = cell
        elif cell.text.is_vertically_aligned_with(table.debits.text, alignment="right"):
            debit_cell = cell
        elif cell.text.is_vertically_aligned_with(table.credits.text, alignment="right"):
            credit_cell = cell
        elif cell.text.is_vertically_aligned_with(table.balance.text, alignment="right"):
            balance_cell = cell
        cell = cell.find_right(not_empty)

    for column, found in (("Description", type_cell), ("Balance", balance_cell)):
        if found is None:
            return Result.err(ParseStatementError.missing_value(
                f"Activity cell '{column}' not found",
                page_number=date_label.page_number,
                search_from_text=date_label.text,
                search_direction=SearchDirection.RIGHT,
            ))

    month, day = (int(part) for part in ENTRY_DATE_PATTERN.match(date_label.text.text.strip()).groups())
    try:
        entry_date = datetime.date(period.year_for(month, day), month, day)
    except ValueError:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid date '{date_label.text.text}'",
            page_number=date_label.page_number,
            content_text=date_label.text,
        ))

    amounts = Result.all([
        _parse_cell_amount("Debits", debit_cell, date_label),
        _parse_cell_amount("Credits", credit_cell, date_label),
        _parse_cell_amount("Balance", balance_cell, date_label),
    ])
    if amounts.is_err:
        return amounts
    debit, credit, balance = amounts.value

    description_cell = type_cell.find_down(not_empty, alignment="left", max_gap=5)

    return Result.ok(ActivityEntry(
        date=entry_date,
        type=type_cell.text.text.strip(),
        description=description_cell.text.text.strip() if description_cell else None,
        debit=debit,
        credit=credit,
        balance=balance,
        page_number=date_label.page_number,
    ))


def parse_activity_entries(table: ActivityTable, period: StatementPeriod) -> Iterator[Result[ActivityEntry, ParseStatementError]]:
    """
    Parse every row of an activity table, walking down the date column.

    A malformed row yields an error and parsing continues with the next row.
    """
    previous = table.posted
    while True:
        date_label = previous.find_down(ENTRY_DATE_PATTERN, alignment="left")
        if date_label is None:
            break
        previous = date_label
        yield parse_activity_row(table, date_label, period)


def _transaction_kind(entry: ActivityEntry) -> ImportedTransactionKind:
    text = entry.statement_description.lower()
    if entry.debit is not None:
        return ImportedTransactionKind.FEE if "fee" in text else ImportedTransactionKind.WITHDRAWAL
    return ImportedTransactionKind.INTEREST if "interest" in text else ImportedTransactionKind.DEPOSIT


def parse_activity_page(page: Page, totals: ActivityTotals, period: StatementPeriod):
    """
    Turn one page of activity into transactions, updating the running totals.

    Rows with neither a debit nor a credit (e.g. "Beginning Balance") are skipped.
    """
    table = find_activity_table(page)
    if table is None:
        logger.debug(f"No activity on page {page.page_number}")
        return totals
    if table.is_err:
        yield table
        return totals

    credits, debits = totals.credits, totals.debits

    for result in parse_activity_entries(table.value, period):
        if result.is_err:
            logger.warning(f"Skipping activity row: {result.error.describe()}")
            yield result
            continue

        entry = result.value
        if entry.debit is None and entry.credit is None:
            logger.debug(f"Skipping informational row {entry.type!r} on page {page.page_number}")
            continue

        if entry.debit is not None and entry.credit is not None:
            yield Result.err(InvalidTransactionError(
                "Transaction cannot be both debit and credit",
                entry,
                page_number=entry.page_number,
            ))
            continue

        if entry.debit is not None:
            amount = -abs(entry.debit)
            debits += amount
        else:
            amount = entry.credit
            credits += amount

        yield Result.ok(ImportedTransaction(
            kind=_transaction_kind(entry),
            date=entry.date,
            amount=amount,
            statement_description=entry.statement_description,
            page_number=entry.page_number,
        ))

    return replace(totals, credits=credits, debits=debits, pages=totals.pages + (page.page_number,))


def reconcile(summary: SchwabStatementSummary, totals: ActivityTotals,
              page_number: Optional[int] = None) -> Iterator[Result[None, ParseStatementError]]:
    """
    Compare parsed activity against the summary table.

    Yields one error per mismatch; amounts must match to the cent.
    """
    if totals.credits != summary.stated_credits:
        yield Result.err(InvalidStatementSummaryError(
            "Credits do not match computed value",
            summary, summary.stated_credits, totals.credits,
            page_number=page_number,
        ))

    if totals.debits != summary.stated_debits:
        yield Result.err(InvalidStatementSummaryError(
            "Debits do not match computed value",
            summary, summary.stated_debits, totals.debits,
            page_number=page_number,
        ))

    computed_ending = summary.beginning_balance + totals.credits + totals.debits
    if computed_ending != summary.ending_balance:
        yield Result.err(InvalidStatementSummaryError(
            "Ending balance does not match the computed value",
            summary, summary.ending_balance, computed_ending,
            page_number=page_number,
        ))

    pages = list(totals.pages)
    if pages and pages != list(range(pages[0], pages[0] + len(pages))):
        yield Result.err(ParseStatementError.invalid_value(
            f"Activity is not on consecutive pages: {pages}",
            page_number=pages[0],
        ))


def parse_statement(statement: Statement) -> Iterator[Result]:
    """
    Parse a Schwab checking statement.

    Yields the statement summary, then one transaction per activity row, then any
    reconciliation errors. If the statement identity cannot be found on any page
    a single error is yielded and nothing else, since activity dates carry no year.
    """
    identity_parser = OnceParser(parse_statement_identity)
    activity_parser = AccumulationParser(parse_activity_page, ActivityTotals())
    summary: Optional[SchwabStatementSummary] = None
    summary_page: Optional[int] = None
    misses: List[Result] = []

    for page in statement.pages:
        if not identity_parser.done:
            misses.extend(result for result in identity_parser.parse_page(page) if result.is_err)
            if not identity_parser.done:
                logger.debug(f"No statement identity on page {page.page_number}")
                continue

            identity = identity_parser.parsed
            summary_result = parse_statement_summary(page, identity)
            yield summary_result
            if summary_result.is_ok:
                summary = summary_result.value
                summary_page = page.page_number
                logger.info(
                    f"Schwab statement {identity.account} for {identity.period.start} to {identity.period.end}, "
                    f"ending balance {format_cents(summary.ending_balance)}"
                )
            else:
                logger.warning(f"Summary not parsed: {summary_result.error.describe()}")
                yield Result.ok(identity)

        yield from activity_parser.parse_page(page, identity_parser.parsed.period)

    if not identity_parser.done:
        yield misses[0] if misses else Result.err(ParseStatementError.missing_label("Statement has no pages"))
        return

    if summary is not None:
        for result in reconcile(summary, activity_parser.parsed, summary_page):
            logger.warning(f"Reconciliation failed: {result.error.describe()}")
            yield result
