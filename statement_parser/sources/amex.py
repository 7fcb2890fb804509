"""
American Express card statements.

The summary (closing date, account, balances) sits on the first page. Payments
and credits are listed under "Payments and Credits", charges under "New
Charges", where the charge table may run over several pages.
"""
import re
import math
import datetime
import logging
from typing import Iterator, List, Optional

from ..core.combinators import OnceParser
from ..core.errors import InvalidStatementSummaryError, ParseStatementError, SearchDirection
from ..core.money import parse_amount
from ..core.navigation import StatementTextLocation
from ..core.normalize import normalize_date
from ..core.page import Page, Statement
from ..core.result import Result
from ..models.schema import ImportedTransaction, ImportedTransactionKind, StatementMetadata

logger = logging.getLogger(__name__)

SOURCE_ID = "amex"

DATE_FORMATS = ["%m/%d/%y"]
CLOSING_DATE_PATTERN = re.compile(r"^\d+/\d+/\d+$")
ROW_DATE_PATTERN = re.compile(r"^\d\d/\d\d/\d\d")
WORD_PATTERN = re.compile(r"\w+")
LONG_TEXT_PATTERN = re.compile(r".{4,}")
DIGITS_PATTERN = re.compile(r"\d+")
ACCOUNT_ENDING_PATTERN = re.compile(r"Account Ending")
ACCOUNT_NUMBER_PATTERN = re.compile(r"[-\d]+")
CENTS_PATTERN = re.compile(r"\d+\.\d{2}")
TOTAL_NEW_CHARGES_PATTERN = re.compile(r"Total\s+New\s+Charges")

SUMMARY_LABELS = [
    re.compile(r"Previous Balance"),
    re.compile(r"Payments/Credits"),
    re.compile(r"New Charges"),
    re.compile(r"Fees"),
    re.compile(r"Interest Charged"),
    re.compile(r"New Balance"),
    re.compile(r"Minimum Payment Due"),
    re.compile(r"Credit Limit"),
    re.compile(r"Available Credit"),
    re.compile(r"Cash Advance Limit"),
    re.compile(r"Available Cash"),
]


class AmexStatementSummary(StatementMetadata):
    """Account summary box, amounts in cents."""
    account_holder: str
    previous_balance: int
    payments_and_credits: int
    new_charges: int
    fees: int
    interest_charged: int
    new_balance: int
    minimum_payment_due: int
    credit_limit: int
    available_credit: int
    cash_advance_limit: int
    available_cash: int


def _parse_date(value: str) -> Optional[datetime.date]:
    return normalize_date(value.strip().rstrip("*"), DATE_FORMATS)


def parse_statement_summary(page: Page) -> Result[AmexStatementSummary, ParseStatementError]:
    """
    Read the account summary from a page.

    Args:
        page: Page to search

    Returns:
        Ok with the summary, or the first label or value that could not be read
    """
    closing_label = page.navigator.find("Closing Date")
    if closing_label is None:
        return Result.err(ParseStatementError.missing_label(
            '"Closing Date" label not found', page_number=page.page_number
        ))

    closing_value = closing_label.find_right(CLOSING_DATE_PATTERN)
    if closing_value is None:
        return Result.err(ParseStatementError.missing_value(
            "Closing date not found",
            page_number=page.page_number,
            search_from_text=closing_label.text,
            search_direction=SearchDirection.RIGHT,
        ))

    closing_date = _parse_date(closing_value.text.text)
    if closing_date is None:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid closing date: {closing_value.text.text}",
            page_number=page.page_number,
            content_text=closing_value.text,
            search_from_text=closing_label.text,
            search_direction=SearchDirection.RIGHT,
        ))

    holder_label = closing_label.find_up(WORD_PATTERN, alignment="left", max_gap=10)
    if holder_label is None:
        return Result.err(ParseStatementError.missing_value(
            "Account holder not found",
            page_number=page.page_number,
            search_from_text=closing_label.text,
            search_direction=SearchDirection.UP,
        ))

    account_label = closing_label.find_down(ACCOUNT_ENDING_PATTERN, alignment="left")
    account_value = account_label.find_right(ACCOUNT_NUMBER_PATTERN) if account_label else None
    if account_value is None:
        return Result.err(ParseStatementError.missing_value(
            "Account number not found",
            page_number=page.page_number,
            search_from_text=(account_label or closing_label).text,
            search_direction=SearchDirection.RIGHT if account_label else SearchDirection.DOWN,
        ))

    previous_label = page.navigator.find(SUMMARY_LABELS[0])
    entries = previous_label.find_table(
        SUMMARY_LABELS, [DIGITS_PATTERN] * len(SUMMARY_LABELS),
        label_alignment="left", value_alignment="right",
    ) if previous_label else None
    if entries is None:
        return Result.err(ParseStatementError.missing_value(
            "Account summary table not found",
            page_number=page.page_number,
            search_from_text=previous_label.text if previous_label else None,
            search_direction=SearchDirection.DOWN if previous_label else None,
        ))

    amounts = Result.all(parse_amount(value.text.text) for _, value in entries)
    if amounts.is_err:
        return Result.err(ParseStatementError.invalid_value(
            "Failed to parse account summary",
            page_number=page.page_number,
            cause=amounts.error,
        ))

    (previous_balance, payments_and_credits, new_charges, fees, interest_charged, new_balance,
     minimum_payment_due, credit_limit, available_credit, cash_advance_limit, available_cash) = amounts.value

    return Result.ok(AmexStatementSummary(
        closing_date=closing_date,
        account=account_value.text.text.strip(),
        account_holder=holder_label.text.text.strip(),
        previous_balance=previous_balance,
        payments_and_credits=payments_and_credits,
        new_charges=new_charges,
        fees=fees,
        interest_charged=interest_charged,
        new_balance=new_balance,
        minimum_payment_due=minimum_payment_due,
        credit_limit=credit_limit,
        available_credit=available_credit,
        cash_advance_limit=cash_advance_limit,
        available_cash=available_cash,
    ))


def _before(location: Optional[StatementTextLocation], end: StatementTextLocation) -> bool:
    return location is not None and location.is_above(end)


def parse_credit_row(date_value: StatementTextLocation, end: StatementTextLocation,
                     kind: ImportedTransactionKind) -> Result[ImportedTransaction, ParseStatementError]:
    """Parse one payment or credit row: date, card member, description lines, amount."""
    entry_date = _parse_date(date_value.text.text)
    if entry_date is None:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid date: {date_value.text.text}",
            page_number=date_value.page_number,
            content_text=date_value.text,
        ))

    card_value = date_value.find_right(WORD_PATTERN)
    if not _before(card_value, end):
        return Result.err(ParseStatementError.missing_value(
            "Card member not found",
            page_number=date_value.page_number,
            search_from_text=date_value.text,
            search_direction=SearchDirection.RIGHT,
        ))

    description_start = card_value.find_right(WORD_PATTERN)
    if not _before(description_start, end):
        return Result.err(ParseStatementError.missing_value(
            "Description not found",
            page_number=card_value.page_number,
            search_from_text=card_value.text,
            search_direction=SearchDirection.RIGHT,
        ))

    lines = [description_start]
    while True:
        line = lines[-1].find_down(WORD_PATTERN, alignment="left", max_gap=10)
        if not _before(line, end) or line in lines:
            break
        lines.append(line)

    amount_value = description_start.find_right(CENTS_PATTERN)
    if not _before(amount_value, end):
        return Result.err(ParseStatementError.missing_value(
            "Amount not found",
            page_number=description_start.page_number,
            search_from_text=description_start.text,
            search_direction=SearchDirection.RIGHT,
        ))

    amount = parse_amount(amount_value.text.text)
    if amount.is_err:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid amount: {amount_value.text.text}",
            page_number=amount_value.page_number,
            content_text=amount_value.text,
            search_from_text=description_start.text,
            search_direction=SearchDirection.RIGHT,
            cause=amount.error,
        ))

    return Result.ok(ImportedTransaction(
        kind=kind,
        date=entry_date,
        amount=-amount.value,
        statement_description=" ".join(line.text.text.strip() for line in lines),
        page_number=date_value.page_number,
    ))


def parse_credit_rows(header: StatementTextLocation, end: StatementTextLocation,
                      kind: ImportedTransactionKind) -> Iterator[Result[ImportedTransaction, ParseStatementError]]:
    """Parse the dated rows under a sub-header until `end`."""
    previous = header
    while True:
        date_value = previous.find_down(ROW_DATE_PATTERN, alignment="left")
        if not _before(date_value, end) or date_value == previous:
            break
        previous = date_value
        yield parse_credit_row(date_value, end, kind)


def parse_credits(section_header: StatementTextLocation, next_section_header: StatementTextLocation,
                  summary: Optional[AmexStatementSummary] = None) -> Iterator[Result]:
    """
    Parse the payments and credits detail and check it against its stated total.

    Args:
        section_header: The "Payments and Credits" heading
        next_section_header: The "New Charges" heading, which ends the section
        summary: Statement summary, attached to reconciliation errors

    Yields:
        One result per row, then a reconciliation error if the rows do not add up
    """
    total_label = section_header.find_after("Total Payments and Credits")
    if not _before(total_label, next_section_header):
        yield Result.err(ParseStatementError.missing_label(
            '"Total Payments and Credits" label not found',
            page_number=section_header.page_number,
            search_from_text=section_header.text,
            search_direction=SearchDirection.DOWN,
        ))
        return

    total_value = total_label.find_right(DIGITS_PATTERN)
    total = parse_amount(total_value.text.text) if total_value else None
    if total is None or total.is_err:
        yield Result.err(ParseStatementError.invalid_value(
            "Total payments and credits not readable",
            page_number=total_label.page_number,
            content_text=total_value.text if total_value else None,
            search_from_text=total_label.text,
            search_direction=SearchDirection.RIGHT,
            cause=total.error if total is not None else None,
        ))
        return

    payments_header = total_label.find_down("Payments", alignment="left")
    credits_header = total_label.find_down("Credits", alignment="left")
    if not _before(payments_header, next_section_header):
        payments_header = None
    if not _before(credits_header, next_section_header):
        credits_header = None

    computed = 0
    sections = []
    if payments_header is not None:
        sections.append((payments_header, credits_header or next_section_header, ImportedTransactionKind.PAYMENT))
    if credits_header is not None:
        sections.append((credits_header, next_section_header, ImportedTransactionKind.CREDIT))

    for header, end, kind in sections:
        for result in parse_credit_rows(header, end, kind):
            if result.is_ok:
                computed -= result.value.amount
            yield result

    stated = total.value
    if computed != stated:
        yield Result.err(InvalidStatementSummaryError(
            "Total payments and credits do not match computed value",
            summary, stated, computed,
            page_number=total_label.page_number,
            content_text=total_value.text,
        ))


def parse_charge_row(amount_value: StatementTextLocation, end: StatementTextLocation) -> Result[ImportedTransaction, ParseStatementError]:
    """
    Parse a charge row, reading right to left from its amount: state, location, description, date.

    A printed negative amount is a refund and becomes a positive credit.
    """
    amount = parse_amount(amount_value.text.text)
    if amount.is_err:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid amount: {amount_value.text.text}",
            page_number=amount_value.page_number,
            content_text=amount_value.text,
            cause=amount.error,
        ))

    cells = [amount_value]
    for name, pattern in (("State", WORD_PATTERN), ("Location", LONG_TEXT_PATTERN),
                          ("Description", LONG_TEXT_PATTERN), ("Date", ROW_DATE_PATTERN)):
        cell = cells[-1].find_left(pattern)
        if not _before(cell, end):
            return Result.err(ParseStatementError.missing_value(
                f"{name} not found",
                page_number=cells[-1].page_number,
                search_from_text=cells[-1].text,
                search_direction=SearchDirection.LEFT,
            ))
        cells.append(cell)

    _, state, location, description, date_value = cells
    entry_date = _parse_date(date_value.text.text)
    if entry_date is None:
        return Result.err(ParseStatementError.invalid_value(
            f"Invalid date: {date_value.text.text}",
            page_number=date_value.page_number,
            content_text=date_value.text,
            search_from_text=description.text,
            search_direction=SearchDirection.LEFT,
        ))

    logger.debug(f"Charge at {location.text.text.strip()}, {state.text.text.strip()}")
    return Result.ok(ImportedTransaction(
        kind=ImportedTransactionKind.CREDIT if amount.value < 0 else ImportedTransactionKind.CHARGE,
        date=entry_date,
        amount=-amount.value,
        statement_description=description.text.text.strip(),
        page_number=date_value.page_number,
    ))


def parse_new_charges(section_header: StatementTextLocation, next_section_header: StatementTextLocation,
                      summary: Optional[AmexStatementSummary] = None) -> Iterator[Result]:
    """
    Parse every charge under "New Charges" and check them against the stated total.

    The charge table repeats its "Amount" header on each page it spans; each
    header's column is read down to the bottom of its page. Row amounts and the
    total are compared as printed; a negative total is an invalid value.
    """
    total_label = section_header.find_after(TOTAL_NEW_CHARGES_PATTERN)
    if not _before(total_label, next_section_header):
        yield Result.err(ParseStatementError.missing_label(
            '"Total New Charges" label not found',
            page_number=section_header.page_number,
            search_from_text=section_header.text,
            search_direction=SearchDirection.DOWN,
        ))
        return

    total_value = total_label.find_right(DIGITS_PATTERN)
    total = parse_amount(total_value.text.text) if total_value else None
    if total is None or total.is_err:
        yield Result.err(ParseStatementError.invalid_value(
            "Total new charges not readable",
            page_number=total_label.page_number,
            content_text=total_value.text if total_value else None,
            search_from_text=total_label.text,
            search_direction=SearchDirection.RIGHT,
            cause=total.error if total is not None else None,
        ))
        return

    computed = 0
    seen: List[StatementTextLocation] = []
    header = total_value
    while True:
        header = header.find_down("Amount", alignment="right")
        if not _before(header, next_section_header) or header in seen:
            break
        seen.append(header)

        amount_value = header
        while True:
            amount_value = amount_value.find_down(DIGITS_PATTERN, alignment="right", max_gap=math.inf)
            if not _before(amount_value, next_section_header):
                break
            result = parse_charge_row(amount_value, next_section_header)
            if result.is_ok:
                computed -= result.value.amount
            else:
                logger.warning(f"Skipping charge row: {result.error.describe()}")
            yield result

    stated = total.value
    if total.value < 0:
        yield Result.err(ParseStatementError.invalid_value(
            f"Total new charges cannot be negative: {total_value.text.text}",
            page_number=total_value.page_number,
            content_text=total_value.text,
            search_from_text=total_label.text,
            search_direction=SearchDirection.RIGHT,
        ))
    elif computed != stated:
        yield Result.err(InvalidStatementSummaryError(
            "Total new charges do not match computed value",
            summary, stated, computed,
            page_number=total_label.page_number,
            content_text=total_value.text,
        ))


def parse_statement(statement: Statement) -> Iterator[Result]:
    """
    Parse an American Express statement.

    Yields the summary, then payments and credits (positive amounts), then new
    charges (negative amounts), with reconciliation errors after each section.
    """
    summary_parser = OnceParser(parse_statement_summary)
    misses = []
    for page in statement.pages:
        misses.extend(result for result in summary_parser.parse_page(page) if result.is_err)
        if summary_parser.done:
            break

    summary = summary_parser.parsed
    if summary is None:
        yield misses[0] if misses else Result.err(ParseStatementError.missing_label("Statement has no pages"))
        return

    logger.info(f"Amex statement for {summary.account_holder} closing {summary.closing_date}")
    yield Result.ok(summary)

    navigator = statement.navigator
    credits_header = navigator.find("Payments and Credits")
    if credits_header is None:
        yield Result.err(ParseStatementError.missing_label('"Payments and Credits" section not found'))
        return

    charges_header = credits_header.find_down("New Charges", alignment="left")
    if charges_header is None:
        yield Result.err(ParseStatementError.missing_label(
            '"New Charges" section not found',
            page_number=credits_header.page_number,
            search_from_text=credits_header.text,
            search_direction=SearchDirection.DOWN,
        ))
        return

    fees_header = charges_header.find_down("Fees", alignment="left")
    if fees_header is None:
        yield Result.err(ParseStatementError.missing_label(
            '"Fees" section not found',
            page_number=charges_header.page_number,
            search_from_text=charges_header.text,
            search_direction=SearchDirection.DOWN,
        ))
        return

    yield from parse_credits(credits_header, charges_header, summary)
    yield from parse_new_charges(charges_header, fees_header, summary)
