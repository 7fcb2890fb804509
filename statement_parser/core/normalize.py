"""
Text and date normalization for values read off statements.
"""
import re
from datetime import date, datetime
from typing import Optional, Sequence
import logging

from ..models.schema import TransactionDescription

logger = logging.getLogger(__name__)

# Payment processor and wallet prefixes that banks put in front of merchant names.
PROCESSOR_PREFIX_PATTERN = re.compile(
    r"^\s*(?:AplPay|SQ|DD|TST|EB|BLS|BLT|PAR|CNP|TOTEM|PROPAY|ACT|SP|PP|PAYPAL|IN|PB|BT|PAY|LGC|CKE|FH|\*)?"
    r"(?:\b|\s)\s*(.*)$",
    re.IGNORECASE | re.DOTALL,
)
DOORDASH_PATTERN = re.compile(r"^DOORDASH(?:\s*\*)?\s*(.*)$", re.DOTALL)
GITHUB_PATTERN = re.compile(r"^GITHUB\s*(.*)$", re.DOTALL)
VENMO_PATTERN = re.compile(r"^VENMO\s*(.*)$", re.DOTALL)
CASH_APP_PATTERN = re.compile(r"^(?:.+\n)?CASH\s*APP\s*(?:\*)?(.*)$", re.DOTALL)
AMAZON_PATTERN = re.compile(
    r"(?:amazon\.com|amzn\.com|zappos\.com|amazon prime|kindle svcs|prime video)\b",
    re.IGNORECASE,
)


def normalize_text(value: str) -> str:
    """
    Normalize text by trimming and collapsing whitespace.

    Args:
        value: Raw text string

    Returns:
        Cleaned text string
    """
    if not value:
        return ""

    return re.sub(r'\s+', ' ', value.strip())


def normalize_date(value: str, formats: Sequence[str]) -> Optional[date]:
    """
    Parse a date printed in one of several formats.

    Args:
        value: Raw date string
        formats: strptime formats to try, in order

    Returns:
        Date object or None if no format matches
    """
    if not value or not value.strip():
        return None

    cleaned = normalize_text(value)

    for format_str in formats:
        try:
            return datetime.strptime(cleaned, format_str).date()
        except ValueError:
            continue

    logger.debug(f"Could not parse date {value!r} with formats {list(formats)}")
    return None


def month_day(value: str, year: int) -> Optional[date]:
    """
    Build a date from a "M/D" string and a year.

    Args:
        value: Raw "M/D" string, e.g. "1/05"
        year: Year to use

    Returns:
        Date object or None for an impossible date
    """
    match = re.match(r'^\s*(\d{1,2})/(\d{1,2})\s*$', value)
    if not match:
        return None

    try:
        return date(year, int(match.group(1)), int(match.group(2)))
    except ValueError:
        logger.debug(f"Invalid month/day {value!r} for year {year}")
        return None


def tidy_bank_description(original: str) -> TransactionDescription:
    """
    Clean up a bank transaction description.

    Strips payment processor prefixes (e.g. "SQ *", "AplPay") and flags
    well-known vendors such as DoorDash and Amazon.

    Args:
        original: Description as printed on the statement

    Returns:
        TransactionDescription with the tidied text and vendor flags
    """
    text = original
    while True:
        match = PROCESSOR_PREFIX_PATTERN.match(text)
        if not match or match.group(1) == text:
            break
        text = match.group(1).strip()

    result = TransactionDescription(text=text)

    doordash = DOORDASH_PATTERN.match(result.text)
    if doordash and doordash.group(1):
        result.doordash = True
        result.text = doordash.group(1)

    if GITHUB_PATTERN.match(result.text):
        result.github = True

    if VENMO_PATTERN.match(result.text):
        result.venmo = True

    cash_app = CASH_APP_PATTERN.match(result.text)
    if cash_app and cash_app.group(1):
        result.cash_app = True
        result.text = cash_app.group(1)

    if AMAZON_PATTERN.search(result.text):
        result.amazon = True

    return result
