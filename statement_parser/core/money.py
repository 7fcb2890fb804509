"""
Money parsing for USD amounts printed on statements.
"""
import re
import logging

from .result import Result

logger = logging.getLogger(__name__)

MONEY_PATTERN = re.compile(r"^\s*([-+])?\s*(\(\s*)?\$?([\d,]+)(?:\.(\d{2}))?(\s*\))?\s*$")


class ParseMoneyError(ValueError):
    """Raised (or returned) when a string is not a valid money amount."""


def parse_amount(value: str) -> Result[int, ParseMoneyError]:
    """
    Parse a money string into cents. Assumes USD.

    Parentheses denote a negative amount, as does a leading minus sign. A string
    may not use both.

    Args:
        value: Raw money string, e.g. "$1,234.56" or "($12.00)"

    Returns:
        Ok with the signed number of cents, or err with a ParseMoneyError
    """
    match = MONEY_PATTERN.match(value)
    digits = match.group(3).replace(",", "") if match else ""
    if not digits:
        return Result.err(ParseMoneyError(f"Money does not match expected format: {value}"))

    sign, open_paren, _, cents, close_paren = match.groups()

    if bool(open_paren) != bool(close_paren):
        return Result.err(ParseMoneyError(f"Money has mismatched parentheses: {value}"))

    if sign and open_paren:
        return Result.err(ParseMoneyError(f"Money cannot have both a sign and parentheses: {value}"))

    amount = int(digits) * 100 + (int(cents) if cents else 0)
    is_negative = bool(open_paren) or sign == "-"
    return Result.ok(-amount if is_negative else amount)


def format_cents(cents: int) -> str:
    """Render cents as a dollar string, e.g. -123456 -> "-$1,234.56"."""
    sign = "-" if cents < 0 else ""
    dollars, remainder = divmod(abs(cents), 100)
    return f"{sign}${dollars:,}.{remainder:02d}"
