"""
Shared fixtures for the statement parser tests.
"""
import pytest

from .builders import amex_statement, apple_card_statement, schwab_statement, statement, text
from ..core.page import Page


@pytest.fixture
def schwab():
    return schwab_statement()


@pytest.fixture
def amex():
    return amex_statement()


@pytest.fixture
def apple_card():
    return apple_card_statement()


@pytest.fixture
def grid_page():
    """
    A small two-column table:

        Name      Amount
        Alpha       1.00
        Beta       22.00
        Gamma     333.00
    """
    return Page(1, [
        text("Name", 40, 700, 40),
        text("Amount", 200, 700, 40),
        text("Alpha", 40, 686, 40),
        text("1.00", 220, 686, 20),
        text("Beta", 40, 672, 40),
        text("22.00", 215, 672, 25),
        text("Gamma", 40, 658, 40),
        text("333.00", 210, 658, 30),
    ])


@pytest.fixture
def two_page_column():
    """A left-aligned column that continues from the bottom of page 1 to page 2."""
    return statement(
        [text("Header", 40, 700), text("row 1", 40, 60), text("row 2", 40, 46)],
        [text("Continued", 300, 760), text("row 3", 40, 740), text("row 4", 40, 726)],
    )
