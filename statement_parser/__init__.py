"""
Statement Parser

Turns the positioned text of PDF bank and card statements into statement
summaries and transactions by searching the page layout: labels are located,
values are read from the text next to or under them, and parsed totals are
reconciled against the totals the statement prints.
"""

__version__ = "1.0.0"

from .core.page import PageText, Page, Statement
from .core.errors import ErrorKind, ParseStatementError
from .core.loader import load_statement, load_fixture, load_pdf
from .core.runner import parse_statement, parse_file, SourceResults
from .core.detectors import detect_source
from .models.schema import ImportedTransaction, ImportedTransactionKind, StatementMetadata

__all__ = [
    "PageText",
    "Page",
    "Statement",
    "ErrorKind",
    "ParseStatementError",
    "load_statement",
    "load_fixture",
    "load_pdf",
    "parse_statement",
    "parse_file",
    "SourceResults",
    "detect_source",
    "ImportedTransaction",
    "ImportedTransactionKind",
    "StatementMetadata",
]
