"""
End-to-end parsing orchestration.
"""
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Union
import logging

from pydantic import BaseModel

from .detectors import SourceDetector
from .errors import ErrorKind, ParseStatementError
from .loader import load_statement
from .page import Statement
from .result import Result
from ..models.schema import ImportedTransaction, ParseErrorRecord, ParseReport, SourceReport, StatementMetadata
from ..sources import amex, apple_card, schwab

logger = logging.getLogger(__name__)

SOURCES: Dict[str, Callable[[Statement], Iterator[Result]]] = {
    schwab.SOURCE_ID: schwab.parse_statement,
    amex.SOURCE_ID: amex.parse_statement,
    apple_card.SOURCE_ID: apple_card.parse_statement,
}


class SourceResults:
    """Everything one source pipeline yielded for a statement, in order."""

    def __init__(self, source: str, results: List[Result]):
        self.source = source
        self.results = results

    @property
    def transactions(self) -> List[ImportedTransaction]:
        return [r.value for r in self.results if r.is_ok and isinstance(r.value, ImportedTransaction)]

    @property
    def metadata(self) -> List[StatementMetadata]:
        return [r.value for r in self.results if r.is_ok and isinstance(r.value, StatementMetadata)]

    @property
    def errors(self) -> List[Exception]:
        return [r.error for r in self.results if r.is_err]

    def __repr__(self):
        return (
            f"SourceResults({self.source!r}, transactions={len(self.transactions)}, "
            f"errors={len(self.errors)})"
        )


def run_source(statement: Statement, source: str) -> SourceResults:
    """
    Run one source pipeline over a statement.

    Raises:
        ValueError: If the source is unknown
    """
    parser = SOURCES.get(source)
    if parser is None:
        raise ValueError(f"Unknown source: {source}. Available: {', '.join(SOURCES)}")

    logger.debug(f"Running source {source} over {len(statement.pages)} pages")
    results = SourceResults(source, list(parser(statement)))
    logger.info(f"{source}: {len(results.transactions)} transactions, {len(results.errors)} errors")
    return results


def parse_statement(statement: Statement, sources: Optional[Iterable[str]] = None,
                    detector: Optional[SourceDetector] = None) -> List[SourceResults]:
    """
    Parse a statement with the given sources.

    Args:
        statement: Statement to parse
        sources: Source IDs to run; detected from the templates when omitted
        detector: Detector to use for detection

    Returns:
        One SourceResults per source run. If no source is given and none is
        detected, every source is run.
    """
    if sources is None:
        detected = (detector or SourceDetector()).detect_source(statement)
        if detected is None:
            logger.warning("No source detected, trying every source")
            sources = list(SOURCES)
        else:
            sources = [detected]

    return [run_source(statement, source) for source in sources]


def error_record(error: Exception) -> ParseErrorRecord:
    if isinstance(error, ParseStatementError):
        return ParseErrorRecord(**error.to_dict())
    return ParseErrorRecord(kind=ErrorKind.INVALID_VALUE.value, type=type(error).__name__, message=str(error))


def _dump(value: BaseModel) -> dict:
    data = value.model_dump(mode="json")
    data["type"] = type(value).__name__
    return data


def build_report(file: Union[str, Path], results: Iterable[SourceResults]) -> ParseReport:
    """Flatten source results into the JSON report model."""
    return ParseReport(
        file=str(file),
        sources=[
            SourceReport(
                source=source_results.source,
                metadata=[_dump(metadata) for metadata in source_results.metadata],
                transactions=source_results.transactions,
                errors=[error_record(error) for error in source_results.errors],
            )
            for source_results in results
        ],
    )


def parse_file(path: Union[str, Path], source: Optional[str] = None) -> ParseReport:
    """
    Parse a PDF statement or a fixture file.

    Args:
        path: Path to a PDF or a `.json` fixture
        source: Source ID to use; detected when omitted

    Returns:
        ParseReport with one entry per source run
    """
    statement = load_statement(path)
    results = parse_statement(statement, [source] if source else None)
    return build_report(path, results)
