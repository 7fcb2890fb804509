"""
Page-at-a-time parsing helpers that carry state between pages.
"""
import logging
from typing import Any, Callable, Generator, Generic, Iterator, Optional, TypeVar

from .page import Page
from .result import Result

logger = logging.getLogger(__name__)

T = TypeVar("T")
A = TypeVar("A")


class OnceParser(Generic[T]):
    """
    Runs a single-page parser on each page until it succeeds once.

    Every result is passed through to the caller, failures included. After the
    first success the value is kept in `parsed` and later pages are skipped.
    """

    def __init__(self, parser: Callable[..., Result[T, Exception]]):
        self._parser = parser
        self._parsed: Optional[T] = None
        self._done = False

    @property
    def parsed(self) -> Optional[T]:
        return self._parsed

    @property
    def done(self) -> bool:
        return self._done

    def parse_page(self, page: Page, context: Any = None) -> Iterator[Result[T, Exception]]:
        if self._done:
            return

        result = self._parser(page) if context is None else self._parser(page, context)
        if result.is_ok:
            self._parsed = result.value
            self._done = True
            logger.debug(f"{getattr(self._parser, '__name__', self._parser)} parsed on page {page.page_number}")
        yield result


class AccumulationParser(Generic[A]):
    """
    Runs a page parser that threads an accumulated value from page to page.

    The page parser is a generator function called as
    `parser(page, previous, context)`. It yields byproduct results (e.g.
    transactions) and `return`s the new accumulated value.
    """

    def __init__(self, parser: Callable[[Page, A, Any], Generator[Result, None, A]], initial: A):
        self._parser = parser
        self._accumulated = initial

    @property
    def parsed(self) -> A:
        return self._accumulated

    def parse_page(self, page: Page, context: Any = None) -> Iterator[Result]:
        self._accumulated = yield from self._parser(page, self._accumulated, context)
