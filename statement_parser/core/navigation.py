"""
Spatial search over positioned page text.

Every search starts from a finder, which is either a literal string (exact match
against the fragment text), a compiled regular expression (searched in the
fragment text) or a predicate over `PageText`. Searches return locations, which
are cursors that know their page and reading-order index and offer further
directional searches. A search that finds nothing returns None.
"""
import math
import re
import logging
from typing import Callable, Iterator, List, Optional, Pattern, Sequence, Tuple, Union

from .page import Alignment, Page, PageText, Statement

logger = logging.getLogger(__name__)


class Matcher:
    """Base class for compiled finders."""

    def matches(self, text: PageText) -> bool:
        raise NotImplementedError

    def __call__(self, text: PageText) -> bool:
        return self.matches(text)


class LiteralMatcher(Matcher):
    def __init__(self, value: str):
        self.value = value

    def matches(self, text: PageText) -> bool:
        return text.text == self.value

    def __repr__(self):
        return f"LiteralMatcher({self.value!r})"


class PatternMatcher(Matcher):
    def __init__(self, pattern: Pattern[str]):
        self.pattern = pattern

    def matches(self, text: PageText) -> bool:
        return self.pattern.search(text.text) is not None

    def __repr__(self):
        return f"PatternMatcher({self.pattern.pattern!r})"


class PredicateMatcher(Matcher):
    def __init__(self, predicate: Callable[[PageText], bool]):
        self.predicate = predicate

    def matches(self, text: PageText) -> bool:
        return bool(self.predicate(text))

    def __repr__(self):
        return f"PredicateMatcher({self.predicate!r})"


Finder = Union[str, Pattern[str], Callable[[PageText], bool], Matcher]


def as_matcher(finder: Finder) -> Matcher:
    """
    Compile a finder into a matcher once, before scanning any candidates.

    Args:
        finder: Literal string, compiled pattern, predicate or existing matcher

    Returns:
        Matcher for the finder

    Raises:
        TypeError: If the finder is none of the supported kinds
    """
    if isinstance(finder, Matcher):
        return finder
    if isinstance(finder, str):
        return LiteralMatcher(finder)
    if isinstance(finder, re.Pattern):
        return PatternMatcher(finder)
    if callable(finder):
        return PredicateMatcher(finder)
    raise TypeError(f"Unsupported finder: {finder!r}")


def not_empty(text: PageText) -> bool:
    return not text.is_empty


class PageNavigator:
    """Search primitives scoped to a single page."""

    def __init__(self, page: Page):
        self.page = page

    @property
    def texts(self) -> Tuple[PageText, ...]:
        return self.page.texts

    def location(self, index: int) -> "PageTextLocation":
        return PageTextLocation(self, index)

    def find(self, finder: Finder) -> Optional["PageTextLocation"]:
        """First match in reading order."""
        matcher = as_matcher(finder)
        for index, text in enumerate(self.texts):
            if matcher(text):
                return self.location(index)
        return None

    def find_all(self, finder: Finder) -> List["PageTextLocation"]:
        matcher = as_matcher(finder)
        return [self.location(index) for index, text in enumerate(self.texts) if matcher(text)]

    def find_last(self, finder: Finder) -> Optional["PageTextLocation"]:
        """Last match in reading order."""
        return self.find_before(len(self.texts), finder)

    def find_scored(self, scorer: Callable[[PageText], float]) -> Optional["PageTextLocation"]:
        """
        Find the fragment with the lowest score.

        Args:
            scorer: Scores a fragment; math.inf excludes it

        Returns:
            Location of the best fragment (earliest in reading order on ties), or None
        """
        best_index = None
        best_score = math.inf
        for index, text in enumerate(self.texts):
            score = scorer(text)
            if score < best_score:
                best_index = index
                best_score = score
        return None if best_index is None else self.location(best_index)

    def find_before(self, index: int, finder: Finder) -> Optional["PageTextLocation"]:
        """Nearest match strictly before a reading-order index."""
        matcher = as_matcher(finder)
        for i in range(min(index, len(self.texts)) - 1, -1, -1):
            if matcher(self.texts[i]):
                return self.location(i)
        return None

    def find_after(self, index: int, finder: Finder) -> Optional["PageTextLocation"]:
        """Nearest match strictly after a reading-order index."""
        matcher = as_matcher(finder)
        for i in range(max(index + 1, 0), len(self.texts)):
            if matcher(self.texts[i]):
                return self.location(i)
        return None

    def __iter__(self) -> Iterator["PageTextLocation"]:
        return (self.location(index) for index in range(len(self.texts)))


def _score_right(anchor: PageText, matcher: Matcher,
                 max_horizontal_error: float, max_vertical_error: float) -> Callable[[PageText], float]:
    def score(candidate: PageText) -> float:
        if candidate is anchor or candidate.left < anchor.left:
            return math.inf
        vertical = abs(candidate.center_y - anchor.center_y)
        if vertical > max_vertical_error:
            return math.inf
        dx = candidate.left - anchor.right
        if dx >= 0:
            horizontal = dx ** 0.5
        elif -dx > max_horizontal_error:
            return math.inf
        else:
            horizontal = dx ** 2
        if not matcher(candidate):
            return math.inf
        return vertical + horizontal

    return score


def _score_left(anchor: PageText, matcher: Matcher,
                max_horizontal_error: float, max_vertical_error: float) -> Callable[[PageText], float]:
    def score(candidate: PageText) -> float:
        if candidate is anchor or candidate.right > anchor.right:
            return math.inf
        vertical = abs(candidate.center_y - anchor.center_y)
        if vertical > max_vertical_error:
            return math.inf
        dx = anchor.left - candidate.right
        if dx >= 0:
            horizontal = dx ** 0.5
        elif -dx > max_horizontal_error:
            return math.inf
        else:
            horizontal = dx ** 2
        if not matcher(candidate):
            return math.inf
        return vertical + horizontal

    return score


def _below(anchor: PageText, matcher: Matcher, alignment: Alignment,
           max_gap: float, max_alignment_error: float) -> Callable[[PageText], bool]:
    def predicate(candidate: PageText) -> bool:
        return (
            candidate is not anchor
            and candidate.top <= anchor.bottom
            and candidate.is_vertically_aligned_with(anchor, alignment, max_gap, max_alignment_error)
            and matcher(candidate)
        )

    return predicate


def _above(anchor: PageText, matcher: Matcher, alignment: Alignment,
           max_gap: float, max_alignment_error: float) -> Callable[[PageText], bool]:
    def predicate(candidate: PageText) -> bool:
        return (
            candidate is not anchor
            and candidate.bottom >= anchor.top
            and candidate.is_vertically_aligned_with(anchor, alignment, max_gap, max_alignment_error)
            and matcher(candidate)
        )

    return predicate


def _aligned(anchor: PageText, matcher: Matcher, alignment: Alignment,
             max_alignment_error: float) -> Callable[[PageText], bool]:
    def predicate(candidate: PageText) -> bool:
        return (
            candidate.is_vertically_aligned_with(anchor, alignment, max_alignment_error=max_alignment_error)
            and matcher(candidate)
        )

    return predicate


class PageTextLocation:
    """A cursor on one fragment of a page."""

    __slots__ = ("navigator", "index")

    def __init__(self, navigator: PageNavigator, index: int):
        self.navigator = navigator
        self.index = index

    @property
    def page(self) -> Page:
        return self.navigator.page

    @property
    def page_number(self) -> int:
        return self.navigator.page.page_number

    @property
    def text(self) -> PageText:
        return self.navigator.texts[self.index]

    def find_before(self, finder: Finder) -> Optional["PageTextLocation"]:
        return self.navigator.find_before(self.index, finder)

    def find_after(self, finder: Finder) -> Optional["PageTextLocation"]:
        return self.navigator.find_after(self.index, finder)

    def find_right(self, finder: Finder, max_horizontal_error: float = math.inf,
                   max_vertical_error: float = 5) -> Optional["PageTextLocation"]:
        """
        Find the nearest matching fragment to the right on the same row.

        Candidates further from the anchor's row than `max_vertical_error`, or
        starting left of the anchor, are excluded. Rightward distance is cheap
        (square root) and overlap with the anchor is expensive (squared), so a
        fragment that is clearly to the right wins over one that starts inside
        the anchor.

        Args:
            finder: What to look for
            max_horizontal_error: How far a candidate may start behind the anchor's
                right edge
            max_vertical_error: How far a candidate's midpoint may be from the
                anchor's midpoint

        Returns:
            Location of the match, or None
        """
        scorer = _score_right(self.text, as_matcher(finder), max_horizontal_error, max_vertical_error)
        return self.navigator.find_scored(scorer)

    def find_left(self, finder: Finder, max_horizontal_error: float = math.inf,
                  max_vertical_error: float = 5) -> Optional["PageTextLocation"]:
        """Mirror of `find_right`."""
        scorer = _score_left(self.text, as_matcher(finder), max_horizontal_error, max_vertical_error)
        return self.navigator.find_scored(scorer)

    def find_down(self, finder: Finder, alignment: Alignment = "left", max_gap: float = math.inf,
                  max_alignment_error: float = 1) -> Optional["PageTextLocation"]:
        """
        Find the nearest matching fragment below this one in the same column.

        Args:
            finder: What to look for
            alignment: Which edge must line up with the anchor
            max_gap: Largest allowed vertical gap between the two fragments
            max_alignment_error: Allowed difference between the aligned edges

        Returns:
            Location of the match, or None
        """
        predicate = _below(self.text, as_matcher(finder), alignment, max_gap, max_alignment_error)
        return self.navigator.find(predicate)

    def find_up(self, finder: Finder, alignment: Alignment = "left", max_gap: float = math.inf,
                max_alignment_error: float = 1) -> Optional["PageTextLocation"]:
        """Mirror of `find_down`: the nearest matching fragment above."""
        predicate = _above(self.text, as_matcher(finder), alignment, max_gap, max_alignment_error)
        return self.navigator.find_last(predicate)

    def find_column(self, finder: Finder, alignment: Alignment = "left", max_gap: float = math.inf,
                    max_alignment_error: float = 1) -> List["PageTextLocation"]:
        """Collect every matching fragment below this one, walking down the column."""
        matcher = as_matcher(finder)
        column = []
        location = self.find_down(matcher, alignment, max_gap, max_alignment_error)
        while location is not None and location != self and location not in column:
            column.append(location)
            location = location.find_down(matcher, alignment, max_gap, max_alignment_error)
        return column

    def collect_right(self, finder: Finder, max_horizontal_error: float = math.inf,
                      max_vertical_error: float = 5) -> List["PageTextLocation"]:
        """Collect every matching fragment to the right, walking along the row."""
        matcher = as_matcher(finder)
        row = []
        location = self.find_right(matcher, max_horizontal_error, max_vertical_error)
        while location is not None and location != self and location not in row:
            row.append(location)
            location = location.find_right(matcher, max_horizontal_error, max_vertical_error)
        return row

    def find_table(self, label_finders: Sequence[Finder], value_finders: Sequence[Finder],
                   label_alignment: Alignment = "left", value_alignment: Alignment = "right",
                   max_gap: float = math.inf) -> Optional[List[Tuple["PageTextLocation", "PageTextLocation"]]]:
        """
        Read a two-column label/value table starting at this location.

        This location is the first label. Its value is found to the right; every
        later label and value is found below the previous one, in its own column.

        Args:
            label_finders: One finder per row for the label column
            value_finders: One finder per row for the value column
            label_alignment: Column alignment of the labels
            value_alignment: Column alignment of the values
            max_gap: Largest allowed vertical gap between consecutive rows

        Returns:
            Exactly one (label, value) pair per row, or None if any cell is missing

        Raises:
            ValueError: If the finder lists differ in length
        """
        return _find_table(self, label_finders, value_finders, label_alignment, value_alignment, max_gap)

    def is_above(self, other: "PageTextLocation") -> bool:
        return self.text.y > other.text.y

    def is_below(self, other: "PageTextLocation") -> bool:
        return self.text.y < other.text.y

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PageTextLocation):
            return NotImplemented
        return self.page is other.page and self.index == other.index

    def __hash__(self):
        return hash((id(self.page), self.index))

    def __repr__(self):
        return f"PageTextLocation(page={self.page_number}, index={self.index}, text={self.text.text!r})"


def _find_table(anchor, label_finders, value_finders, label_alignment, value_alignment, max_gap):
    if len(label_finders) != len(value_finders):
        raise ValueError(
            f"Expected as many value finders as label finders, got "
            f"{len(value_finders)} and {len(label_finders)}"
        )
    if not label_finders:
        return []

    if not as_matcher(label_finders[0])(anchor.text):
        return None

    label = anchor
    value = anchor.find_right(value_finders[0])
    if value is None:
        return None

    rows = [(label, value)]
    for label_finder, value_finder in zip(label_finders[1:], value_finders[1:]):
        label = label.find_down(label_finder, alignment=label_alignment, max_gap=max_gap)
        if label is None:
            return None
        value = value.find_down(value_finder, alignment=value_alignment, max_gap=max_gap)
        if value is None:
            return None
        rows.append((label, value))

    return rows


class StatementNavigator:
    """Search primitives across every page of a statement, in page order."""

    def __init__(self, statement: Statement):
        self.statement = statement

    @property
    def pages(self) -> Tuple[Page, ...]:
        return self.statement.pages

    def wrap(self, page_index: int, location: Optional[PageTextLocation]) -> Optional["StatementTextLocation"]:
        if location is None:
            return None
        return StatementTextLocation(self, page_index, location)

    def find(self, finder: Finder) -> Optional["StatementTextLocation"]:
        matcher = as_matcher(finder)
        for page_index, page in enumerate(self.pages):
            location = page.navigator.find(matcher)
            if location is not None:
                return self.wrap(page_index, location)
        return None

    def find_all(self, finder: Finder) -> List["StatementTextLocation"]:
        matcher = as_matcher(finder)
        return [
            self.wrap(page_index, location)
            for page_index, page in enumerate(self.pages)
            for location in page.navigator.find_all(matcher)
        ]

    def find_last(self, finder: Finder) -> Optional["StatementTextLocation"]:
        matcher = as_matcher(finder)
        for page_index in range(len(self.pages) - 1, -1, -1):
            location = self.pages[page_index].navigator.find_last(matcher)
            if location is not None:
                return self.wrap(page_index, location)
        return None


class StatementTextLocation:
    """
    A cursor on one fragment of a statement.

    Vertical and reading-order searches that come up empty on the current page
    carry on to the following (or, searching backwards, preceding) pages, keeping
    the column alignment of the original anchor. This follows tables that are cut
    off at the bottom of a page and resume on the next.
    """

    __slots__ = ("navigator", "page_index", "page_location")

    def __init__(self, navigator: StatementNavigator, page_index: int, page_location: PageTextLocation):
        self.navigator = navigator
        self.page_index = page_index
        self.page_location = page_location

    @property
    def page_number(self) -> int:
        return self.page_location.page_number

    @property
    def text(self) -> PageText:
        return self.page_location.text

    def _wrap(self, location: Optional[PageTextLocation], page_index: Optional[int] = None):
        return self.navigator.wrap(self.page_index if page_index is None else page_index, location)

    def find_right(self, finder: Finder, max_horizontal_error: float = math.inf,
                   max_vertical_error: float = 5) -> Optional["StatementTextLocation"]:
        return self._wrap(self.page_location.find_right(finder, max_horizontal_error, max_vertical_error))

    def find_left(self, finder: Finder, max_horizontal_error: float = math.inf,
                  max_vertical_error: float = 5) -> Optional["StatementTextLocation"]:
        return self._wrap(self.page_location.find_left(finder, max_horizontal_error, max_vertical_error))

    def collect_right(self, finder: Finder, max_horizontal_error: float = math.inf,
                      max_vertical_error: float = 5) -> List["StatementTextLocation"]:
        return [
            self._wrap(location)
            for location in self.page_location.collect_right(finder, max_horizontal_error, max_vertical_error)
        ]

    def find_down(self, finder: Finder, alignment: Alignment = "left", max_gap: Optional[float] = None,
                  max_alignment_error: float = 1) -> Optional["StatementTextLocation"]:
        """
        Find the nearest matching fragment below, continuing onto later pages.

        The search only leaves the current page when no `max_gap` is given; on later
        pages the first aligned match in reading order wins.
        """
        matcher = as_matcher(finder)
        gap = math.inf if max_gap is None else max_gap
        location = self.page_location.find_down(matcher, alignment, gap, max_alignment_error)
        if location is not None or max_gap is not None:
            return self._wrap(location)

        predicate = _aligned(self.text, matcher, alignment, max_alignment_error)
        for page_index in range(self.page_index + 1, len(self.navigator.pages)):
            location = self.navigator.pages[page_index].navigator.find(predicate)
            if location is not None:
                return self._wrap(location, page_index)
        return None

    def find_up(self, finder: Finder, alignment: Alignment = "left", max_gap: Optional[float] = None,
                max_alignment_error: float = 1) -> Optional["StatementTextLocation"]:
        """Mirror of `find_down`, continuing onto earlier pages."""
        matcher = as_matcher(finder)
        gap = math.inf if max_gap is None else max_gap
        location = self.page_location.find_up(matcher, alignment, gap, max_alignment_error)
        if location is not None or max_gap is not None:
            return self._wrap(location)

        predicate = _aligned(self.text, matcher, alignment, max_alignment_error)
        for page_index in range(self.page_index - 1, -1, -1):
            location = self.navigator.pages[page_index].navigator.find_last(predicate)
            if location is not None:
                return self._wrap(location, page_index)
        return None

    def find_before(self, finder: Finder) -> Optional["StatementTextLocation"]:
        """Nearest match before this one in reading order, looking back across pages."""
        matcher = as_matcher(finder)
        location = self.page_location.find_before(matcher)
        if location is not None:
            return self._wrap(location)
        for page_index in range(self.page_index - 1, -1, -1):
            location = self.navigator.pages[page_index].navigator.find_last(matcher)
            if location is not None:
                return self._wrap(location, page_index)
        return None

    def find_after(self, finder: Finder) -> Optional["StatementTextLocation"]:
        """Nearest match after this one in reading order, looking ahead across pages."""
        matcher = as_matcher(finder)
        location = self.page_location.find_after(matcher)
        if location is not None:
            return self._wrap(location)
        for page_index in range(self.page_index + 1, len(self.navigator.pages)):
            location = self.navigator.pages[page_index].navigator.find(matcher)
            if location is not None:
                return self._wrap(location, page_index)
        return None

    def find_column(self, finder: Finder, alignment: Alignment = "left", max_gap: Optional[float] = None,
                    max_alignment_error: float = 1) -> List["StatementTextLocation"]:
        matcher = as_matcher(finder)
        column = []
        location = self.find_down(matcher, alignment, max_gap, max_alignment_error)
        while location is not None and location != self and location not in column:
            column.append(location)
            location = location.find_down(matcher, alignment, max_gap, max_alignment_error)
        return column

    def find_table(self, label_finders: Sequence[Finder], value_finders: Sequence[Finder],
                   label_alignment: Alignment = "left", value_alignment: Alignment = "right",
                   max_gap: Optional[float] = None) -> Optional[List[Tuple["StatementTextLocation", "StatementTextLocation"]]]:
        """Same as `PageTextLocation.find_table`, with rows allowed to continue onto later pages."""
        return _find_table(self, label_finders, value_finders, label_alignment, value_alignment, max_gap)

    def is_above(self, other: "StatementTextLocation") -> bool:
        if self.page_number != other.page_number:
            return self.page_number < other.page_number
        return self.text.y > other.text.y

    def is_below(self, other: "StatementTextLocation") -> bool:
        if self.page_number != other.page_number:
            return self.page_number > other.page_number
        return self.text.y < other.text.y

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatementTextLocation):
            return NotImplemented
        return self.page_index == other.page_index and self.page_location == other.page_location

    def __hash__(self):
        return hash((self.page_index, self.page_location))

    def __repr__(self):
        return (
            f"StatementTextLocation(page={self.page_number}, index={self.page_location.index}, "
            f"text={self.text.text!r})"
        )
