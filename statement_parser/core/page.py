"""
Positioned text model for statement pages.

Coordinates use a bottom-left origin: `y` grows upwards, so the fragment at the
top of a page has the largest `y`.
"""
import math
from dataclasses import dataclass
from functools import cached_property
from typing import Iterable, List, Literal, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .navigation import PageNavigator, StatementNavigator

Alignment = Literal["left", "right", "either"]


@dataclass(frozen=True)
class PageText:
    """One positioned run of text on a page."""

    text: str
    x: float
    y: float
    width: float
    height: float
    font_name: str = ""

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def top(self) -> float:
        return self.y + self.height

    @property
    def bottom(self) -> float:
        return self.y

    @property
    def center_x(self) -> float:
        return self.x + self.width / 2

    @property
    def center_y(self) -> float:
        return self.y + self.height / 2

    @property
    def is_empty(self) -> bool:
        return not self.text.strip() or self.width == 0 or self.height == 0

    def is_horizontally_aligned_with(self, other: "PageText") -> bool:
        """
        Whether two fragments sit on the same row.

        Each fragment's vertical midpoint must fall strictly inside the other's
        vertical extent.
        """
        return (
            other.bottom < self.center_y < other.top
            and self.bottom < other.center_y < self.top
        )

    def is_vertically_aligned_with(
        self,
        other: "PageText",
        alignment: Alignment = "left",
        max_gap: float = math.inf,
        max_alignment_error: float = 1,
    ) -> bool:
        """
        Whether two fragments sit in the same column.

        Args:
            other: Fragment to compare against
            alignment: Which edge must line up: "left", "right" or "either"
            max_gap: Rows further apart than this are rejected (bottom of the upper
                fragment to top of the lower one)
            max_alignment_error: Allowed difference between the compared edges

        Returns:
            True if the fragments are column aligned
        """
        lower, upper = sorted((self, other), key=lambda t: (t.y, t.top))
        gap = upper.bottom - lower.top
        if abs(gap) >= max_gap:
            return False

        left_aligned = abs(self.left - other.left) < max_alignment_error
        right_aligned = abs(self.right - other.right) < max_alignment_error

        if alignment == "left":
            return left_aligned
        if alignment == "right":
            return right_aligned
        if alignment == "either":
            return left_aligned or right_aligned
        raise ValueError(f"Unknown alignment: {alignment}")

    def __repr__(self):
        return (
            f"PageText({self.text!r}, x={self.x:.1f}, y={self.y:.1f}, "
            f"w={self.width:.1f}, h={self.height:.1f})"
        )


class Page:
    """A page of fragments kept in reading order (top to bottom, then left to right)."""

    def __init__(self, page_number: int, texts: Iterable[PageText],
                 width: Optional[float] = None, height: Optional[float] = None):
        self.page_number = page_number
        self.texts: Tuple[PageText, ...] = tuple(sorted(texts, key=lambda t: (-t.y, t.x)))
        self.width = width
        self.height = height

    @cached_property
    def navigator(self) -> "PageNavigator":
        from .navigation import PageNavigator

        return PageNavigator(self)

    def __len__(self):
        return len(self.texts)

    def __repr__(self):
        return f"Page({self.page_number}, texts={len(self.texts)})"


class Statement:
    """An ordered sequence of pages."""

    def __init__(self, pages: Iterable[Page]):
        self.pages: Tuple[Page, ...] = tuple(pages)

    @cached_property
    def navigator(self) -> "StatementNavigator":
        from .navigation import StatementNavigator

        return StatementNavigator(self)

    def page(self, page_number: int) -> Optional[Page]:
        """Get a page by its (1-based) number."""
        for page in self.pages:
            if page.page_number == page_number:
                return page
        return None

    @property
    def texts(self) -> List[PageText]:
        return [text for page in self.pages for text in page.texts]

    def __repr__(self):
        return f"Statement(pages={len(self.pages)})"
