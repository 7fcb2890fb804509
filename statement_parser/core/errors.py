"""
Structured parse errors.

Pipelines return these as `Result.err(...)` values rather than raising them, so a
caller can keep pulling results after a non-fatal failure. Each error carries
enough context to point at the exact spot on the exact page where extraction
broke.
"""
from enum import Enum
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .page import PageText


class ErrorKind(str, Enum):
    MISSING_LABEL = "MissingLabel"
    MISSING_VALUE = "MissingValue"
    INVALID_VALUE = "InvalidValue"


class SearchDirection(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"


class ParseStatementError(Exception):
    """
    A failure to extract something from a statement.

    Args:
        kind: What went wrong (missing label, missing value or invalid value)
        message: Human readable description
        page_number: Page the failure happened on, if known
        content_text: The offending fragment, if one was found
        search_from_text: The anchor fragment the search started from
        search_direction: Direction of the failed search
        cause: Underlying error, e.g. a money parse failure
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        page_number: Optional[int] = None,
        content_text: Optional["PageText"] = None,
        search_from_text: Optional["PageText"] = None,
        search_direction: Optional[SearchDirection] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.page_number = page_number
        self.content_text = content_text
        self.search_from_text = search_from_text
        self.search_direction = search_direction
        self.cause = cause

    @classmethod
    def missing_label(cls, message: str, **context: Any) -> "ParseStatementError":
        return cls(ErrorKind.MISSING_LABEL, message, **context)

    @classmethod
    def missing_value(cls, message: str, **context: Any) -> "ParseStatementError":
        return cls(ErrorKind.MISSING_VALUE, message, **context)

    @classmethod
    def invalid_value(cls, message: str, **context: Any) -> "ParseStatementError":
        return cls(ErrorKind.INVALID_VALUE, message, **context)

    def describe(self) -> str:
        """Message followed by the location breadcrumbs, on one line."""
        parts = [self.message]
        if self.page_number is not None:
            parts.append(f"page {self.page_number}")
        if self.search_from_text is not None:
            direction = f" {self.search_direction.value}" if self.search_direction else ""
            parts.append(f"searching{direction} from {self.search_from_text.text!r}")
        if self.content_text is not None:
            parts.append(f"found {self.content_text.text!r}")
        if self.cause is not None:
            parts.append(f"cause: {self.cause}")
        return "; ".join(parts)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "type": type(self).__name__,
            "message": self.message,
            "page_number": self.page_number,
            "content_text": self.content_text.text if self.content_text is not None else None,
            "search_from_text": self.search_from_text.text if self.search_from_text is not None else None,
            "search_direction": self.search_direction.value if self.search_direction else None,
            "cause": str(self.cause) if self.cause is not None else None,
        }

    def __repr__(self):
        return f"{type(self).__name__}({self.kind.value}: {self.describe()})"


class InvalidTransactionError(ParseStatementError):
    """A table row that cannot be turned into a transaction."""

    def __init__(self, message: str, entry: Any = None, **context: Any):
        super().__init__(ErrorKind.INVALID_VALUE, message, **context)
        self.entry = entry


class InvalidStatementSummaryError(ParseStatementError):
    """A stated summary total disagrees with the value computed from the statement."""

    def __init__(self, message: str, summary: Any, summary_value: int, computed_value: int, **context: Any):
        super().__init__(ErrorKind.INVALID_VALUE, message, **context)
        self.summary = summary
        self.summary_value = summary_value
        self.computed_value = computed_value

    def describe(self) -> str:
        return f"{super().describe()}; stated {self.summary_value}, computed {self.computed_value}"

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["summary_value"] = self.summary_value
        data["computed_value"] = self.computed_value
        return data
