"""
Pydantic models for parsed statement data and statement fixtures.
"""
import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator, model_validator


class ImportedTransactionKind(str, Enum):
    CHARGE = "charge"
    CREDIT = "credit"
    PAYMENT = "payment"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    FEE = "fee"
    INTEREST = "interest"


class ImportedTransaction(BaseModel):
    """A transaction to import from a statement."""
    model_config = ConfigDict(frozen=True)

    kind: ImportedTransactionKind
    date: datetime.date
    amount: int  # cents; negative is money out of the account
    statement_description: str
    page_number: int


class StatementPeriod(BaseModel):
    """Inclusive date range a statement covers."""
    model_config = ConfigDict(frozen=True)

    start: datetime.date
    end: datetime.date

    @model_validator(mode="after")
    def validate_order(self):
        if self.end < self.start:
            raise ValueError(f"Statement period ends before it starts: {self.start} to {self.end}")
        return self

    def year_for(self, month: int, day: int) -> int:
        """Year of a month/day printed without one, assuming it falls in the period."""
        if (month, day) > (self.end.month, self.end.day):
            return self.end.year - 1
        return self.end.year


class StatementMetadata(BaseModel):
    """Metadata for a statement that may be useful in importing it."""
    model_config = ConfigDict(frozen=True)

    closing_date: datetime.date
    account: Optional[str] = None
    account_name: Optional[str] = None


class Tagged(BaseModel):
    """A tag attached to a transaction, optionally scoped to a year."""
    name: str
    year: Optional[int] = None


class DescriptionAndTags(BaseModel):
    description: str
    tagged: List[Tagged] = Field(default_factory=list)


class TransactionDescription(BaseModel):
    """A tidied bank description plus the vendors recognized in it."""
    text: str
    doordash: bool = False
    github: bool = False
    venmo: bool = False
    cash_app: bool = False
    amazon: bool = False


class PageTextSchema(BaseModel):
    """A positioned text fragment as stored in fixture files."""
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(alias="str")
    x: float
    y: float
    width: float
    height: float
    font_name: str = Field("", alias="fontName")


class PageSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page_number: int = Field(alias="pageNumber")
    texts: List[PageTextSchema]

    @field_validator("page_number")
    @classmethod
    def validate_page_number(cls, v):
        if v < 1:
            raise ValueError(f"Page numbers start at 1, got {v}")
        return v


class StatementSchema(RootModel[List[PageSchema]]):
    """A fixture file: a JSON array of pages."""


class ParseErrorRecord(BaseModel):
    """A parse error flattened for JSON output."""
    kind: str
    type: str
    message: str
    page_number: Optional[int] = None
    content_text: Optional[str] = None
    search_from_text: Optional[str] = None
    search_direction: Optional[str] = None
    cause: Optional[str] = None
    summary_value: Optional[int] = None
    computed_value: Optional[int] = None


class SourceReport(BaseModel):
    """Everything one source pipeline produced for a statement."""
    source: str
    metadata: List[Dict[str, Any]] = Field(default_factory=list)
    transactions: List[ImportedTransaction] = Field(default_factory=list)
    errors: List[ParseErrorRecord] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return bool(self.metadata) and not self.errors


class ParseReport(BaseModel):
    """Complete output of the `parse` command."""
    file: str
    sources: List[SourceReport]
