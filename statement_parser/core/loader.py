"""
Statement loading: PDF text extraction with pdfplumber, and fixture JSON files.
"""
import re
import json
import logging
from pathlib import Path
from typing import List, Optional, Union

import pdfplumber
from pdfminer.psparser import PSException
from pdfplumber.utils.exceptions import PdfminerException

from .page import Page, PageText, Statement
from ..models.schema import PageSchema, PageTextSchema, StatementSchema

logger = logging.getLogger(__name__)


class PDFLoadError(ValueError):
    """Raised when a file cannot be read as a PDF."""


LIGATURES = {
    'ﬁ': 'fi',
    'ﬂ': 'fl',
    'ﬀ': 'ff',
    'ﬃ': 'ffi',
    'ﬄ': 'ffl',
    'ﬆ': 'st',
    'ﬅ': 'st'
}


class PDFLoader:
    """
    Extracts positioned text runs from a PDF.

    Characters are grouped into runs the way the PDF draws them: blanks are kept
    inside a run, and a run ends at a horizontal gap or a change of font.
    pdfplumber measures `top` from the top of the page; runs are converted to a
    bottom-left origin.
    """

    def __init__(self, pdf_path: Path, x_tolerance: float = 1.5, y_tolerance: float = 2,
                 normalize_ligatures: bool = True):
        self.pdf_path = Path(pdf_path)
        self.x_tolerance = x_tolerance
        self.y_tolerance = y_tolerance
        self.normalize_ligatures = normalize_ligatures
        self._pdf = None
        self._pages: List[Page] = []

    def load(self) -> List[Page]:
        """Load the PDF and extract the text runs of every page."""
        if self._pages:
            return self._pages

        try:
            self._pdf = pdfplumber.open(self.pdf_path)
            logger.info(f"Loaded PDF with {len(self._pdf.pages)} pages")

            for i, pdf_page in enumerate(self._pdf.pages, 1):
                words = pdf_page.extract_words(
                    x_tolerance=self.x_tolerance,
                    y_tolerance=self.y_tolerance,
                    keep_blank_chars=True,
                    use_text_flow=True,
                    extra_attrs=["fontname", "size"],
                )

                texts = []
                for word in words:
                    text = self._normalize_text(word.get('text', ''))
                    if not text:
                        continue
                    texts.append(PageText(
                        text=text,
                        x=word['x0'],
                        y=pdf_page.height - word['bottom'],
                        width=word['x1'] - word['x0'],
                        height=word['bottom'] - word['top'],
                        font_name=word.get('fontname', ''),
                    ))

                self._pages.append(Page(i, texts, width=pdf_page.width, height=pdf_page.height))
                logger.debug(f"Page {i}: {len(texts)} text runs extracted")

            return self._pages

        except (PSException, PdfminerException) as e:
            logger.error(f"Error loading PDF {self.pdf_path}: {e}")
            raise PDFLoadError(f"Not a readable PDF: {self.pdf_path}: {e}") from e
        except Exception as e:
            logger.error(f"Error loading PDF {self.pdf_path}: {e}")
            raise

    def _normalize_text(self, text: str) -> str:
        """Normalize text by handling ligatures and multiple spaces."""
        if self.normalize_ligatures:
            for ligature, replacement in LIGATURES.items():
                text = text.replace(ligature, replacement)

        return re.sub(r'\s+', ' ', text).strip()

    def get_page(self, page_num: int) -> Optional[Page]:
        """Get a specific page by number (1-indexed)."""
        if not self._pages:
            self.load()

        if 1 <= page_num <= len(self._pages):
            return self._pages[page_num - 1]
        return None

    def close(self):
        """Close the PDF file."""
        if self._pdf:
            self._pdf.close()
            self._pdf = None

    def __enter__(self) -> "PDFLoader":
        return self

    def __exit__(self, *exc_info):
        self.close()


def load_pdf(pdf_path: Path, **options) -> Statement:
    """
    Extract a statement from a PDF file.

    Args:
        pdf_path: Path to PDF file
        **options: Passed to `PDFLoader`

    Returns:
        Statement with one page per PDF page
    """
    with PDFLoader(pdf_path, **options) as loader:
        return Statement(loader.load())


def statement_from_schema(schema: StatementSchema) -> Statement:
    return Statement(
        Page(page.page_number, [
            PageText(text.text, text.x, text.y, text.width, text.height, text.font_name)
            for text in page.texts
        ])
        for page in schema.root
    )


def statement_to_schema(statement: Statement) -> StatementSchema:
    return StatementSchema([
        PageSchema(page_number=page.page_number, texts=[
            PageTextSchema(
                text=text.text, x=text.x, y=text.y,
                width=text.width, height=text.height, font_name=text.font_name,
            )
            for text in page.texts
        ])
        for page in statement.pages
    ])


def load_fixture(path: Union[str, Path]) -> Statement:
    """
    Load a statement from a fixture file.

    A fixture is a JSON array of pages, each `{"pageNumber": n, "texts": [...]}`
    with texts `{"str", "x", "y", "width", "height", "fontName"}`.

    Raises:
        pydantic.ValidationError: If the file does not match the fixture format
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return statement_from_schema(StatementSchema.model_validate(data))


def dump_fixture(statement: Statement, path: Union[str, Path]) -> None:
    """Write a statement to a fixture file, using the fixture field names."""
    schema = statement_to_schema(statement)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(schema.model_dump_json(by_alias=True, indent=2))
    logger.info(f"Wrote fixture with {len(statement.pages)} pages to {path}")


def load_statement(path: Union[str, Path]) -> Statement:
    """Load a statement from a PDF or a `.json` fixture, by file extension."""
    path = Path(path)
    if path.suffix.lower() == '.json':
        return load_fixture(path)
    return load_pdf(path)
