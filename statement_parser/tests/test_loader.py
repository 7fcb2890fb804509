"""
Tests for statement loading from PDFs and fixture files.
"""
import json

import pytest
from pdfminer.pdfparser import PDFSyntaxError
from pydantic import ValidationError

from ..core import loader
from ..core.loader import PDFLoadError, PDFLoader, dump_fixture, load_fixture, load_pdf, load_statement
from .builders import statement, text


class FakePDFPage:

    def __init__(self, words, width=612, height=792):
        self.words = words
        self.width = width
        self.height = height

    def extract_words(self, **kwargs):
        return self.words


class FakePDF:

    def __init__(self, pages):
        self.pages = pages
        self.closed = False

    def close(self):
        self.closed = True


@pytest.fixture
def fake_pdf(monkeypatch):
    pdf = FakePDF([
        FakePDFPage([
            {"text": "Proﬁle  summary", "x0": 40, "x1": 120, "top": 82, "bottom": 92, "fontname": "Helvetica"},
            {"text": "   ", "x0": 130, "x1": 140, "top": 82, "bottom": 92, "fontname": "Helvetica"},
            {"text": "$1.00", "x0": 200, "x1": 225, "top": 100, "bottom": 110, "fontname": "Helvetica-Bold"},
        ]),
        FakePDFPage([]),
    ])
    monkeypatch.setattr(loader.pdfplumber, "open", lambda path: pdf)
    return pdf


class TestPDFLoader:

    def test_extracts_positioned_text(self, fake_pdf):
        result = load_pdf("statement.pdf")

        assert len(result.pages) == 2
        page = result.pages[0]
        assert [t.text for t in page.texts] == ["Profile summary", "$1.00"]

        profile = page.texts[0]
        assert profile.x == 40
        assert profile.y == 700
        assert profile.width == 80
        assert profile.height == 10
        assert profile.font_name == "Helvetica"
        assert page.height == 792
        assert fake_pdf.closed

    def test_get_page(self, fake_pdf):
        with PDFLoader("statement.pdf") as pdf_loader:
            assert pdf_loader.get_page(2).page_number == 2
            assert pdf_loader.get_page(3) is None

    def test_keeps_ligatures_when_asked(self, fake_pdf):
        result = load_pdf("statement.pdf", normalize_ligatures=False)
        assert result.pages[0].texts[0].text == "Proﬁle summary"

    def test_unreadable_pdf(self, monkeypatch):
        def broken(path):
            raise PDFSyntaxError("No /Root object! - Is this really a PDF?")

        monkeypatch.setattr(loader.pdfplumber, "open", broken)
        with pytest.raises(PDFLoadError, match="Not a readable PDF"):
            load_pdf("broken.pdf")

    def test_unreadable_file_on_disk(self, tmp_path):
        path = tmp_path / "broken.pdf"
        path.write_bytes(b"this is not a pdf")

        with pytest.raises(PDFLoadError):
            load_pdf(path)


class TestFixtures:

    def test_round_trip(self, tmp_path, schwab):
        path = tmp_path / "schwab.json"
        dump_fixture(schwab, path)
        loaded = load_fixture(path)

        assert len(loaded.pages) == len(schwab.pages)
        assert [t.text for t in loaded.texts] == [t.text for t in schwab.texts]
        assert [(t.x, t.y) for t in loaded.texts] == [(t.x, t.y) for t in schwab.texts]

    def test_field_names(self, tmp_path):
        path = tmp_path / "statement.json"
        dump_fixture(statement([text("Hello", 40, 700)]), path)
        data = json.loads(path.read_text())

        assert data[0]["pageNumber"] == 1
        assert set(data[0]["texts"][0]) == {"str", "x", "y", "width", "height", "fontName"}

    def test_load_hand_written(self, tmp_path):
        path = tmp_path / "statement.json"
        path.write_text(json.dumps([
            {"pageNumber": 1, "texts": [{"str": "Hello", "x": 1, "y": 2, "width": 3, "height": 4}]},
        ]))

        result = load_statement(path)
        assert result.pages[0].texts[0].text == "Hello"
        assert result.pages[0].texts[0].font_name == ""

    def test_invalid_page_number(self, tmp_path):
        path = tmp_path / "statement.json"
        path.write_text(json.dumps([{"pageNumber": 0, "texts": []}]))

        with pytest.raises(ValidationError):
            load_fixture(path)
