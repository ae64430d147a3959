"""Unit tests for the file text extractor."""

from __future__ import annotations

import io

import docx
import fitz
import pytest
from openpyxl import Workbook

from docaugment.providers.extraction.file_text_extractor import (
    MIME_DOCX,
    MIME_PDF,
    MIME_TXT,
    MIME_XLSX,
    FileTextExtractor,
    sanitize_text,
)
from docaugment.utils.errors import ExtractionFailedError, UnsupportedFormatError


@pytest.fixture()
def extractor() -> FileTextExtractor:
    return FileTextExtractor()


def _docx_bytes() -> bytes:
    document = docx.Document()
    document.add_paragraph("Results of the trial.")
    document.add_paragraph("")
    table = document.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "dose"
    table.rows[0].cells[1].text = "10mg"
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def _xlsx_bytes() -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Data"
    sheet.append(["sample", "value"])
    sheet.append(["a", 1])
    sheet.append([None, None])
    workbook.create_sheet("Empty")
    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def _pdf_bytes(text: str) -> bytes:
    document = fitz.open()
    page = document.new_page()
    page.insert_text((72, 72), text)
    data = document.tobytes()
    document.close()
    return data


class TestSanitizeText:
    def test_removes_nul_and_normalises_newlines(self) -> None:
        assert sanitize_text("a\x00b\r\nc\rd") == "ab\nc\nd"

    def test_trims_trailing_whitespace(self) -> None:
        assert sanitize_text("  line one   \nline two\t\n\n") == "line one\nline two"


class TestFileTextExtractor:
    def test_supported_kinds(self, extractor: FileTextExtractor) -> None:
        assert set(extractor.supported_kinds()) == {MIME_TXT, MIME_PDF, MIME_DOCX, MIME_XLSX}

    def test_extract_txt(self, extractor: FileTextExtractor) -> None:
        text = extractor.extract("Hello world.\r\nSecond line.".encode(), "notes.txt")
        assert text == "Hello world.\nSecond line."

    def test_declared_kind_used_without_extension(self, extractor: FileTextExtractor) -> None:
        assert extractor.extract(b"plain", "README", "text/plain; charset=utf-8") == "plain"

    def test_extension_wins_over_declared_kind(self, extractor: FileTextExtractor) -> None:
        assert extractor.extract(b"text body", "a.txt", "application/pdf") == "text body"

    def test_unsupported_format(self, extractor: FileTextExtractor) -> None:
        with pytest.raises(UnsupportedFormatError):
            extractor.extract(b"\x89PNG", "image.png", "image/png")

    def test_unsupported_is_an_extraction_failure(self) -> None:
        assert issubclass(UnsupportedFormatError, ExtractionFailedError)

    def test_blank_text_fails(self, extractor: FileTextExtractor) -> None:
        with pytest.raises(ExtractionFailedError):
            extractor.extract(b"  \n\x00\r\n ", "blank.txt")

    def test_invalid_utf8_fails(self, extractor: FileTextExtractor) -> None:
        with pytest.raises(ExtractionFailedError):
            extractor.extract(b"\xff\xfe\xfa", "broken.txt")

    def test_extract_docx_paragraphs_and_tables(self, extractor: FileTextExtractor) -> None:
        text = extractor.extract(_docx_bytes(), "report.docx")
        assert text == "Results of the trial.\ndose | 10mg"

    def test_extract_xlsx_sheets(self, extractor: FileTextExtractor) -> None:
        text = extractor.extract(_xlsx_bytes(), "table.xlsx")
        assert text == "Sheet: Data\nsample | value\na | 1"

    def test_extract_pdf(self, extractor: FileTextExtractor) -> None:
        text = extractor.extract(_pdf_bytes("Abstract of the paper"), "paper.pdf")
        assert "Abstract of the paper" in text

    def test_corrupt_pdf_fails(self, extractor: FileTextExtractor) -> None:
        with pytest.raises(ExtractionFailedError):
            extractor.extract(b"not really a pdf", "paper.pdf")
