"""Plain-text extraction from uploaded TXT, PDF, DOCX and XLSX files.

The parser is chosen from the file extension, falling back to the MIME
type the uploader declared.  Every parser returns raw text which is then
sanitized the same way before the pipeline stores it:

  - NUL bytes removed (SQLite and most text columns reject them),
  - ``\\r\\n`` / ``\\r`` normalised to ``\\n``,
  - trailing whitespace on each line and around the whole text stripped.

PDF parsing uses PyMuPDF (``fitz``), DOCX uses python-docx (paragraphs
first, then table cells), XLSX uses openpyxl with one ``Sheet: <name>``
block per worksheet.
"""

from __future__ import annotations

import io
from collections.abc import Callable
from pathlib import PurePath

import docx
import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog
from openpyxl import load_workbook

from docaugment.interfaces.text_extractor import ITextExtractor
from docaugment.utils.errors import ExtractionFailedError, UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)

MIME_TXT = "text/plain"
MIME_PDF = "application/pdf"
MIME_DOCX = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
MIME_XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_EXTENSION_KINDS: dict[str, str] = {
    ".txt": MIME_TXT,
    ".md": MIME_TXT,
    ".pdf": MIME_PDF,
    ".docx": MIME_DOCX,
    ".xlsx": MIME_XLSX,
}


def sanitize_text(text: str) -> str:
    """Remove NUL bytes, normalise line endings and trim trailing whitespace."""
    text = text.replace("\x00", "")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [line.rstrip() for line in text.split("\n")]
    return "\n".join(lines).strip()


class FileTextExtractor(ITextExtractor):
    """Reference :class:`ITextExtractor` for common office and text formats."""

    def __init__(self) -> None:
        self._parsers: dict[str, Callable[[bytes], str]] = {
            MIME_TXT: self._extract_txt,
            MIME_PDF: self._extract_pdf,
            MIME_DOCX: self._extract_docx,
            MIME_XLSX: self._extract_xlsx,
        }

    def supported_kinds(self) -> list[str]:
        return list(self._parsers)

    def resolve_kind(self, file_name: str, declared_kind: str | None = None) -> str:
        """Return the MIME type used to parse *file_name*.

        Raises
        ------
        UnsupportedFormatError
            If neither the extension nor the declared kind is supported.
        """
        suffix = PurePath(file_name).suffix.lower()
        kind = _EXTENSION_KINDS.get(suffix)
        if kind is None and declared_kind:
            kind = declared_kind.split(";", 1)[0].strip().lower()
        if kind not in self._parsers:
            raise UnsupportedFormatError(
                message=f"Unsupported file type for '{file_name}' ({declared_kind or suffix or 'unknown'})",
                provider_name="extractor",
            )
        return kind

    def extract(self, data: bytes, file_name: str, declared_kind: str | None = None) -> str:
        kind = self.resolve_kind(file_name, declared_kind)
        try:
            raw = self._parsers[kind](data)
        except ExtractionFailedError:
            raise
        except Exception as exc:
            logger.warning(
                "text_extraction_failed",
                file_name=file_name,
                kind=kind,
                error=str(exc),
            )
            raise ExtractionFailedError(
                message=f"Could not parse '{file_name}': {exc}",
                provider_name="extractor",
            ) from exc

        text = sanitize_text(raw)
        if not text:
            raise ExtractionFailedError(
                message=f"No text could be extracted from '{file_name}'",
                provider_name="extractor",
            )
        logger.info("text_extracted", file_name=file_name, kind=kind, chars=len(text))
        return text

    # ------------------------------------------------------------------
    # Parsers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_txt(data: bytes) -> str:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ExtractionFailedError(
                message=f"Text file is not valid UTF-8: {exc}",
                provider_name="extractor",
            ) from exc

    @staticmethod
    def _extract_pdf(data: bytes) -> str:
        doc = fitz.open(stream=data, filetype="pdf")
        pages: list[str] = []
        try:
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        finally:
            doc.close()
        return "\n\n".join(pages)

    @staticmethod
    def _extract_docx(data: bytes) -> str:
        document = docx.Document(io.BytesIO(data))
        parts = [p.text for p in document.paragraphs if p.text.strip()]
        for table in document.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells]
                if any(cells):
                    parts.append(" | ".join(cells))
        return "\n".join(parts)

    @staticmethod
    def _extract_xlsx(data: bytes) -> str:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        sheets: list[str] = []
        try:
            for sheet in workbook.worksheets:
                rows: list[str] = []
                for row in sheet.iter_rows(values_only=True):
                    cells = ["" if value is None else str(value) for value in row]
                    if any(c.strip() for c in cells):
                        rows.append(" | ".join(cells))
                if rows:
                    sheets.append(f"Sheet: {sheet.title}\n" + "\n".join(rows))
        finally:
            workbook.close()
        return "\n\n".join(sheets)
