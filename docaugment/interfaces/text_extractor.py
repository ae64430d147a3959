"""Abstract base class for text extraction from uploaded files."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ITextExtractor(ABC):
    """Contract for turning raw upload bytes into sanitized plain text."""

    @abstractmethod
    def extract(self, data: bytes, file_name: str, declared_kind: str | None = None) -> str:
        """Extract plain text from *data*.

        Parameters
        ----------
        data:
            Raw bytes of the uploaded file.
        file_name:
            Original file name; its extension selects the parser.
        declared_kind:
            MIME type declared by the uploader, consulted when the
            extension is missing or unknown.

        Returns
        -------
        str
            Sanitized, non-blank plain text.

        Raises
        ------
        docaugment.utils.errors.UnsupportedFormatError
            If no parser handles the file kind.
        docaugment.utils.errors.ExtractionFailedError
            If parsing fails or yields no text.
        """

    @abstractmethod
    def supported_kinds(self) -> list[str]:
        """Return the MIME types this extractor accepts."""
