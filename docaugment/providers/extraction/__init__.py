"""Text extraction from uploaded files."""

from docaugment.providers.extraction.file_text_extractor import FileTextExtractor, sanitize_text

__all__ = ["FileTextExtractor", "sanitize_text"]
