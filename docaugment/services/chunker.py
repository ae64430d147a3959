"""Sentence-aligned text chunking for embedding generation.

Splits text into sentences -- maximal runs ending in ``.``, ``!`` or ``?``,
with the punctuation kept -- and packs them greedily into chunks of at most
``chunk_size`` characters joined by single spaces.  Chunk boundaries always
fall between sentences, so no sentence is ever cut.  A single sentence
longer than the budget becomes a chunk of its own.

Unlike paragraph-based chunkers there is no overlap between consecutive
chunks: each character of a sentence appears in exactly one chunk.
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_CHUNK_SIZE = 1000

# A sentence is everything up to and including a run of terminators, or the
# unterminated tail of the text.
_SENTENCE_RE = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$|[.!?]+")
_CONTENT_RE = re.compile(r"[^\s.!?]")


def split_sentences(text: str) -> list[str]:
    """Return the stripped sentences of *text*, dropping punctuation-only fragments."""
    sentences: list[str] = []
    for match in _SENTENCE_RE.finditer(text):
        sentence = match.group(0).strip()
        if _CONTENT_RE.search(sentence):
            sentences.append(sentence)
    return sentences


class SentenceChunker:
    """Greedy sentence packer.

    Parameters
    ----------
    chunk_size:
        Character budget per chunk (default 1000).
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._chunk_size = chunk_size

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def chunk(self, text: str, chunk_size: int | None = None) -> list[str]:
        """Split *text* into sentence-aligned chunks.

        Returns an empty list for blank input.  Chunk order follows the
        text, and concatenating the chunks' sentences reproduces the
        sentence sequence of the input.
        """
        size = chunk_size or self._chunk_size
        chunks: list[str] = []
        current = ""
        for sentence in split_sentences(text):
            if current and len(current) + 1 + len(sentence) > size:
                chunks.append(current)
                current = sentence
            elif current:
                current = f"{current} {sentence}"
            else:
                current = sentence
        if current:
            chunks.append(current)

        logger.debug("text_chunked", chunks=len(chunks), chunk_size=size, chars=len(text))
        return chunks
