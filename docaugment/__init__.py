"""docaugment -- document ingestion and AI augmentation pipeline.

Extracts text from uploaded files, summarizes it, splits it into
sentence-aligned chunks, embeds the chunks for vector search, and answers
questions about documents, routing every AI call through an ordered chain
of interchangeable providers.
"""

__version__ = "0.1.0"
