"""Search result models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from docaugment.models.document import Document


class SearchHit(BaseModel):
    """A document matched by vector search, with its nearest chunk."""

    model_config = ConfigDict(frozen=True)

    document: Document
    distance: float = Field(ge=0.0, description="Cosine distance of the nearest chunk.")
    chunk_index: int = Field(ge=0)
    chunk_text: str

    @property
    def score(self) -> float:
        """Cosine similarity of the nearest chunk (``1 - distance``)."""
        return 1.0 - self.distance
