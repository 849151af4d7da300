"""Ephemeral chunk models produced during ingestion."""

from pydantic import BaseModel, Field


class TextChunk(BaseModel):
    """A sentence-bounded slice of a document's text.

    Chunk indices are not stored here; the ingestion service assigns them
    in generation order.
    """

    content: str
    token_count: int = Field(ge=0)


class ChunkMetadata(BaseModel):
    """Pattern-derived facts about a chunk's content."""

    has_amounts: bool = False
    has_dates: bool = False
    word_count: int = 0
