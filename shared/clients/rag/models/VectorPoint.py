"""VectorPoint model: payload stored alongside each chunk vector."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class VectorPoint(BaseModel):
    """Payload of one indexed chunk.

    The point ID is not part of the payload; it is derived from
    (document_id, chunk_index) so that re-indexing a chunk overwrites it.

    Attributes:
        document_id:           ID of the source document.
        parent_transaction_id: ID of the transaction owning the document.
        chunk_index:           Zero-based position of this chunk within the document.
        total_chunks:          Number of chunks the document was split into.
        category:              Document category at indexing time.
        file_name:             Original file name, for display.
        content:               Raw text of this chunk (embedded and returned in search results).
        token_count:           Estimated tokens of the chunk.
        has_amounts:           Chunk mentions a monetary amount.
        has_dates:             Chunk mentions a date.
        word_count:            Whitespace-delimited words in the chunk.
        created_at:            ISO-8601 UTC timestamp of indexing.
    """

    document_id: str
    parent_transaction_id: str
    chunk_index: int = Field(ge=0)
    total_chunks: int = Field(ge=1)
    category: str
    file_name: str
    content: str
    token_count: int = Field(default=0, ge=0)
    has_amounts: bool = False
    has_dates: bool = False
    word_count: int = 0
    created_at: str = Field(default_factory=_utc_now_iso)
