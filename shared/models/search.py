"""Pydantic models for semantic search requests and responses."""

from pydantic import BaseModel, Field

from shared.models.document import DocumentCategory


class SearchFilters(BaseModel):
    """Optional payload filters. Every non-null field must match (AND)."""

    category: DocumentCategory | None = None
    parent_transaction_id: str | None = None
    has_amounts: bool | None = None
    has_dates: bool | None = None

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class SearchRequest(BaseModel):
    """Incoming natural language search query."""

    query: str = Field(min_length=1)
    filters: SearchFilters | None = None
    limit: int | None = Field(default=None, ge=1, le=20)


class SearchResult(BaseModel):
    """A single chunk hit returned from the vector index."""

    document_id: str
    parent_transaction_id: str
    chunk_index: int
    total_chunks: int
    category: str
    file_name: str
    content: str
    score: float
    token_count: int = 0
    has_amounts: bool = False
    has_dates: bool = False
    word_count: int = 0
    created_at: str | None = None


class SearchResponse(BaseModel):
    """Ranked search results, content truncated to a preview."""

    query: str
    results: list[SearchResult]
    total: int


class DocumentContent(BaseModel):
    """Full, untruncated text of a stored document."""

    document_id: str
    parent_transaction_id: str
    file_name: str
    category: DocumentCategory
    content: str
