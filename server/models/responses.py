from datetime import datetime

from pydantic import BaseModel

from shared.models.document import Document, DocumentCategory, ProcessingStatus


class DocumentResponse(BaseModel):
    id: str
    parent_transaction_id: str
    file_name: str
    category: DocumentCategory
    status: ProcessingStatus
    failure_reason: str | None
    created_at: datetime
    processed_at: datetime | None

    @classmethod
    def from_document(cls, document: Document) -> "DocumentResponse":
        return cls(**document.model_dump(exclude={"file_path"}))


class AcceptedResponse(BaseModel):
    status: str
    document_id: str


class CategoryStatsResponse(BaseModel):
    counts: dict[str, int]
    total: int
