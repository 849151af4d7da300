"""Pydantic models for uploaded transaction documents.

Hierarchy:
  ProcessingStatus: ingestion lifecycle of a document.
  DocumentCategory: coarse classification assigned by the classifier.
  Document:         one stored attachment of a transaction.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class ProcessingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class DocumentCategory(str, Enum):
    UNKNOWN = "unknown"
    INVOICE = "invoice"
    CONTRACT = "contract"
    PURCHASE_ORDER = "purchase_order"


# Forward-only transitions of a single ingestion run.
ALLOWED_TRANSITIONS: dict[ProcessingStatus, set[ProcessingStatus]] = {
    ProcessingStatus.PENDING: {ProcessingStatus.PROCESSING, ProcessingStatus.FAILED},
    ProcessingStatus.PROCESSING: {ProcessingStatus.COMPLETED, ProcessingStatus.FAILED},
    ProcessingStatus.COMPLETED: set(),
    ProcessingStatus.FAILED: set(),
}


def is_transition_allowed(current: ProcessingStatus, target: ProcessingStatus) -> bool:
    """Check whether a status change is a valid forward step.

    Args:
        current (ProcessingStatus): The status stored for the document.
        target (ProcessingStatus): The requested new status.

    Returns:
        bool: True if the transition is allowed.
    """
    return target in ALLOWED_TRANSITIONS.get(current, set())


class Document(BaseModel):
    """A file attached to a financial transaction.

    The relational row is the single source of truth for status and
    category. Only the ingestion service mutates status after upload.

    Attributes:
        id:                    Opaque document identifier (uuid4 string).
        parent_transaction_id: ID of the transaction owning the file.
        file_name:             Original file name as uploaded.
        file_path:             Path of the stored bytes in file storage.
        category:              Classification result, "unknown" until classified.
        status:                Current ingestion status.
        failure_reason:        Short reason string when status is "failed".
        created_at:            Upload timestamp (UTC).
        processed_at:          Completion timestamp (UTC), set on success only.
    """

    id: str
    parent_transaction_id: str
    file_name: str
    file_path: str
    category: DocumentCategory = DocumentCategory.UNKNOWN
    status: ProcessingStatus = ProcessingStatus.PENDING
    failure_reason: str | None = None
    created_at: datetime
    processed_at: datetime | None = None
