from abc import ABC, abstractmethod
from datetime import datetime

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, DocumentCategory, ProcessingStatus


class DocumentRepositoryInterface(ABC):
    """Relational store for document rows.

    Only status, category and processed_at are mutated after upload, and only
    by the ingestion service.
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config

    ##########################################
    ################ GETTER ##################
    ##########################################

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    @abstractmethod
    async def do_initialize(self) -> None:
        """Create tables and indices if missing."""
        pass

    @abstractmethod
    async def do_create_document(self, parent_transaction_id: str, file_name: str, file_path: str) -> Document:
        """Insert a new document in status "pending"."""
        pass

    @abstractmethod
    async def do_get_document(self, document_id: str) -> Document | None:
        pass

    @abstractmethod
    async def do_list_documents(self, parent_transaction_id: str | None = None) -> list[Document]:
        """List documents, newest first, optionally of one transaction."""
        pass

    @abstractmethod
    async def do_set_status(self, document_id: str, status: ProcessingStatus, failure_reason: str | None = None) -> None:
        """Move a document to a new status.

        Raises:
            DocumentNotFoundError: If the document does not exist.
            InvalidStatusTransitionError: If the transition is not a forward step.
        """
        pass

    @abstractmethod
    async def do_set_category(self, document_id: str, category: DocumentCategory) -> None:
        pass

    @abstractmethod
    async def do_set_processed_at(self, document_id: str, processed_at: datetime) -> None:
        pass

    @abstractmethod
    async def do_reset_document(self, document_id: str, force: bool = False) -> None:
        """Start a new lifecycle: status "pending", category "unknown", reason and processed_at cleared.

        A document in status "processing" is only reset with force, which is
        meant for runs that stalled after a crash.

        Raises:
            DocumentNotFoundError: If the document does not exist.
            InvalidStatusTransitionError: If the document is being processed and force is not set.
        """
        pass

    @abstractmethod
    async def do_delete_document(self, document_id: str) -> bool:
        """Delete the row. Returns False if it did not exist."""
        pass

    @abstractmethod
    async def do_count_by_category(self, status: ProcessingStatus = ProcessingStatus.COMPLETED) -> dict[str, int]:
        """Count documents in the given status grouped by category."""
        pass
