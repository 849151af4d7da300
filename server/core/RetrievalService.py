from services.vector_index.VectorIndexService import VectorIndexService
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import DocumentNotFoundError
from shared.models.search import DocumentContent, SearchFilters, SearchResponse
from shared.repository.DocumentRepositoryInterface import DocumentRepositoryInterface
from shared.storage.FileStorageInterface import FileStorageInterface


class RetrievalService:
    """Handles semantic search queries: embed -> filtered search -> previews."""

    def __init__(
        self,
        helper_config: HelperConfig,
        vector_index: VectorIndexService,
        repository: DocumentRepositoryInterface,
        storage: FileStorageInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._vector_index = vector_index
        self._repository = repository
        self._storage = storage
        self.score_threshold = float(helper_config.get_number_val("SEARCH_SCORE_THRESHOLD", default=0.5))
        self.default_limit = int(helper_config.get_number_val("SEARCH_DEFAULT_LIMIT", default=5))
        self.preview_chars = int(helper_config.get_number_val("RETRIEVAL_PREVIEW_CHARS", default=300))

    ##########################################
    ############### CORE #####################
    ##########################################

    async def search(self, query: str, filters: SearchFilters | None = None, limit: int | None = None) -> SearchResponse:
        """Search indexed chunks and return previews of the matches.

        Args:
            query (str): Natural language query.
            filters (SearchFilters | None): Optional payload filters.
            limit (int | None): Maximum results, defaults to SEARCH_DEFAULT_LIMIT.

        Returns:
            SearchResponse: Results ordered by descending score, content cut to
                preview_chars with "..." appended when truncated.
        """
        limit = limit or self.default_limit
        self.logging.info("RetrievalService.search: query='%s', limit=%d", query[:80], limit)

        results = await self._vector_index.search(
            query_text=query,
            filters=filters,
            limit=limit,
            score_threshold=self.score_threshold,
        )
        previews = [r.model_copy(update={"content": self._preview(r.content)}) for r in results]
        return SearchResponse(query=query, results=previews, total=len(previews))

    def _preview(self, content: str) -> str:
        if len(content) <= self.preview_chars:
            return content
        return content[: self.preview_chars] + "..."

    async def fetch_full_content(self, document_id: str) -> DocumentContent:
        """Re-read a document's stored file.

        Raises:
            DocumentNotFoundError: If no document row exists.
            FileNotFoundError: If the stored file is gone.
        """
        document = await self._repository.do_get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        raw = await self._storage.do_read_file(document.file_path)
        return DocumentContent(
            document_id=document.id,
            parent_transaction_id=document.parent_transaction_id,
            file_name=document.file_name,
            category=document.category,
            content=raw.decode("utf-8", errors="replace"),
        )

    async def count_documents_by_category(self) -> dict[str, int]:
        """Counts of completed documents per category."""
        return await self._repository.do_count_by_category()
