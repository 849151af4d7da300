"""Vector index over a single collection.

Wraps the RAG and embedding clients: every indexed chunk is embedded here,
stored under a deterministic point ID, and can be searched with payload
filters or removed by document.
"""

import uuid

from shared.clients.embed.EmbedClientInterface import EmbedClientInterface
from shared.clients.rag.RAGClientInterface import RAGClientInterface
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.helper.HelperConfig import HelperConfig
from shared.models.errors import PipelineError, VectorDimensionError, VectorIndexError
from shared.models.search import SearchFilters, SearchResult

POINT_ID_NAMESPACE = uuid.UUID("6f1c1f6e-8d2a-4b7e-9a53-2c4d8e0b7a11")


def make_point_id(document_id: str, chunk_index: int) -> str:
    """Build the deterministic point ID of a chunk.

    The same (document_id, chunk_index) always maps to the same ID, so
    re-indexing a chunk replaces the existing point.

    Args:
        document_id (str): ID of the source document.
        chunk_index (int): Zero-based chunk position.

    Returns:
        str: UUID string usable as a point ID.
    """
    return str(uuid.uuid5(POINT_ID_NAMESPACE, f"{document_id}:{chunk_index}"))


class VectorIndexService:
    """Owns the collection of chunk vectors."""

    def __init__(
        self,
        helper_config: HelperConfig,
        rag_client: RAGClientInterface,
        embed_client: EmbedClientInterface,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._rag_client = rag_client
        self._embed_client = embed_client
        self._collection_ready = False

    ##########################################
    ############### COLLECTION ###############
    ##########################################

    async def ensure_collection(self, vector_size: int | None = None, distance: str | None = None) -> bool:
        """Create the collection if it does not exist yet.

        Failures are logged and never raised, so startup can proceed while
        the vector database is down.

        Returns:
            bool: True if the collection exists afterwards.
        """
        collection = self._rag_client.get_collection_name()
        try:
            if await self._rag_client.do_existence_check():
                self.logging.debug("Collection '%s' already exists.", collection)
                self._collection_ready = True
                return True
            await self._rag_client.do_create_collection(vector_size=vector_size, distance=distance)
        except (PipelineError, ValueError) as exc:
            self.logging.error("Could not ensure collection '%s': %s", collection, exc)
            return False
        self.logging.info(
            "Created collection '%s' (size=%d, distance=%s).",
            collection,
            vector_size or self._rag_client.vector_size,
            distance or self._rag_client.distance,
        )
        self._collection_ready = True
        return True

    async def _require_collection(self) -> None:
        """Create the collection on first write if startup could not."""
        if self._collection_ready or await self.ensure_collection():
            return
        raise VectorIndexError(
            f"Collection '{self._rag_client.get_collection_name()}' is not available.",
            engine_name=self._rag_client.get_engine_name(),
        )

    ##########################################
    ################ POINTS ##################
    ##########################################

    async def upsert_chunk(self, point: VectorPoint) -> str:
        """Embed a chunk and store it, replacing any point with the same ID.

        Args:
            point (VectorPoint): Payload of the chunk; content is embedded.

        Returns:
            str: The point ID.

        Raises:
            EmbeddingError: If the embedding backend fails.
            VectorDimensionError: If the vector size differs from the collection's.
            VectorIndexError: If the upsert request fails.
        """
        vector = await self._embed_client.do_embed_text(point.content)
        if len(vector) != self._rag_client.vector_size:
            raise VectorDimensionError(self._rag_client.vector_size, len(vector), self._rag_client.get_engine_name())

        await self._require_collection()
        point_id = make_point_id(point.document_id, point.chunk_index)
        await self._rag_client.do_upsert_points([
            {"id": point_id, "vector": vector, "payload": point.model_dump()},
        ])
        self.logging.debug(
            "Upserted chunk %d/%d of document %s as point %s.",
            point.chunk_index + 1, point.total_chunks, point.document_id, point_id,
        )
        return point_id

    async def delete_by_document(self, document_id: str) -> None:
        """Remove every point of a document."""
        await self._require_collection()
        condition = self._rag_client.build_match_condition("document_id", document_id)
        await self._rag_client.do_delete_points_by_filter([condition])
        self.logging.info("Deleted all points of document %s.", document_id)

    async def count_points(self, document_id: str | None = None) -> int:
        """Count points, optionally of a single document."""
        conditions = []
        if document_id is not None:
            conditions.append(self._rag_client.build_match_condition("document_id", document_id))
        return await self._rag_client.do_count(conditions)

    ##########################################
    ################ SEARCH ##################
    ##########################################

    def build_filter_conditions(self, filters: SearchFilters | None) -> list[dict]:
        """Translate SearchFilters into conjunctive match conditions."""
        if filters is None:
            return []
        conditions: list[dict] = []
        if filters.category is not None:
            conditions.append(self._rag_client.build_match_condition("category", filters.category.value))
        if filters.parent_transaction_id is not None:
            conditions.append(self._rag_client.build_match_condition("parent_transaction_id", filters.parent_transaction_id))
        if filters.has_amounts is not None:
            conditions.append(self._rag_client.build_match_condition("has_amounts", filters.has_amounts))
        if filters.has_dates is not None:
            conditions.append(self._rag_client.build_match_condition("has_dates", filters.has_dates))
        return conditions

    async def search(
        self,
        query_text: str,
        filters: SearchFilters | None = None,
        limit: int = 10,
        score_threshold: float = 0.5,
    ) -> list[SearchResult]:
        """Semantic search over the indexed chunks.

        Args:
            query_text (str): Natural language query.
            filters (SearchFilters | None): Payload filters, all must match.
            limit (int): Maximum number of results.
            score_threshold (float): Hits scoring below this are dropped.

        Returns:
            list[SearchResult]: At most limit results, highest score first.
        """
        vector = await self._embed_client.do_embed_text(query_text)
        conditions = self.build_filter_conditions(filters)
        hits = await self._rag_client.do_search(
            vector=vector,
            conditions=conditions,
            limit=limit,
            score_threshold=score_threshold,
        )

        results: list[SearchResult] = []
        for hit in hits:
            # threshold is enforced here as well as in the backend
            if hit["score"] < score_threshold:
                continue
            payload = hit["payload"]
            results.append(SearchResult(
                document_id=str(payload.get("document_id", "")),
                parent_transaction_id=str(payload.get("parent_transaction_id", "")),
                chunk_index=int(payload.get("chunk_index", 0)),
                total_chunks=int(payload.get("total_chunks", 1)),
                category=str(payload.get("category", "unknown")),
                file_name=str(payload.get("file_name", "")),
                content=str(payload.get("content", "")),
                score=hit["score"],
                token_count=int(payload.get("token_count", 0)),
                has_amounts=bool(payload.get("has_amounts", False)),
                has_dates=bool(payload.get("has_dates", False)),
                word_count=int(payload.get("word_count", 0)),
                created_at=payload.get("created_at"),
            ))

        results.sort(key=lambda r: r.score, reverse=True)
        results = results[:limit]
        self.logging.info(
            "Search returned %d result(s) for query '%s' (%d filter condition(s)).",
            len(results), query_text[:80], len(conditions),
        )
        return results
