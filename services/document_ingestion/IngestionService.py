"""Document ingestion service.

Takes a stored document from "pending" to "completed" (or "failed"):
classify the text, split it into chunks, enrich each chunk with metadata
and index it in the vector collection.
"""

import asyncio
from datetime import datetime, timezone

from services.document_ingestion.DocumentClassifier import DocumentClassifier
from services.document_ingestion.MetadataEnricher import MetadataEnricher
from services.document_ingestion.TextChunker import TextChunker
from services.vector_index.VectorIndexService import VectorIndexService
from shared.clients.rag.models.VectorPoint import VectorPoint
from shared.helper.HelperConfig import HelperConfig
from shared.models.document import Document, ProcessingStatus
from shared.models.errors import DocumentNotFoundError, InvalidStatusTransitionError
from shared.repository.DocumentRepositoryInterface import DocumentRepositoryInterface
from shared.storage.FileStorageInterface import FileStorageInterface


def decode_content(raw: bytes) -> str:
    """Decode stored file bytes as UTF-8, replacing invalid sequences."""
    return raw.decode("utf-8", errors="replace")


class IngestionService:
    """Orchestrates the ingestion pipeline and the document status lifecycle."""

    def __init__(
        self,
        helper_config: HelperConfig,
        repository: DocumentRepositoryInterface,
        storage: FileStorageInterface,
        classifier: DocumentClassifier,
        chunker: TextChunker,
        enricher: MetadataEnricher,
        vector_index: VectorIndexService,
    ) -> None:
        self.logging = helper_config.get_logger()
        self._repository = repository
        self._storage = storage
        self._classifier = classifier
        self._chunker = chunker
        self._enricher = enricher
        self._vector_index = vector_index
        self.doc_concurrency = int(helper_config.get_number_val("INGEST_DOC_CONCURRENCY", default=5))

    ##########################################
    ################ UPLOAD ##################
    ##########################################

    async def register_upload(self, transaction_id: str, file_name: str, data: bytes) -> Document:
        """Store an uploaded file and create its document row in status "pending".

        Raises:
            ValueError: If the file is empty.
        """
        file_path = await self._storage.do_save_file(transaction_id, file_name, data)
        return await self._repository.do_create_document(
            parent_transaction_id=transaction_id,
            file_name=file_name,
            file_path=file_path,
        )

    ##########################################
    ############### CORE INGEST ##############
    ##########################################

    async def process_document(self, document_id: str) -> Document | None:
        """Run the full pipeline for one pending document.

        Never raises for pipeline failures: they are logged and recorded as
        status "failed" with a reason. The pending -> processing transition
        is the claim on the document: a run that loses it leaves the document
        to the winner. If the row is deleted while the run is in flight, the
        points it wrote are removed again.

        Args:
            document_id (str): ID of the document to ingest.

        Returns:
            Document | None: The document after the run, None if it does not exist.
        """
        document = await self._repository.do_get_document(document_id)
        if document is None:
            self.logging.warning("Document %s not found, nothing to ingest.", document_id)
            return None
        if document.status is not ProcessingStatus.PENDING:
            self.logging.warning(
                "Document %s is '%s', not 'pending'. Use re-ingestion to process it again.",
                document_id, document.status.value,
            )
            return document

        try:
            await self._repository.do_set_status(document_id, ProcessingStatus.PROCESSING)
        except InvalidStatusTransitionError as exc:
            self.logging.warning("Document %s was claimed by another run, skipping: %s", document_id, exc)
            return await self._repository.do_get_document(document_id)
        except DocumentNotFoundError:
            self.logging.warning("Document %s was deleted before ingestion started.", document_id)
            return None

        self.logging.info("Ingesting document %s ('%s')...", document_id, document.file_name)

        try:
            # points of an earlier lifecycle, only the claiming run may touch them
            await self._vector_index.delete_by_document(document_id)

            try:
                raw = await self._storage.do_read_file(document.file_path)
            except OSError as exc:
                self.logging.error("Cannot read file of document %s: %s", document_id, exc)
                await self._mark_failed(document_id, f"File could not be read: {exc}")
                return await self._repository.do_get_document(document_id)

            content = decode_content(raw)
            if not content.strip():
                self.logging.warning("Document %s has no text content.", document_id)
                await self._mark_failed(document_id, "Document has no text content.")
                return await self._repository.do_get_document(document_id)

            category = await self._classifier.categorize(content)
            await self._repository.do_set_category(document_id, category)

            chunks = self._chunker.split_into_chunks(content)
            total_chunks = len(chunks)

            # sequential per document, first failure aborts the rest
            for chunk_index, chunk in enumerate(chunks):
                metadata = self._enricher.enrich(chunk.content)
                point = VectorPoint(
                    document_id=document_id,
                    parent_transaction_id=document.parent_transaction_id,
                    chunk_index=chunk_index,
                    total_chunks=total_chunks,
                    category=category.value,
                    file_name=document.file_name,
                    content=chunk.content,
                    token_count=chunk.token_count,
                    has_amounts=metadata.has_amounts,
                    has_dates=metadata.has_dates,
                    word_count=metadata.word_count,
                )
                try:
                    await self._vector_index.upsert_chunk(point)
                except Exception as exc:
                    self.logging.error(
                        "Indexing chunk %d/%d of document %s failed: %s",
                        chunk_index + 1, total_chunks, document_id, exc,
                    )
                    await self._mark_failed(document_id, f"Indexing chunk {chunk_index} failed: {exc}")
                    return await self._repository.do_get_document(document_id)

            await self._repository.do_set_processed_at(document_id, datetime.now(timezone.utc))
            await self._repository.do_set_status(document_id, ProcessingStatus.COMPLETED)
        except DocumentNotFoundError:
            self.logging.warning("Document %s was deleted during ingestion, removing its points.", document_id)
            await self._discard_points(document_id)
            return None
        except InvalidStatusTransitionError as exc:
            self.logging.warning("Document %s changed status during ingestion, leaving it as is: %s", document_id, exc)
            return await self._repository.do_get_document(document_id)
        except Exception as exc:
            self.logging.exception("Ingestion of document %s failed: %s", document_id, exc)
            await self._mark_failed(document_id, f"Ingestion failed: {exc}")
            return await self._repository.do_get_document(document_id)

        self.logging.info(
            "Document %s completed: category=%s, %d chunk(s) indexed.",
            document_id, category.value, total_chunks,
        )
        return await self._repository.do_get_document(document_id)

    async def _mark_failed(self, document_id: str, reason: str) -> None:
        try:
            await self._repository.do_set_status(document_id, ProcessingStatus.FAILED, failure_reason=reason)
        except DocumentNotFoundError:
            self.logging.warning("Document %s was deleted during ingestion, removing its points.", document_id)
            await self._discard_points(document_id)
        except InvalidStatusTransitionError as exc:
            self.logging.warning("Document %s changed status during ingestion, not marking it failed: %s", document_id, exc)
        except Exception as exc:
            self.logging.exception("Could not mark document %s as failed: %s", document_id, exc)

    async def _discard_points(self, document_id: str) -> None:
        try:
            await self._vector_index.delete_by_document(document_id)
        except Exception as exc:
            self.logging.exception("Could not remove points of deleted document %s: %s", document_id, exc)

    ##########################################
    ############## RE-INGEST #################
    ##########################################

    async def reingest_document(self, document_id: str, force: bool = False) -> Document | None:
        """Start a new lifecycle for an existing document.

        The row is reset to "pending" and the pipeline runs again. The run
        that claims the document deletes the points of earlier attempts
        before indexing, so stale chunk indices cannot survive.

        Args:
            document_id (str): Document to re-ingest.
            force (bool): Also reset a document stuck in "processing" after a crash.

        Raises:
            DocumentNotFoundError: If the document does not exist.
            InvalidStatusTransitionError: If the document is being processed and force is not set.
        """
        document = await self._repository.do_get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)

        self.logging.info("Re-ingesting document %s (was '%s').", document_id, document.status.value)
        await self._repository.do_reset_document(document_id, force=force)
        return await self.process_document(document_id)

    async def delete_document(self, document_id: str) -> None:
        """Remove a document's points, its stored file and its row.

        Raises:
            DocumentNotFoundError: If the document does not exist.
            VectorIndexError: If the points cannot be deleted; file and row are kept.
        """
        document = await self._repository.do_get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)

        await self._vector_index.delete_by_document(document_id)
        await self._storage.do_delete_file(document.file_path)
        await self._repository.do_delete_document(document_id)
        # a run that completed before the row was gone wrote its points before that
        await self._vector_index.delete_by_document(document_id)
        self.logging.info("Document %s deleted.", document_id)


    ##########################################
    ################ BATCH ###################
    ##########################################

    async def process_documents(
        self, document_ids: list[str], reingest: bool = False, force: bool = False
    ) -> dict[str, int]:
        """Ingest several documents concurrently.

        Args:
            document_ids (list[str]): Documents to process.
            reingest (bool): Use reingest_document instead of process_document.
            force (bool): Passed to reingest_document.

        Returns:
            dict[str, int]: Number of documents per resulting status, plus
                "missing" and "errors".
        """
        sem = asyncio.Semaphore(self.doc_concurrency)

        async def _run(document_id: str) -> Document | None:
            async with sem:
                if reingest:
                    return await self.reingest_document(document_id, force=force)
                return await self.process_document(document_id)

        results = await asyncio.gather(*[_run(doc_id) for doc_id in document_ids], return_exceptions=True)

        counts: dict[str, int] = {status.value: 0 for status in ProcessingStatus}
        counts["missing"] = 0
        counts["errors"] = 0
        for document_id, result in zip(document_ids, results):
            if isinstance(result, Exception):
                self.logging.error("Processing document %s raised: %s", document_id, result)
                counts["errors"] += 1
            elif result is None:
                counts["missing"] += 1
            else:
                counts[result.status.value] += 1

        self.logging.info(
            "Batch ingestion done: %d completed, %d failed, %d missing, %d errors.",
            counts["completed"], counts["failed"], counts["missing"], counts["errors"],
        )
        return counts
