"""Ingestion runner entry point.

Processes stored documents outside the API server, e.g. to re-drive
documents that stayed "processing" after a crash.

Usage:
    python -m services.document_ingestion.ingest_runner --pending
    python -m services.document_ingestion.ingest_runner --reingest <document_id> [<document_id> ...]
    python -m services.document_ingestion.ingest_runner --reingest --force <document_id>
    python -m services.document_ingestion.ingest_runner --transaction <transaction_id> --reingest
"""

import argparse
import asyncio

from services.document_ingestion.DocumentClassifier import DocumentClassifier
from services.document_ingestion.IngestionService import IngestionService
from services.document_ingestion.MetadataEnricher import MetadataEnricher
from services.document_ingestion.TextChunker import TextChunker
from services.vector_index.VectorIndexService import VectorIndexService
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.models.document import ProcessingStatus
from shared.repository.sqlite.DocumentRepositorySqlite import DocumentRepositorySqlite
from shared.storage.local.FileStorageLocal import FileStorageLocal


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ingest stored transaction documents into the vector index.")
    parser.add_argument("document_ids", nargs="*", help="Documents to process.")
    parser.add_argument("--pending", action="store_true", help="Process every document in status 'pending'.")
    parser.add_argument("--transaction", help="Select all documents of this transaction.")
    parser.add_argument("--reingest", action="store_true", help="Delete existing points and start a new lifecycle.")
    parser.add_argument("--force", action="store_true", help="With --reingest, also reset documents stuck in 'processing'.")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> None:
    """Run ingestion for the selected documents."""
    args = parse_args(argv)
    logger = setup_logging()
    config = HelperConfig(logger=logger)

    rag_client = RAGClientManager(helper_config=config).get_client()
    embed_client = EmbedClientManager(helper_config=config).get_client()
    llm_client = LLMClientManager(helper_config=config).get_client()
    repository = DocumentRepositorySqlite(helper_config=config)

    try:
        # embed and rag clients are required, without them nothing can be indexed
        for client in (embed_client, rag_client, llm_client):
            await client.boot()
        for client in (embed_client, rag_client):
            try:
                response = await client.do_healthcheck()
            except Exception as e:
                logger.error("Error reaching %s client %s: %s. Aborting.", client.get_client_type(), client.get_engine_name(), e)
                return
            if not response.is_success:
                logger.error("%s client %s answered %d. Aborting.", client.get_client_type(), client.get_engine_name(), response.status_code)
                return

        await repository.do_initialize()
        vector_index = VectorIndexService(helper_config=config, rag_client=rag_client, embed_client=embed_client)
        if not await vector_index.ensure_collection():
            logger.error("Collection is not available. Aborting.")
            return

        document_ids = list(args.document_ids)
        if args.transaction:
            document_ids += [d.id for d in await repository.do_list_documents(args.transaction)]
        if args.pending:
            document_ids += [d.id for d in await repository.do_list_documents() if d.status is ProcessingStatus.PENDING]
        document_ids = list(dict.fromkeys(document_ids))
        if not document_ids:
            logger.warning("No documents selected. Nothing to do.")
            return

        ingestion_service = IngestionService(
            helper_config=config,
            repository=repository,
            storage=FileStorageLocal(helper_config=config),
            classifier=DocumentClassifier(helper_config=config, llm_client=llm_client),
            chunker=TextChunker(helper_config=config),
            enricher=MetadataEnricher(helper_config=config),
            vector_index=vector_index,
        )
        await ingestion_service.process_documents(document_ids, reingest=args.reingest, force=args.force)
    finally:
        for client in (embed_client, rag_client, llm_client):
            await client.close()


if __name__ == "__main__":
    asyncio.run(main())
