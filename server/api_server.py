"""FastAPI application entry point for the transaction document service."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from server.core.RetrievalService import RetrievalService
from server.routers.DocumentRouter import router as document_router
from server.routers.QueryRouter import router as query_router
from services.document_ingestion.DocumentClassifier import DocumentClassifier
from services.document_ingestion.IngestionService import IngestionService
from services.document_ingestion.MetadataEnricher import MetadataEnricher
from services.document_ingestion.TextChunker import TextChunker
from services.vector_index.VectorIndexService import VectorIndexService
from shared.clients.ClientInterface import ClientInterface
from shared.clients.embed.EmbedClientManager import EmbedClientManager
from shared.clients.llm.LLMClientManager import LLMClientManager
from shared.clients.rag.RAGClientManager import RAGClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging
from shared.repository.sqlite.DocumentRepositorySqlite import DocumentRepositorySqlite
from shared.storage.local.FileStorageLocal import FileStorageLocal

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)
    config = app.state.helper_config

    rag_client = RAGClientManager(helper_config=config).get_client()
    embed_client = EmbedClientManager(helper_config=config).get_client()
    llm_client = LLMClientManager(helper_config=config).get_client()
    clients: list[ClientInterface] = [rag_client, embed_client, llm_client]

    logging.info("Booting all clients...")
    for client in clients:
        await client.boot()
    logging.info("All clients booted successfully.")

    repository = DocumentRepositorySqlite(helper_config=config)
    await repository.do_initialize()
    storage = FileStorageLocal(helper_config=config)
    vector_index = VectorIndexService(helper_config=config, rag_client=rag_client, embed_client=embed_client)

    app.state.repository = repository
    app.state.vector_index = vector_index
    app.state.ingestion_service = IngestionService(
        helper_config=config,
        repository=repository,
        storage=storage,
        classifier=DocumentClassifier(helper_config=config, llm_client=llm_client),
        chunker=TextChunker(helper_config=config),
        enricher=MetadataEnricher(helper_config=config),
        vector_index=vector_index,
    )
    app.state.retrieval_service = RetrievalService(
        helper_config=config,
        vector_index=vector_index,
        repository=repository,
        storage=storage,
    )

    await check_connections(clients)
    await vector_index.ensure_collection()

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in clients:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="transaction_docs",
    description=(
        "Document ingestion and semantic retrieval for transaction attachments. "
        "Uploaded files are classified, chunked, embedded and indexed into a vector database; "
        "POST /search answers filtered semantic queries."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(document_router)
app.include_router(query_router)


async def check_connections(clients: list[ClientInterface]) -> None:
    """Check connectivity to all configured backends on startup.

    Failures are logged as warnings only. The server stays up, uploads are
    stored and ingestion marks documents failed until the backend returns.
    """
    for client in clients:
        try:
            result = await client.do_healthcheck()
        except Exception as e:
            logging.warning("%s client '%s' is not reachable: %s", client.get_client_type().upper(), client.get_engine_name(), e)
            continue
        if not result.is_success:
            logging.warning(
                "%s client '%s' answered healthcheck with status %d.",
                client.get_client_type().upper(),
                client.get_engine_name(),
                result.status_code,
            )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting transaction_docs API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
