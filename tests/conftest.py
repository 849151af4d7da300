"""Shared pytest fixtures: in-memory Qdrant and Ollama fakes, wired services."""

from __future__ import annotations

import json
import logging
import math
import re
import zlib
from pathlib import Path

import httpx
import pytest
import pytest_asyncio

from server.core.RetrievalService import RetrievalService
from services.document_ingestion.DocumentClassifier import DocumentClassifier
from services.document_ingestion.IngestionService import IngestionService
from services.document_ingestion.MetadataEnricher import MetadataEnricher
from services.document_ingestion.TextChunker import TextChunker
from services.vector_index.VectorIndexService import VectorIndexService
from shared.clients.embed.ollama.EmbedClientOllama import EmbedClientOllama
from shared.clients.llm.ollama.LLMClientOllama import LLMClientOllama
from shared.clients.rag.qdrant.RAGClientQdrant import RAGClientQdrant
from shared.helper.HelperConfig import HelperConfig
from shared.repository.sqlite.DocumentRepositorySqlite import DocumentRepositorySqlite
from shared.storage.local.FileStorageLocal import FileStorageLocal

QDRANT_URL = "http://qdrant.test"
OLLAMA_URL = "http://ollama.test"
COLLECTION = "transaction_documents"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


def bag_of_words_vector(text: str, dim: int) -> list[float]:
    """Deterministic embedding: one bucket per lower-cased word."""
    vector = [0.0] * dim
    words = re.findall(r"\w+", text.lower())
    for word in words:
        vector[zlib.crc32(word.encode("utf-8")) % dim] += 1.0
    if not words:
        vector[0] = 1.0
    return vector


def _cosine(a: list[float], b: list[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


def _matches(payload: dict, conditions: list[dict]) -> bool:
    return all(payload.get(c["key"]) == c["match"]["value"] for c in conditions)


class FakeQdrant:
    """Minimal Qdrant REST API over a dict of points."""

    def __init__(self, collection: str = COLLECTION) -> None:
        self.collection = collection
        self.exists = False
        self.vector_size: int | None = None
        self.points: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []
        self.unreachable = False
        self.ignore_threshold = False
        self.fail_upsert_after: int | None = None
        self.upsert_calls = 0

    def requests_to(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)

        path = request.url.path
        base = f"/collections/{self.collection}"
        body = json.loads(request.content) if request.content else {}

        if path == "/healthz":
            return httpx.Response(200, text="healthz check passed")
        if path == f"{base}/exists" and request.method == "GET":
            return httpx.Response(200, json={"result": {"exists": self.exists}, "status": "ok"})
        if path == base and request.method == "PUT":
            self.exists = True
            self.vector_size = body["vectors"]["size"]
            return httpx.Response(200, json={"result": True, "status": "ok"})
        if not self.exists:
            return httpx.Response(404, json={"status": {"error": f"Collection `{self.collection}` doesn't exist!"}})

        if path == f"{base}/points" and request.method == "PUT":
            self.upsert_calls += 1
            if self.fail_upsert_after is not None and self.upsert_calls > self.fail_upsert_after:
                return httpx.Response(500, json={"status": {"error": "Service internal error"}})
            for point in body["points"]:
                if self.vector_size is not None and len(point["vector"]) != self.vector_size:
                    return httpx.Response(400, json={"status": {"error": "Wrong input: Vector dimension error"}})
                self.points[str(point["id"])] = {"vector": point["vector"], "payload": point["payload"]}
            return httpx.Response(200, json={"result": {"operation_id": self.upsert_calls, "status": "completed"}, "status": "ok"})

        if path == f"{base}/points/search" and request.method == "POST":
            conditions = body.get("filter", {}).get("must", [])
            threshold = body.get("score_threshold")
            hits = []
            for point_id, point in self.points.items():
                if not _matches(point["payload"], conditions):
                    continue
                score = _cosine(body["vector"], point["vector"])
                if threshold is not None and score < threshold and not self.ignore_threshold:
                    continue
                hits.append({"id": point_id, "version": 0, "score": score, "payload": point["payload"]})
            if self.ignore_threshold:
                hits.sort(key=lambda h: h["score"])
            else:
                hits.sort(key=lambda h: h["score"], reverse=True)
            return httpx.Response(200, json={"result": hits[: body["limit"]], "status": "ok"})

        if path == f"{base}/points/delete" and request.method == "POST":
            conditions = body["filter"]["must"]
            for point_id in [pid for pid, p in self.points.items() if _matches(p["payload"], conditions)]:
                del self.points[point_id]
            return httpx.Response(200, json={"result": {"operation_id": 0, "status": "completed"}, "status": "ok"})

        if path == f"{base}/points/count" and request.method == "POST":
            conditions = body.get("filter", {}).get("must", [])
            count = sum(1 for p in self.points.values() if _matches(p["payload"], conditions))
            return httpx.Response(200, json={"result": {"count": count}, "status": "ok"})

        return httpx.Response(404, json={"status": {"error": "Not found"}})


class FakeOllama:
    """Ollama /api/embed and /api/generate with deterministic answers."""

    def __init__(self, dim: int = 384) -> None:
        self.dim = dim
        self.generate_answer = "invoice"
        self.generate_status = 200
        self.embed_status = 200
        self.drop_embeddings = False
        self.unreachable = False
        self.requests: list[httpx.Request] = []

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)

        path = request.url.path
        body = json.loads(request.content) if request.content else {}

        if path == "/" and request.method == "GET":
            return httpx.Response(200, text="Ollama is running")
        if path == "/api/embed":
            if self.embed_status != 200:
                return httpx.Response(self.embed_status, json={"error": "model failed"})
            if self.drop_embeddings:
                return httpx.Response(200, json={"model": body["model"], "embeddings": []})
            vectors = [bag_of_words_vector(text, self.dim) for text in body["input"]]
            return httpx.Response(200, json={"model": body["model"], "embeddings": vectors})
        if path == "/api/generate":
            if self.generate_status != 200:
                return httpx.Response(self.generate_status, json={"error": "model failed"})
            return httpx.Response(200, json={"model": body["model"], "response": self.generate_answer, "done": True})
        return httpx.Response(404, text="404 page not found")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Point every setting at the fakes and the temp directory."""
    monkeypatch.setenv("RAG_ENGINE", "qdrant")
    monkeypatch.setenv("RAG_QDRANT_BASE_URL", QDRANT_URL)
    monkeypatch.setenv("RAG_QDRANT_COLLECTION", COLLECTION)
    monkeypatch.setenv("EMBED_ENGINE", "ollama")
    monkeypatch.setenv("EMBED_OLLAMA_BASE_URL", OLLAMA_URL)
    monkeypatch.setenv("LLM_ENGINE", "ollama")
    monkeypatch.setenv("LLM_OLLAMA_BASE_URL", OLLAMA_URL)
    monkeypatch.setenv("DB_PATH", str(tmp_path / "documents.db"))
    monkeypatch.setenv("STORAGE_BASE_PATH", str(tmp_path / "attachments"))
    for key in ("RAG_VECTOR_SIZE", "RAG_QDRANT_API_KEY", "EMBED_OLLAMA_API_KEY", "METADATA_CURRENCIES",
                "CHUNK_TARGET_TOKENS", "CHUNK_OVERLAP_TOKENS", "SEARCH_SCORE_THRESHOLD"):
        monkeypatch.delenv(key, raising=False)
    return tmp_path


@pytest.fixture
def helper_config() -> HelperConfig:
    return HelperConfig(logger=logging.getLogger("transaction_docs.tests"))


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_qdrant() -> FakeQdrant:
    return FakeQdrant()


@pytest.fixture
def fake_ollama() -> FakeOllama:
    return FakeOllama()


@pytest_asyncio.fixture
async def rag_client(helper_config: HelperConfig, fake_qdrant: FakeQdrant):
    client = RAGClientQdrant(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(fake_qdrant.handler))
    yield client
    await client.close()


@pytest_asyncio.fixture
async def embed_client(helper_config: HelperConfig, fake_ollama: FakeOllama):
    client = EmbedClientOllama(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(fake_ollama.handler))
    yield client
    await client.close()


@pytest_asyncio.fixture
async def llm_client(helper_config: HelperConfig, fake_ollama: FakeOllama):
    client = LLMClientOllama(helper_config=helper_config)
    await client.boot(transport=httpx.MockTransport(fake_ollama.handler))
    yield client
    await client.close()


# ---------------------------------------------------------------------------
# Services
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def vector_index(helper_config, rag_client, embed_client) -> VectorIndexService:
    """Vector index with the collection already created."""
    service = VectorIndexService(helper_config=helper_config, rag_client=rag_client, embed_client=embed_client)
    assert await service.ensure_collection()
    return service


@pytest_asyncio.fixture
async def repository(helper_config) -> DocumentRepositorySqlite:
    repo = DocumentRepositorySqlite(helper_config=helper_config)
    await repo.do_initialize()
    return repo


@pytest.fixture
def storage(helper_config) -> FileStorageLocal:
    return FileStorageLocal(helper_config=helper_config)


@pytest.fixture
def chunker(helper_config) -> TextChunker:
    return TextChunker(helper_config=helper_config)


@pytest.fixture
def enricher(helper_config) -> MetadataEnricher:
    return MetadataEnricher(helper_config=helper_config)


@pytest.fixture
def classifier(helper_config, llm_client) -> DocumentClassifier:
    return DocumentClassifier(helper_config=helper_config, llm_client=llm_client)


@pytest.fixture
def ingestion_service(helper_config, repository, storage, classifier, chunker, enricher, vector_index) -> IngestionService:
    return IngestionService(
        helper_config=helper_config,
        repository=repository,
        storage=storage,
        classifier=classifier,
        chunker=chunker,
        enricher=enricher,
        vector_index=vector_index,
    )


@pytest.fixture
def retrieval_service(helper_config, vector_index, repository, storage) -> RetrievalService:
    return RetrievalService(
        helper_config=helper_config,
        vector_index=vector_index,
        repository=repository,
        storage=storage,
    )

