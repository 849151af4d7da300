"""Exception hierarchy for the ingestion and retrieval pipeline.

    PipelineError                  (base, optional engine prefix)
    +-- EmbeddingError             embedding backend gave no usable vector
    +-- VectorIndexError           vector database request failed
    |   +-- VectorDimensionError   vector size does not match the collection
    +-- DocumentNotFoundError      no document row for the given id
    +-- InvalidStatusTransitionError
"""


class PipelineError(Exception):
    """Base exception. str() prefixes the engine name, e.g. "[qdrant] ..."."""

    def __init__(self, message: str, engine_name: str | None = None) -> None:
        self.message = message
        self.engine_name = engine_name
        super().__init__(message)

    def __str__(self) -> str:
        if self.engine_name:
            return f"[{self.engine_name}] {self.message}"
        return self.message


class EmbeddingError(PipelineError):
    pass


class VectorIndexError(PipelineError):
    pass


class VectorDimensionError(VectorIndexError):
    def __init__(self, expected: int, actual: int, engine_name: str | None = None) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Vector dimension mismatch: collection expects {expected}, got {actual}.",
            engine_name=engine_name,
        )


class DocumentNotFoundError(PipelineError):
    def __init__(self, document_id: str) -> None:
        self.document_id = document_id
        super().__init__(f"Document '{document_id}' not found.")


class InvalidStatusTransitionError(PipelineError):
    pass
