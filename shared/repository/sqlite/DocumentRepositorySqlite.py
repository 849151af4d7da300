"""SQLite-backed document repository.

Persists document rows to ``DB_PATH`` (default ``./data/documents.db``).
Every call opens a short-lived aiosqlite connection, so no lock is held
across the pipeline's external calls.
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from shared.helper.HelperConfig import HelperConfig
from shared.models.document import ALLOWED_TRANSITIONS, Document, DocumentCategory, ProcessingStatus
from shared.models.errors import DocumentNotFoundError, InvalidStatusTransitionError
from shared.repository.DocumentRepositoryInterface import DocumentRepositoryInterface

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id                     TEXT PRIMARY KEY,
    parent_transaction_id  TEXT NOT NULL,
    file_name              TEXT NOT NULL,
    file_path              TEXT NOT NULL,
    category               TEXT NOT NULL DEFAULT 'unknown',
    status                 TEXT NOT NULL DEFAULT 'pending',
    failure_reason         TEXT,
    created_at             TEXT NOT NULL,
    processed_at           TEXT
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_transaction ON documents(parent_transaction_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_status ON documents(status);",
]

_SELECT_COLUMNS = "id, parent_transaction_id, file_name, file_path, category, status, failure_reason, created_at, processed_at"


class DocumentRepositorySqlite(DocumentRepositoryInterface):
    def __init__(self, helper_config: HelperConfig):
        super().__init__(helper_config=helper_config)
        self._db_path = Path(helper_config.get_string_val("DB_PATH", default="./data/documents.db"))

    def _get_engine_name(self) -> str:
        return "Sqlite"

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_initialize(self) -> None:
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        self.logging.info("Document store initialised at %s", self._db_path)

    async def do_create_document(self, parent_transaction_id: str, file_name: str, file_path: str) -> Document:
        document = Document(
            id=str(uuid.uuid4()),
            parent_transaction_id=parent_transaction_id,
            file_name=file_name,
            file_path=file_path,
            created_at=datetime.now(timezone.utc),
        )
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(
                "INSERT INTO documents (id, parent_transaction_id, file_name, file_path, category, status, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    document.id,
                    document.parent_transaction_id,
                    document.file_name,
                    document.file_path,
                    document.category.value,
                    document.status.value,
                    document.created_at.isoformat(),
                ),
            )
            await db.commit()
        self.logging.info(
            "Document created: id=%s transaction=%s file=%s", document.id, parent_transaction_id, file_name
        )
        return document

    async def do_get_document(self, document_id: str) -> Document | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(f"SELECT {_SELECT_COLUMNS} FROM documents WHERE id = ?", (document_id,))
            row = await cursor.fetchone()
        return Document(**dict(row)) if row else None

    async def do_list_documents(self, parent_transaction_id: str | None = None) -> list[Document]:
        query = f"SELECT {_SELECT_COLUMNS} FROM documents"
        params: tuple = ()
        if parent_transaction_id is not None:
            query += " WHERE parent_transaction_id = ?"
            params = (parent_transaction_id,)
        query += " ORDER BY created_at DESC"
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(query, params)
            rows = await cursor.fetchall()
        return [Document(**dict(r)) for r in rows]

    async def do_set_status(self, document_id: str, status: ProcessingStatus, failure_reason: str | None = None) -> None:
        sources = [s.value for s, targets in ALLOWED_TRANSITIONS.items() if status in targets]
        if not sources:
            raise InvalidStatusTransitionError(f"No status may transition to '{status.value}'.")
        placeholders = ", ".join("?" for _ in sources)
        async with aiosqlite.connect(str(self._db_path)) as db:
            # conditional update keeps check and write atomic
            cursor = await db.execute(
                f"UPDATE documents SET status = ?, failure_reason = ? WHERE id = ? AND status IN ({placeholders})",
                (status.value, failure_reason, document_id, *sources),
            )
            await db.commit()
            updated = cursor.rowcount
        if updated:
            self.logging.debug("Document %s -> %s", document_id, status.value)
            return
        document = await self.do_get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(document_id)
        raise InvalidStatusTransitionError(
            f"Document '{document_id}' cannot move from '{document.status.value}' to '{status.value}'."
        )

    async def _update_column(self, document_id: str, column: str, value: str | None) -> None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(f"UPDATE documents SET {column} = ? WHERE id = ?", (value, document_id))
            await db.commit()
            updated = cursor.rowcount
        if not updated:
            raise DocumentNotFoundError(document_id)

    async def do_set_category(self, document_id: str, category: DocumentCategory) -> None:
        await self._update_column(document_id, "category", category.value)

    async def do_set_processed_at(self, document_id: str, processed_at: datetime) -> None:
        await self._update_column(document_id, "processed_at", processed_at.isoformat())

    async def do_reset_document(self, document_id: str, force: bool = False) -> None:
        query = "UPDATE documents SET status = ?, category = ?, failure_reason = NULL, processed_at = NULL WHERE id = ?"
        params: tuple = (ProcessingStatus.PENDING.value, DocumentCategory.UNKNOWN.value, document_id)
        if not force:
            query += " AND status != ?"
            params += (ProcessingStatus.PROCESSING.value,)
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(query, params)
            await db.commit()
            updated = cursor.rowcount
        if not updated:
            if await self.do_get_document(document_id) is None:
                raise DocumentNotFoundError(document_id)
            raise InvalidStatusTransitionError(
                f"Document '{document_id}' is being processed. Use force to reset a stalled run."
            )
        self.logging.info("Document %s reset to pending%s.", document_id, " (forced)" if force else "")

    async def do_delete_document(self, document_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            await db.commit()
            deleted = cursor.rowcount
        return deleted > 0

    async def do_count_by_category(self, status: ProcessingStatus = ProcessingStatus.COMPLETED) -> dict[str, int]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT category, COUNT(*) FROM documents WHERE status = ? GROUP BY category ORDER BY category",
                (status.value,),
            )
            rows = await cursor.fetchall()
        return {category: count for category, count in rows}
