"""SQLite-backed document store.

Persists documents, embedding chunks and chat records to a local SQLite
database at ``data/docaugment.db``.  Uses ``aiosqlite`` for async I/O and
opens one short-lived connection per operation.

Embedding vectors are stored as JSON arrays.  Foreign keys are declared
``ON DELETE CASCADE`` and enforced per connection with
``PRAGMA foreign_keys = ON``, so deleting a document removes its chunks,
chat sessions and chat messages in the same statement.
"""

from __future__ import annotations

import json
from collections import Counter
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from docaugment.interfaces.document_store import UPDATABLE_FIELDS, IDocumentStore
from docaugment.models.document import (
    ChatMessage,
    ChatSession,
    ChatSessionPage,
    ChatSessionStats,
    Document,
    DocumentEmbedding,
    DocumentPage,
    DocumentStats,
    DocumentStatus,
    utcnow,
)
from docaugment.utils.errors import NotFoundError, StorageError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/docaugment.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    id                INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id           INTEGER NOT NULL,
    title             TEXT    NOT NULL,
    file_name         TEXT    NOT NULL,
    file_type         TEXT    NOT NULL,
    file_size         INTEGER NOT NULL,
    file_url          TEXT,
    extracted_text    TEXT,
    summary           TEXT,
    summary_status    TEXT    NOT NULL DEFAULT 'PENDING',
    embedding_status  TEXT    NOT NULL DEFAULT 'PENDING',
    created_at        TEXT    NOT NULL,
    updated_at        TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS document_embeddings (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    document_id  INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    chunk_index  INTEGER NOT NULL,
    chunk_text   TEXT    NOT NULL,
    embedding    TEXT    NOT NULL,
    created_at   TEXT    NOT NULL,
    UNIQUE(document_id, chunk_index)
);
""",
    """\
CREATE TABLE IF NOT EXISTS chat_sessions (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id       INTEGER NOT NULL,
    document_id   INTEGER NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    session_name  TEXT    NOT NULL,
    created_at    TEXT    NOT NULL,
    updated_at    TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS chat_messages (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id  INTEGER NOT NULL REFERENCES chat_sessions(id) ON DELETE CASCADE,
    message     TEXT    NOT NULL,
    response    TEXT    NOT NULL,
    created_at  TEXT    NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_documents_user ON documents(user_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_embeddings_document ON document_embeddings(document_id);",
    "CREATE INDEX IF NOT EXISTS idx_sessions_document ON chat_sessions(document_id);",
    "CREATE INDEX IF NOT EXISTS idx_messages_session ON chat_messages(session_id);",
]

_DOCUMENT_COLUMNS = (
    "id, user_id, title, file_name, file_type, file_size, file_url, extracted_text, "
    "summary, summary_status, embedding_status, created_at, updated_at"
)

_SESSION_COLUMNS = (
    "s.id, s.user_id, s.document_id, s.session_name, s.created_at, s.updated_at, "
    "(SELECT COUNT(*) FROM chat_messages m WHERE m.session_id = s.id) AS message_count"
)

# Case-insensitive substring match over the searchable document columns.
_MATCH_SQL = (
    "(instr(lower(title), ?) > 0 OR instr(lower(file_name), ?) > 0 "
    "OR instr(lower(coalesce(extracted_text, '')), ?) > 0)"
)

_INSERT_CHUNK_SQL = """\
INSERT INTO document_embeddings (document_id, chunk_index, chunk_text, embedding, created_at)
VALUES (?, ?, ?, ?, ?);
"""


def _to_document(row: aiosqlite.Row) -> Document:
    return Document.model_validate(dict(row))


def _to_embedding(row: aiosqlite.Row) -> DocumentEmbedding:
    data = dict(row)
    data["embedding"] = json.loads(data["embedding"])
    return DocumentEmbedding.model_validate(data)


def _to_column(value: Any) -> Any:
    if isinstance(value, DocumentStatus):
        return value.value
    return value


class SQLiteDocumentStore(IDocumentStore):
    """SQLite-backed document, chunk and chat persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @asynccontextmanager
    async def _connect(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                await db.execute("PRAGMA foreign_keys = ON")
                yield db
        except aiosqlite.Error as exc:
            logger.error("sqlite_operation_failed", path=str(self._db_path), error=str(exc))
            raise StorageError(message=str(exc), provider_name="sqlite") from exc

    async def initialize(self) -> None:
        """Create the tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_db_initialized", path=str(self._db_path))

    # -- Documents ---------------------------------------------------------

    async def create_document(
        self,
        user_id: int,
        title: str,
        file_name: str,
        file_type: str,
        file_size: int,
        file_url: str | None = None,
        extracted_text: str | None = None,
        summary_status: DocumentStatus = DocumentStatus.PENDING,
    ) -> Document:
        now = utcnow().isoformat()
        async with self._connect() as db:
            cursor = await db.execute(
                "INSERT INTO documents (user_id, title, file_name, file_type, file_size, "
                "file_url, extracted_text, summary_status, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    user_id,
                    title,
                    file_name,
                    file_type,
                    file_size,
                    file_url,
                    extracted_text,
                    _to_column(summary_status),
                    now,
                    now,
                ),
            )
            await db.commit()
            document_id = cursor.lastrowid
            document = await self._fetch_document(db, document_id)
        logger.info("document_created", document_id=document_id, user_id=user_id)
        return document

    async def update_document(self, document_id: int, **fields: Any) -> Document:
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update document fields: {sorted(unknown)}")

        assignments = [f"{name} = ?" for name in fields] + ["updated_at = ?"]
        params = [_to_column(v) for v in fields.values()] + [utcnow().isoformat(), document_id]
        async with self._connect() as db:
            cursor = await db.execute(
                f"UPDATE documents SET {', '.join(assignments)} WHERE id = ?",  # noqa: S608
                params,
            )
            await db.commit()
            if cursor.rowcount == 0:
                raise NotFoundError(message=f"Document {document_id} not found")
            return await self._fetch_document(db, document_id)

    async def get_document(self, document_id: int) -> Document | None:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?",  # noqa: S608
                (document_id,),
            )
            row = await cursor.fetchone()
        return _to_document(row) if row else None

    async def delete_document(self, document_id: int) -> None:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            await db.commit()
            if cursor.rowcount == 0:
                raise NotFoundError(message=f"Document {document_id} not found")
        logger.info("document_deleted", document_id=document_id)

    async def list_documents(self, user_id: int, page: int = 1, limit: int = 10) -> DocumentPage:
        return await self._document_page("user_id = ?", (user_id,), page, limit)

    async def search_documents(
        self, user_id: int, term: str, page: int = 1, limit: int = 10
    ) -> DocumentPage:
        needle = term.lower()
        return await self._document_page(
            f"user_id = ? AND {_MATCH_SQL}", (user_id, needle, needle, needle), page, limit
        )

    async def _document_page(
        self, where: str, params: tuple, page: int, limit: int
    ) -> DocumentPage:
        page = max(page, 1)
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT COUNT(*) AS total FROM documents WHERE {where}",  # noqa: S608
                params,
            )
            total = (await cursor.fetchone())["total"]
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE {where} "  # noqa: S608
                "ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?",
                (*params, limit, (page - 1) * limit),
            )
            rows = await cursor.fetchall()
        return DocumentPage(
            data=[_to_document(r) for r in rows],
            page=page,
            limit=limit,
            total=total,
        )

    async def document_stats(self, user_id: int | None = None) -> DocumentStats:
        """Return counts by derived status and total size."""
        async with self._connect() as db:
            if user_id is None:
                cursor = await db.execute(f"SELECT {_DOCUMENT_COLUMNS} FROM documents")  # noqa: S608
            else:
                cursor = await db.execute(
                    f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE user_id = ?",  # noqa: S608
                    (user_id,),
                )
            rows = await cursor.fetchall()

        docs = [_to_document(r) for r in rows]
        return DocumentStats(
            total=len(docs),
            by_status=dict(Counter(d.status.value for d in docs)),
            total_size=sum(d.file_size for d in docs),
        )

    # -- Embeddings --------------------------------------------------------

    async def insert_embedding_chunk(
        self,
        document_id: int,
        chunk_index: int,
        chunk_text: str,
        embedding: list[float],
    ) -> DocumentEmbedding:
        chunk = DocumentEmbedding(
            document_id=document_id,
            chunk_index=chunk_index,
            chunk_text=chunk_text,
            embedding=embedding,
        )
        async with self._connect() as db:
            await self._require_document(db, document_id)
            await db.execute(_INSERT_CHUNK_SQL, self._chunk_params(chunk))
            await db.commit()
        return chunk

    async def replace_embeddings(
        self, document_id: int, chunks: list[DocumentEmbedding]
    ) -> None:
        """Delete the old chunk set and insert *chunks* in one transaction."""
        if any(c.document_id != document_id for c in chunks):
            raise ValueError("All chunks must belong to the document being replaced")

        async with self._connect() as db:
            await self._require_document(db, document_id)
            try:
                await db.execute(
                    "DELETE FROM document_embeddings WHERE document_id = ?", (document_id,)
                )
                await db.executemany(_INSERT_CHUNK_SQL, [self._chunk_params(c) for c in chunks])
                await db.commit()
            except aiosqlite.Error:
                await db.rollback()
                raise
        logger.info("embeddings_replaced", document_id=document_id, chunks=len(chunks))

    async def list_embeddings(self, document_id: int) -> list[DocumentEmbedding]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT document_id, chunk_index, chunk_text, embedding, created_at "
                "FROM document_embeddings WHERE document_id = ? ORDER BY chunk_index",
                (document_id,),
            )
            rows = await cursor.fetchall()
        return [_to_embedding(r) for r in rows]

    async def list_embeddings_for_user(self, user_id: int) -> list[DocumentEmbedding]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT e.document_id, e.chunk_index, e.chunk_text, e.embedding, e.created_at "
                "FROM document_embeddings e JOIN documents d ON d.id = e.document_id "
                "WHERE d.user_id = ? ORDER BY e.document_id, e.chunk_index",
                (user_id,),
            )
            rows = await cursor.fetchall()
        return [_to_embedding(r) for r in rows]

    # -- Chat --------------------------------------------------------------

    async def create_chat_session(
        self, user_id: int, document_id: int, session_name: str
    ) -> ChatSession:
        now = utcnow().isoformat()
        async with self._connect() as db:
            await self._require_document(db, document_id)
            cursor = await db.execute(
                "INSERT INTO chat_sessions (user_id, document_id, session_name, created_at, "
                "updated_at) VALUES (?, ?, ?, ?, ?)",
                (user_id, document_id, session_name, now, now),
            )
            await db.commit()
            session_id = cursor.lastrowid
        return ChatSession(
            id=session_id,
            user_id=user_id,
            document_id=document_id,
            session_name=session_name,
            created_at=now,
            updated_at=now,
        )

    async def get_chat_session(self, session_id: int) -> ChatSession | None:
        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT {_SESSION_COLUMNS} FROM chat_sessions s WHERE s.id = ?",  # noqa: S608
                (session_id,),
            )
            row = await cursor.fetchone()
        return ChatSession.model_validate(dict(row)) if row else None

    async def list_chat_sessions(
        self,
        user_id: int,
        page: int = 1,
        limit: int = 10,
        document_id: int | None = None,
    ) -> ChatSessionPage:
        page = max(page, 1)
        where = "s.user_id = ?"
        params: tuple = (user_id,)
        if document_id is not None:
            where += " AND s.document_id = ?"
            params += (document_id,)

        async with self._connect() as db:
            cursor = await db.execute(
                f"SELECT COUNT(*) AS total FROM chat_sessions s WHERE {where}",  # noqa: S608
                params,
            )
            total = (await cursor.fetchone())["total"]
            cursor = await db.execute(
                f"SELECT {_SESSION_COLUMNS} FROM chat_sessions s WHERE {where} "  # noqa: S608
                "ORDER BY s.updated_at DESC, s.id DESC LIMIT ? OFFSET ?",
                (*params, limit, (page - 1) * limit),
            )
            rows = await cursor.fetchall()
        return ChatSessionPage(
            data=[ChatSession.model_validate(dict(r)) for r in rows],
            page=page,
            limit=limit,
            total=total,
        )

    async def delete_chat_session(self, session_id: int) -> None:
        async with self._connect() as db:
            cursor = await db.execute("DELETE FROM chat_sessions WHERE id = ?", (session_id,))
            await db.commit()
            if cursor.rowcount == 0:
                raise NotFoundError(message=f"Chat session {session_id} not found")
        logger.info("chat_session_deleted", session_id=session_id)

    async def chat_session_stats(self, user_id: int | None = None) -> ChatSessionStats:
        if user_id is None:
            session_sql = "SELECT COUNT(*) AS total FROM chat_sessions"
            message_sql = "SELECT COUNT(*) AS total FROM chat_messages"
            params: tuple = ()
        else:
            session_sql = "SELECT COUNT(*) AS total FROM chat_sessions WHERE user_id = ?"
            message_sql = (
                "SELECT COUNT(*) AS total FROM chat_messages m "
                "JOIN chat_sessions s ON s.id = m.session_id WHERE s.user_id = ?"
            )
            params = (user_id,)

        async with self._connect() as db:
            sessions = (await (await db.execute(session_sql, params)).fetchone())["total"]
            messages = (await (await db.execute(message_sql, params)).fetchone())["total"]
        return ChatSessionStats(total=sessions, total_messages=messages)

    async def add_chat_message(self, session_id: int, message: str, response: str) -> ChatMessage:
        now = utcnow().isoformat()
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE chat_sessions SET updated_at = ? WHERE id = ?", (now, session_id)
            )
            if cursor.rowcount == 0:
                raise NotFoundError(message=f"Chat session {session_id} not found")
            cursor = await db.execute(
                "INSERT INTO chat_messages (session_id, message, response, created_at) "
                "VALUES (?, ?, ?, ?)",
                (session_id, message, response, now),
            )
            await db.commit()
            message_id = cursor.lastrowid
        return ChatMessage(
            id=message_id,
            session_id=session_id,
            message=message,
            response=response,
            created_at=now,
        )

    async def list_chat_messages(self, session_id: int) -> list[ChatMessage]:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT id, session_id, message, response, created_at FROM chat_messages "
                "WHERE session_id = ? ORDER BY id",
                (session_id,),
            )
            rows = await cursor.fetchall()
        return [ChatMessage.model_validate(dict(r)) for r in rows]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    async def _fetch_document(db: aiosqlite.Connection, document_id: int) -> Document:
        cursor = await db.execute(
            f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?",  # noqa: S608
            (document_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            raise NotFoundError(message=f"Document {document_id} not found")
        return _to_document(row)

    @staticmethod
    async def _require_document(db: aiosqlite.Connection, document_id: int) -> None:
        cursor = await db.execute("SELECT 1 FROM documents WHERE id = ?", (document_id,))
        if await cursor.fetchone() is None:
            raise NotFoundError(message=f"Document {document_id} not found")

    @staticmethod
    def _chunk_params(chunk: DocumentEmbedding) -> tuple:
        return (
            chunk.document_id,
            chunk.chunk_index,
            chunk.chunk_text,
            json.dumps(chunk.embedding),
            chunk.created_at.isoformat(),
        )
