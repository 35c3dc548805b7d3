"""Knowledge-base document metadata storage.

Records live in SQLite. When the database cannot be opened the repository keeps
working from an in-memory map instead; records stored that way are lost on
restart.
"""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path

from .config import config
from .exceptions import DocumentNotFoundError
from .models import KnowledgeBaseDocument

logger = config.get_logger(__name__)

_COLUMNS = (
    "document_id",
    "title",
    "description",
    "filename",
    "file_type",
    "file_size",
    "user_id",
    "chunk_count",
    "file_path",
    "upload_date",
)


class KnowledgeBaseRepository:
    """Stores knowledge-base document metadata with an in-memory fallback."""

    def __init__(self, db_path: Path | None = None) -> None:
        """Initialize the repository and ensure the schema exists.

        Args:
            db_path: SQLite database file. If None, uses
                config.KNOWLEDGE_BASE_DB_PATH.
        """
        if db_path is None:
            db_path = config.KNOWLEDGE_BASE_DB_PATH
        self.db_path = Path(db_path)
        self._memory: dict[str, KnowledgeBaseDocument] = {}
        self._lock = threading.Lock()
        self.persistent = self._create_tables()

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self.db_path))

    def _create_tables(self) -> bool:
        """Create the documents table if it doesn't exist.

        Returns:
            True when SQLite is usable, False when falling back to memory.
        """
        try:
            self.db_path.parent.mkdir(exist_ok=True, parents=True)
            with self._connect() as conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS knowledge_base (
                        document_id TEXT PRIMARY KEY,
                        title TEXT NOT NULL,
                        description TEXT,
                        filename TEXT NOT NULL,
                        file_type TEXT NOT NULL,
                        file_size INTEGER NOT NULL,
                        user_id TEXT NOT NULL,
                        chunk_count INTEGER DEFAULT 0,
                        file_path TEXT,
                        upload_date TEXT NOT NULL
                    )
                """)
                conn.execute(
                    "CREATE INDEX IF NOT EXISTS idx_kb_user ON knowledge_base(user_id)"
                )
                conn.commit()
        except (sqlite3.Error, OSError):
            logger.exception(
                "Knowledge base database unavailable, using in-memory storage"
            )
            return False
        return True

    @staticmethod
    def _row_to_document(row: tuple) -> KnowledgeBaseDocument:
        return KnowledgeBaseDocument(**dict(zip(_COLUMNS, row, strict=True)))

    def _remember(self, document: KnowledgeBaseDocument) -> KnowledgeBaseDocument:
        with self._lock:
            self._memory[document.document_id] = document
        return document

    def _memory_for_user(self, user_id: str) -> list[KnowledgeBaseDocument]:
        with self._lock:
            documents = [d for d in self._memory.values() if d.user_id == user_id]
        return sorted(documents, key=lambda d: d.upload_date, reverse=True)

    def add(self, document: KnowledgeBaseDocument) -> KnowledgeBaseDocument:
        """Persist document metadata.

        Returns:
            The stored record.
        """
        if not self.persistent:
            return self._remember(document)

        values = tuple(getattr(document, column) for column in _COLUMNS)
        placeholders = ", ".join("?" for _ in _COLUMNS)
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO knowledge_base ({', '.join(_COLUMNS)}) "  # noqa: S608
                    f"VALUES ({placeholders})",
                    values,
                )
                conn.commit()
        except sqlite3.Error:
            logger.exception(
                "Error saving document %s, keeping it in memory", document.document_id
            )
            return self._remember(document)
        return document

    def list_for_user(self, user_id: str) -> list[KnowledgeBaseDocument]:
        """Return a user's documents, newest first."""  # noqa: DOC201
        if not self.persistent:
            return self._memory_for_user(user_id)

        try:
            with self._connect() as conn:
                rows = conn.execute(
                    f"SELECT {', '.join(_COLUMNS)} FROM knowledge_base "  # noqa: S608
                    "WHERE user_id = ? ORDER BY upload_date DESC",
                    (user_id,),
                ).fetchall()
        except sqlite3.Error:
            logger.exception("Error retrieving documents from knowledge base")
            return self._memory_for_user(user_id)

        documents = [self._row_to_document(row) for row in rows]
        known = {d.document_id for d in documents}
        extra = [
            d for d in self._memory_for_user(user_id) if d.document_id not in known
        ]
        return sorted(documents + extra, key=lambda d: d.upload_date, reverse=True)

    def get(self, document_id: str) -> KnowledgeBaseDocument | None:
        """Fetch one document by id.

        Returns:
            The record, or None when unknown.
        """
        with self._lock:
            cached = self._memory.get(document_id)
        if cached is not None or not self.persistent:
            return cached

        try:
            with self._connect() as conn:
                row = conn.execute(
                    f"SELECT {', '.join(_COLUMNS)} FROM knowledge_base "  # noqa: S608
                    "WHERE document_id = ?",
                    (document_id,),
                ).fetchone()
        except sqlite3.Error:
            logger.exception("Error retrieving document %s", document_id)
            return None
        return self._row_to_document(row) if row is not None else None

    def remove(self, document_id: str, user_id: str) -> KnowledgeBaseDocument:
        """Delete a document owned by ``user_id``.

        Returns:
            The removed record.

        Raises:
            DocumentNotFoundError: If the document is unknown or owned by
                another user.
        """
        document = self.get(document_id)
        if document is None or document.user_id != user_id:
            msg = f"Document not found or unauthorized: {document_id}"
            raise DocumentNotFoundError(msg)

        with self._lock:
            in_memory = self._memory.pop(document_id, None) is not None
        if self.persistent and not in_memory:
            with self._connect() as conn:
                conn.execute(
                    "DELETE FROM knowledge_base WHERE document_id = ?", (document_id,)
                )
                conn.commit()

        logger.info("Removed document %s from knowledge base", document_id)
        return document
