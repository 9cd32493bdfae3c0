"""
Document Store - persistence boundary for project documents

Projects are stored as whole JSON documents keyed by project id. Writes
merge at the top level: keys in the new document replace stored ones, keys
it lacks are kept. Unknown fields written by other clients therefore survive.

Subscribers receive the full document set after every write. Failures raise
PersistenceError; there is no automatic retry.
"""

import json
import sqlite3
import threading
from collections.abc import Callable
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator, Protocol

from pydantic import BaseModel, Field

from cashflow_pro.kernel.errors import DocumentNotFound, PersistenceError
from cashflow_pro.kernel.logging import get_logger
from cashflow_pro.kernel.time import TimeProvider, default_time_provider

logger = get_logger(__name__)

Document = dict[str, Any]


class DocumentsUpdate(BaseModel):
    """
    Payload delivered to subscribers

    Either the full document set (ok) or the error that prevented reading it.
    """

    documents: dict[str, Document] = Field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


Subscriber = Callable[[DocumentsUpdate], None]
Unsubscribe = Callable[[], None]


class DocumentStore(Protocol):
    """Protocol for project document persistence"""

    def load(self, document_id: str) -> Document:
        """Raises DocumentNotFound or PersistenceError"""
        ...

    def load_all(self) -> dict[str, Document]:
        """Most recently modified first. Raises PersistenceError"""
        ...

    def save(self, document_id: str, document: Document, modified_by: str = "unknown") -> None:
        """Merge-on-write. Raises PersistenceError"""
        ...

    def delete(self, document_id: str) -> None:
        """Raises DocumentNotFound or PersistenceError"""
        ...

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        ...


def _decode(document_id: str, body: str) -> Document:
    """Parse a stored body; a corrupt or non-object body is a PersistenceError"""
    try:
        document = json.loads(body)
    except ValueError as exc:
        raise PersistenceError(f"Document {document_id} is corrupt: {exc}") from exc
    if not isinstance(document, dict):
        raise PersistenceError(f"Document {document_id} is not an object")
    return document


class _SubscriberRegistry:
    """Callback list shared by the store implementations"""

    def __init__(self) -> None:
        self._subscribers: list[Subscriber] = []
        self._lock = threading.Lock()

    def add(self, callback: Subscriber) -> Unsubscribe:
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, update: DocumentsUpdate) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(update)


class InMemoryDocumentStore:
    """
    Dict-backed store

    Documents are copied through JSON on the way in and out, so callers
    never share mutable state with the store.
    """

    def __init__(
        self,
        time_provider: TimeProvider | None = None,
        max_documents: int = 50,
    ) -> None:
        self.time_provider = time_provider or default_time_provider
        self.max_documents = max_documents
        self._documents: dict[str, str] = {}
        self._subscribers = _SubscriberRegistry()

    def load(self, document_id: str) -> Document:
        if document_id not in self._documents:
            raise DocumentNotFound(document_id)
        return _decode(document_id, self._documents[document_id])

    def load_all(self) -> dict[str, Document]:
        documents = [_decode(doc_id, raw) for doc_id, raw in self._documents.items()]
        ids = list(self._documents)
        ordered = sorted(
            zip(ids, documents),
            key=lambda item: item[1].get("lastModified") or "",
            reverse=True,
        )
        return dict(ordered[: self.max_documents])

    def save(self, document_id: str, document: Document, modified_by: str = "unknown") -> None:
        stored = _decode(document_id, self._documents.get(document_id, "{}"))
        stored.update(document)
        stored["lastModified"] = self.time_provider.now().isoformat()
        stored["modifiedBy"] = modified_by
        try:
            self._documents[document_id] = json.dumps(stored)
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Document {document_id} is not serializable: {exc}") from exc

        logger.debug("Document saved", document_id=document_id)
        self._subscribers.publish(DocumentsUpdate(documents=self.load_all()))

    def delete(self, document_id: str) -> None:
        if document_id not in self._documents:
            raise DocumentNotFound(document_id)
        del self._documents[document_id]
        self._subscribers.publish(DocumentsUpdate(documents=self.load_all()))

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        return self._subscribers.add(callback)


class SQLiteDocumentStore:
    """
    SQLite-based document store

    Schema:
    - documents table: id, JSON body, last_modified (ISO string)

    Subscribers are notified in-process after each successful write.
    """

    def __init__(
        self,
        db_path: str | Path,
        time_provider: TimeProvider | None = None,
        max_documents: int = 50,
    ) -> None:
        """
        Args:
            db_path: Path to SQLite database file (created if missing)
            time_provider: Clock for lastModified stamps
            max_documents: Limit for load_all
        """
        self.db_path = Path(db_path)
        self.time_provider = time_provider or default_time_provider
        self.max_documents = max_documents
        self._subscribers = _SubscriberRegistry()
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    body_json TEXT NOT NULL,
                    last_modified TEXT NOT NULL
                )
            """)
            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Connection context; sqlite errors surface as PersistenceError"""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot open {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as exc:
            logger.error("Document store query failed", error=str(exc))
            raise PersistenceError(str(exc)) from exc
        finally:
            conn.close()

    def load(self, document_id: str) -> Document:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT body_json FROM documents WHERE id = ?", (document_id,)
            ).fetchone()
        if row is None:
            raise DocumentNotFound(document_id)
        return _decode(document_id, row["body_json"])

    def load_all(self) -> dict[str, Document]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT id, body_json FROM documents ORDER BY last_modified DESC LIMIT ?",
                (self.max_documents,),
            ).fetchall()
        return {row["id"]: _decode(row["id"], row["body_json"]) for row in rows}

    def save(self, document_id: str, document: Document, modified_by: str = "unknown") -> None:
        now = self.time_provider.now().isoformat()
        with self._connect() as conn:
            row = conn.execute(
                "SELECT body_json FROM documents WHERE id = ?", (document_id,)
            ).fetchone()
            stored = _decode(document_id, row["body_json"]) if row else {}
            stored.update(document)
            stored["lastModified"] = now
            stored["modifiedBy"] = modified_by
            try:
                body = json.dumps(stored)
            except (TypeError, ValueError) as exc:
                raise PersistenceError(
                    f"Document {document_id} is not serializable: {exc}"
                ) from exc

            conn.execute(
                """
                INSERT INTO documents (id, body_json, last_modified)
                VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    body_json = excluded.body_json,
                    last_modified = excluded.last_modified
            """,
                (document_id, body, now),
            )
            conn.commit()

        logger.debug("Document saved", document_id=document_id)
        self._subscribers.publish(DocumentsUpdate(documents=self.load_all()))

    def delete(self, document_id: str) -> None:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            conn.commit()
        if cursor.rowcount == 0:
            raise DocumentNotFound(document_id)
        self._subscribers.publish(DocumentsUpdate(documents=self.load_all()))

    def subscribe(self, callback: Subscriber) -> Unsubscribe:
        return self._subscribers.add(callback)

    def count(self) -> int:
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM documents").fetchone()[0]
