"""Path-addressed document store.

The planner only needs a small slice of a document database:
get/put/merge/delete on documents, append to collections and change
subscriptions. Two backends are provided:

- InMemoryDocumentStore: process-local, used in tests and as a fake. It can
  inject write failures to exercise rollback and retry paths.
- SQLiteDocumentStore: JSON documents in a single SQLite table.

Paths are slash-separated (``users/u1/completedWorkouts/abc``). A collection
is the parent path of its documents.
"""

import copy
import json
import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from ..exceptions import PersistenceError

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
Callback = Callable[[Any], None]
Unsubscribe = Callable[[], None]


def parent_path(path: str) -> str:
    return path.rsplit("/", 1)[0] if "/" in path else ""


def new_document_id() -> str:
    return uuid.uuid4().hex


@runtime_checkable
class DocumentStore(Protocol):
    """Protocol for the persistence collaborator."""

    async def get(self, path: str) -> Optional[Document]:
        """Get a document, or None when it does not exist."""
        ...

    async def put(self, path: str, doc: Document) -> None:
        """Overwrite a document."""
        ...

    async def merge(self, path: str, partial: Document) -> None:
        """Shallow-merge top-level keys into a document (created if missing)."""
        ...

    async def delete(self, path: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""
        ...

    async def append_to_collection(
        self,
        collection_path: str,
        doc: Document,
        doc_id: Optional[str] = None,
    ) -> str:
        """Add a document to a collection and return its id."""
        ...

    async def list_collection(self, collection_path: str) -> Dict[str, Document]:
        """All documents of a collection keyed by id."""
        ...

    def subscribe(self, path: str, callback: Callback) -> Unsubscribe:
        """Watch a document or collection path. Returns an unsubscribe handle."""
        ...


class _SubscriptionRegistry:
    """Fan-out of change notifications shared by the store backends."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Callback]] = {}

    def add(self, path: str, callback: Callback) -> Unsubscribe:
        self._subscribers.setdefault(path, []).append(callback)

        def _unsubscribe() -> None:
            callbacks = self._subscribers.get(path, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return _unsubscribe

    def has_subscribers(self, path: str) -> bool:
        return bool(self._subscribers.get(path))

    def notify(self, path: str, payload: Any) -> None:
        for callback in list(self._subscribers.get(path, [])):
            try:
                callback(copy.deepcopy(payload))
            except Exception as e:
                logger.warning(f"Subscriber for '{path}' raised: {e}")


class InMemoryDocumentStore:
    """Dictionary-backed document store."""

    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}
        self._subscriptions = _SubscriptionRegistry()
        self._failures: List[Tuple[str, Optional[str], Exception]] = []
        self.write_count = 0

    def inject_failure(
        self,
        operation: str,
        path_prefix: Optional[str] = None,
        error: Optional[Exception] = None,
        times: int = 1,
    ) -> None:
        """Make the next ``times`` matching calls of ``operation`` fail."""
        failure = error or PersistenceError(f"Injected {operation} failure", path=path_prefix)
        for _ in range(times):
            self._failures.append((operation, path_prefix, failure))

    def _maybe_fail(self, operation: str, path: str) -> None:
        for index, (op, prefix, error) in enumerate(self._failures):
            if op == operation and (prefix is None or path.startswith(prefix)):
                del self._failures[index]
                if isinstance(error, PersistenceError):
                    raise error
                raise PersistenceError(f"{operation} failed for '{path}': {error}", path=path) from error

    async def get(self, path: str) -> Optional[Document]:
        self._maybe_fail("get", path)
        doc = self._documents.get(path)
        return copy.deepcopy(doc) if doc is not None else None

    async def put(self, path: str, doc: Document) -> None:
        self._maybe_fail("put", path)
        self._documents[path] = copy.deepcopy(doc)
        self.write_count += 1
        self._notify(path)

    async def merge(self, path: str, partial: Document) -> None:
        self._maybe_fail("merge", path)
        current = self._documents.get(path, {})
        self._documents[path] = {**current, **copy.deepcopy(partial)}
        self.write_count += 1
        self._notify(path)

    async def delete(self, path: str) -> None:
        self._maybe_fail("delete", path)
        if self._documents.pop(path, None) is not None:
            self.write_count += 1
        self._notify(path)

    async def append_to_collection(
        self,
        collection_path: str,
        doc: Document,
        doc_id: Optional[str] = None,
    ) -> str:
        doc_id = doc_id or new_document_id()
        path = f"{collection_path}/{doc_id}"
        self._maybe_fail("append", path)
        self._documents[path] = copy.deepcopy(doc)
        self.write_count += 1
        self._notify(path)
        return doc_id

    async def list_collection(self, collection_path: str) -> Dict[str, Document]:
        self._maybe_fail("list", collection_path)
        return self._collection_snapshot(collection_path)

    def subscribe(self, path: str, callback: Callback) -> Unsubscribe:
        return self._subscriptions.add(path, callback)

    def _collection_snapshot(self, collection_path: str) -> Dict[str, Document]:
        prefix = collection_path + "/"
        return {
            path[len(prefix):]: copy.deepcopy(doc)
            for path, doc in self._documents.items()
            if path.startswith(prefix) and "/" not in path[len(prefix):]
        }

    def _notify(self, path: str) -> None:
        self._subscriptions.notify(path, self._documents.get(path))
        parent = parent_path(path)
        if self._subscriptions.has_subscribers(parent):
            self._subscriptions.notify(parent, self._collection_snapshot(parent))


class SQLiteDocumentStore:
    """
    SQLite-backed document store.

    Documents are stored as JSON text keyed by path, with the parent path
    indexed for collection listing. Every call opens its own connection.

    The async methods run their ``sqlite3`` calls directly on the event
    loop. Each call touches one small row of a local, single-user file, so
    the blocking time is negligible; a shared or remote backend should
    implement ``DocumentStore`` with a non-blocking driver instead.
    """

    def __init__(self, db_path: Optional[str] = None):
        """
        Initialize the store.

        Args:
            db_path: Path to SQLite database file. Defaults to the configured
                    ``database_path``.
        """
        if db_path:
            self.db_path = Path(db_path)
        else:
            from ..config import get_settings
            self.db_path = Path(get_settings().database_path)

        self._subscriptions = _SubscriptionRegistry()
        self._ensure_table_exists()

    @contextmanager
    def _get_connection(self):
        """Get database connection with context manager."""
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as e:
            raise PersistenceError(f"Cannot open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise PersistenceError(f"Database operation failed: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _ensure_table_exists(self):
        """Ensure the documents table exists."""
        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    path TEXT PRIMARY KEY,
                    parent TEXT NOT NULL,
                    data_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.execute("""
                CREATE INDEX IF NOT EXISTS idx_documents_parent
                ON documents(parent)
            """)

    def _write(self, conn: sqlite3.Connection, path: str, doc: Document) -> None:
        conn.execute(
            """
            INSERT INTO documents (path, parent, data_json, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(path) DO UPDATE SET
                data_json = excluded.data_json,
                updated_at = excluded.updated_at
            """,
            (
                path,
                parent_path(path),
                json.dumps(doc, ensure_ascii=False),
                datetime.now(timezone.utc).isoformat(),
            ),
        )

    def _read(self, conn: sqlite3.Connection, path: str) -> Optional[Document]:
        row = conn.execute(
            "SELECT data_json FROM documents WHERE path = ?", (path,)
        ).fetchone()
        return json.loads(row["data_json"]) if row else None

    async def get(self, path: str) -> Optional[Document]:
        with self._get_connection() as conn:
            return self._read(conn, path)

    async def put(self, path: str, doc: Document) -> None:
        with self._get_connection() as conn:
            self._write(conn, path, doc)
        self._notify(path)

    async def merge(self, path: str, partial: Document) -> None:
        with self._get_connection() as conn:
            current = self._read(conn, path) or {}
            self._write(conn, path, {**current, **partial})
        self._notify(path)

    async def delete(self, path: str) -> None:
        with self._get_connection() as conn:
            conn.execute("DELETE FROM documents WHERE path = ?", (path,))
        self._notify(path)

    async def append_to_collection(
        self,
        collection_path: str,
        doc: Document,
        doc_id: Optional[str] = None,
    ) -> str:
        doc_id = doc_id or new_document_id()
        await self.put(f"{collection_path}/{doc_id}", doc)
        return doc_id

    async def list_collection(self, collection_path: str) -> Dict[str, Document]:
        return self._collection_snapshot(collection_path)

    def subscribe(self, path: str, callback: Callback) -> Unsubscribe:
        return self._subscriptions.add(path, callback)

    def _collection_snapshot(self, collection_path: str) -> Dict[str, Document]:
        prefix = collection_path + "/"
        with self._get_connection() as conn:
            rows = conn.execute(
                "SELECT path, data_json FROM documents WHERE parent = ? ORDER BY path",
                (collection_path,),
            ).fetchall()
        return {row["path"][len(prefix):]: json.loads(row["data_json"]) for row in rows}

    def _notify(self, path: str) -> None:
        if self._subscriptions.has_subscribers(path):
            with self._get_connection() as conn:
                doc = self._read(conn, path)
            self._subscriptions.notify(path, doc)
        parent = parent_path(path)
        if self._subscriptions.has_subscribers(parent):
            self._subscriptions.notify(parent, self._collection_snapshot(parent))
