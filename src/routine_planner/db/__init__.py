"""Persistence layer: document store backends and user-scoped repositories."""

from .store import DocumentStore, InMemoryDocumentStore, SQLiteDocumentStore

__all__ = [
    "DocumentStore",
    "InMemoryDocumentStore",
    "SQLiteDocumentStore",
]
