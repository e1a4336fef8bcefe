"""Document/chunk store providers."""

from src.providers.store.memory_document_store import InMemoryDocumentStore
from src.providers.store.sqlite_document_store import SQLiteDocumentStore

__all__ = ["InMemoryDocumentStore", "SQLiteDocumentStore"]
