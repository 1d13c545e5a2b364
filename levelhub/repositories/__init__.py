"""Repository package — expose the store implementations from one import."""
from .base import BaseRepository, StoreError
from .document_store import (
    DocumentStore,
    InMemoryDocumentStore,
    JsonFileDocumentStore,
    empty_document,
)

__all__ = [
    'BaseRepository',
    'StoreError',
    'DocumentStore',
    'InMemoryDocumentStore',
    'JsonFileDocumentStore',
    'empty_document',
]
