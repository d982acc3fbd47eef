from document_mapper.collection import Collection
from document_mapper.config import RetryPolicy, StoreConfig
from document_mapper.cursor import Cursor
from document_mapper.document import Document
from document_mapper.errors import (
    ConfigurationError,
    DocumentMapperError,
    InflationError,
    PathError,
    PersistenceError,
    ProtocolError,
    StoreConnectionError,
    TypeMismatchError,
)
from document_mapper.schema import Identity
from document_mapper.store import Store
from document_mapper.types import EpochDateTime

__all__ = [
    "Collection",
    "ConfigurationError",
    "Cursor",
    "Document",
    "DocumentMapperError",
    "EpochDateTime",
    "Identity",
    "InflationError",
    "PathError",
    "PersistenceError",
    "ProtocolError",
    "RetryPolicy",
    "Store",
    "StoreConfig",
    "StoreConnectionError",
    "TypeMismatchError",
]
