"""Source adapters: apply a fetch plan to SQLAlchemy statements or in-memory records."""

from keyset_connection.adapters.base import SourceAdapter, resolve_adapter
from keyset_connection.adapters.memory import InMemoryAdapter
from keyset_connection.adapters.sqlalchemy import SQLAlchemyAdapter

__all__ = [
    "InMemoryAdapter",
    "SQLAlchemyAdapter",
    "SourceAdapter",
    "resolve_adapter",
]
