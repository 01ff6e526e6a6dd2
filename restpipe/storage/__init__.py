"""
Reference storage backends for restpipe.

- InMemoryStorage: dict-backed, for tests and single-process use
- MongoStorage: one MongoDB collection per resource (motor)
"""

from .documents import ensure_identifier, to_document
from .memory import InMemoryStorage
from .mongo import MongoConnection, MongoStorage

__all__ = [
    "InMemoryStorage",
    "MongoConnection",
    "MongoStorage",
    "ensure_identifier",
    "to_document",
]
