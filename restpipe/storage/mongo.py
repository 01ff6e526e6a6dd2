"""
MongoDB storage for restpipe.

Stores one resource per collection using motor's asyncio client.
"""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from http import HTTPStatus
from typing import Any

from pymongo.errors import DuplicateKeyError, PyMongoError

from ..contracts import Storage
from ..errors import NotFoundError, StorageError
from .documents import ensure_identifier, to_document

logger = logging.getLogger(__name__)

# Never return Mongo's internal identifier to clients
_PROJECTION = {"_id": 0}


@dataclass
class MongoConnection:
    """
    Lazily opened motor client shared by every copy of a MongoStorage.
    """

    mongodb_url: str
    database_name: str
    _client: Any = None
    _db: Any = None

    async def database(self) -> Any:
        if self._db is None:
            await self.connect()
        return self._db

    async def connect(self) -> None:
        try:
            from motor.motor_asyncio import AsyncIOMotorClient
        except ImportError:
            raise ImportError(
                "motor package is required for MongoDB. Install with: pip install motor"
            )
        self._client = AsyncIOMotorClient(self.mongodb_url)
        self._db = self._client[self.database_name]
        logger.info(f"Connected to MongoDB database: {self.database_name}")

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            self._db = None


class MongoStorage(Storage):
    """
    Storage backed by a MongoDB collection.

    Example:
        connection = MongoConnection("mongodb://localhost:27017", "shop")
        storage = MongoStorage(connection, collection="widgets")

    Args:
        connection: Shared connection (or pass a motor database as db)
        collection: Collection name
        id_field: Document field holding the identifier
        param: Routing parameter that addresses one document
    """

    def __init__(
        self,
        connection: MongoConnection | None = None,
        collection: str = "",
        id_field: str = "id",
        param: str = "id",
        db: Any = None,
    ):
        if connection is None and db is None:
            raise ValueError("MongoStorage needs a connection or a database")
        self.connection = connection
        self.collection_name = collection
        self.id_field = id_field
        self.param = param
        self._db = db

    async def collection(self) -> Any:
        db = self._db if self._db is not None else await self.connection.database()
        return db[self.collection_name or self.context.resource_name]

    async def insert_one(self) -> None:
        document = to_document(self.context.input)
        ensure_identifier(document, self.id_field)
        coll = await self.collection()
        async with self._errors():
            await coll.insert_one(dict(document))
        self.context.set_response(HTTPStatus.CREATED, document)

    async def insert_many(self) -> None:
        documents = [to_document(v) for v in self.context.input]
        for document in documents:
            ensure_identifier(document, self.id_field)
        coll = await self.collection()
        if documents:
            async with self._errors():
                await coll.insert_many([dict(d) for d in documents])
        self.context.set_response(HTTPStatus.CREATED, documents)

    async def update(self) -> None:
        identifier = self._identifier()
        changes = to_document(self.context.input, partial=True)
        changes.pop(self.id_field, None)
        coll = await self.collection()
        async with self._errors():
            if changes:
                result = await coll.update_one({self.id_field: identifier}, {"$set": changes})
                matched = result.matched_count
            else:
                matched = await coll.count_documents({self.id_field: identifier}, limit=1)
        if not matched:
            self._not_found(identifier)
        self.context.set_response(HTTPStatus.NO_CONTENT)

    async def upsert(self) -> None:
        identifier = self._identifier()
        document = to_document(self.context.input)
        document[self.id_field] = identifier
        coll = await self.collection()
        async with self._errors():
            await coll.replace_one({self.id_field: identifier}, dict(document), upsert=True)
        self.context.set_response(HTTPStatus.OK, document)

    async def find_one(self) -> None:
        identifier = self._identifier()
        coll = await self.collection()
        async with self._errors():
            document = await coll.find_one({self.id_field: identifier}, _PROJECTION)
        if document is None:
            self._not_found(identifier)
        self.context.set_response(HTTPStatus.OK, document)

    async def find_many(self) -> None:
        coll = await self.collection()
        async with self._errors():
            documents = await coll.find({}, _PROJECTION).to_list(length=None)
        self.context.set_response(HTTPStatus.OK, documents)

    async def remove(self) -> None:
        identifier = self._identifier()
        coll = await self.collection()
        async with self._errors():
            result = await coll.delete_one({self.id_field: identifier})
        if result.deleted_count == 0:
            self._not_found(identifier)
        self.context.set_response(HTTPStatus.NO_CONTENT)

    # Helpers

    def _identifier(self) -> str:
        identifier = self.context.path_param(self.param)
        if identifier is None:
            message = f"Missing '{self.param}' URL parameter"
            self.context.response.fail(HTTPStatus.BAD_REQUEST, message)
            raise StorageError(message)
        return str(identifier)

    def _not_found(self, identifier: str) -> None:
        self.context.response.fail(HTTPStatus.NOT_FOUND)
        raise NotFoundError(f"{self.context.resource_name} '{identifier}' does not exist")

    @asynccontextmanager
    async def _errors(self) -> AsyncIterator[None]:
        """Translate driver errors into StorageError with the right status."""
        try:
            yield
        except DuplicateKeyError as e:
            self.context.response.fail(HTTPStatus.CONFLICT, "Document already exists")
            raise StorageError(str(e)) from e
        except PyMongoError as e:
            self.context.response.fail(HTTPStatus.INTERNAL_SERVER_ERROR)
            raise StorageError(str(e)) from e
