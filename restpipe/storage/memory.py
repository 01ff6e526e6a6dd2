"""
In-memory storage for restpipe.

Suitable for tests, prototypes and single-process deployments.
Documents are kept as plain dicts keyed by their identifier.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

from ..contracts import Storage
from ..errors import NotFoundError, StorageError
from .documents import ensure_identifier, to_document


@dataclass
class InMemoryStorage(Storage):
    """
    Storage backed by a dict.

    Per-request copies made by Resource.new() share the same documents
    dict, so every request sees the same data.

    Args:
        id_field: Document field holding the identifier
        param: Routing parameter that addresses one document
        max_documents: Inserts beyond this size answer 507
    """

    id_field: str = "id"
    param: str = "id"
    max_documents: int = 10_000
    documents: dict[str, dict[str, Any]] = field(default_factory=dict)

    async def insert_one(self) -> None:
        document = to_document(self.context.input)
        identifier = ensure_identifier(document, self.id_field)
        self._check_new([identifier], 1)
        self.documents[identifier] = document
        self.context.set_response(HTTPStatus.CREATED, document)

    async def insert_many(self) -> None:
        documents = [to_document(v) for v in self.context.input]
        identifiers = [ensure_identifier(d, self.id_field) for d in documents]
        if len(set(identifiers)) != len(identifiers):
            self._fail(HTTPStatus.CONFLICT, "Duplicate identifiers in request")
        self._check_new(identifiers, len(documents))
        for identifier, document in zip(identifiers, documents):
            self.documents[identifier] = document
        self.context.set_response(HTTPStatus.CREATED, documents)

    async def update(self) -> None:
        identifier = self._identifier()
        current = self._existing(identifier)
        changes = to_document(self.context.input, partial=True)
        changes.pop(self.id_field, None)
        current.update(changes)
        self.context.set_response(HTTPStatus.NO_CONTENT)

    async def upsert(self) -> None:
        identifier = self._identifier()
        document = to_document(self.context.input)
        document[self.id_field] = identifier
        if identifier not in self.documents:
            self._check_new([identifier], 1)
        self.documents[identifier] = document
        self.context.set_response(HTTPStatus.OK, document)

    async def find_one(self) -> None:
        document = self._existing(self._identifier())
        self.context.set_response(HTTPStatus.OK, dict(document))

    async def find_many(self) -> None:
        self.context.set_response(
            HTTPStatus.OK, [dict(d) for d in self.documents.values()]
        )

    async def remove(self) -> None:
        identifier = self._identifier()
        self._existing(identifier)
        del self.documents[identifier]
        self.context.set_response(HTTPStatus.NO_CONTENT)

    def clear(self) -> None:
        self.documents.clear()

    # Helpers

    def _identifier(self) -> str:
        identifier = self.context.path_param(self.param)
        if identifier is None:
            self._fail(HTTPStatus.BAD_REQUEST, f"Missing '{self.param}' URL parameter")
        return str(identifier)

    def _existing(self, identifier: str) -> dict[str, Any]:
        document = self.documents.get(identifier)
        if document is None:
            self.context.response.fail(HTTPStatus.NOT_FOUND)
            raise NotFoundError(
                f"{self.context.resource_name} '{identifier}' does not exist"
            )
        return document

    def _check_new(self, identifiers: list[str], count: int) -> None:
        taken = [i for i in identifiers if i in self.documents]
        if taken:
            self._fail(HTTPStatus.CONFLICT, f"Already exists: {', '.join(taken)}")
        if len(self.documents) + count > self.max_documents:
            self.context.response.fail(HTTPStatus.INSUFFICIENT_STORAGE)
            raise StorageError(
                f"In-memory storage is full ({self.max_documents} documents)"
            )

    def _fail(self, status: int, message: str) -> None:
        self.context.response.fail(status, message)
        raise StorageError(message)
