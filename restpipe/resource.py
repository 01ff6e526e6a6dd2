"""
Resource configuration for restpipe.

A Resource is the configuration of one named entity type: its value
type, default response headers and the collaborators that validate,
serialize and store it. It is configured once at start-up and then
builds a fresh Model for every request.
"""
from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from .actions import STORAGE_METHODS, Action
from .context import Context
from .model import Model
from .response import Response

if TYPE_CHECKING:
    from starlette.requests import Request

    from .contracts import Serializer, Storage, Validator

_ACTION_VALUES = frozenset(a.value for a in Action)


class Resource:
    """
    Factory of per-request models for one entity type.

    Setters are fluent and the last call wins:

        widgets = (
            Resource("widget")
            .with_type(Widget)
            .with_headers({"Cache-Control": "no-store"})
            .with_validator(RequireIdentifier())
            .with_serializer(JSONSerializer())
            .with_storage(InMemoryStorage())
        )

    Configuration must be complete before the first request. A missing
    collaborator fails the request that first needs it.
    """

    def __init__(
        self,
        name: str = "",
        type: Any = None,
        headers: dict[str, str] | None = None,
        validator: Validator | None = None,
        serializer: Serializer | None = None,
        storage: Storage | None = None,
    ):
        self.name = name
        self.type = type
        self.headers: dict[str, str] = dict(headers or {})
        self.validator = validator
        self.serializer = serializer
        self.storage = storage
        self._dispatch: dict[str, str] = dict(STORAGE_METHODS)

    # Configuration

    def with_name(self, name: str) -> "Resource":
        self.name = name
        return self

    def with_type(self, type: Any) -> "Resource":
        self.type = type
        return self

    def with_headers(self, headers: dict[str, str]) -> "Resource":
        self.headers = dict(headers)
        return self

    def with_validator(self, validator: Validator) -> "Resource":
        self.validator = validator
        return self

    def with_serializer(self, serializer: Serializer) -> "Resource":
        self.serializer = serializer
        return self

    def with_storage(self, storage: Storage) -> "Resource":
        self.storage = storage
        return self

    def with_action(self, name: str, storage_method: str) -> "Resource":
        """
        Register an extra action served by a storage coroutine.

        Args:
            name: Action name used in event names and Service.process()
            storage_method: Name of the storage coroutine to await
        """
        if name in STORAGE_METHODS and STORAGE_METHODS[name] != storage_method:
            raise ValueError(f"Action '{name}' is built in and cannot be remapped")
        self._dispatch[name] = storage_method
        return self

    @property
    def actions(self) -> list[str]:
        return list(self._dispatch)

    # Per-request

    def new(self, request: Request | None, action: Action | str) -> Model:
        """
        Build a model for one request.

        The context starts with a copy of the default headers and an
        unset status. Each collaborator is shallow-copied before binding
        so concurrent requests never share a bound context; backend
        clients held by a collaborator are shared by reference.
        """
        if not isinstance(action, Action) and action in _ACTION_VALUES:
            action = Action(action)

        context = Context(
            action=action,
            request=request,
            type=self.type,
            resource_name=self.name,
            response=Response(headers=dict(self.headers)),
        )
        return Model(
            context,
            validator=_request_copy(self.validator),
            serializer=_request_copy(self.serializer),
            storage=_request_copy(self.storage),
            dispatch=self._dispatch,
        )

    def __repr__(self) -> str:
        return f"Resource(name='{self.name}', type={getattr(self.type, '__name__', self.type)})"


def _request_copy(collaborator: Any) -> Any:
    if collaborator is None:
        return None
    return copy.copy(collaborator)
