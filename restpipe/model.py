"""
Model for restpipe.

A Model is the per-request composition of one validator, one
serializer and one storage, all bound to the same Context. It is built
by Resource.new() and discarded when the request completes.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .actions import STORAGE_METHODS
from .errors import ConfigurationError, UnknownActionError

if TYPE_CHECKING:
    from .actions import Action
    from .context import Context
    from .contracts import Serializer, Storage, Validator

logger = logging.getLogger(__name__)


class Model:
    """
    Binds collaborators to a request context.

    Collaborators are composed, not inherited: each one only knows the
    Context, and the Model forwards the pipeline stages to the right
    collaborator.

    Example:
        model = Model(ctx, validator=v, serializer=s, storage=st)
        await model.decode()
        await model.validate()
        await model.execute(ctx.action)
    """

    def __init__(
        self,
        context: Context,
        validator: Validator | None = None,
        serializer: Serializer | None = None,
        storage: Storage | None = None,
        dispatch: Mapping[str, str] | None = None,
    ):
        self.context = context
        self.validator = validator
        self.serializer = serializer
        self.storage = storage
        self._dispatch = dict(dispatch) if dispatch is not None else dict(STORAGE_METHODS)

        for collaborator in (validator, serializer, storage):
            if collaborator is not None:
                collaborator.use_context(context)

    @property
    def name(self) -> str:
        return self.context.resource_name

    @property
    def actions(self) -> list[str]:
        """Names of the actions this model can execute."""
        return list(self._dispatch)

    async def decode(self) -> None:
        await self._require("serializer").decode()

    async def validate(self) -> None:
        await self._require("validator").validate()

    def encode(self, value: Any) -> bytes:
        return self._require("serializer").encode(value)

    async def execute(self, action: Action | str) -> None:
        """
        Run the storage operation for an action.

        Raises:
            UnknownActionError: If the action is not in the dispatch table.
                No storage operation is called.
        """
        key = str(action)
        method_name = self._dispatch.get(key)
        if method_name is None:
            raise UnknownActionError(key, known=self.actions)

        storage = self._require("storage")
        operation = getattr(storage, method_name, None)
        if operation is None:
            raise ConfigurationError(
                f"{storage.__class__.__name__} has no operation '{method_name}' "
                f"for action '{key}'"
            )

        logger.debug(f"Executing {self.name}.{method_name} for action '{key}'")
        await operation()

    def _require(self, role: str) -> Any:
        collaborator = getattr(self, role)
        if collaborator is None:
            raise ConfigurationError(f"Resource '{self.name}' has no {role} configured")
        return collaborator

    def __repr__(self) -> str:
        return f"Model(resource='{self.name}', action='{self.context.action}')"
