"""
Reference validators for restpipe.
"""
from __future__ import annotations

import copy
import inspect
from collections.abc import Awaitable, Callable, Iterable
from http import HTTPStatus
from typing import TYPE_CHECKING

from .actions import Action
from .contracts import Validator

if TYPE_CHECKING:
    from .context import Context

# Actions addressed at one document through a routing parameter
IDENTIFIED_ACTIONS = frozenset({Action.FIND_ONE, Action.UPDATE, Action.UPSERT, Action.REMOVE})


class AcceptAll(Validator):
    """Validator that accepts every request."""

    async def validate(self) -> None:
        return None


class RequireIdentifier(Validator):
    """
    Rejects requests for single-document actions that lack an identifier.

    Args:
        param: Name of the routing parameter holding the identifier
        actions: Actions that require it (defaults to findOne, update,
            upsert and remove)
    """

    def __init__(
        self,
        param: str = "id",
        actions: Iterable[Action | str] | None = None,
    ):
        self.param = param
        self.actions = frozenset(str(a) for a in (actions or IDENTIFIED_ACTIONS))

    async def validate(self) -> None:
        if str(self.context.action) not in self.actions:
            return
        value = self.context.path_param(self.param)
        if value is None or not str(value).strip():
            raise self.reject(f"Missing '{self.param}' URL parameter")


CheckFn = Callable[["Context"], "str | None | Awaitable[str | None]"]


class CallbackValidator(Validator):
    """
    Validator backed by a function.

    The function receives the context and returns a rejection message,
    or None to accept. Coroutine functions are awaited.

    Example:
        def adults_only(ctx):
            if ctx.input and ctx.input.age < 18:
                return "age must be at least 18"

        validator = CallbackValidator(adults_only)
    """

    def __init__(self, check: CheckFn, status: int = HTTPStatus.BAD_REQUEST):
        self.check = check
        self.status = status

    async def validate(self) -> None:
        message = self.check(self.context)
        if inspect.isawaitable(message):
            message = await message
        if message:
            raise self.reject(message, status=self.status)


class AllOf(Validator):
    """
    Runs validators in order and stops at the first rejection.

    Each child is copied and bound to the same context.
    """

    def __init__(self, *validators: Validator):
        self.validators = list(validators)

    def use_context(self, context: Context) -> None:
        super().use_context(context)
        self.validators = [copy.copy(v) for v in self.validators]
        for validator in self.validators:
            validator.use_context(context)

    async def validate(self) -> None:
        for validator in self.validators:
            await validator.validate()
