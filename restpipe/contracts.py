"""
Collaborator contracts for restpipe.

A model is composed of three independently pluggable collaborators:

- Validator: accepts or rejects the request
- Serializer: decodes the request body and encodes response bodies
- Storage: carries out the data operation

All three share one request Context through use_context(). The
optional cross-cutting collaborators (Broker, Metrics, Logger) are
held by the Service and never see the Context directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from http import HTTPStatus
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from .errors import ConfigurationError, StorageError, ValidationFailed

if TYPE_CHECKING:
    from starlette.requests import Request

    from .context import Context
    from .response import Response

# =============================================================================
# Context binding
# =============================================================================


class Collaborator:
    """
    Mixin for collaborators that read and write the request Context.

    The Model calls use_context() once, when it is built. Collaborators
    never bind themselves.
    """

    _context: Context | None = None

    def use_context(self, context: Context) -> None:
        self._context = context

    @property
    def context(self) -> Context:
        if self._context is None:
            raise ConfigurationError(
                f"{self.__class__.__name__} used before a context was bound"
            )
        return self._context


# =============================================================================
# Validator
# =============================================================================


class Validator(Collaborator, ABC):
    """
    Accepts or rejects a request before storage runs.

    Implementations inspect context.request, context.input and
    context.action. To reject, set a client-error response and raise
    ValidationFailed; reject() does both:

        async def validate(self) -> None:
            if not self.context.input.name:
                raise self.reject("name is required")
    """

    @abstractmethod
    async def validate(self) -> None:
        """Return normally to accept, raise ValidationFailed to reject."""
        ...

    def reject(self, message: str, status: int = HTTPStatus.BAD_REQUEST) -> ValidationFailed:
        """Set the rejection response and return the exception to raise."""
        self.context.response.fail(status, message)
        return ValidationFailed(message, status=status)


# =============================================================================
# Serializer
# =============================================================================


class Serializer(Collaborator, ABC):
    """
    Converts between wire bytes and resource values.

    decode() stores the parsed body in context.input. On failure it sets
    a 400 response and raises DecodeError. It is a no-op for actions that
    carry no body.

    encode() turns any value into bytes. A failure raises EncodeError and
    is treated as a server error.
    """

    media_type: str = "application/octet-stream"

    @abstractmethod
    async def decode(self) -> None:
        ...

    @abstractmethod
    def encode(self, value: Any) -> bytes:
        ...


# =============================================================================
# Storage
# =============================================================================


class Storage(Collaborator):
    """
    Carries out data operations and writes their outcome to the response.

    On success each operation must leave the canonical status in
    context.response (201 for inserts, 200 for finds and upsert, 204 for
    update and remove). On failure it raises; a client-error status it
    already set (e.g. 404) is kept, otherwise the pipeline reports 500.

    Operations a backend does not override answer 405.
    """

    async def insert_one(self) -> None:
        self._unsupported("insert_one")

    async def insert_many(self) -> None:
        self._unsupported("insert_many")

    async def update(self) -> None:
        self._unsupported("update")

    async def upsert(self) -> None:
        self._unsupported("upsert")

    async def find_one(self) -> None:
        self._unsupported("find_one")

    async def find_many(self) -> None:
        self._unsupported("find_many")

    async def remove(self) -> None:
        self._unsupported("remove")

    def _unsupported(self, operation: str) -> None:
        self.context.response.fail(HTTPStatus.METHOD_NOT_ALLOWED)
        raise StorageError(
            f"{self.__class__.__name__} does not support {operation}"
        )


# =============================================================================
# Broker
# =============================================================================


@dataclass(frozen=True)
class Event:
    """Payload published for every processed request."""

    request: Request
    response: Response

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.request.method,
            "url": str(self.request.url),
            "status": self.response.status,
            "body": self.response.body,
        }


@runtime_checkable
class Broker(Protocol):
    """Event stream adapter used to notify other services of state changes."""

    async def publish(self, event: str, payload: Event) -> None:
        """Publish payload under the event name. Raise on failure."""
        ...


# =============================================================================
# Metrics
# =============================================================================


@runtime_checkable
class Metrics(Protocol):
    """Adapter to track application performance metrics."""

    def incr(self, stat: str, count: int = 1) -> None:
        ...

    def timing(self, stat: str, delta: int) -> None:
        """Record a duration in nanoseconds."""
        ...

    def new_timer(self, stat: str) -> Callable[[], None]:
        """Start a timer; calling the returned function records the timing."""
        ...


# =============================================================================
# Logger
# =============================================================================


@runtime_checkable
class Logger(Protocol):
    """Leveled logging interface for pipeline errors."""

    def info(self, v: BaseException | str, **context: Any) -> None:
        ...

    def warning(self, v: BaseException | str, **context: Any) -> None:
        ...

    def error(self, v: BaseException | str, **context: Any) -> None:
        ...

    def fatal(self, v: BaseException | str, **context: Any) -> None:
        ...
