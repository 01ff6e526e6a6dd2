"""
Exceptions for restpipe.

Every stage of the request pipeline signals failure by raising one of
these. The pipeline catches them at the stage boundary, logs the detail
and turns the outcome into a single HTTP status.
"""

from __future__ import annotations


class RestpipeError(Exception):
    """Base class for all restpipe errors."""

    pass


class ConfigurationError(RestpipeError):
    """
    Raised when a resource is used before it is fully configured.

    A missing validator, serializer or storage is a programming error,
    not a client error.
    """

    pass


class UnknownActionError(RestpipeError):
    """Raised when a model is asked to execute an action it cannot dispatch."""

    def __init__(self, action: str, known: list[str] | None = None):
        self.action = action
        self.known = known or []
        message = f"Unknown action '{action}'"
        if self.known:
            message += f". The action must be one of {', '.join(self.known)}"
        super().__init__(message)


class DecodeError(RestpipeError):
    """Raised when a request body cannot be decoded into the resource type."""

    pass


class ValidationFailed(RestpipeError):
    """
    Raised by a validator that rejects the request.

    The message is client-safe and is sent back as the response body.
    """

    def __init__(self, message: str, status: int = 400):
        self.message = message
        self.status = status
        super().__init__(message)


class EncodeError(RestpipeError):
    """Raised when a value cannot be encoded to wire bytes."""

    pass


class StorageError(RestpipeError):
    """Raised when a storage operation fails."""

    pass


class NotFoundError(StorageError):
    """Raised when a storage operation targets a document that does not exist."""

    pass


class BrokerError(RestpipeError):
    """Raised when an event cannot be published."""

    pass
