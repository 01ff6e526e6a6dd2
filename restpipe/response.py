"""
Outbound response shape for restpipe.

A Response is built fresh for every request, mutated in place by the
pipeline stages and rendered exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any

# Statuses that must not carry a body
_BODYLESS = frozenset({HTTPStatus.NO_CONTENT, HTTPStatus.NOT_MODIFIED})


def status_text(status: int) -> str:
    """Reason phrase for a status code ("" when unknown)."""
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return ""


def error_body(status: int, message: str | None = None) -> dict[str, str]:
    """Build the body used for error responses."""
    return {"detail": message or status_text(status)}


@dataclass
class Response:
    """
    Data to be sent back to the client.

    Attributes:
        status: HTTP status code, 0 until a stage decides the outcome
        headers: Response headers. A list value repeats the header per item
        body: Any value the serializer can encode, None for no body
    """

    status: int = 0
    headers: dict[str, str | list[str]] = field(default_factory=dict)
    body: Any = None

    def __post_init__(self) -> None:
        self.status = int(self.status)

    @property
    def is_set(self) -> bool:
        return self.status != 0

    @property
    def is_error(self) -> bool:
        return self.status >= 400

    @property
    def allows_body(self) -> bool:
        """Whether the status permits a response body."""
        return self.status >= 200 and self.status not in _BODYLESS

    def set(self, status: int, body: Any = None) -> "Response":
        self.status = int(status)
        self.body = body
        return self

    def fail(self, status: int = 500, message: str | None = None) -> "Response":
        """Replace status and body with an error shape."""
        return self.set(status, error_body(status, message))

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "headers": dict(self.headers),
            "body": self.body,
        }
