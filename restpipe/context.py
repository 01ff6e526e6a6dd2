"""
Request Context for restpipe.

The context carries the mutable state of one request through the
pipeline. The validator, serializer and storage of a model all hold a
reference to the same context and communicate only through it.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

from .actions import Action
from .response import Response

if TYPE_CHECKING:
    from starlette.requests import Request


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Context:
    """
    Request-scoped state shared by the collaborators of one model.

    Provides:
    - The action being carried out
    - The inbound request (method, URL, headers, body stream)
    - The decoded input, once the serializer has run
    - The response being built
    - The declared value type of the resource

    A context is created by Resource.new() and never shared between
    requests.
    """

    action: Action | str
    request: Request | None = None
    type: Any = None
    resource_name: str = ""
    input: Any = None
    response: Response = field(default_factory=Response)

    # Tracing
    execution_id: UUID = field(default_factory=uuid4)
    started_at: datetime = field(default_factory=_utc_now)

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the context was created."""
        delta = datetime.now(timezone.utc) - self.started_at
        return delta.total_seconds() * 1000

    @property
    def event_name(self) -> str:
        """Name used to track the transaction, e.g. "widget_insertOne"."""
        return f"{self.resource_name}_{self.action}"

    def set_response(self, status: int, body: Any = None) -> None:
        self.response.set(status, body)

    def set_header(self, key: str, value: str | list[str]) -> None:
        self.response.headers[key] = value

    def path_param(self, name: str, default: Any = None) -> Any:
        """Read a routing parameter from the request."""
        if self.request is None:
            return default
        return self.request.path_params.get(name, default)

    def query_params(self) -> dict[str, str]:
        if self.request is None:
            return {}
        return dict(self.request.query_params)

    def to_log_dict(self) -> dict[str, Any]:
        """Summary used in structured log records."""
        return {
            "execution_id": str(self.execution_id),
            "resource": self.resource_name,
            "action": str(self.action),
            "method": self.request.method if self.request is not None else None,
            "path": self.request.url.path if self.request is not None else None,
            "status": self.response.status,
            "duration_ms": round(self.elapsed_ms, 2),
        }
