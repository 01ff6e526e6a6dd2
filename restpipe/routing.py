"""
Route binding for restpipe.

Binding handlers to paths is left to the caller; build_router() covers
the common REST layout in one call.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from fastapi import APIRouter

from .actions import Action

if TYPE_CHECKING:
    from .resource import Resource
    from .service import Service

# (method, path suffix) per action
ROUTES: dict[Action, tuple[str, str]] = {
    Action.INSERT_ONE: ("POST", ""),
    Action.INSERT_MANY: ("POST", "/bulk"),
    Action.FIND_MANY: ("GET", ""),
    Action.FIND_ONE: ("GET", "/{id}"),
    Action.UPSERT: ("PUT", "/{id}"),
    Action.UPDATE: ("PATCH", "/{id}"),
    Action.REMOVE: ("DELETE", "/{id}"),
}


def build_router(
    service: Service,
    resource: Resource,
    prefix: str | None = None,
    actions: Iterable[Action] | None = None,
    tags: list[str] | None = None,
) -> APIRouter:
    """
    Build a FastAPI router exposing a resource.

    Example:
        app.include_router(build_router(service, widgets, prefix="/widgets"))

    Args:
        service: Service whose pipeline handles the requests
        resource: Resource to expose
        prefix: Path prefix (defaults to "/<resource name>s")
        actions: Subset of actions to expose (defaults to all seven)
        tags: OpenAPI tags (defaults to the resource name)
    """
    if prefix is None:
        prefix = f"/{resource.name}s"
    router = APIRouter(prefix=prefix.rstrip("/"), tags=tags or [resource.name])

    selected = list(actions) if actions is not None else list(ROUTES)
    for action in selected:
        method, suffix = ROUTES[action]
        router.add_api_route(
            suffix,
            service.process(resource, action),
            methods=[method],
            name=f"{resource.name}_{action}",
        )
    return router
