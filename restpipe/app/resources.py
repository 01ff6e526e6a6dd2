"""
Resources served by the restpipe application.
"""
from __future__ import annotations

from pydantic import BaseModel, Field

from restpipe.actions import Action
from restpipe.config import AppSettings
from restpipe.context import Context
from restpipe.resource import Resource
from restpipe.serializers import JSONSerializer
from restpipe.validators import AllOf, CallbackValidator, RequireIdentifier

from .dependencies import create_storage

# Actions that store a whole widget, as opposed to a partial update
_FULL_WRITES = frozenset({Action.INSERT_ONE, Action.INSERT_MANY, Action.UPSERT})


class Widget(BaseModel):
    """
    A widget document.

    Every field is optional so PATCH can send only what changes; full
    writes must still carry a name.
    """

    id: str | None = Field(None, description="Identifier, generated when omitted")
    name: str | None = Field(None, min_length=1, max_length=200)
    age: int = Field(0, ge=0)


def require_name(ctx: Context) -> str | None:
    if ctx.action not in _FULL_WRITES:
        return None
    widgets = ctx.input if isinstance(ctx.input, list) else [ctx.input]
    if any(w.name is None for w in widgets):
        return "name is required"
    return None


def widget_resource(settings: AppSettings) -> Resource:
    return (
        Resource("widget")
        .with_type(Widget)
        .with_headers(settings.default_headers)
        .with_validator(AllOf(RequireIdentifier(), CallbackValidator(require_name)))
        .with_serializer(JSONSerializer())
        .with_storage(create_storage(settings, collection="widgets"))
    )
