"""
Helpers shared by the reference storage backends.
"""
from __future__ import annotations

from typing import Any
from uuid import uuid4

from pydantic import BaseModel
from pydantic_core import to_jsonable_python


def to_document(value: Any, partial: bool = False) -> dict[str, Any]:
    """
    Convert a decoded input value into a plain document.

    Args:
        value: A pydantic model, dataclass or mapping
        partial: Keep only the fields the client actually sent
    """
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_unset=partial)
    document = to_jsonable_python(value)
    if not isinstance(document, dict):
        raise TypeError(f"Expected an object, got {type(value).__name__}")
    return document


def ensure_identifier(document: dict[str, Any], id_field: str) -> str:
    """Return the document's identifier, generating one when it is missing."""
    identifier = document.get(id_field)
    if identifier in (None, ""):
        identifier = uuid4().hex
        document[id_field] = identifier
    return str(identifier)
