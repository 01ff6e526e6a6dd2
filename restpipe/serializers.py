"""
JSON serializer for restpipe.

Decodes request bodies into the resource's declared type with pydantic
and encodes response bodies with pydantic-core, so models, dataclasses,
datetimes and UUIDs all render without custom encoders.
"""
from __future__ import annotations

import logging
from functools import lru_cache
from http import HTTPStatus
from typing import Any

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from .contracts import Serializer
from .errors import DecodeError, EncodeError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=128)
def _adapter(value_type: Any, bulk: bool) -> TypeAdapter:
    if value_type is None:
        value_type = Any
    return TypeAdapter(list[value_type] if bulk else value_type)


class JSONSerializer(Serializer):
    """
    Serializer for application/json bodies.

    decode():
    - Skipped for actions without a body (finds and remove)
    - insertMany bodies must be JSON arrays of the declared type
    - Malformed JSON and values that do not match the type answer 400

    Args:
        error_details: Include pydantic's field errors in the 400 body.
            Messages only name fields and constraints, never input values.
    """

    media_type = "application/json"

    def __init__(self, error_details: bool = True):
        self.error_details = error_details

    async def decode(self) -> None:
        ctx = self.context
        action = ctx.action
        if not getattr(action, "has_body", False):
            return

        raw = await ctx.request.body()
        adapter = _adapter(ctx.type, getattr(action, "is_bulk", False))
        try:
            ctx.input = adapter.validate_json(raw or b"null")
        except ValidationError as e:
            ctx.response.fail(HTTPStatus.BAD_REQUEST)
            if self.error_details:
                ctx.response.body["errors"] = e.errors(
                    include_url=False, include_input=False, include_context=False
                )
            raise DecodeError(f"Invalid {ctx.resource_name} body: {e}") from e

        logger.debug(f"Decoded {ctx.resource_name} body for {action}")

    def encode(self, value: Any) -> bytes:
        try:
            return to_json(value)
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise EncodeError(f"Cannot encode {type(value).__name__}: {e}") from e
