"""
The closed set of data operations a resource can expose.
"""

from __future__ import annotations

from enum import Enum


class Action(str, Enum):
    """Canonical CRUD operations."""

    INSERT_ONE = "insertOne"
    INSERT_MANY = "insertMany"
    UPDATE = "update"
    UPSERT = "upsert"
    FIND_ONE = "findOne"
    FIND_MANY = "findMany"
    REMOVE = "remove"

    @property
    def has_body(self) -> bool:
        """Whether requests for this action carry a body to decode."""
        return self in _BODY_ACTIONS

    @property
    def is_bulk(self) -> bool:
        return self is Action.INSERT_MANY

    def __str__(self) -> str:
        return self.value


_BODY_ACTIONS = frozenset(
    {Action.INSERT_ONE, Action.INSERT_MANY, Action.UPDATE, Action.UPSERT}
)


# Storage coroutine that serves each action
STORAGE_METHODS: dict[str, str] = {
    Action.INSERT_ONE.value: "insert_one",
    Action.INSERT_MANY.value: "insert_many",
    Action.UPDATE.value: "update",
    Action.UPSERT.value: "upsert",
    Action.FIND_ONE.value: "find_one",
    Action.FIND_MANY.value: "find_many",
    Action.REMOVE.value: "remove",
}
