"""
Books Example

This example demonstrates the basic resource pattern:
1. Declare a value type
2. Write a custom validator
3. Configure a resource
4. Mount it on a FastAPI app with a broker and metrics

Run: python examples/01-books/main.py
Then: curl -X POST localhost:8000/books -d '{"title": "Dune", "year": 1965}'
"""

import logging

from fastapi import FastAPI
from pydantic import BaseModel, Field

from restpipe import (
    InMemoryBroker,
    InMemoryMetrics,
    JSONSerializer,
    Resource,
    Service,
    Validator,
    build_router,
)
from restpipe.storage import InMemoryStorage
from restpipe.validators import AllOf, RequireIdentifier

# =============================================================================
# Value Type
# =============================================================================


class Book(BaseModel):
    """A book document."""

    id: str | None = None
    title: str = Field(..., min_length=1)
    year: int


# =============================================================================
# Custom Validator
# =============================================================================


class NoFutureBooks(Validator):
    """Rejects books published after 2100."""

    async def validate(self) -> None:
        books = self.context.input
        if books is None:
            return
        for book in books if isinstance(books, list) else [books]:
            if book.year > 2100:
                raise self.reject(f"'{book.title}' has not been published yet")


# =============================================================================
# Application
# =============================================================================


broker = InMemoryBroker()
metrics = InMemoryMetrics()
service = Service(broker=broker, metrics=metrics)

books = (
    Resource("book")
    .with_type(Book)
    .with_headers({"Cache-Control": "no-store"})
    .with_validator(AllOf(RequireIdentifier(), NoFutureBooks()))
    .with_serializer(JSONSerializer())
    .with_storage(InMemoryStorage())
)

app = FastAPI(title="Books")
app.include_router(build_router(service, books))


@app.get("/events")
async def events() -> list[str]:
    """Names of the events published so far."""
    return broker.names()


@app.get("/stats")
async def stats() -> dict:
    return metrics.get_stats()


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(app, host="127.0.0.1", port=8000)
