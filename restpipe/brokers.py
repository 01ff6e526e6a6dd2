"""
Reference event brokers for restpipe.

A broker is notified after every executed request with an Event that
holds the request and the response as it stands after storage ran.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from pydantic_core import to_json

from .contracts import Event
from .errors import BrokerError

logger = logging.getLogger(__name__)


@dataclass
class InMemoryBroker:
    """
    Broker that records published events.

    Useful for tests and local development.
    """

    events: list[tuple[str, Event]] = field(default_factory=list)
    max_events: int = 1000

    async def publish(self, event: str, payload: Event) -> None:
        self.events.append((event, payload))
        if len(self.events) > self.max_events:
            self.events = self.events[-self.max_events :]

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def clear(self) -> None:
        self.events.clear()


class RedisBroker:
    """
    Broker that publishes a JSON envelope on a Redis pub/sub channel.

    The channel is the event name with an optional prefix, e.g.
    "restpipe:widget_insertOne". The envelope holds the event name,
    the request method and URL, and the response status and body.

    Example:
        broker = RedisBroker("redis://localhost:6379/0", channel_prefix="shop:")
    """

    def __init__(self, redis_url: str, channel_prefix: str = ""):
        self._redis_url = redis_url
        self._channel_prefix = channel_prefix
        self._client: Any = None  # redis.asyncio.Redis

    async def _get_client(self) -> Any:
        """Get or create Redis client."""
        if self._client is None:
            try:
                import redis.asyncio as aioredis
            except ImportError:
                raise ImportError(
                    "redis package required for RedisBroker. Install with: pip install redis"
                )
            self._client = aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    def channel(self, event: str) -> str:
        return f"{self._channel_prefix}{event}"

    async def publish(self, event: str, payload: Event) -> None:
        message = to_json({"event": event, **payload.to_dict()}).decode()
        client = await self._get_client()
        try:
            receivers = await client.publish(self.channel(event), message)
        except Exception as e:
            raise BrokerError(f"Failed to publish {event}: {e}") from e
        logger.debug(f"Published {event} to {receivers} subscriber(s)")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
