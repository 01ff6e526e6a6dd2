"""
Dependency wiring for the restpipe application.

Provides singleton instances of the settings and the Service, and
builds the storage and broker selected by configuration.
"""
from __future__ import annotations

import json
import logging
import os
from functools import lru_cache
from typing import Any, Optional

from restpipe.brokers import InMemoryBroker, RedisBroker
from restpipe.config import AppSettings
from restpipe.contracts import Broker, Storage
from restpipe.observability import InMemoryMetrics, JSONLogger
from restpipe.service import Service
from restpipe.storage import InMemoryStorage, MongoConnection, MongoStorage

logger = logging.getLogger(__name__)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get application settings from environment.

    Uses lru_cache for singleton pattern.
    """
    return AppSettings(
        # Service
        service_name=os.getenv("RESTPIPE_SERVICE_NAME", "restpipe"),
        environment=os.getenv("RESTPIPE_ENVIRONMENT", "development"),
        debug=_env_bool("RESTPIPE_DEBUG"),
        log_level=os.getenv("RESTPIPE_LOG_LEVEL", "INFO"),
        # Storage
        storage_backend=os.getenv("RESTPIPE_STORAGE_BACKEND", "memory"),
        mongodb_url=os.getenv("RESTPIPE_MONGODB_URL", "mongodb://localhost:27017"),
        mongodb_database=os.getenv("RESTPIPE_MONGODB_DATABASE", "restpipe"),
        # Events
        broker_backend=os.getenv("RESTPIPE_BROKER_BACKEND", "none"),
        redis_url=os.getenv("RESTPIPE_REDIS_URL", "redis://localhost:6379/0"),
        channel_prefix=os.getenv("RESTPIPE_CHANNEL_PREFIX", ""),
        # Metrics
        metrics_enabled=_env_bool("RESTPIPE_METRICS_ENABLED", "true"),
        # Response defaults, as a JSON object
        default_headers=json.loads(os.getenv("RESTPIPE_DEFAULT_HEADERS", "{}")),
    )


# Global instances (initialized on first access)
_service: Optional[Service] = None
_mongo: Optional[MongoConnection] = None
_redis: Optional[RedisBroker] = None


def create_broker(settings: AppSettings) -> Broker | None:
    global _redis
    logger.info(f"Event broker: {settings.broker_backend}")
    if settings.broker_backend == "memory":
        return InMemoryBroker()
    if settings.broker_backend == "redis":
        _redis = RedisBroker(
            settings.redis_url.get_secret_value(),
            channel_prefix=settings.channel_prefix,
        )
        return _redis
    return None


def create_storage(settings: AppSettings, collection: str) -> Storage:
    """Storage for one resource, on the configured backend."""
    global _mongo
    if settings.storage_backend == "mongodb":
        if _mongo is None:
            _mongo = MongoConnection(
                settings.mongodb_url.get_secret_value(),
                settings.mongodb_database,
            )
        logger.info(f"Storage for {collection}: MongoDB")
        return MongoStorage(_mongo, collection=collection)
    return InMemoryStorage()


def get_service() -> Service:
    """
    Get the request pipeline service.

    Creates the service on first call.
    """
    global _service
    if _service is None:
        settings = get_settings()
        metrics: Any = InMemoryMetrics() if settings.metrics_enabled else None
        _service = Service(
            logger=JSONLogger(
                name=f"{settings.service_name}.pipeline",
                extra_context={"service": settings.service_name, "environment": settings.environment},
            ),
            broker=create_broker(settings),
            metrics=metrics,
        )
    return _service


async def initialize_services() -> None:
    """
    Initialize all services on application startup.

    Called from FastAPI lifespan.
    """
    get_service()
    if _mongo is not None:
        await _mongo.connect()


async def shutdown_services() -> None:
    """
    Cleanup all services on application shutdown.

    Called from FastAPI lifespan.
    """
    global _service, _mongo, _redis
    if _mongo is not None:
        await _mongo.close()
        _mongo = None
    if _redis is not None:
        await _redis.close()
        _redis = None
    _service = None
