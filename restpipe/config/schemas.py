"""
Configuration Schemas for restpipe.

Security:
    Connection URLs may embed credentials and use SecretStr to prevent
    accidental logging. Access the value with `.get_secret_value()`.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, SecretStr


class AppSettings(BaseModel):
    """
    Application settings model.

    Built from RESTPIPE_* environment variables by get_settings().
    """

    # Service identity
    service_name: str = "restpipe"
    environment: str = "development"
    debug: bool = False
    log_level: str = Field("INFO", description="Root log level")

    # Storage
    storage_backend: Literal["memory", "mongodb"] = "memory"
    mongodb_url: SecretStr = Field(
        default=SecretStr("mongodb://localhost:27017"),
        description="MongoDB connection URL",
    )
    mongodb_database: str = "restpipe"

    # Events
    broker_backend: Literal["none", "memory", "redis"] = "none"
    redis_url: SecretStr = Field(
        default=SecretStr("redis://localhost:6379/0"),
        description="Redis connection URL",
    )
    channel_prefix: str = Field("", description="Prefix for published event channels")

    # Metrics
    metrics_enabled: bool = True

    # Response defaults
    default_headers: dict[str, str] = Field(default_factory=dict)

    class Config:
        extra = "ignore"
