"""
restpipe - CRUD request pipelines for FastAPI over pluggable storage.

A Resource bundles a value type with three pluggable collaborators:

- **Validator**: accepts or rejects the request
- **Serializer**: decodes request bodies and encodes responses
- **Storage**: carries out the data operation

A Service turns a Resource into ready-to-mount handlers that run the
same pipeline for every action:

    Decode -> Validate -> Execute -> Notify -> Record -> Respond

Quick Start:
    >>> from restpipe import JSONSerializer, Resource, Service, build_router
    >>> from restpipe.storage import InMemoryStorage
    >>> from restpipe.validators import RequireIdentifier
    >>>
    >>> widgets = (
    ...     Resource("widget")
    ...     .with_type(Widget)
    ...     .with_validator(RequireIdentifier())
    ...     .with_serializer(JSONSerializer())
    ...     .with_storage(InMemoryStorage())
    ... )
    >>> app.include_router(build_router(Service(), widgets, prefix="/widgets"))
"""

__version__ = "0.1.0"
__license__ = "MIT"

from restpipe.actions import Action
from restpipe.brokers import InMemoryBroker, RedisBroker
from restpipe.context import Context
from restpipe.contracts import (
    Broker,
    Collaborator,
    Event,
    Logger,
    Metrics,
    Serializer,
    Storage,
    Validator,
)
from restpipe.errors import (
    BrokerError,
    ConfigurationError,
    DecodeError,
    EncodeError,
    NotFoundError,
    RestpipeError,
    StorageError,
    UnknownActionError,
    ValidationFailed,
)
from restpipe.model import Model
from restpipe.observability import InMemoryMetrics, JSONLogger, LogLevel, ServiceMetrics
from restpipe.resource import Resource
from restpipe.response import Response
from restpipe.routing import build_router
from restpipe.serializers import JSONSerializer
from restpipe.service import Service

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Core pipeline
    "Action",
    "Context",
    "Model",
    "Resource",
    "Response",
    "Service",
    "build_router",
    # Collaborators
    "Collaborator",
    "Validator",
    "Serializer",
    "Storage",
    "Broker",
    "Metrics",
    "Logger",
    "Event",
    "JSONSerializer",
    "InMemoryBroker",
    "RedisBroker",
    # Observability
    "LogLevel",
    "JSONLogger",
    "ServiceMetrics",
    "InMemoryMetrics",
    # Errors
    "RestpipeError",
    "ConfigurationError",
    "UnknownActionError",
    "DecodeError",
    "ValidationFailed",
    "EncodeError",
    "StorageError",
    "NotFoundError",
    "BrokerError",
]
