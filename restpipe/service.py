"""
Service: the request pipeline for restpipe.

The Service turns a Resource into HTTP handlers. Every handler runs the
same fixed sequence of stages:

    Decode -> Validate -> Execute -> Notify -> Record -> Respond

Decode and validate failures short-circuit straight to Respond. A
storage failure is logged and the request still goes through Notify
and Record, so the broker and metrics see every executed request.
Broker and encode failures always end in a 500.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from starlette.requests import Request
from starlette.responses import Response as HTTPResponse

from .actions import Action
from .contracts import Event
from .errors import ConfigurationError, ValidationFailed
from .observability import JSONLogger
from .response import status_text

if TYPE_CHECKING:
    from .contracts import Broker, Logger, Metrics
    from .model import Model
    from .resource import Resource

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Awaitable[HTTPResponse]]

_PLAIN_TEXT = "text/plain; charset=utf-8"


def _noop() -> None:
    pass


class Service:
    """
    Holds the application-scope broker, logger and metrics adapters and
    builds request handlers from resources.

    Broker and metrics are optional; without them the Notify and Record
    stages are skipped. A JSONLogger is used when no logger is given.

    Example:
        service = Service(broker=RedisBroker(url), metrics=InMemoryMetrics())
        app.add_api_route("/widgets", service.insert_one(widgets), methods=["POST"])
    """

    def __init__(
        self,
        logger: Logger | None = None,
        broker: Broker | None = None,
        metrics: Metrics | None = None,
    ):
        self.logger = logger if logger is not None else JSONLogger(name="restpipe.service")
        self.broker = broker
        self.metrics = metrics

    # =========================================================================
    # Handler builders
    # =========================================================================

    def insert_one(self, resource: Resource) -> Handler:
        """Handler that creates one document from the request body."""
        return self.process(resource, Action.INSERT_ONE)

    def insert_many(self, resource: Resource) -> Handler:
        """Handler that creates every document in a JSON array body."""
        return self.process(resource, Action.INSERT_MANY)

    def update(self, resource: Resource) -> Handler:
        """Handler that updates the document selected by the URL."""
        return self.process(resource, Action.UPDATE)

    def upsert(self, resource: Resource) -> Handler:
        """Handler that creates or replaces the document selected by the URL."""
        return self.process(resource, Action.UPSERT)

    def find_one(self, resource: Resource) -> Handler:
        """Handler that returns the document selected by the URL."""
        return self.process(resource, Action.FIND_ONE)

    def find_many(self, resource: Resource) -> Handler:
        """Handler that lists documents."""
        return self.process(resource, Action.FIND_MANY)

    def remove(self, resource: Resource) -> Handler:
        """Handler that deletes the document selected by the URL."""
        return self.process(resource, Action.REMOVE)

    def new_timer(self, stat: str) -> Callable[[], None]:
        """Start a metrics timer, or a no-op one when metrics are disabled."""
        if self.metrics is None:
            return _noop
        try:
            return self.metrics.new_timer(stat)
        except Exception as e:
            self.logger.warning(e, stage="record", stat=stat)
            return _noop

    # =========================================================================
    # Pipeline
    # =========================================================================

    def process(self, resource: Resource, action: Action | str) -> Handler:
        """
        Build the handler that runs the pipeline for one action.

        The handler never raises: every failure ends as exactly one
        status and one body.
        """

        async def handler(request: Request) -> HTTPResponse:
            # A new model, and so a new context, for every request
            model = resource.new(request, action)
            stop = self.new_timer(model.context.event_name)
            try:
                await self._run(model, stop)
            except Exception as e:
                self.logger.error(e, stage="pipeline", **model.context.to_log_dict())
                model.context.response.fail(HTTPStatus.INTERNAL_SERVER_ERROR)
            try:
                return self._respond(model)
            except Exception as e:
                self.logger.error(e, stage="respond", **model.context.to_log_dict())
                return _plain_error(HTTPStatus.INTERNAL_SERVER_ERROR)

        handler.__name__ = f"{resource.name or 'resource'}_{action}"
        handler.__doc__ = f"{action} {resource.name}"
        return handler

    async def _run(self, model: Model, stop: Callable[[], None]) -> None:
        ctx = model.context

        # Decode
        try:
            await model.decode()
        except Exception as e:
            self._reject(model, "decode", e)
            return

        # Validate
        try:
            await model.validate()
        except Exception as e:
            self._reject(model, "validate", e)
            return

        # Execute
        try:
            await model.execute(ctx.action)
        except Exception as e:
            self.logger.error(e, stage="execute", **ctx.to_log_dict())
            if not ctx.response.is_error:
                ctx.response.fail(HTTPStatus.INTERNAL_SERVER_ERROR)

        # Notify
        if self.broker is not None:
            try:
                await self.broker.publish(ctx.event_name, Event(request=ctx.request, response=ctx.response))
            except Exception as e:
                self.logger.error(e, stage="notify", **ctx.to_log_dict())
                ctx.response.fail(HTTPStatus.INTERNAL_SERVER_ERROR)

        # Record
        if self.metrics is not None:
            try:
                self.metrics.incr(ctx.event_name, 1)
            except Exception as e:
                self.logger.warning(e, stage="record", **ctx.to_log_dict())
            try:
                stop()
            except Exception as e:
                self.logger.warning(e, stage="record", **ctx.to_log_dict())

    def _reject(self, model: Model, stage: str, e: Exception) -> None:
        """
        Settle the response after a decode or validate failure.

        An error status the collaborator already set is kept. Otherwise
        any failure is a bad request, except a missing collaborator,
        which is a server fault.
        """
        ctx = model.context
        response = ctx.response
        if isinstance(e, ConfigurationError):
            self.logger.error(e, stage=stage, **ctx.to_log_dict())
            if not response.is_error:
                response.fail(HTTPStatus.INTERNAL_SERVER_ERROR)
            return

        self.logger.warning(e, stage=stage, **ctx.to_log_dict())
        if response.is_error:
            return
        if isinstance(e, ValidationFailed):
            response.fail(e.status, e.message)
        else:
            response.fail(HTTPStatus.BAD_REQUEST)

    def _respond(self, model: Model) -> HTTPResponse:
        """Encode the response body and build the HTTP response."""
        ctx = model.context
        response = ctx.response
        if not response.is_set:
            self.logger.error(
                f"No stage set a status for {ctx.event_name}", stage="respond", **ctx.to_log_dict()
            )
            response.fail(HTTPStatus.INTERNAL_SERVER_ERROR)

        headers = dict(response.headers)
        content = b""
        if response.body is not None and response.allows_body:
            try:
                content = model.encode(response.body)
                if not _has_header(headers, "content-type"):
                    headers["Content-Type"] = model.serializer.media_type
            except Exception as e:
                # The client cannot be sent a value we failed to serialize
                self.logger.error(e, stage="respond", **ctx.to_log_dict())
                response.status = int(HTTPStatus.INTERNAL_SERVER_ERROR)
                content = status_text(response.status).encode()
                headers = {k: v for k, v in headers.items() if k.lower() != "content-type"}
                headers["Content-Type"] = _PLAIN_TEXT

        logger.debug(f"{ctx.event_name} -> {response.status} in {ctx.elapsed_ms:.1f}ms")
        http_response = HTTPResponse(
            content=content,
            status_code=response.status,
            headers={k: v for k, v in headers.items() if not isinstance(v, list)},
        )
        for key, values in headers.items():
            if isinstance(values, list):
                for value in values:
                    http_response.headers.append(key, value)
        return http_response

    def __repr__(self) -> str:
        return (
            f"Service(broker={self.broker.__class__.__name__ if self.broker else None}, "
            f"metrics={self.metrics.__class__.__name__ if self.metrics else None})"
        )


def _has_header(headers: dict[str, Any], name: str) -> bool:
    return any(key.lower() == name for key in headers)


def _plain_error(status: int) -> HTTPResponse:
    return HTTPResponse(
        content=status_text(status).encode(),
        status_code=status,
        headers={"Content-Type": _PLAIN_TEXT},
    )
