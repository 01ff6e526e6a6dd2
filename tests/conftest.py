"""
Pytest configuration and fixtures for restpipe tests.
"""

import sys
from http import HTTPStatus
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel
from starlette.requests import Request

# Add the repository root to path for imports
# This allows `from restpipe import ...` to work
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from restpipe import Resource, Service, build_router  # noqa: E402
from restpipe.contracts import Storage, Validator  # noqa: E402
from restpipe.errors import BrokerError, StorageError  # noqa: E402
from restpipe.serializers import JSONSerializer  # noqa: E402


class Person(BaseModel):
    name: str
    age: int


class FakeStorage(Storage):
    """Storage that succeeds with canonical statuses, or fails on purpose."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls: list[str] = []  # shared by per-request copies

    async def _act(self, operation: str, status: int, body=None) -> None:
        self.calls.append(operation)
        if self.fail:
            raise StorageError("Database failed on purpose")
        self.context.set_response(status, body)

    async def insert_one(self) -> None:
        await self._act("insert_one", HTTPStatus.CREATED, self.context.input)

    async def insert_many(self) -> None:
        await self._act("insert_many", HTTPStatus.CREATED, self.context.input)

    async def update(self) -> None:
        await self._act("update", HTTPStatus.NO_CONTENT)

    async def upsert(self) -> None:
        await self._act("upsert", HTTPStatus.OK, self.context.input)

    async def find_one(self) -> None:
        await self._act("find_one", HTTPStatus.OK, {"name": "Otieno Kamau", "age": 21})

    async def find_many(self) -> None:
        await self._act("find_many", HTTPStatus.OK, [{"name": "Otieno Kamau", "age": 21}])

    async def remove(self) -> None:
        await self._act("remove", HTTPStatus.NO_CONTENT)


class FakeValidator(Validator):
    """
    Accepts Otieno Kamau aged 21 on writes, and only /test/1 on reads
    and deletes.
    """

    async def validate(self) -> None:
        request = self.context.request
        if request.method in ("GET", "DELETE"):
            if "id" in request.path_params and request.url.path != "/test/1":
                raise self.reject("Invalid URL parameter")
            if request.method == "DELETE" and "id" not in request.path_params:
                raise self.reject("Invalid URL parameter")
            return
        value = self.context.input
        items = value if isinstance(value, list) else [value]
        for item in items:
            if item.name != "Otieno Kamau" or item.age != 21:
                raise self.reject("The data is invalid")


class FakeBroker:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.published: list[tuple[str, object]] = []

    async def publish(self, event, payload) -> None:
        if self.fail:
            raise BrokerError("The broker failed on purpose")
        self.published.append((event, payload))


class FakeMetrics:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.counters: dict[str, int] = {}
        self.timings: list[str] = []

    def incr(self, stat, count=1) -> None:
        if self.fail:
            raise RuntimeError("The metrics client failed on purpose")
        self.counters[stat] = self.counters.get(stat, 0) + count

    def timing(self, stat, delta) -> None:
        if self.fail:
            raise RuntimeError("The metrics client failed on purpose")
        self.timings.append(stat)

    def new_timer(self, stat):
        return lambda: self.timing(stat, 1)


class RecordingLogger:
    def __init__(self):
        self.records: list[tuple[str, object, dict]] = []

    def _record(self, level, v, context):
        self.records.append((level, v, context))

    def info(self, v, **context):
        self._record("info", v, context)

    def warning(self, v, **context):
        self._record("warning", v, context)

    def error(self, v, **context):
        self._record("error", v, context)

    def fatal(self, v, **context):
        self._record("fatal", v, context)

    def stages(self) -> list[str]:
        return [context.get("stage") for _, _, context in self.records]


@pytest.fixture
def fake_storage():
    return FakeStorage()


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def person_resource(fake_storage):
    return Resource(
        "test",
        type=Person,
        validator=FakeValidator(),
        serializer=JSONSerializer(),
        storage=fake_storage,
    )


@pytest.fixture
def make_request():
    """Build a starlette Request without a server."""

    def _make(method="GET", path="/test", body=b"", path_params=None, query_string=b""):
        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "server": ("foo.bar", 80),
            "root_path": "",
            "path": path,
            "query_string": query_string,
            "headers": [(b"content-type", b"application/json")],
            "path_params": path_params or {},
        }
        sent = False

        async def receive():
            nonlocal sent
            if sent:
                return {"type": "http.disconnect"}
            sent = True
            return {"type": "http.request", "body": body, "more_body": False}

        return Request(scope, receive)

    return _make


@pytest.fixture
def make_client():
    """Mount a resource on a fresh app at /test and return a TestClient."""

    def _make(service: Service, resource: Resource) -> TestClient:
        app = FastAPI()
        app.include_router(build_router(service, resource, prefix="/test"))
        return TestClient(app)

    return _make
