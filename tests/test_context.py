"""
Tests for the request context and response types.
"""

from http import HTTPStatus

import pytest

from restpipe import Action, Context, Response
from restpipe.errors import UnknownActionError, ValidationFailed
from restpipe.response import error_body, status_text

# =============================================================================
# Response Tests
# =============================================================================


class TestResponse:
    def test_starts_unset(self):
        response = Response()
        assert response.status == 0
        assert not response.is_set
        assert response.headers == {}
        assert response.body is None

    def test_status_is_plain_int(self):
        response = Response(status=HTTPStatus.CREATED)
        assert type(response.status) is int
        response.set(HTTPStatus.OK)
        assert type(response.status) is int

    def test_set_replaces_body(self):
        response = Response().set(200, {"a": 1})
        response.set(204)
        assert response.status == 204
        assert response.body is None

    def test_fail_uses_reason_phrase(self):
        response = Response().fail(404)
        assert response.body == {"detail": "Not Found"}
        assert response.is_error

    def test_fail_with_message(self):
        response = Response().fail(400, "name is required")
        assert response.body == {"detail": "name is required"}

    def test_allows_body(self):
        assert Response(status=200).allows_body
        assert Response(status=201).allows_body
        assert not Response(status=204).allows_body
        assert not Response(status=304).allows_body
        assert not Response(status=101).allows_body

    def test_to_dict(self):
        response = Response(status=200, headers={"X-A": "1"}, body=[1])
        assert response.to_dict() == {"status": 200, "headers": {"X-A": "1"}, "body": [1]}


class TestResponseHelpers:
    def test_status_text(self):
        assert status_text(500) == "Internal Server Error"
        assert status_text(799) == ""

    def test_error_body(self):
        assert error_body(409) == {"detail": "Conflict"}


# =============================================================================
# Context Tests
# =============================================================================


class TestContext:
    def test_event_name(self):
        ctx = Context(action=Action.INSERT_ONE, resource_name="widget")
        assert ctx.event_name == "widget_insertOne"

    def test_event_name_for_custom_action(self):
        ctx = Context(action="archive", resource_name="widget")
        assert ctx.event_name == "widget_archive"

    def test_each_context_has_own_response(self):
        a = Context(action=Action.FIND_MANY)
        b = Context(action=Action.FIND_MANY)
        a.set_header("X-A", "1")
        assert b.response.headers == {}
        assert a.execution_id != b.execution_id

    def test_set_response(self):
        ctx = Context(action=Action.FIND_ONE)
        ctx.set_response(HTTPStatus.OK, {"id": "1"})
        assert ctx.response.status == 200
        assert ctx.response.body == {"id": "1"}

    def test_path_param(self, make_request):
        ctx = Context(
            action=Action.FIND_ONE,
            request=make_request("GET", "/widgets/7", path_params={"id": "7"}),
        )
        assert ctx.path_param("id") == "7"
        assert ctx.path_param("slug", "none") == "none"

    def test_without_request(self):
        ctx = Context(action=Action.FIND_MANY)
        assert ctx.path_param("id") is None
        assert ctx.query_params() == {}

    def test_query_params(self, make_request):
        ctx = Context(
            action=Action.FIND_MANY,
            request=make_request("GET", "/widgets", query_string=b"limit=5"),
        )
        assert ctx.query_params() == {"limit": "5"}

    def test_to_log_dict(self, make_request):
        ctx = Context(
            action=Action.REMOVE,
            request=make_request("DELETE", "/widgets/1"),
            resource_name="widget",
        )
        record = ctx.to_log_dict()
        assert record["resource"] == "widget"
        assert record["action"] == "remove"
        assert record["method"] == "DELETE"
        assert record["path"] == "/widgets/1"
        assert record["status"] == 0
        assert record["duration_ms"] >= 0


# =============================================================================
# Action and Error Tests
# =============================================================================


class TestAction:
    def test_values(self):
        assert [str(a) for a in Action] == [
            "insertOne",
            "insertMany",
            "update",
            "upsert",
            "findOne",
            "findMany",
            "remove",
        ]

    def test_body_actions(self):
        assert Action.INSERT_ONE.has_body
        assert Action.UPDATE.has_body
        assert not Action.FIND_ONE.has_body
        assert not Action.REMOVE.has_body

    def test_bulk(self):
        assert Action.INSERT_MANY.is_bulk
        assert not Action.INSERT_ONE.is_bulk

    def test_compares_to_string(self):
        assert Action.FIND_MANY == "findMany"


class TestErrors:
    def test_unknown_action_lists_known(self):
        error = UnknownActionError("archive", known=["insertOne", "remove"])
        assert str(error) == (
            "Unknown action 'archive'. The action must be one of insertOne, remove"
        )

    def test_validation_failed_defaults_to_400(self):
        error = ValidationFailed("bad")
        assert error.status == 400
        assert error.message == "bad"

    @pytest.mark.parametrize("status", [403, 422])
    def test_validation_failed_status(self, status):
        assert ValidationFailed("bad", status=status).status == status
