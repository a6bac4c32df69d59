"""
Unit tests for the Dispatcher (gmail_mcp/dispatch.py).

The dispatcher must never reach the Gmail backend for a call that is
unknown, unauthorized or has invalid arguments.
"""

import pytest

from gmail_mcp.dispatch import (
    Dispatcher,
    InvalidArgumentsError,
    OperationUnavailableError,
    UnauthorizedToolError,
    UnknownToolError,
)
from gmail_mcp.schemas import DeleteEmailInput, SendEmailInput
from gmail_mcp.tools import TOOL_DEFINITIONS, ToolDefinition, build_registry


@pytest.fixture
def dispatcher(recording_operations):
    return Dispatcher(recording_operations)


class TestAuthorize:
    def test_authorized_returns_definition(self, dispatcher):
        definition = dispatcher.authorize(["gmail.readonly"], "read_email")

        assert definition.name == "read_email"

    def test_url_form_scopes_are_accepted(self, dispatcher):
        definition = dispatcher.authorize(
            ["https://www.googleapis.com/auth/gmail.settings.basic"], "list_filters"
        )

        assert definition.name == "list_filters"

    def test_unauthorized_raises_with_required_scopes(self, dispatcher):
        with pytest.raises(UnauthorizedToolError) as exc_info:
            dispatcher.authorize(["gmail.readonly"], "delete_email")

        assert exc_info.value.tool_name == "delete_email"
        assert exc_info.value.required_scopes == ["gmail.modify"]
        assert "gmail.modify" in exc_info.value.message

    def test_unknown_tool_is_distinct_from_unauthorized(self, dispatcher):
        with pytest.raises(UnknownToolError) as exc_info:
            dispatcher.authorize(["gmail.modify"], "no_such_tool")

        assert not isinstance(exc_info.value, UnauthorizedToolError)
        assert exc_info.value.tool_name == "no_such_tool"

    def test_no_scopes_authorize_nothing(self, dispatcher):
        for definition in TOOL_DEFINITIONS:
            with pytest.raises(UnauthorizedToolError):
                dispatcher.authorize([], definition.name)


class TestVisibleTools:
    def test_readonly_sees_read_tools_and_label_listing(self, dispatcher):
        names = [d.name for d in dispatcher.visible_tools(["gmail.readonly"])]

        assert names == ["read_email", "search_emails", "download_attachment", "list_email_labels"]

    def test_send_only_sees_send_email(self, dispatcher):
        names = [d.name for d in dispatcher.visible_tools(["gmail.send"])]

        assert names == ["send_email"]

    def test_default_scopes_see_everything(self, dispatcher):
        names = [d.name for d in dispatcher.visible_tools(["gmail.modify", "gmail.settings.basic"])]

        assert names == [d.name for d in TOOL_DEFINITIONS]

    def test_settings_sharing_grants_no_tool(self, dispatcher):
        assert dispatcher.visible_tools(["gmail.settings.sharing"]) == []


class TestBindArguments:
    def test_camel_case_arguments_are_accepted(self, dispatcher):
        definition = dispatcher.resolve("send_email")

        params = dispatcher.bind_arguments(
            definition,
            {"to": ["bob@example.com"], "subject": "Hi", "body": "Hello", "threadId": "t1"},
        )

        assert isinstance(params, SendEmailInput)
        assert params.thread_id == "t1"
        assert params.mime_type == "text/plain"

    def test_missing_required_argument_is_rejected(self, dispatcher):
        definition = dispatcher.resolve("read_email")

        with pytest.raises(InvalidArgumentsError) as exc_info:
            dispatcher.bind_arguments(definition, {})

        assert exc_info.value.tool_name == "read_email"
        assert exc_info.value.errors[0]["loc"] == ("messageId",)

    def test_invalid_enum_value_is_rejected(self, dispatcher):
        definition = dispatcher.resolve("create_filter_from_template")

        with pytest.raises(InvalidArgumentsError):
            dispatcher.bind_arguments(definition, {"template": "nope", "parameters": {}})

    def test_none_arguments_mean_empty(self, dispatcher):
        definition = dispatcher.resolve("list_filters")

        params = dispatcher.bind_arguments(definition, None)

        assert params.model_dump() == {}

    def test_from_criterion_uses_wire_name(self, dispatcher):
        definition = dispatcher.resolve("create_filter")

        params = dispatcher.bind_arguments(
            definition,
            {"criteria": {"from": "news@example.com"}, "action": {"addLabelIds": ["L1"]}},
        )

        assert params.criteria.from_ == "news@example.com"
        assert params.action.add_label_ids == ["L1"]


class TestDispatch:
    async def test_authorized_call_reaches_backend(self, dispatcher, recording_operations):
        result = await dispatcher.dispatch(
            ["gmail.modify"], "delete_email", {"messageId": "abc123"}
        )

        assert result["tool"] == "delete_email"
        [(tool_name, params)] = recording_operations.calls
        assert tool_name == "delete_email"
        assert isinstance(params, DeleteEmailInput)
        assert params.message_id == "abc123"

    async def test_unauthorized_call_never_reaches_backend(self, dispatcher, recording_operations):
        with pytest.raises(UnauthorizedToolError):
            await dispatcher.dispatch(["gmail.readonly"], "delete_email", {"messageId": "abc123"})

        assert recording_operations.calls == []

    async def test_invalid_arguments_never_reach_backend(self, dispatcher, recording_operations):
        with pytest.raises(InvalidArgumentsError):
            await dispatcher.dispatch(["gmail.modify"], "batch_delete_emails", {"batchSize": 10})

        assert recording_operations.calls == []

    async def test_batch_size_default_is_applied(self, dispatcher, recording_operations):
        await dispatcher.dispatch(["gmail.modify"], "batch_delete_emails", {"messageIds": ["a", "b"]})

        [(_, params)] = recording_operations.calls
        assert params.batch_size == 50

    async def test_without_backend_authorized_calls_fail_cleanly(self):
        dispatcher = Dispatcher()

        with pytest.raises(OperationUnavailableError, match="no Gmail backend"):
            await dispatcher.dispatch(["gmail.labels"], "list_email_labels")

    async def test_custom_registry(self, recording_operations):
        registry = build_registry(
            [ToolDefinition("purge", "Purge", DeleteEmailInput, frozenset({"gmail.modify"}))]
        )
        dispatcher = Dispatcher(recording_operations, registry=registry)

        await dispatcher.dispatch(["gmail.modify"], "purge", {"messageId": "m"})

        with pytest.raises(UnknownToolError):
            dispatcher.resolve("read_email")
        assert recording_operations.calls[0][0] == "purge"
