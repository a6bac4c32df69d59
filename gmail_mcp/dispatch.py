"""
Scope-checked dispatch of Gmail tool calls.

The Dispatcher is where the scope vocabulary (scopes.py) and the tool
catalogue (tools.py) meet. For every call it:

1. Resolves the tool definition by name (UnknownToolError if absent)
2. Checks that the caller's scopes satisfy the definition (UnauthorizedToolError)
3. Validates the call arguments against the input model (InvalidArgumentsError)
4. Hands the validated arguments to the Gmail operations collaborator

Unknown and unauthorized tools are separate errors on purpose: the first
means "fix the request", the second means "re-authorize with more scopes".

The Gmail API calls themselves live behind the GmailOperations protocol. The
server is given an implementation; until one is configured, every call that
passes authorization fails with OperationUnavailableError.
"""

import logging
from typing import Any, Iterable, Mapping, Protocol

from pydantic import BaseModel, ValidationError

from gmail_mcp.scopes import has_scope
from gmail_mcp.tools import TOOL_REGISTRY, ToolDefinition

logger = logging.getLogger(__name__)


class DispatchError(Exception):
    """
    Base class for tool dispatch failures.

    Attributes:
        message: Human-readable error description (returned to the client)
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class UnknownToolError(DispatchError):
    """The requested tool name is not in the registry."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: '{tool_name}'")


class UnauthorizedToolError(DispatchError):
    """
    The caller's scopes intersect none of the tool's required scopes.

    Attributes:
        tool_name: The rejected tool
        required_scopes: Scopes that would have granted access (sorted)
    """

    def __init__(self, tool_name: str, required_scopes: Iterable[str]):
        self.tool_name = tool_name
        self.required_scopes = sorted(required_scopes)
        super().__init__(
            f"Access denied: tool '{tool_name}' requires one of the scopes "
            f"{', '.join(self.required_scopes)}"
        )


class InvalidArgumentsError(DispatchError):
    """The call arguments don't satisfy the tool's input model."""

    def __init__(self, tool_name: str, error: ValidationError):
        self.tool_name = tool_name
        self.errors = error.errors()
        super().__init__(f"Invalid arguments for tool '{tool_name}': {error}")


class OperationUnavailableError(DispatchError):
    """No Gmail backend is available to perform the operation."""


class GmailOperations(Protocol):
    """Performs an authorized, validated Gmail tool call."""

    async def perform(self, tool_name: str, arguments: BaseModel) -> Any: ...


class UnconfiguredOperations:
    """Default collaborator for a server started without a Gmail backend."""

    async def perform(self, tool_name: str, arguments: BaseModel) -> Any:
        raise OperationUnavailableError(
            f"Tool '{tool_name}' is authorized but no Gmail backend is configured"
        )


class Dispatcher:
    """
    Authorizes and routes tool calls to the Gmail operations collaborator.

    The registry is read-only and the dispatcher keeps no per-call state, so
    one instance is shared by every request.
    """

    def __init__(
        self,
        operations: GmailOperations | None = None,
        registry: Mapping[str, ToolDefinition] = TOOL_REGISTRY,
    ):
        self.operations = operations or UnconfiguredOperations()
        self.registry = registry

    def resolve(self, tool_name: str) -> ToolDefinition:
        definition = self.registry.get(tool_name)
        if definition is None:
            raise UnknownToolError(tool_name)
        return definition

    def authorize(self, authorized_scopes: Iterable[str], tool_name: str) -> ToolDefinition:
        """
        Return the tool's definition if the scopes grant access to it.

        Args:
            authorized_scopes: Scopes the caller holds (short names or URLs)
            tool_name: The requested tool

        Raises:
            UnknownToolError: If the tool isn't registered
            UnauthorizedToolError: If none of the tool's scopes is held
        """
        definition = self.resolve(tool_name)
        if not has_scope(authorized_scopes, definition.scopes):
            raise UnauthorizedToolError(tool_name, definition.scopes)
        return definition

    def visible_tools(self, authorized_scopes: Iterable[str]) -> list[ToolDefinition]:
        held = list(authorized_scopes)
        return [d for d in self.registry.values() if has_scope(held, d.scopes)]

    def bind_arguments(
        self, definition: ToolDefinition, arguments: Mapping[str, Any] | None
    ) -> BaseModel:
        """Validate raw call arguments against the tool's input model."""
        try:
            return definition.input_model.model_validate(dict(arguments or {}))
        except ValidationError as e:
            raise InvalidArgumentsError(definition.name, e) from e

    async def invoke(
        self, definition: ToolDefinition, arguments: Mapping[str, Any] | None
    ) -> Any:
        """Validate the arguments, then perform the operation. No scope check."""
        params = self.bind_arguments(definition, arguments)
        logger.debug("Performing %s", definition.name)
        return await self.operations.perform(definition.name, params)

    async def dispatch(
        self,
        authorized_scopes: Iterable[str],
        tool_name: str,
        arguments: Mapping[str, Any] | None = None,
    ) -> Any:
        """Authorize, validate and perform a tool call in one step."""
        definition = self.authorize(authorized_scopes, tool_name)
        return await self.invoke(definition, arguments)
