"""
Tool definitions and scope-based access mapping.

This module is the central registry for access control. Each Gmail tool is
declared once, pairing its name with:

- a human description (shown to the calling agent),
- an input model from gmail_mcp.schemas (validates call arguments and
  produces the tool's JSON Schema),
- the set of scopes, ANY one of which grants access.

Why list several scopes per tool?
- Google's scopes overlap: gmail.modify can do everything gmail.readonly can.
- has_scope() doesn't compute that hierarchy, so every tool names each scope
  that grants it. read_email lists both gmail.readonly and gmail.modify.

The server (server.py) registers one MCP tool per definition, and its
middleware uses this registry to decide what a caller can see and call.
Adding a tool is a single new ToolDefinition in TOOL_DEFINITIONS.

The order of TOOL_DEFINITIONS is part of the contract: read operations, then
write operations, then labels, then filters. Tool listings are stable across
runs.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Sequence

from pydantic import BaseModel

from gmail_mcp import schemas


class RegistryError(ValueError):
    """Raised at import time when the tool catalogue is inconsistent."""


@dataclass(frozen=True)
class ToolDefinition:
    """
    One entry of the tool catalogue.

    Attributes:
        name: Unique tool name exposed over MCP (e.g., "read_email")
        description: Free text shown to the calling agent
        input_model: Pydantic model that validates the call arguments
        scopes: Short scope names, any one of which grants access
    """

    name: str
    description: str
    input_model: type[BaseModel]
    scopes: frozenset[str]

    def __post_init__(self) -> None:
        # A tool reachable by no scope could never be called.
        if not self.scopes:
            raise RegistryError(f"Tool '{self.name}' lists no scopes")


def _tool(
    name: str, description: str, input_model: type[BaseModel], scopes: Iterable[str]
) -> ToolDefinition:
    return ToolDefinition(name, description, input_model, frozenset(scopes))


TOOL_DEFINITIONS: tuple[ToolDefinition, ...] = (
    # Read-only email operations
    _tool(
        "read_email",
        "Retrieves the content of a specific email",
        schemas.ReadEmailInput,
        ["gmail.readonly", "gmail.modify"],
    ),
    _tool(
        "search_emails",
        "Searches for emails using Gmail search syntax",
        schemas.SearchEmailsInput,
        ["gmail.readonly", "gmail.modify"],
    ),
    _tool(
        "download_attachment",
        "Downloads an email attachment to a specified location",
        schemas.DownloadAttachmentInput,
        ["gmail.readonly", "gmail.modify"],
    ),
    # Email write operations
    _tool(
        "send_email",
        "Sends a new email",
        schemas.SendEmailInput,
        ["gmail.modify", "gmail.compose", "gmail.send"],
    ),
    _tool(
        "draft_email",
        "Draft a new email",
        schemas.SendEmailInput,
        ["gmail.modify", "gmail.compose"],
    ),
    _tool(
        "modify_email",
        "Modifies email labels (move to different folders)",
        schemas.ModifyEmailInput,
        ["gmail.modify"],
    ),
    _tool(
        "delete_email",
        "Permanently deletes an email",
        schemas.DeleteEmailInput,
        ["gmail.modify"],
    ),
    _tool(
        "batch_modify_emails",
        "Modifies labels for multiple emails in batches",
        schemas.BatchModifyEmailsInput,
        ["gmail.modify"],
    ),
    _tool(
        "batch_delete_emails",
        "Permanently deletes multiple emails in batches",
        schemas.BatchDeleteEmailsInput,
        ["gmail.modify"],
    ),
    # Label operations
    _tool(
        "list_email_labels",
        "Retrieves all available Gmail labels",
        schemas.ListEmailLabelsInput,
        ["gmail.readonly", "gmail.modify", "gmail.labels"],
    ),
    _tool(
        "create_label",
        "Creates a new Gmail label",
        schemas.CreateLabelInput,
        ["gmail.modify", "gmail.labels"],
    ),
    _tool(
        "update_label",
        "Updates an existing Gmail label",
        schemas.UpdateLabelInput,
        ["gmail.modify", "gmail.labels"],
    ),
    _tool(
        "delete_label",
        "Deletes a Gmail label",
        schemas.DeleteLabelInput,
        ["gmail.modify", "gmail.labels"],
    ),
    _tool(
        "get_or_create_label",
        "Gets an existing label by name or creates it if it doesn't exist",
        schemas.GetOrCreateLabelInput,
        ["gmail.modify", "gmail.labels"],
    ),
    # Filter operations (require settings scope)
    _tool(
        "list_filters",
        "Retrieves all Gmail filters",
        schemas.ListFiltersInput,
        ["gmail.settings.basic"],
    ),
    _tool(
        "get_filter",
        "Gets details of a specific Gmail filter",
        schemas.GetFilterInput,
        ["gmail.settings.basic"],
    ),
    _tool(
        "create_filter",
        "Creates a new Gmail filter with custom criteria and actions",
        schemas.CreateFilterInput,
        ["gmail.settings.basic"],
    ),
    _tool(
        "delete_filter",
        "Deletes a Gmail filter",
        schemas.DeleteFilterInput,
        ["gmail.settings.basic"],
    ),
    _tool(
        "create_filter_from_template",
        "Creates a filter using a pre-defined template for common scenarios",
        schemas.CreateFilterFromTemplateInput,
        ["gmail.settings.basic"],
    ),
)


def build_registry(definitions: Iterable[ToolDefinition]) -> Mapping[str, ToolDefinition]:
    """
    Index tool definitions by name, rejecting duplicates.

    The returned mapping is read-only and keeps the definitions' order.

    Raises:
        RegistryError: If two definitions share a name
    """
    registry: dict[str, ToolDefinition] = {}
    for definition in definitions:
        if definition.name in registry:
            raise RegistryError(f"Duplicate tool name: '{definition.name}'")
        registry[definition.name] = definition
    return MappingProxyType(registry)


# Built once at import; an inconsistent catalogue fails here, not at call time.
TOOL_REGISTRY: Mapping[str, ToolDefinition] = build_registry(TOOL_DEFINITIONS)


def get_tool_by_name(name: str) -> ToolDefinition | None:
    """Look up a tool definition; None if the name is unknown."""
    return TOOL_REGISTRY.get(name)


def input_schema(model: type[BaseModel]) -> dict[str, Any]:
    """
    JSON Schema for a tool's input model, with nested models inlined.

    Pydantic puts nested models under "$defs" and points at them with "$ref".
    MCP clients get a self-contained structural schema instead: every "$ref"
    is replaced by the definition it names.
    """
    schema = model.model_json_schema(by_alias=True)
    definitions = schema.pop("$defs", {})

    def _inline(node: Any) -> Any:
        if isinstance(node, dict):
            ref = node.get("$ref")
            if ref is not None:
                target = _inline(definitions[ref.rsplit("/", 1)[-1]])
                siblings = {k: _inline(v) for k, v in node.items() if k != "$ref"}
                return {**target, **siblings}
            return {key: _inline(value) for key, value in node.items()}
        if isinstance(node, list):
            return [_inline(item) for item in node]
        return node

    return _inline(schema)


def to_mcp_tools(definitions: Sequence[ToolDefinition]) -> list[dict[str, Any]]:
    """
    Project tool definitions to MCP tool-discovery form.

    Each entry has exactly "name", "description" and "inputSchema". Scope
    requirements are an internal policy detail and never leave the server.
    """
    return [
        {
            "name": definition.name,
            "description": definition.description,
            "inputSchema": input_schema(definition.input_model),
        }
        for definition in definitions
    ]
