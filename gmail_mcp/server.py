"""
Gmail MCP server using FastMCP v2 with scope-based authorization middleware.

This module creates and runs the MCP server with:
- One MCP tool per entry of the tool registry (gmail_mcp.tools)
- Caller identification: a Bearer JWT on HTTP transports, the configured
  granted scopes on stdio
- Scope-based authorization: caller scopes decide which tools are
  visible/callable
- Health and readiness HTTP endpoints
- Structured JSON logging for all authorization decisions

Architecture:
    The flow for every MCP tool request:

    1. ScopeMiddleware identifies the caller and their Gmail scopes
    2. For tools/list: tools are filtered with the Dispatcher, tools missing
       from the registry are hidden (fail closed)
    3. For tools/call: Dispatcher.authorize() rejects unknown tools
       (NotFoundError) and tools the scopes don't grant (PermissionError)
    4. GmailTool.run() validates the arguments against the tool's input model
       and hands them to the Gmail operations collaborator

    Even if a client calls a tool it was never shown, the tools/call check
    blocks it.

Running the server:
    python -m gmail_mcp.server

    With the default settings this serves streamable HTTP on
    http://0.0.0.0:8080 with the MCP endpoint at /mcp, plus /health and /ready.
    Set GMAIL_MCP_TRANSPORT=stdio to serve a single local agent instead.
"""

import json
import logging
import sys
import uuid
from typing import Any, Sequence

from fastmcp import FastMCP
from fastmcp.exceptions import NotFoundError, ToolError
from fastmcp.server.dependencies import get_http_request
from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext
from fastmcp.tools.tool import Tool, ToolResult
from mcp.types import CallToolRequestParams, ListToolsRequest
from pydantic import Field
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from gmail_mcp.auth import AuthError, TokenInfo, validate_token
from gmail_mcp.config import Settings, settings
from gmail_mcp.dispatch import (
    Dispatcher,
    GmailOperations,
    InvalidArgumentsError,
    OperationUnavailableError,
    UnauthorizedToolError,
    UnknownToolError,
)
from gmail_mcp.scopes import available_scope_names, validate_scopes
from gmail_mcp.tools import to_mcp_tools

# ---------------------------------------------------------------------------
# Structured JSON Logging
# ---------------------------------------------------------------------------
# One JSON object per log line, so log pipelines can filter by subject, tool,
# decision, etc.


class JSONLogFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Example output:

        {"timestamp": "2026-02-06 10:30:00,000", "level": "INFO", "logger": "gmail-mcp",
         "message": "Tool call authorized", "subject": "alice", "tool": "read_email"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Structured auth data passed via logger.info("msg", extra={"auth_data": {...}})
        if hasattr(record, "auth_data"):
            log_entry.update(record.auth_data)
        return json.dumps(log_entry)


# stdout carries the MCP protocol itself on stdio, so logs go to stderr there.
handler = logging.StreamHandler(sys.stderr if settings.transport == "stdio" else sys.stdout)
handler.setFormatter(JSONLogFormatter())

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    handlers=[handler],
)
logger = logging.getLogger("gmail-mcp")


# ---------------------------------------------------------------------------
# Scope Authorization Middleware
# ---------------------------------------------------------------------------


class ScopeMiddleware(Middleware):
    """
    Scope-based authorization middleware.

    Intercepts all MCP tool requests and enforces access control:
    - tools/list responses only include tools the caller's scopes grant
    - tools/call requests are rejected if no granting scope is held

    Every request is identified and authorized independently, even within the
    same session.
    """

    def __init__(self, dispatcher: Dispatcher, config: Settings = settings):
        self.dispatcher = dispatcher
        self.config = config

    def _identify(self, request_id: str) -> TokenInfo:
        """
        Work out who is calling and which Gmail scopes they hold.

        On HTTP transports the Authorization header must carry a valid JWT.
        On stdio there is no HTTP request: the caller is the local user and
        holds the configured scopes. An HTTP deployment never falls back to the
        configured scopes.

        Raises:
            AuthError: If the request doesn't authenticate
        """
        try:
            request = get_http_request()
        except RuntimeError:
            if self.config.transport == "stdio":
                return TokenInfo(subject="local", scopes=self.config.granted_scopes)
            request = None

        try:
            if request is None:
                raise AuthError("Missing Authorization header")
            token_info = validate_token(request.headers.get("authorization"), self.config)
        except AuthError as e:
            logger.warning(
                "Authentication failed",
                extra={
                    "auth_data": {
                        "request_id": request_id,
                        "decision": "rejected",
                        "reason": "authentication_failed",
                        "detail": e.message,
                    }
                },
            )
            raise

        logger.info(
            "Authentication successful",
            extra={
                "auth_data": {
                    "request_id": request_id,
                    "subject": token_info.subject,
                    "scopes": token_info.scopes,
                    "decision": "authenticated",
                }
            },
        )
        return token_info

    async def on_list_tools(
        self,
        context: MiddlewareContext[ListToolsRequest],
        call_next: CallNext[ListToolsRequest, Sequence[Tool]],
    ) -> Sequence[Tool]:
        """
        Filter the tool list down to what the caller's scopes grant.

        A caller holding only gmail.readonly never learns that delete_email
        exists. Tools with no registry entry are never listed.
        """
        request_id = str(uuid.uuid4())[:8]
        caller = self._identify(request_id)

        all_tools = await call_next(context)

        # Registry order, so listings are stable across runs.
        by_name = {tool.name: tool for tool in all_tools}
        authorized_tools = [
            by_name[d.name]
            for d in self.dispatcher.visible_tools(caller.scopes)
            if d.name in by_name
        ]

        logger.info(
            "Tool list filtered by scope",
            extra={
                "auth_data": {
                    "request_id": request_id,
                    "subject": caller.subject,
                    "scopes": caller.scopes,
                    "total_tools": len(all_tools),
                    "authorized_tools": [t.name for t in authorized_tools],
                    "decision": "filtered",
                }
            },
        )

        return authorized_tools

    async def on_call_tool(
        self,
        context: MiddlewareContext[CallToolRequestParams],
        call_next: CallNext[CallToolRequestParams, ToolResult],
    ) -> ToolResult:
        """
        Reject calls to unknown tools and to tools the caller's scopes don't grant.

        FastMCP converts the raised exceptions to MCP error results. Unknown
        tools and missing scopes are reported differently because the caller
        fixes them differently (fix the request vs. re-authorize).
        """
        request_id = str(uuid.uuid4())[:8]
        tool_name = context.message.name
        caller = self._identify(request_id)

        try:
            definition = self.dispatcher.authorize(caller.scopes, tool_name)
        except UnknownToolError as e:
            logger.warning(
                "Tool call denied: unknown tool",
                extra={
                    "auth_data": {
                        "request_id": request_id,
                        "subject": caller.subject,
                        "tool": tool_name,
                        "decision": "denied",
                        "reason": "unknown_tool",
                    }
                },
            )
            raise NotFoundError(e.message) from e
        except UnauthorizedToolError as e:
            logger.warning(
                "Tool call denied: insufficient scope",
                extra={
                    "auth_data": {
                        "request_id": request_id,
                        "subject": caller.subject,
                        "tool": tool_name,
                        "required_scopes": e.required_scopes,
                        "caller_scopes": caller.scopes,
                        "decision": "denied",
                        "reason": "insufficient_scope",
                    }
                },
            )
            raise PermissionError(e.message) from e

        logger.info(
            "Tool call authorized",
            extra={
                "auth_data": {
                    "request_id": request_id,
                    "subject": caller.subject,
                    "tool": tool_name,
                    "required_scopes": sorted(definition.scopes),
                    "decision": "allowed",
                }
            },
        )

        return await call_next(context)


# ---------------------------------------------------------------------------
# Gmail tools
# ---------------------------------------------------------------------------


class GmailTool(Tool):
    """
    MCP tool backed by a registry entry.

    The input schema comes from the registry's external form; running the tool
    validates the arguments and performs the Gmail operation through the
    Dispatcher. Authorization has already happened in ScopeMiddleware.
    """

    dispatcher: Any = Field(exclude=True)

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        definition = self.dispatcher.resolve(self.name)
        try:
            result = await self.dispatcher.invoke(definition, arguments)
        except (InvalidArgumentsError, OperationUnavailableError) as e:
            raise ToolError(e.message) from e

        if isinstance(result, dict):
            return ToolResult(structured_content=result)
        return ToolResult(content=result if result is not None else [])


def create_server(
    operations: GmailOperations | None = None, config: Settings = settings
) -> FastMCP:
    """
    Build the MCP server with every registered Gmail tool.

    Args:
        operations: Performs the Gmail API calls; without one, authorized
                    calls fail with "no Gmail backend is configured"
        config: Settings providing the stdio scopes

    Returns:
        A FastMCP server ready to run or to mount as an ASGI app
    """
    dispatcher = Dispatcher(operations)

    server = FastMCP(
        name="gmail-mcp",
        instructions=(
            "Gmail access for AI agents: read, search, send and draft emails, "
            "manage labels and filters. The tools you see depend on the Gmail "
            "scopes you were granted."
        ),
        middleware=[ScopeMiddleware(dispatcher, config)],
    )

    for entry in to_mcp_tools(list(dispatcher.registry.values())):
        server.add_tool(
            GmailTool(
                name=entry["name"],
                description=entry["description"],
                parameters=entry["inputSchema"],
                dispatcher=dispatcher,
            )
        )

    # -----------------------------------------------------------------------
    # Health and Readiness Endpoints
    # -----------------------------------------------------------------------
    # Plain HTTP endpoints (not MCP protocol) for container probes. They
    # don't require authentication and don't expose Gmail data.

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> Response:
        """Liveness probe: is the server process alive and responsive?"""
        return JSONResponse({"status": "healthy"})

    @server.custom_route("/ready", methods=["GET"])
    async def readiness_check(request: Request) -> Response:
        """Readiness probe: is the scope configuration usable?"""
        validation = validate_scopes(config.granted_scopes)
        if not validation.valid:
            return JSONResponse(
                {"status": "not_ready", "reason": "unknown scopes", "invalid": validation.invalid},
                status_code=503,
            )
        return JSONResponse({"status": "ready"})

    return server


mcp = create_server()


# ---------------------------------------------------------------------------
# Server entry point
# ---------------------------------------------------------------------------


def main() -> None:
    validation = validate_scopes(settings.granted_scopes)
    if not validation.valid:
        logger.error(
            "Unknown Gmail scopes in GMAIL_MCP_SCOPES: %s (available: %s)",
            ", ".join(validation.invalid),
            ", ".join(available_scope_names()),
        )
        sys.exit(2)

    if settings.transport == "stdio":
        logger.info("Starting Gmail MCP server (transport=stdio, scopes=%s)", settings.scopes)
        mcp.run(transport="stdio")
        return

    logger.info(
        "Starting Gmail MCP server on %s:%d (transport=%s, auth=jwt)",
        settings.host,
        settings.port,
        settings.transport,
    )
    mcp.run(
        transport=settings.transport,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level,
    )


if __name__ == "__main__":
    main()
