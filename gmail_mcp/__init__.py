"""Scope-gated Gmail tools for MCP clients."""
