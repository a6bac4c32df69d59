"""
Application configuration loaded from environment variables.

Uses pydantic-settings to define typed configuration that automatically reads
from environment variables. All config comes from the environment (or a local
.env file), never hardcoded in source code.

Typical deployments:
- Local agent over stdio: GMAIL_MCP_TRANSPORT=stdio and GMAIL_MCP_SCOPES set to
  the scopes the user granted when authorizing Gmail access
- Shared HTTP server: callers present a Bearer JWT whose "scope" claim lists
  their Gmail scopes; GMAIL_MCP_JWT_SECRET_KEY comes from a secret store
"""

from typing import Literal

from pydantic_settings import BaseSettings

from gmail_mcp.scopes import DEFAULT_SCOPES, parse_scopes


class Settings(BaseSettings):
    """
    Server configuration with environment variable bindings.

    Each field maps to an environment variable with the GMAIL_MCP_ prefix.
    For example, `host` reads from GMAIL_MCP_HOST, `scopes` reads from
    GMAIL_MCP_SCOPES.
    """

    # --- Server settings ---

    # "0.0.0.0" is required inside containers; use "127.0.0.1" to only accept
    # local connections.
    host: str = "0.0.0.0"
    port: int = 8080

    # Logging verbosity. Maps to Python's logging levels.
    log_level: str = "info"

    # "streamable-http" (Bearer JWT per request) or "stdio" (single local user).
    transport: Literal["streamable-http", "stdio"] = "streamable-http"

    # --- Authentication settings (HTTP transport) ---

    # Default is for local development only - NEVER use this in production.
    jwt_secret_key: str = "dev-secret-change-me"
    jwt_algorithm: str = "HS256"

    # --- Gmail scope settings ---

    # Scopes granted to the local user when no HTTP request is in context
    # (stdio transport). Free text, comma/space separated, e.g.
    # GMAIL_MCP_SCOPES="gmail.readonly gmail.labels".
    scopes: str = ",".join(DEFAULT_SCOPES)

    model_config = {
        "env_prefix": "GMAIL_MCP_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @property
    def granted_scopes(self) -> list[str]:
        """The configured scopes as a list of short names."""
        return parse_scopes(self.scopes)


# Singleton instance: import this from other modules.
settings = Settings()
