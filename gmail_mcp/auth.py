"""
JWT token validation and scope extraction.

This module handles the Authentication (AuthN) layer for HTTP transports:
- Extracts Bearer tokens from the HTTP Authorization header
- Validates JWT signature and expiration
- Extracts the caller's Gmail scopes from the token claims

The scopes are enforced later, by the server middleware and the Dispatcher.

Token structure (JWT payload):
    {
        "sub": "alice@example.com",
        "scope": ["gmail.readonly", "gmail.labels"],
        "exp": 1738800000
    }

The "scope" claim may also be a single space-delimited string, the way OAuth2
authorization servers usually issue it:

    "scope": "https://www.googleapis.com/auth/gmail.readonly gmail.labels"

Entries can be short names or full Google scope URLs; they are normalized when
checked, not here.
"""

from dataclasses import dataclass

import jwt

from gmail_mcp.config import Settings, settings
from gmail_mcp.scopes import parse_scopes


class AuthError(Exception):
    """
    Raised when token validation fails for any reason.

    This is a single exception type for all auth failures (missing token,
    invalid signature, expired, malformed claims). The detailed reason is
    logged server-side.

    Attributes:
        message: Human-readable error description (logged server-side)
        status_code: HTTP status code to return (401 for auth failures)
    """

    def __init__(self, message: str, status_code: int = 401):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class TokenInfo:
    """
    Validated caller identity.

    Attributes:
        subject: The "sub" claim - identifies who/what made the request
        scopes: Gmail scopes as presented by the token (names and/or URLs)
    """

    subject: str
    scopes: list[str]


def validate_token(authorization_header: str | None, config: Settings = settings) -> TokenInfo:
    """
    Validate a Bearer token from the Authorization header.

    Args:
        authorization_header: The raw Authorization header value,
                              expected format: "Bearer <jwt-token>"
        config: Settings holding the JWT secret and algorithm

    Returns:
        TokenInfo with the validated subject and scopes

    Raises:
        AuthError: If any validation step fails
    """
    if not authorization_header:
        raise AuthError("Missing Authorization header")

    # RFC 6750: the scheme is matched case-insensitively.
    parts = authorization_header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthError("Invalid Authorization header format, expected 'Bearer <token>'")

    token = parts[1]

    try:
        payload = jwt.decode(
            token,
            config.jwt_secret_key,
            algorithms=[config.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise AuthError(f"Invalid token: {e}")

    subject = payload.get("sub", "")

    # A token without a scope claim is authenticated but can't use any tool.
    scopes_claim = payload.get("scope", [])

    if isinstance(scopes_claim, str):
        scopes_claim = parse_scopes(scopes_claim)
    elif not isinstance(scopes_claim, list):
        raise AuthError("Invalid scope claim: must be a list or a space-delimited string")

    if not all(isinstance(s, str) for s in scopes_claim):
        raise AuthError("Invalid scope claim: all entries must be strings")

    return TokenInfo(subject=subject, scopes=scopes_claim)
