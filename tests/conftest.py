"""
Shared test fixtures for the Gmail MCP test suite.

Key fixtures:
- make_token: A factory function to generate JWT tokens with any claims
- make_auth_header: Same, returning a full "Bearer <token>" header value
- recording_operations: A fake Gmail backend that records what it was asked to do

Testing approach:
- test_scopes.py / test_tools.py / test_dispatch.py: unit tests for the scope
  vocabulary, the tool registry and the dispatcher, no server involved.
- test_auth.py: validate_token() in isolation.
- test_server.py: the full MCP server over the streamable HTTP transport,
  checking that the middleware filters tools and blocks unauthorized calls.
"""

import datetime

import jwt
import pytest

from gmail_mcp.config import settings

# Must match settings.jwt_secret_key so that validate_token() accepts test tokens.
TEST_SECRET = settings.jwt_secret_key
TEST_ALGORITHM = settings.jwt_algorithm


@pytest.fixture
def make_token():
    """
    Factory fixture to generate JWT tokens for testing.

    Usage in tests:
        def test_something(make_token):
            token = make_token(sub="alice", scopes=["gmail.readonly"])
            # token is a raw JWT string (not "Bearer ..." prefixed)
    """

    def _make_token(
        sub: str = "test-user",
        scopes: list[str] | str | None = None,
        secret: str = TEST_SECRET,
        algorithm: str = TEST_ALGORITHM,
        exp_hours: float = 1.0,
        extra_claims: dict | None = None,
        include_exp: bool = True,
        include_sub: bool = True,
    ) -> str:
        """
        Generate a signed JWT token with the given claims.

        Args:
            sub: Subject claim (who the token identifies)
            scopes: Scope claim (None means omit the claim entirely)
            secret: Signing key
            algorithm: JWT algorithm
            exp_hours: Hours until expiration (negative = already expired)
            extra_claims: Additional claims to include in the payload
            include_exp: Whether to include the exp claim
            include_sub: Whether to include the sub claim
        """
        now = datetime.datetime.now(datetime.timezone.utc)
        payload: dict = {}

        if include_sub:
            payload["sub"] = sub

        if scopes is not None:
            payload["scope"] = scopes

        if include_exp:
            payload["exp"] = now + datetime.timedelta(hours=exp_hours)

        payload["iat"] = now

        if extra_claims:
            payload.update(extra_claims)

        return jwt.encode(payload, secret, algorithm=algorithm)

    return _make_token


@pytest.fixture
def make_auth_header(make_token):
    """Convenience fixture that returns a full "Bearer <token>" string."""

    def _make_auth_header(**kwargs) -> str:
        return f"Bearer {make_token(**kwargs)}"

    return _make_auth_header


class RecordingOperations:
    """Fake Gmail backend: records each call and returns a canned payload."""

    def __init__(self):
        self.calls = []

    async def perform(self, tool_name, arguments):
        self.calls.append((tool_name, arguments))
        return {"tool": tool_name, "arguments": arguments.model_dump(by_alias=True)}


@pytest.fixture
def recording_operations():
    return RecordingOperations()
