"""
CLI utility to generate JWT tokens for testing the Gmail MCP server.

In production, tokens come from an identity provider or an internal token
service that knows which Gmail scopes each user authorized. For local testing,
this script acts as that service: it mints tokens whose "scope" claim lists
Gmail scopes the server will check.

Usage examples:

    # Read-only mailbox access
    python -m scripts.generate_token --sub alice --scope gmail.readonly

    # Default scope set (gmail.modify + gmail.settings.basic)
    python -m scripts.generate_token --sub alice

    # Comma or space separated, as accepted by the server's GMAIL_MCP_SCOPES
    python -m scripts.generate_token --sub alice --scope "gmail.readonly,gmail.labels"

    # Emit full Google scope URLs in the claim instead of short names
    python -m scripts.generate_token --sub alice --scope gmail.send --url-form

    # Show the available scope names
    python -m scripts.generate_token --list-scopes

The generated token can be used with curl:

    curl -X POST http://localhost:8080/mcp \\
      -H "Content-Type: application/json" \\
      -H "Authorization: Bearer <token>" \\
      -d '{"jsonrpc":"2.0","id":1,"method":"initialize",...}'
"""

import argparse
import datetime

import jwt

from gmail_mcp.scopes import (
    DEFAULT_SCOPES,
    available_scope_names,
    parse_scopes,
    scope_names_to_urls,
    validate_scopes,
)


def generate_token(
    subject: str,
    scopes: list[str],
    secret: str,
    algorithm: str = "HS256",
    exp_hours: float = 8.0,
) -> str:
    """
    Generate a signed JWT token with the given claims.

    Args:
        subject: The "sub" claim - identifies who/what this token is for
        scopes: Gmail scopes to grant (short names or URLs)
        secret: The signing key (must match the server's GMAIL_MCP_JWT_SECRET_KEY)
        algorithm: JWT signing algorithm (default: HS256)
        exp_hours: Hours until expiration (negative = already expired)

    Returns:
        The encoded JWT token string
    """
    now = datetime.datetime.now(datetime.timezone.utc)

    payload = {
        "sub": subject,
        "scope": scopes,
        "iat": now,
        "exp": now + datetime.timedelta(hours=exp_hours),
    }

    return jwt.encode(payload, secret, algorithm=algorithm)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate JWT tokens carrying Gmail scopes for the Gmail MCP server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available scopes:
  {", ".join(available_scope_names())}

Examples:
  Read-only access:
    %(prog)s --sub alice --scope gmail.readonly

  Labels and filters:
    %(prog)s --sub alice --scope gmail.labels gmail.settings.basic

  Expired token (for testing):
    %(prog)s --sub alice --scope gmail.readonly --exp-hours -1
        """,
    )

    parser.add_argument(
        "--sub",
        help="Subject claim: who/what this token identifies (e.g., 'alice', 'ci-agent')",
    )
    parser.add_argument(
        "--scope",
        nargs="+",
        default=None,
        help=(
            "Gmail scope names, space or comma separated "
            f"(default: {' '.join(DEFAULT_SCOPES)})"
        ),
    )
    parser.add_argument(
        "--url-form",
        action="store_true",
        help="Put full Google scope URLs in the token instead of short names",
    )
    parser.add_argument(
        "--list-scopes",
        action="store_true",
        help="Print the available scope names and exit",
    )
    parser.add_argument(
        "--secret",
        default="dev-secret-change-me",
        help="JWT signing secret (must match server's GMAIL_MCP_JWT_SECRET_KEY)",
    )
    parser.add_argument(
        "--algorithm",
        default="HS256",
        help="JWT signing algorithm (default: HS256)",
    )
    parser.add_argument(
        "--exp-hours",
        type=float,
        default=8.0,
        help="Hours until token expires (negative = already expired, default: 8)",
    )
    return parser


def resolve_scopes(raw: list[str] | None) -> list[str]:
    """Turn --scope arguments into a flat list of short names."""
    if raw is None:
        return list(DEFAULT_SCOPES)
    return parse_scopes(" ".join(raw))


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_scopes:
        for name in available_scope_names():
            print(name)
        return

    if not args.sub:
        parser.error("--sub is required")

    scopes = resolve_scopes(args.scope)
    validation = validate_scopes(scopes)
    if not validation.valid:
        parser.error(
            f"unknown scope(s): {', '.join(validation.invalid)}. "
            f"Available: {', '.join(available_scope_names())}"
        )

    claim = scope_names_to_urls(scopes) if args.url_form else scopes

    token = generate_token(
        subject=args.sub,
        scopes=claim,
        secret=args.secret,
        algorithm=args.algorithm,
        exp_hours=args.exp_hours,
    )

    exp_time = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(
        hours=args.exp_hours
    )

    print(f"Subject:    {args.sub}")
    print(f"Scopes:     {claim}")
    print(f"Expires:    {exp_time.isoformat()}")
    print(f"Algorithm:  {args.algorithm}")
    print()
    print(f"Token: {token}")

    print()
    print("Usage with curl (initialize MCP session):")
    print('  curl -X POST http://localhost:8080/mcp \\')
    print('    -H "Content-Type: application/json" \\')
    print('    -H "Accept: application/json, text/event-stream" \\')
    print(f'    -H "Authorization: Bearer {token}" \\')
    print(
        '    -d \'{"jsonrpc":"2.0","id":1,"method":"initialize",'
        '"params":{"protocolVersion":"2025-03-26","capabilities":{},'
        '"clientInfo":{"name":"test","version":"1.0"}}}\''
    )


if __name__ == "__main__":
    main()
