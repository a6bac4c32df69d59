"""
Gmail OAuth2 scope vocabulary and scope-satisfaction checks.

Google identifies each Gmail permission by a full URL such as
"https://www.googleapis.com/auth/gmail.readonly". Humans (and CLI flags) prefer
the short form "gmail.readonly". This module owns the translation between the
two forms and the check that decides whether a set of granted scopes unlocks a
tool.

Scope hierarchy (for reference):
    gmail.readonly          Read-only access to emails
    gmail.modify            Read AND write access (superset of readonly)
    gmail.compose           Create drafts and send emails
    gmail.send              Send emails only
    gmail.labels            Manage labels only
    gmail.settings.basic    Manage filters and settings
    gmail.settings.sharing  Manage sensitive settings (forwarding, delegation)

The hierarchy is NOT computed here. Each tool in gmail_mcp.tools lists every scope
that grants it (e.g. read_email lists both gmail.readonly and gmail.modify),
and has_scope() only checks whether the caller holds any one of them.

Unknown scopes are never an error: translation passes them through unchanged
and they simply never match a tool's requirements.
"""

import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Sequence

SCOPE_URL_PREFIX = "https://www.googleapis.com/auth/"

# Short scope name -> full Google API URL. Definition order is the order shown
# in help output.
SCOPE_MAP: Mapping[str, str] = MappingProxyType(
    {
        name: SCOPE_URL_PREFIX + name
        for name in (
            "gmail.readonly",
            "gmail.modify",
            "gmail.compose",
            "gmail.send",
            "gmail.labels",
            "gmail.settings.basic",
            "gmail.settings.sharing",
        )
    }
)

# Scopes assumed when the operator doesn't configure any.
DEFAULT_SCOPES: tuple[str, ...] = ("gmail.modify", "gmail.settings.basic")

_SEPARATORS = re.compile(r"[,\s]+")


def _invert(mapping: Mapping[str, str]) -> Mapping[str, str]:
    """Build the url -> name table, refusing two names that share a url."""
    reverse: dict[str, str] = {}
    for name, url in mapping.items():
        if url in reverse:
            raise ValueError(
                f"Scope URL {url!r} is mapped by both {reverse[url]!r} and {name!r}"
            )
        reverse[url] = name
    return MappingProxyType(reverse)


# Full Google API URL -> short scope name. Computed once at import.
SCOPE_REVERSE_MAP: Mapping[str, str] = _invert(SCOPE_MAP)


@dataclass(frozen=True)
class ScopeValidation:
    """
    Result of checking scope names against the known vocabulary.

    Attributes:
        valid: True when every name was recognized
        invalid: The unrecognized names, in input order
    """

    valid: bool
    invalid: list[str]


def scope_name_to_url(scope: str) -> str:
    """
    Convert a short scope name to its full Google API URL.

    "gmail.readonly" -> "https://www.googleapis.com/auth/gmail.readonly"

    Values that aren't in the vocabulary (including URLs that are already
    full) are returned unchanged.
    """
    return SCOPE_MAP.get(scope, scope)


def scope_url_to_name(scope: str) -> str:
    """
    Convert a full Google API URL to its short scope name.

    "https://www.googleapis.com/auth/gmail.readonly" -> "gmail.readonly"

    Unknown URLs (and values that are already short names) pass through.
    """
    return SCOPE_REVERSE_MAP.get(scope, scope)


def scope_names_to_urls(scopes: Iterable[str]) -> list[str]:
    """Map scope_name_to_url over a sequence, keeping order and duplicates."""
    return [scope_name_to_url(scope) for scope in scopes]


def has_scope(authorized_scopes: Iterable[str], required_scopes: Iterable[str]) -> bool:
    """
    Check whether the authorized scopes grant access to a tool.

    Access is granted if ANY of the required scopes is held. Authorized scopes
    may be given as short names or full URLs; they are normalized to short
    names before comparing. Required scopes are always short names.

    Args:
        authorized_scopes: Scopes the caller holds (names, URLs, or a mix)
        required_scopes: Scopes any one of which unlocks the tool

    Returns:
        True if the two sets intersect
    """
    held = {scope_url_to_name(scope) for scope in authorized_scopes}
    return not held.isdisjoint(required_scopes)


def parse_scopes(text: str) -> list[str]:
    """
    Parse free-text scope input (comma, space or newline separated).

    >>> parse_scopes("gmail.readonly, gmail.labels  gmail.send")
    ['gmail.readonly', 'gmail.labels', 'gmail.send']
    """
    return [token.strip() for token in _SEPARATORS.split(text) if token.strip()]


def validate_scopes(scopes: Sequence[str]) -> ScopeValidation:
    """Report every name that isn't a known short scope name."""
    invalid = [scope for scope in scopes if scope not in SCOPE_MAP]
    return ScopeValidation(valid=not invalid, invalid=invalid)


def available_scope_names() -> list[str]:
    """Known short scope names, in definition order (for help text)."""
    return list(SCOPE_MAP)
