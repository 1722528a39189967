"""
Deterministic identifier transforms.

Every generated identifier (route name, subcommand, client method) is seeded
from an operationId through these functions, so they must be pure and
stable: the same input always yields the same output.
"""

import keyword
import re

# Word boundaries: lower/digit -> Upper, and ACRONYM -> Word ("HTTPStatus" -> "HTTP", "Status")
_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_SEPARATOR_RE = re.compile(r"[^A-Za-z0-9]+")


def split_words(name: str) -> list[str]:
    """Split an identifier into words on case changes and separators."""
    words = []
    for chunk in _SEPARATOR_RE.split(name or ""):
        if chunk:
            words.extend(w for w in _BOUNDARY_RE.split(chunk) if w)
    return words


def kebab_case(name: str) -> str:
    """'listSessions' -> 'list-sessions', 'getHTTPStatus' -> 'get-http-status'."""
    return "-".join(w.lower() for w in split_words(name))


def snake_case(name: str) -> str:
    """'listSessions' -> 'list_sessions'."""
    return "_".join(w.lower() for w in split_words(name))


def camel_case(name: str) -> str:
    """'list_sessions' / 'ListSessions' -> 'listSessions'."""
    words = split_words(name)
    if not words:
        return ""
    return words[0].lower() + "".join(w[:1].upper() + w[1:].lower() for w in words[1:])


def python_identifier(name: str) -> str:
    """snake_case form that is always a valid, non-keyword Python identifier."""
    ident = snake_case(name) or "param"
    if ident[0].isdigit():
        ident = f"_{ident}"
    if keyword.iskeyword(ident):
        ident = f"{ident}_"
    return ident
