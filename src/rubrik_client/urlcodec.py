"""Percent-encoding for GET URLs.

Unreserved characters (letters, digits and ``-_.~``) pass through untouched, as do
the reserved characters ``$ & + / : = ? @`` so that scheme, path and query
delimiters survive. ``;`` and ``,`` are escaped along with everything else
(spaces, ``%``, ``#``, non-ASCII bytes, ...). The whole URL is encoded in one
pass, which means values embedded in the query string are never decoded first.
"""

from __future__ import annotations

from urllib.parse import quote

RESERVED_SAFE = "$&+/:=?@"


def escape(value: str) -> str:
    """Return ``value`` with every unsafe byte replaced by ``%XX`` (upper-case hex)."""

    return quote(value, safe=RESERVED_SAFE)


def should_escape(char: str) -> bool:
    """Report whether a single ASCII character would be percent-encoded."""

    return escape(char) != char


__all__ = ["RESERVED_SAFE", "escape", "should_escape"]
