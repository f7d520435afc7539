"""Pluggable request authentication."""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import MutableMapping


class AuthStrategy(ABC):
    """Decorate the outgoing headers of every Rubrik request.

    `BasicAuth` is the default; pass another strategy to `RubrikClient` (for
    example one that sends an API token as a Bearer header) to replace it.
    """

    @abstractmethod
    def apply(self, headers: MutableMapping[str, str]) -> None:
        """Add credentials to ``headers``; leave them untouched for anonymous calls."""
