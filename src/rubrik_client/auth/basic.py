"""HTTP Basic authentication support."""

from __future__ import annotations

from collections.abc import MutableMapping
from dataclasses import dataclass

from requests.auth import _basic_auth_str

from ..config import Credentials
from .base import AuthStrategy


@dataclass(frozen=True, slots=True)
class BasicAuth(AuthStrategy):
    """Apply HTTP Basic auth headers, or nothing at all for anonymous access."""

    username: str
    password: str

    @classmethod
    def from_credentials(cls, credentials: Credentials) -> BasicAuth:
        return cls(credentials.username, credentials.password)

    def apply(self, headers: MutableMapping[str, str]) -> None:
        # Unbootstrapped nodes reject any Authorization header.
        if not self.username:
            return
        headers["Authorization"] = _basic_auth_str(self.username, self.password)
