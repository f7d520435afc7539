"""Configuration helpers for the Rubrik client."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .exceptions import ConfigurationError

API_VERSIONS = ("v1", "v2", "internal")

DEFAULT_TIMEOUT = 15.0
DEFAULT_JOB_TIMEOUT = 180.0
DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_BOOTSTRAP_POLL_INTERVAL = 30.0

ENV_NODE_IP = "rubrik_cdm_node_ip"
ENV_USERNAME = "rubrik_cdm_username"
ENV_PASSWORD = "rubrik_cdm_password"


@dataclass(frozen=True, slots=True)
class Credentials:
    """Connection details shared read-only by every call issued through a client.

    Leave ``username`` and ``password`` empty to talk to a node that has not been
    bootstrapped yet; no Authorization header is sent in that case.
    """

    host: str
    username: str = ""
    password: str = ""

    @property
    def anonymous(self) -> bool:
        return not self.username

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Credentials:
        """Build credentials from the ``rubrik_cdm_*`` environment variables."""

        env = os.environ if environ is None else environ
        values: list[str] = []
        for name in (ENV_NODE_IP, ENV_USERNAME, ENV_PASSWORD):
            if name not in env:
                raise ConfigurationError(f"The `{name}` environment variable is not present")
            values.append(env[name])
        host, username, password = values
        return cls(host=host, username=username, password=password)

    def __repr__(self) -> str:
        return f"Credentials(host={self.host!r}, username={self.username!r}, password='***')"


@dataclass(slots=True)
class ClientConfig:
    """Typed configuration for `RubrikClient`."""

    verify_ssl: bool | str = False
    timeout: float = DEFAULT_TIMEOUT
    job_timeout: float = DEFAULT_JOB_TIMEOUT
    poll_interval: float = DEFAULT_POLL_INTERVAL
    bootstrap_poll_interval: float = DEFAULT_BOOTSTRAP_POLL_INTERVAL
    default_headers: Mapping[str, str] | None = None
    server_only_fields: Mapping[str, tuple[str, ...]] | None = None

    def resolved_headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.default_headers:
            headers.update(self.default_headers)
        return headers

    def resolve_timeout(self, timeout: float | None, *, job: bool = False) -> float:
        if timeout is not None:
            return timeout
        return self.job_timeout if job else self.timeout
