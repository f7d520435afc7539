"""High-level Rubrik CDM REST client."""

from __future__ import annotations

import logging
from collections.abc import Mapping, MutableMapping
from typing import Any

import requests
import urllib3
from urllib3.exceptions import InsecureRequestWarning

from .auth.base import AuthStrategy
from .auth.basic import BasicAuth
from .config import API_VERSIONS, ClientConfig, Credentials
from .exceptions import ConnectionUnavailableError, RequestError, ValidationError
from .http import DispatchResult
from .http import request as http_request
from .jobs import JobPoller
from .reconcile import ReconcileProfiles
from .resolver import ObjectResolver
from .resources import (
    AWSAccountsResource,
    ArchiveResource,
    ClusterResource,
    DataManagementResource,
    VMwareResource,
)
from .urlcodec import escape

logger = logging.getLogger(__name__)

CONNECTION_UNAVAILABLE = "Unable to establish a connection to the Rubrik cluster"


class RubrikClient:
    """Turn Rubrik CDM REST endpoints into method calls."""

    def __init__(
        self,
        credentials: Credentials,
        *,
        verify_ssl: bool | str = False,
        timeout: float | None = None,
        job_timeout: float | None = None,
        poll_interval: float | None = None,
        bootstrap_poll_interval: float | None = None,
        default_headers: Mapping[str, str] | None = None,
        server_only_fields: Mapping[str, tuple[str, ...]] | None = None,
        auth_strategy: AuthStrategy | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.credentials = credentials
        self.config = ClientConfig(verify_ssl=verify_ssl, default_headers=default_headers)
        if timeout is not None:
            self.config.timeout = timeout
        if job_timeout is not None:
            self.config.job_timeout = job_timeout
        if poll_interval is not None:
            self.config.poll_interval = poll_interval
        if bootstrap_poll_interval is not None:
            self.config.bootstrap_poll_interval = bootstrap_poll_interval
        self.config.server_only_fields = server_only_fields
        self._suppress_insecure_warning_if_needed()
        self._session = session or requests.Session()
        self._auth = auth_strategy or BasicAuth.from_credentials(credentials)
        self.profiles = ReconcileProfiles(server_only_fields)
        self.jobs = JobPoller(self, interval=self.config.poll_interval)
        self.resolver = ObjectResolver(self)
        self.cluster = ClusterResource(self)
        self.archive = ArchiveResource(self)
        self.aws = AWSAccountsResource(self)
        self.vmware = VMwareResource(self)
        self.data_management = DataManagementResource(self)

    @classmethod
    def connect(cls, host: str, username: str = "", password: str = "", **kwargs: Any) -> RubrikClient:
        return cls(Credentials(host=host, username=username, password=password), **kwargs)

    @classmethod
    def from_env(cls, **kwargs: Any) -> RubrikClient:
        """Build a client from the ``rubrik_cdm_*`` environment variables."""

        return cls(Credentials.from_env(), **kwargs)

    # Context manager helpers -------------------------------------------------
    def __enter__(self) -> RubrikClient:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - passthrough
        self.close()

    # Public API --------------------------------------------------------------
    def request(
        self,
        method: str,
        version: str,
        endpoint: str,
        *,
        payload: Any | None = None,
        timeout: float | None = None,
        preencoded: bool = False,
    ) -> DispatchResult:
        """Issue one request against ``/api/{version}{endpoint}``.

        GET URLs are percent-encoded unless ``preencoded`` says the caller already
        quoted its query values; POST and PATCH send ``payload`` as JSON; DELETE
        never sends a body. Validation happens before any network I/O.
        """

        method = method.upper()
        url = self.build_url(version, endpoint)
        if method == "GET" and not preencoded:
            url = escape(url)
        body = payload if method in ("POST", "PATCH") else None
        return self._dispatch(method, url, json_payload=body, timeout=timeout)

    def request_url(
        self, url: str, *, timeout: float | None = None, strict_message: bool = True
    ) -> DispatchResult:
        """GET an absolute URL handed out by the API (e.g. a job status link)."""

        return self._dispatch(
            "GET", url, json_payload=None, timeout=timeout, strict_message=strict_message
        )

    def get(
        self, version: str, endpoint: str, *, timeout: float | None = None, preencoded: bool = False
    ) -> Any:
        return self.request("GET", version, endpoint, timeout=timeout, preencoded=preencoded).data

    def post(
        self,
        version: str,
        endpoint: str,
        payload: Any | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        return self.request("POST", version, endpoint, payload=payload, timeout=timeout).data

    def patch(
        self,
        version: str,
        endpoint: str,
        payload: Any | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        return self.request("PATCH", version, endpoint, payload=payload, timeout=timeout).data

    def delete(self, version: str, endpoint: str, *, timeout: float | None = None) -> Any:
        return self.request("DELETE", version, endpoint, timeout=timeout).data

    def build_url(self, version: str, endpoint: str) -> str:
        validate_target(version, endpoint)
        return f"https://{self.credentials.host}/api/{version}{endpoint}"

    def close(self) -> None:
        self._session.close()

    # Internal helpers -------------------------------------------------------
    def _dispatch(
        self,
        method: str,
        url: str,
        *,
        json_payload: Any | None,
        timeout: float | None,
        strict_message: bool = True,
    ) -> DispatchResult:
        headers = self._prepare_headers()
        self._log_request(method, url)
        try:
            return http_request(
                self._session,
                method,
                url,
                headers=headers,
                json_payload=json_payload,
                timeout=self.config.resolve_timeout(timeout),
                verify=self.config.verify_ssl,
                strict_message=strict_message,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            reason = str(exc).strip() or exc.__class__.__name__
            raise ConnectionUnavailableError(
                CONNECTION_UNAVAILABLE,
                timed_out=isinstance(exc, requests.Timeout),
                details=reason,
            ) from exc
        except requests.RequestException as exc:
            reason = str(exc).strip() or exc.__class__.__name__
            raise RequestError(
                f"Failed to communicate with the Rubrik cluster: {reason}", details=reason
            ) from exc

    def _prepare_headers(self) -> MutableMapping[str, str]:
        headers = self.config.resolved_headers()
        self._auth.apply(headers)
        return headers

    def _log_request(self, method: str, url: str) -> None:
        logger.info("Rubrik request %s %s (host=%s)", method, url, self.credentials.host)

    def _suppress_insecure_warning_if_needed(self) -> None:
        if isinstance(self.config.verify_ssl, bool) and not self.config.verify_ssl:
            urllib3.disable_warnings(InsecureRequestWarning)


def validate_target(version: str, endpoint: str) -> None:
    """Reject unknown API versions and endpoints that break the ``/path`` shape."""

    if version not in API_VERSIONS:
        raise ValidationError(
            f"Enter a valid API version ({', '.join(API_VERSIONS)}), not '{version}'"
        )
    if not endpoint.startswith("/"):
        raise ValidationError("The API Endpoint should begin with '/' (ex: /cluster/me)")
    if endpoint.endswith("/"):
        raise ValidationError("The API Endpoint should not end with '/' (ex. /cluster/me)")
