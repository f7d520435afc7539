"""Common helpers for resource wrappers."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from ..jobs import JobHandle, JobStatus
from ..payload import dig

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from ..client import RubrikClient


class ResourceBase:
    """Provide shared helpers for resource modules."""

    def __init__(self, client: RubrikClient) -> None:
        self._client = client

    def _get(self, version: str, endpoint: str, *, timeout: float | None = None) -> Any:
        return self._client.get(version, endpoint, timeout=timeout)

    def _post(
        self,
        version: str,
        endpoint: str,
        payload: Any | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        return self._client.post(version, endpoint, payload, timeout=timeout)

    def _patch(
        self,
        version: str,
        endpoint: str,
        payload: Any | None = None,
        *,
        timeout: float | None = None,
    ) -> Any:
        return self._client.patch(version, endpoint, payload, timeout=timeout)

    def _delete(self, version: str, endpoint: str, *, timeout: float | None = None) -> Any:
        return self._client.delete(version, endpoint, timeout=timeout)

    def _resolve(self, object_type: str, name: str, host_os: str | None = None, *, timeout: float | None = None) -> str:
        return self._client.resolver.resolve(object_type, name, host_os, timeout=timeout)

    def _job_timeout(self, timeout: float | None) -> float:
        return self._client.config.resolve_timeout(timeout, job=True)

    def _wait_for_job(
        self,
        response: Any,
        *,
        timeout: float | None = None,
        max_wait: float | None = None,
        cancel: threading.Event | None = None,
    ) -> JobStatus:
        """Follow the job link of a mutating call's response until it finishes."""

        handle = response if isinstance(response, JobHandle) else JobHandle.from_response(response)
        return self._client.jobs.wait(handle, timeout=timeout, max_wait=max_wait, cancel=cancel)

    @staticmethod
    def _data(payload: Any) -> list[dict[str, Any]]:
        """Return the ``data`` list of a paged response, or an empty list."""

        entries = dig(payload, "data", default=[])
        if not isinstance(entries, list):
            return []
        return [entry for entry in entries if isinstance(entry, dict)]
