"""Wait for asynchronous Rubrik jobs to finish."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from .exceptions import (
    JobCancelledError,
    JobFailedError,
    JobTimeoutError,
    UnexpectedResponseError,
)
from .payload import dig, require

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from .client import RubrikClient

logger = logging.getLogger(__name__)

JOB_PENDING_STATES = ("QUEUED", "RUNNING", "FINISHING")
BOOTSTRAP_PENDING_STATES = ("IN_PROGRESS",)
FAILED_STATES = ("FAILED", "FAILURE")


class JobState(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    FINISHING = "FINISHING"
    IN_PROGRESS = "IN_PROGRESS"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    FAILURE = "FAILURE"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: str) -> JobState:
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True, slots=True)
class JobStatus:
    """A status report returned by a job status URL."""

    status: str
    payload: Mapping[str, Any] = field(default_factory=dict)

    @property
    def state(self) -> JobState:
        return JobState.parse(self.status)

    @property
    def succeeded(self) -> bool:
        return self.state is JobState.SUCCEEDED

    @property
    def message(self) -> str | None:
        message = dig(self.payload, "message")
        if message is None:
            message = dig(self.payload, "error", "message")
        return message if isinstance(message, str) else None


@dataclass(frozen=True, slots=True)
class JobHandle:
    """Reference to a server-side job, consumed once by `JobPoller.wait`."""

    href: str

    @classmethod
    def from_response(cls, payload: Any) -> JobHandle:
        """Take the first ``links`` entry of a mutating call's response."""

        href = require(payload, "links", 0, "href", expected=str)
        return cls(href)

    @classmethod
    def for_archive_connect(cls, client: RubrikClient, job_instance_id: str) -> JobHandle:
        host = client.credentials.host
        return cls(f"https://{host}/api/internal/archive/location/job/connect/{job_instance_id}")


class JobPoller:
    """Poll a status URL until the job reaches a terminal state.

    Pending states trigger a fixed pause and another GET against the same URL.
    ``SUCCEEDED`` is returned, ``FAILED``/``FAILURE`` raise `JobFailedError` and any
    other value is returned unchanged so unknown future states never hang.

    Without ``max_wait`` or ``cancel`` the loop is bounded only by the server; pass
    ``max_wait`` (seconds) to raise `JobTimeoutError`, or a `threading.Event` as
    ``cancel`` to stop between polls with `JobCancelledError`.
    """

    def __init__(
        self,
        client: RubrikClient,
        *,
        interval: float = 10.0,
        pending_states: Iterable[str] = JOB_PENDING_STATES,
        sleep: Callable[[float], Any] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client = client
        self.interval = interval
        self.pending_states = frozenset(pending_states)
        self._sleep = sleep or time.sleep
        self._clock = clock

    def with_states(self, pending_states: Iterable[str], *, interval: float) -> JobPoller:
        return JobPoller(
            self._client,
            interval=interval,
            pending_states=pending_states,
            sleep=self._sleep,
            clock=self._clock,
        )

    def wait(
        self,
        job: JobHandle | str,
        *,
        timeout: float | None = None,
        max_wait: float | None = None,
        cancel: threading.Event | None = None,
    ) -> JobStatus:
        url = job.href if isinstance(job, JobHandle) else job
        deadline = None if max_wait is None else self._clock() + max_wait
        while True:
            self._raise_if_cancelled(cancel, url)
            status = self.fetch(url, timeout=timeout)
            logger.debug("Job %s reported status %s", url, status.status)
            if status.status not in self.pending_states:
                return self._finish(url, status)
            if deadline is not None and self._clock() + self.interval > deadline:
                raise JobTimeoutError(
                    f"Job did not finish within {max_wait} seconds (last status {status.status})",
                    status=status,
                    details=url,
                )
            self._pause(cancel, url)

    def fetch(self, url: str, *, timeout: float | None = None) -> JobStatus:
        """Issue a single status GET without waiting."""

        data = self._client.request_url(url, timeout=timeout, strict_message=False).as_object()
        status = data.get("status")
        if not isinstance(status, str):
            raise UnexpectedResponseError(
                "Job status response did not include a 'status' field", details=data
            )
        return JobStatus(status=status, payload=data)

    def _finish(self, url: str, status: JobStatus) -> JobStatus:
        if status.status in FAILED_STATES:
            logger.info("Job %s failed", url)
            raise JobFailedError(status.message or "Job failed", status=status, details=url)
        logger.info("Job %s finished with status %s", url, status.status)
        return status

    def _pause(self, cancel: threading.Event | None, url: str) -> None:
        if cancel is None:
            self._sleep(self.interval)
            return
        if cancel.wait(self.interval):
            raise JobCancelledError("Job polling was cancelled", details=url)

    @staticmethod
    def _raise_if_cancelled(cancel: threading.Event | None, url: str) -> None:
        if cancel is not None and cancel.is_set():
            raise JobCancelledError("Job polling was cancelled", details=url)


__all__ = [
    "BOOTSTRAP_PENDING_STATES",
    "JOB_PENDING_STATES",
    "JobHandle",
    "JobPoller",
    "JobState",
    "JobStatus",
]
