"""Custom exception hierarchy for the Rubrik client."""
from __future__ import annotations

from typing import Any


class RubrikError(RuntimeError):
    """Base error for Rubrik failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class ConfigurationError(RubrikError):
    """Raised when the client cannot be configured (e.g. missing environment)."""


class ValidationError(RubrikError, ValueError):
    """Raised for caller mistakes detected before any network call."""


class RequestError(RubrikError):
    """Raised when an HTTP request cannot be fulfilled."""


class ConnectionUnavailableError(RequestError):
    """Raised when the cluster refuses the connection or the request times out."""

    def __init__(self, message: str, *, timed_out: bool = False, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.timed_out = timed_out


class UnexpectedResponseError(RubrikError):
    """Raised when the API returns an unexpected payload structure."""


class ApiError(RubrikError):
    """Raised when the API reports an error in its JSON body."""


class ResolutionError(RubrikError):
    """Raised when friendly names cannot be resolved to API identifiers."""


class ObjectNotFoundError(ResolutionError):
    """No object matched the requested name."""


class AmbiguousObjectError(ResolutionError):
    """More than one object matched the requested name exactly."""


class VersionError(RubrikError):
    """Raised when the cluster release is too old for the requested feature."""


class JobError(RubrikError):
    """Base error for asynchronous job tracking."""

    def __init__(self, message: str, *, status: Any | None = None, **kwargs: Any) -> None:
        super().__init__(message, **kwargs)
        self.status = status


class JobFailedError(JobError):
    """The job reached a FAILED/FAILURE terminal state."""


class JobTimeoutError(JobError):
    """The job did not reach a terminal state before the deadline."""


class JobCancelledError(JobError):
    """Polling was cancelled by the caller."""
