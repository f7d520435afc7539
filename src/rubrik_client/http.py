"""HTTP utilities: one round trip to the cluster and response classification."""

from __future__ import annotations

import json
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from requests import Session

from .exceptions import ApiError, UnexpectedResponseError

# Bootstrap progress payloads carry a ``message`` field that is not an error.
BOOTSTRAP_SENTINEL = "setupEncryptionAtRest"


class ResultKind(str, Enum):
    OBJECT = "object"
    ARRAY = "array"
    STATUS = "status"


@dataclass(frozen=True, slots=True)
class DispatchResult:
    """Typed response wrapper with helper accessors."""

    kind: ResultKind
    data: Any
    status_code: int

    @classmethod
    def status_only(cls, status_code: int) -> DispatchResult:
        return cls(ResultKind.STATUS, {"statusCode": status_code}, status_code)

    def as_object(self) -> dict[str, Any]:
        if self.kind is ResultKind.ARRAY:
            raise UnexpectedResponseError(
                "Expected a JSON object but the API returned an array",
                status_code=self.status_code,
                details=self.data,
            )
        return self.data

    def as_list(self) -> list[Any]:
        if self.kind is not ResultKind.ARRAY:
            raise UnexpectedResponseError(
                "Expected a JSON array but the API returned an object",
                status_code=self.status_code,
                details=self.data,
            )
        return self.data

    def get(self, key: str, default: Any = None) -> Any:
        if self.kind is ResultKind.ARRAY:
            return default
        return self.data.get(key, default)


def classify(
    raw_body: bytes | str | None,
    status_code: int,
    reason: str = "",
    *,
    strict_message: bool = True,
) -> DispatchResult:
    """Decide whether a response body is a success payload or a domain error.

    Arrays are always successes. Objects carrying ``errorType`` are errors, as are
    objects carrying ``message`` unless the bootstrap sentinel is also present.
    Bodies that do not decode are a status-only success for 200/204 and a decode
    error (using the HTTP status line) for anything else.

    Job status bodies use ``message`` for progress and failure text, so status
    polls pass ``strict_message=False`` and only ``errorType`` marks an error.
    """

    try:
        parsed = json.loads(raw_body) if raw_body else None
    except ValueError:
        parsed = None
    else:
        if parsed is not None and not isinstance(parsed, (dict, list)):
            raise UnexpectedResponseError(
                f"Response was a bare JSON {type(parsed).__name__}, expected an object or array",
                status_code=status_code,
                details=parsed,
            )

    if parsed is None:
        if status_code in (200, 204):
            return DispatchResult.status_only(status_code)
        line = f"{status_code} {reason}".strip()
        raise UnexpectedResponseError(line, status_code=status_code, details=raw_body)

    if isinstance(parsed, list):
        return DispatchResult(ResultKind.ARRAY, parsed, status_code)

    if "errorType" in parsed:
        raise ApiError(_message_of(parsed), status_code=status_code, details=parsed)
    if strict_message and "message" in parsed and BOOTSTRAP_SENTINEL not in parsed:
        raise ApiError(_message_of(parsed), status_code=status_code, details=parsed)
    return DispatchResult(ResultKind.OBJECT, parsed, status_code)


def _message_of(payload: Mapping[str, Any]) -> str:
    message = payload.get("message")
    return message if isinstance(message, str) else json.dumps(message)


def request(
    session: Session,
    method: str,
    url: str,
    *,
    headers: MutableMapping[str, str] | None = None,
    json_payload: Any | None = None,
    timeout: float | tuple[float, float] | None = None,
    verify: bool | str = False,
    strict_message: bool = True,
) -> DispatchResult:
    """Make a request and return a classified response envelope."""

    response = session.request(
        method=method,
        url=url,
        headers=headers,
        json=json_payload,
        timeout=timeout,
        verify=verify,
    )
    return classify(
        response.content,
        response.status_code,
        response.reason or "",
        strict_message=strict_message,
    )


__all__ = ["BOOTSTRAP_SENTINEL", "DispatchResult", "ResultKind", "classify", "request"]
