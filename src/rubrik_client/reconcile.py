"""Decide whether a remote resource already matches a desired definition.

Create/update operations build a ``desired`` mapping containing only the fields
the cluster echoes back, strip server-assigned fields from what the cluster
reports, and skip the write when both sides are equivalent.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


def is_equivalent(desired: Any, observed: Any) -> bool:
    """Deep structural equality over JSON-like trees.

    Mapping key order never matters; sequence order does. Integers and floats
    compare numerically (JSON has a single number type) but booleans only ever
    equal booleans.
    """

    if isinstance(desired, bool) or isinstance(observed, bool):
        return isinstance(desired, bool) and isinstance(observed, bool) and desired == observed
    if isinstance(desired, Mapping):
        if not isinstance(observed, Mapping) or desired.keys() != observed.keys():
            return False
        return all(is_equivalent(desired[key], observed[key]) for key in desired)
    if _is_sequence(desired):
        if not _is_sequence(observed) or len(desired) != len(observed):
            return False
        return all(is_equivalent(left, right) for left, right in zip(desired, observed))
    if isinstance(desired, (int, float)) and isinstance(observed, (int, float)):
        return desired == observed
    if _is_sequence(observed) or isinstance(observed, Mapping):
        return False
    return type(desired) is type(observed) and desired == observed


def same_members(desired: Iterable[Any], observed: Iterable[Any]) -> bool:
    """Order-insensitive comparison of two flat lists, compared as strings."""

    return sorted(str(item) for item in desired) == sorted(str(item) for item in observed)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


@dataclass(frozen=True, slots=True)
class ResourceProfile:
    """Which parts of an observed definition take part in the comparison.

    ``compared_fields``, when set, is an allow-list applied first; fields named in
    ``server_only_fields`` are then dropped.
    """

    name: str
    server_only_fields: tuple[str, ...] = ()
    compared_fields: tuple[str, ...] | None = None

    def strip(self, observed: Mapping[str, Any]) -> dict[str, Any]:
        return {
            key: value
            for key, value in observed.items()
            if (self.compared_fields is None or key in self.compared_fields)
            and key not in self.server_only_fields
        }

    def matches(self, desired: Mapping[str, Any], observed: Mapping[str, Any]) -> bool:
        return is_equivalent(desired, self.strip(observed))


# Azure archive definitions also report fields that are set by separate calls
# (CloudOn compute settings, consolidation) and never appear in a create request.
DEFAULT_PROFILES: Mapping[str, tuple[str, ...]] = {
    "archive_s3": (),
    "archive_azure": (
        "id",
        "defaultComputeNetworkConfig",
        "isComputeEnabled",
        "isConsolidationEnabled",
        "azureComputeSummary",
        "pemFileContent",
        "storageClass",
        "numBuckets",
        "defaultRegion",
    ),
    "s3_cloud_on": ("resourceGroupId",),
    "azure_cloud_on": (),
    "smtp": ("id",),
    "syslog": ("id",),
    "vlan": (),
}


# S3 matches look only at the fields a create request sets.
DEFAULT_COMPARED_FIELDS: Mapping[str, tuple[str, ...]] = {
    "archive_s3": ("objectStoreType", "name", "accessKey", "bucket", "defaultRegion", "storageClass"),
}


class ReconcileProfiles:
    """Registry of `ResourceProfile` objects, overridable per client."""

    def __init__(self, overrides: Mapping[str, Sequence[str]] | None = None) -> None:
        fields = dict(DEFAULT_PROFILES)
        for name, values in (overrides or {}).items():
            fields[name] = tuple(values)
        self._profiles = {
            name: ResourceProfile(name, tuple(values), DEFAULT_COMPARED_FIELDS.get(name))
            for name, values in fields.items()
        }

    def __getitem__(self, name: str) -> ResourceProfile:
        try:
            return self._profiles[name]
        except KeyError:
            raise KeyError(f"Unknown reconcile profile '{name}'") from None

    def __contains__(self, name: object) -> bool:
        return name in self._profiles


def find_equivalent(
    desired: Mapping[str, Any],
    candidates: Iterable[Mapping[str, Any]],
    profile: ResourceProfile,
) -> Mapping[str, Any] | None:
    """Return the first candidate equivalent to ``desired`` once stripped, if any."""

    for candidate in candidates:
        if profile.matches(desired, candidate):
            logger.debug("Observed %s definition matches the desired state", profile.name)
            return candidate
    return None


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Outcome of a create/update call: either a write happened or nothing had to."""

    changed: bool
    message: str = ""
    data: Any = None

    @classmethod
    def no_change(cls, message: str, data: Any = None) -> OperationResult:
        logger.info(message)
        return cls(changed=False, message=message, data=data)

    @classmethod
    def applied(cls, data: Any, message: str = "") -> OperationResult:
        return cls(changed=True, message=message, data=data)


__all__ = [
    "DEFAULT_COMPARED_FIELDS",
    "DEFAULT_PROFILES",
    "OperationResult",
    "ReconcileProfiles",
    "ResourceProfile",
    "find_equivalent",
    "is_equivalent",
    "same_members",
]
