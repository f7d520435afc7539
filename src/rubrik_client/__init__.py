"""High-level Rubrik CDM client entrypoints."""
from .client import RubrikClient
from .config import ClientConfig, Credentials
from .exceptions import RubrikError
from .http import DispatchResult, ResultKind
from .jobs import JobHandle, JobPoller, JobStatus
from .reconcile import OperationResult, is_equivalent
from .resolver import ObjectType

__all__ = [
    "RubrikClient",
    "ClientConfig",
    "Credentials",
    "RubrikError",
    "DispatchResult",
    "ResultKind",
    "JobHandle",
    "JobPoller",
    "JobStatus",
    "OperationResult",
    "ObjectType",
    "is_equivalent",
]
