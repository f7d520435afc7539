"""Translate human-readable object names into Rubrik identifiers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
from urllib.parse import quote

from .exceptions import AmbiguousObjectError, ObjectNotFoundError, ValidationError
from .payload import dig
from .validation import HOST_OS

if TYPE_CHECKING:  # pragma: no cover - import-time guard
    from .client import RubrikClient

logger = logging.getLogger(__name__)


class ObjectType(str, Enum):
    VMWARE = "vmware"
    SLA = "sla"
    VMWARE_HOST = "vmwareHost"
    PHYSICAL_HOST = "physicalHost"
    FILESET_TEMPLATE = "filesetTemplate"
    MANAGED_VOLUME = "managedVolume"
    VCENTER = "vcenter"
    EC2 = "ec2"
    AHV = "ahv"


@dataclass(frozen=True, slots=True)
class SearchEndpoint:
    """Where to search for one object type and which field must equal the name."""

    version: str
    template: str
    name_field: str = "name"

    def render(self, name: str, host_os: str | None = None) -> str:
        """Fill the template with fully percent-encoded query values."""

        return self.template.format(name=quote(name, safe=""), host_os=quote(host_os or "", safe=""))


SEARCH_ENDPOINTS: dict[ObjectType, SearchEndpoint] = {
    ObjectType.VMWARE: SearchEndpoint(
        "v1", "/vmware/vm?primary_cluster_id=local&is_relic=false&name={name}"
    ),
    ObjectType.SLA: SearchEndpoint("v1", "/sla_domain?primary_cluster_id=local&name={name}"),
    ObjectType.VMWARE_HOST: SearchEndpoint("v1", "/vmware/host?primary_cluster_id=local"),
    ObjectType.PHYSICAL_HOST: SearchEndpoint(
        "v1", "/host?primary_cluster_id=local&hostname={name}", name_field="hostname"
    ),
    ObjectType.FILESET_TEMPLATE: SearchEndpoint(
        "v1",
        "/fileset_template?primary_cluster_id=local&operating_system_type={host_os}&name={name}",
    ),
    ObjectType.MANAGED_VOLUME: SearchEndpoint(
        "internal", "/managed_volume?is_relic=false&primary_cluster_id=local&name={name}"
    ),
    ObjectType.VCENTER: SearchEndpoint("v1", "/vmware/vcenter"),
    ObjectType.EC2: SearchEndpoint(
        "internal",
        "/aws/ec2_instance?name={name}&is_relic=false&sort_by=instanceId&sort_order=asc",
        name_field="instanceId",
    ),
    ObjectType.AHV: SearchEndpoint(
        "internal", "/nutanix/vm?primary_cluster_id=local&is_relic=false&name={name}"
    ),
}


def parse_object_type(object_type: ObjectType | str) -> ObjectType:
    try:
        return ObjectType(object_type)
    except ValueError as exc:
        choices = ", ".join(f"'{item.value}'" for item in ObjectType)
        raise ValidationError(f"The 'objectType' must be one of {choices}") from exc


class ObjectResolver:
    """Look up the unique id of a named object.

    The API's name filters are substring matches, so the search results are
    narrowed client-side to entries whose name field equals ``name`` exactly.
    Results are never cached.
    """

    def __init__(self, client: RubrikClient) -> None:
        self._client = client

    def resolve(
        self,
        object_type: ObjectType | str,
        name: str,
        host_os: str | None = None,
        *,
        timeout: float | None = None,
    ) -> str:
        kind = parse_object_type(object_type)
        if kind is ObjectType.FILESET_TEMPLATE:
            if host_os is None:
                raise ValidationError("You must provide the Fileset Template OS type")
            if host_os not in HOST_OS:
                raise ValidationError("The hostOS must be either 'Linux' or 'Windows'")

        search = SEARCH_ENDPOINTS[kind]
        payload = self._client.get(
            search.version, search.render(name, host_os), timeout=timeout, preencoded=True
        )

        total = dig(payload, "total")
        entries = dig(payload, "data", default=[])
        if total == 0 or not isinstance(entries, list) or not entries:
            raise self._not_found(kind, name)

        ids = [
            entry.get("id")
            for entry in entries
            if isinstance(entry, dict) and entry.get(search.name_field) == name
        ]
        if len(ids) > 1:
            raise AmbiguousObjectError(
                f"Multiple {kind.value} objects named '{name}' were found on the Rubrik cluster. "
                "Unable to return a specific object id",
                details=ids,
            )
        if not ids or not isinstance(ids[0], str):
            raise self._not_found(kind, name)
        logger.debug("Resolved %s '%s' to %s", kind.value, name, ids[0])
        return ids[0]

    @staticmethod
    def _not_found(kind: ObjectType, name: str) -> ObjectNotFoundError:
        return ObjectNotFoundError(f"The {kind.value} object '{name}' was not found on the Rubrik cluster")


__all__ = ["ObjectResolver", "ObjectType", "SEARCH_ENDPOINTS", "SearchEndpoint", "parse_object_type"]
