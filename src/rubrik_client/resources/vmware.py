"""vCenter connections and VM protection."""

from __future__ import annotations

from ..exceptions import ResolutionError, ValidationError
from ..jobs import JobHandle, JobStatus
from ..payload import dig, require
from ..reconcile import OperationResult
from .base import ResourceBase

# SLA names with a fixed meaning instead of a lookup.
SLA_UNPROTECTED = "do not protect"
SLA_INHERIT = "clear"
SLA_CURRENT = "current"

_VM_SUMMARY = {
    "vmware": ("v1", "/vmware/vm/{id}", "vSphere VM"),
    "ahv": ("internal", "/nutanix/vm/{id}", "AHV VM"),
}


def _require_vmware(object_type: str) -> None:
    if object_type != "vmware":
        raise ValidationError("The 'objectType' must be 'vmware'")


class VMwareResource(ResourceBase):
    """vCenter management and per-VM snapshot controls."""

    def add_vcenter(
        self,
        hostname: str,
        username: str,
        password: str,
        *,
        vm_linking: bool = True,
        ca_certificate: str | None = None,
        timeout: float | None = None,
    ) -> OperationResult:
        """Connect a vCenter server and wait for the add job to finish."""

        current = self._data(self._get("v1", "/vmware/vcenter?primary_cluster_id=local", timeout=timeout))
        if any(vcenter.get("hostname") == hostname for vcenter in current):
            return OperationResult.no_change(
                f"No change required. The vCenter '{hostname}' has already been added to the Rubrik cluster."
            )

        config = {
            "hostname": hostname,
            "username": username,
            "password": password,
            "conflictResolutionAuthz": "AllowAutoConflictResolution" if vm_linking else "NoConflictResolution",
        }
        if ca_certificate is not None:
            config["caCerts"] = ca_certificate
        response = self._post("v1", "/vmware/vcenter", config, timeout=timeout)
        return OperationResult.applied(self._wait_for_job(response, timeout=timeout).payload)

    def refresh_vcenter(self, hostname: str, *, timeout: float | None = None) -> JobStatus:
        vcenter_id = self._resolve("vcenter", hostname, timeout=timeout)
        response = self._post("v1", f"/vmware/vcenter/{vcenter_id}/refresh", timeout=timeout)
        return self._wait_for_job(response, timeout=timeout)

    def assign_sla(
        self, object_name: str, sla_name: str, object_type: str = "vmware", *, timeout: float | None = None
    ) -> OperationResult:
        """Assign a VM to an SLA Domain.

        ``sla_name`` may also be ``"do not protect"`` or ``"clear"`` (inherit from
        the parent object).
        """

        if object_type not in _VM_SUMMARY:
            raise ValidationError("The 'objectType' must be 'vmware' or 'ahv'")

        if sla_name == SLA_UNPROTECTED:
            sla_id = "UNPROTECTED"
        elif sla_name == SLA_INHERIT:
            sla_id = "INHERIT"
        else:
            sla_id = self._resolve("sla", sla_name, timeout=timeout)

        vm_id = self._resolve(object_type, object_name, timeout=timeout)
        version, template, label = _VM_SUMMARY[object_type]
        summary = self._get(version, template.format(id=vm_id), timeout=timeout)
        field = "configuredSlaDomainId" if sla_id == "INHERIT" else "effectiveSlaDomainId"
        if dig(summary, field) == sla_id:
            return OperationResult.no_change(
                f"No change required. The {label} '{object_name}' is already assigned to the '{sla_name}' SLA Domain."
            )

        response = self._post(
            "internal", f"/sla_domain/{sla_id}/assign", {"managedIds": [vm_id]}, timeout=timeout
        )
        return OperationResult.applied(response)

    def pause_snapshots(
        self, object_name: str, object_type: str = "vmware", *, timeout: float | None = None
    ) -> OperationResult:
        return self._set_paused(object_name, object_type, True, timeout=timeout)

    def resume_snapshots(
        self, object_name: str, object_type: str = "vmware", *, timeout: float | None = None
    ) -> OperationResult:
        return self._set_paused(object_name, object_type, False, timeout=timeout)

    def on_demand_snapshot(
        self,
        object_name: str,
        sla_name: str = SLA_CURRENT,
        object_type: str = "vmware",
        *,
        timeout: float | None = None,
    ) -> JobHandle:
        """Start an on-demand snapshot and return the handle of its job.

        Pass the handle to ``client.jobs.wait`` to follow it. ``"current"`` keeps
        the VM's effective SLA Domain.
        """

        _require_vmware(object_type)
        timeout = self._job_timeout(timeout)
        vm_id = self._resolve("vmware", object_name, timeout=timeout)
        if sla_name == SLA_CURRENT:
            summary = self._get("v1", f"/vmware/vm/{vm_id}", timeout=timeout)
            sla_id = require(summary, "effectiveSlaDomainId", expected=str)
        else:
            sla_id = self._resolve("sla", sla_name, timeout=timeout)
        response = self._post("v1", f"/vmware/vm/{vm_id}/snapshot", {"slaId": sla_id}, timeout=timeout)
        return JobHandle.from_response(response)

    def sla_objects(
        self, sla_name: str, object_type: str = "vmware", *, timeout: float | None = None
    ) -> dict[str, str]:
        """Map the name of every VM protected by the SLA Domain to its id."""

        _require_vmware(object_type)
        sla_id = self._resolve("sla", sla_name, timeout=timeout)
        payload = self._get(
            "v1", f"/vmware/vm?effective_sla_domain_id={sla_id}&is_relic=false", timeout=timeout
        )
        return {
            vm["name"]: vm["id"]
            for vm in self._data(payload)
            if isinstance(vm.get("name"), str) and isinstance(vm.get("id"), str)
        }

    def authorize_end_user(
        self, object_name: str, end_user: str, *, timeout: float | None = None
    ) -> OperationResult:
        """Grant an End User restore rights on a VM."""

        vm_id = self._resolve("vmware", object_name, timeout=timeout)
        users = self._get("internal", f"/user?username={end_user}", timeout=timeout)
        if not isinstance(users, list) or not users:
            raise ResolutionError(f"The Rubrik cluster does not contain a End User account named '{end_user}'")
        user_id = require(users, 0, "id", expected=str)

        roles = self._get("internal", f"/authorization/role/end_user?principals={user_id}", timeout=timeout)
        restorable = dig(roles, "data", 0, "privileges", "restore", default=[])
        if isinstance(restorable, list) and vm_id in restorable:
            return OperationResult.no_change(
                f"No change required. The End User '{end_user}' is already authorized to interact "
                f"with the '{object_name}' VM."
            )

        config = {"principals": [user_id], "privileges": {"restore": [vm_id]}}
        response = self._post("internal", "/authorization/role/end_user", config, timeout=timeout)
        return OperationResult.applied(response)

    # Internal helpers -------------------------------------------------------
    def _set_paused(
        self, object_name: str, object_type: str, paused: bool, *, timeout: float | None
    ) -> OperationResult:
        _require_vmware(object_type)
        timeout = self._job_timeout(timeout)
        vm_id = self._resolve("vmware", object_name, timeout=timeout)
        summary = self._get("v1", f"/vmware/vm/{vm_id}", timeout=timeout)
        if dig(summary, "blackoutWindowStatus", "isSnappableBlackoutActive") is paused:
            state = "already paused" if paused else "currently not paused"
            return OperationResult.no_change(
                f"No change required. The '{object_name}' '{object_type}' is {state}."
            )
        response = self._patch("v1", f"/vmware/vm/{vm_id}", {"isVmPaused": paused}, timeout=timeout)
        return OperationResult.applied(response)
