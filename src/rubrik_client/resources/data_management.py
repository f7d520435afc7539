"""Managed volumes and physical host filesets."""

from __future__ import annotations

from ..exceptions import ResolutionError
from ..jobs import JobHandle
from ..payload import dig, require
from ..reconcile import OperationResult
from ..validation import HOST_OS, require_choice
from .base import ResourceBase
from .vmware import SLA_CURRENT


class DataManagementResource(ResourceBase):
    """Snapshot controls for non-VM workloads."""

    def begin_managed_volume_snapshot(self, name: str, *, timeout: float | None = None) -> OperationResult:
        """Open a managed volume for writes."""

        volume_id, writable = self._managed_volume(name, timeout=timeout)
        if writable:
            return OperationResult.no_change(
                f"No change required. The Managed Volume '{name}' is already in a writeable state."
            )
        response = self._post("internal", f"/managed_volume/{volume_id}/begin_snapshot", {}, timeout=timeout)
        return OperationResult.applied(response)

    def end_managed_volume_snapshot(
        self, name: str, sla_name: str = SLA_CURRENT, *, timeout: float | None = None
    ) -> OperationResult:
        """Close a managed volume for writes, snapshotting everything written since it was opened."""

        volume_id, writable = self._managed_volume(name, timeout=timeout)
        if not writable:
            return OperationResult.no_change(
                f"No change required. The Managed Volume '{name}' is already in a read-only state."
            )
        config = {}
        if sla_name != SLA_CURRENT:
            config["retentionConfig"] = {"slaId": self._resolve("sla", sla_name, timeout=timeout)}
        response = self._post("internal", f"/managed_volume/{volume_id}/end_snapshot", config, timeout=timeout)
        return OperationResult.applied(response)

    def on_demand_physical_snapshot(
        self,
        hostname: str,
        fileset: str,
        host_os: str,
        sla_name: str = SLA_CURRENT,
        *,
        timeout: float | None = None,
    ) -> JobHandle:
        """Snapshot the ``fileset`` assigned to a physical host and return the job handle."""

        require_choice(host_os, HOST_OS, "hostOS")
        timeout = self._job_timeout(timeout)
        host_id = self._resolve("physicalHost", hostname, timeout=timeout)
        template_id = self._resolve("filesetTemplate", fileset, host_os, timeout=timeout)

        filesets = self._data(
            self._get(
                "v1",
                f"/fileset?primary_cluster_id=local&host_id={host_id}&is_relic=false&template_id={template_id}",
                timeout=timeout,
            )
        )
        if not filesets:
            raise ResolutionError(f"The Physical Host '{hostname}' is not assigned to the '{fileset}' Fileset")
        fileset_id = require(filesets[0], "id", expected=str)

        if sla_name == SLA_CURRENT:
            sla_id = require(filesets[0], "effectiveSlaDomainId", expected=str)
        else:
            sla_id = self._resolve("sla", sla_name, timeout=timeout)
        response = self._post("v1", f"/fileset/{fileset_id}/snapshot", {"slaId": sla_id}, timeout=timeout)
        return JobHandle.from_response(response)

    def _managed_volume(self, name: str, *, timeout: float | None) -> tuple[str, bool]:
        volume_id = self._resolve("managedVolume", name, timeout=timeout)
        summary = self._get("internal", f"/managed_volume/{volume_id}", timeout=timeout)
        return volume_id, dig(summary, "isWritable") is True
