"""Cloud archive locations (CloudOut) and cloud instantiation (CloudOn)."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..exceptions import ApiError, ResolutionError, ValidationError
from ..jobs import JobHandle
from ..payload import require
from ..reconcile import OperationResult, find_equivalent
from ..validation import (
    AWS_REGIONS,
    AZURE_INSTANCE_ENDPOINTS,
    AZURE_REGIONS,
    S3_STORAGE_CLASSES,
    require_choice,
)
from .base import ResourceBase


class ArchiveResource(ResourceBase):
    """Manage archive targets on the cluster."""

    def object_stores(self, *, timeout: float | None = None) -> list[dict[str, Any]]:
        """Return every archive object store (``id`` plus ``definition``)."""

        return self._data(self._get("internal", "/archive/object_store", timeout=timeout))

    def locations(self, name: str | None = None, *, timeout: float | None = None) -> list[dict[str, Any]]:
        endpoint = "/archive/location" if name is None else f"/archive/location?name={name}"
        return self._data(self._get("internal", endpoint, timeout=timeout))

    def location_id(self, name: str, *, timeout: float | None = None) -> str:
        for location in self.locations(name, timeout=timeout):
            if location.get("name") == name:
                return require(location, "id", expected=str)
        raise ResolutionError(f"The Rubrik cluster does not contain an archive location named '{name}'")

    def create_s3_target(
        self,
        bucket: str,
        storage_class: str,
        name: str,
        region: str,
        access_key: str,
        secret_key: str,
        *,
        rsa_key: str | None = None,
        kms_master_key_id: str | None = None,
        timeout: float | None = None,
    ) -> OperationResult:
        """Configure an AWS S3 archive target encrypted with an RSA key or a KMS key.

        Returns a no-change result when an identical target already exists.
        """

        require_choice(region, AWS_REGIONS, "AWS Region")
        require_choice(storage_class, S3_STORAGE_CLASSES, "'storageClass'")
        if (rsa_key is None) == (kms_master_key_id is None):
            raise ValidationError("Provide exactly one of 'rsa_key' or 'kms_master_key_id'")

        desired = {
            "name": name,
            "bucket": bucket.lower(),
            "defaultRegion": region,
            "storageClass": storage_class.upper(),
            "accessKey": access_key,
            "objectStoreType": "S3",
        }
        config: dict[str, Any] = dict(desired, secretKey=secret_key)
        if rsa_key is not None:
            config["pemFileContent"] = rsa_key
        else:
            config["kmsMasterKeyId"] = kms_master_key_id
        return self._create_target(desired, config, "archive_s3", timeout=timeout)

    def create_azure_target(
        self,
        container: str,
        access_key: str,
        storage_account_name: str,
        name: str,
        instance_type: str,
        rsa_key: str,
        *,
        timeout: float | None = None,
    ) -> OperationResult:
        require_choice(instance_type, AZURE_INSTANCE_ENDPOINTS, "Azure Instance Type")

        desired: dict[str, Any] = {
            "objectStoreType": "Azure",
            "name": name,
            "accessKey": storage_account_name,
            "bucket": container,
        }
        endpoint = AZURE_INSTANCE_ENDPOINTS[instance_type]
        if endpoint is not None:
            desired["endpoint"] = endpoint
        config = dict(desired, secretKey=access_key, pemFileContent=rsa_key)
        return self._create_target(desired, config, "archive_azure", timeout=timeout)

    def enable_s3_cloud_on(
        self,
        name: str,
        vpc_id: str,
        subnet_id: str,
        security_group_id: str,
        *,
        timeout: float | None = None,
    ) -> OperationResult:
        """Point an existing S3 archive at the VPC used to launch converted instances."""

        network = {"vNetId": vpc_id, "subnetId": subnet_id, "securityGroupId": security_group_id}
        return self._enable_cloud_on(
            name, "S3", network, {"defaultComputeNetworkConfig": network}, "s3_cloud_on", timeout=timeout
        )

    def enable_azure_cloud_on(
        self,
        name: str,
        container: str,
        storage_account_name: str,
        application_id: str,
        application_key: str,
        directory_id: str,
        region: str,
        virtual_network_id: str,
        subnet_name: str,
        security_group_id: str,
        *,
        timeout: float | None = None,
    ) -> OperationResult:
        require_choice(region, AZURE_REGIONS, "Azure Region")
        segments = virtual_network_id.split("/")
        if len(segments) < 5:
            raise ValidationError(
                "The 'virtual_network_id' must be a full Azure resource id "
                "(/subscriptions/{id}/resourceGroups/{name}/...)"
            )
        network = {
            "subnetId": subnet_name,
            "vNetId": virtual_network_id,
            "securityGroupId": security_group_id,
            "resourceGroupId": segments[4],
        }
        config = {
            "name": name,
            "isComputeEnabled": True,
            "azureComputeSummary": {
                "tenantId": directory_id,
                "subscriptionId": segments[2],
                "clientId": application_id,
                "region": region,
                "generalPurposeStorageAccountName": storage_account_name,
                "containerName": container,
                "environment": "AZURE",
            },
            "azureComputeSecret": {"clientSecret": application_key},
            "defaultComputeNetworkConfig": network,
        }
        return self._enable_cloud_on(name, "Azure", network, config, "azure_cloud_on", timeout=timeout)

    def update_location(
        self, name: str, config: Mapping[str, Any], *, timeout: float | None = None
    ) -> dict[str, Any]:
        """PATCH the object store behind the archive location called ``name``."""

        archive_id = self.location_id(name, timeout=timeout)
        return self._patch("internal", f"/archive/object_store/{archive_id}", dict(config), timeout=timeout)

    def remove_location(self, name: str, *, timeout: float | None = None) -> dict[str, Any]:
        """Pause and delete an archive location, expiring the snapshots stored in it."""

        archive_id = self.location_id(name, timeout=timeout)
        try:
            self._post("internal", f"/archive/location/{archive_id}/owner/pause", timeout=timeout)
        except ApiError as exc:
            if "already paused" not in str(exc):
                raise
        return self._delete("internal", f"/archive/location/{archive_id}", timeout=timeout)

    # Internal helpers -------------------------------------------------------
    def _create_target(
        self,
        desired: Mapping[str, Any],
        config: Mapping[str, Any],
        profile_name: str,
        *,
        timeout: float | None,
    ) -> OperationResult:
        name = desired["name"]
        store_type = desired["objectStoreType"]
        definitions = [store.get("definition") or {} for store in self.object_stores(timeout=timeout)]
        profile = self._client.profiles[profile_name]

        if find_equivalent(desired, definitions, profile) is not None:
            return OperationResult.no_change(
                f"No change required. The '{name}' archive location is already configured on the Rubrik cluster."
            )
        for definition in definitions:
            if definition.get("objectStoreType") == store_type and definition.get("name") == name:
                raise ValidationError(
                    f"An archive location with the name '{name}' already exists. Please enter a unique 'archiveName'"
                )

        response = self._post("internal", "/archive/object_store", dict(config), timeout=timeout)
        job_id = require(response, "jobInstanceId", expected=str)
        status = self._wait_for_job(
            JobHandle.for_archive_connect(self._client, job_id), timeout=timeout
        )
        return OperationResult.applied(status.payload)

    def _enable_cloud_on(
        self,
        name: str,
        store_type: str,
        network: Mapping[str, Any],
        config: Mapping[str, Any],
        profile_name: str,
        *,
        timeout: float | None,
    ) -> OperationResult:
        profile = self._client.profiles[profile_name]
        for store in self.object_stores(timeout=timeout):
            definition = store.get("definition") or {}
            if definition.get("objectStoreType") != store_type or definition.get("name") != name:
                continue
            current = definition.get("defaultComputeNetworkConfig") or {}
            if profile.matches(network, current):
                return OperationResult.no_change(
                    f"No change required. The '{name}' archive location is already configured for CloudOn."
                )
            archive_id = require(store, "id", expected=str)
            response = self._patch(
                "internal", f"/archive/object_store/{archive_id}", dict(config), timeout=timeout
            )
            return OperationResult.applied(response)
        raise ResolutionError(f"The Rubrik cluster does not have an archive location named '{name}'")
