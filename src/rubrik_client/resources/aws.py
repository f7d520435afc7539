"""AWS native (EC2 protection) accounts."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ..capabilities import FEATURE_MINIMUMS
from ..exceptions import ResolutionError, ValidationError
from ..payload import require
from ..reconcile import OperationResult
from ..validation import AWS_REGIONS, require_choice
from .base import ResourceBase


class AWSAccountsResource(ResourceBase):
    """Add, inspect, update and remove AWS native accounts."""

    def list(self, *, timeout: float | None = None) -> list[dict[str, Any]]:
        return self._data(self._get("internal", "/aws/account", timeout=timeout))

    def summary(self, name: str, *, timeout: float | None = None) -> dict[str, Any]:
        """Return the full definition of the account called ``name``."""

        account_id = None
        for account in self.list(timeout=timeout):
            if account.get("name") == name:
                account_id = account.get("id")
        if not account_id:
            raise ResolutionError(f"The {name} AWS Native Account was not found on the Rubrik cluster")
        return self._get("internal", f"/aws/account/{account_id}", timeout=timeout)

    def add(
        self,
        name: str,
        access_key: str,
        secret_key: str,
        regions: Sequence[str],
        regional_bolt_network_configs: Sequence[Mapping[str, str]] | None = None,
        *,
        timeout: float | None = None,
    ) -> OperationResult:
        """Register an AWS account and wait for the add job to finish.

        ``regional_bolt_network_configs`` entries look like
        ``{"region": ..., "vNetId": ..., "subnetId": ..., "securityGroupId": ...}``.
        """

        self._client.cluster.version_check(FEATURE_MINIMUMS["aws_native_account"], timeout=timeout)
        for region in regions:
            require_choice(region, AWS_REGIONS, "AWS Region")

        for account in self.list(timeout=timeout):
            account_id = require(account, "id", expected=str)
            current = self._get("internal", f"/aws/account/{account_id}", timeout=timeout)
            if current.get("accessKey") == access_key:
                return OperationResult.no_change(
                    f"No change required. Cloud native source with access key '{access_key}' "
                    "is already configured on the Rubrik cluster."
                )
            if account.get("name") == name:
                raise ValidationError(
                    f"A Cloud native source with name '{name}' already exists. "
                    "Please enter a unique 'awsAccountName'"
                )

        config = {
            "name": name,
            "accessKey": access_key,
            "secretKey": secret_key,
            "regions": list(regions),
            "regionalBoltNetworkConfigs": [dict(item) for item in regional_bolt_network_configs or ()],
        }
        response = self._post("internal", "/aws/account", config, timeout=timeout)
        return OperationResult.applied(self._wait_for_job(response, timeout=timeout).payload)

    def update(self, name: str, config: Mapping[str, Any], *, timeout: float | None = None) -> dict[str, Any]:
        account = self.summary(name, timeout=timeout)
        account_id = require(account, "id", expected=str)
        return self._patch("internal", f"/aws/account/{account_id}", dict(config), timeout=timeout)

    def remove(
        self, name: str, *, delete_existing_snapshots: bool = False, timeout: float | None = None
    ) -> dict[str, Any]:
        """Delete the account and wait for the removal job to finish."""

        account = self.summary(name, timeout=timeout)
        account_id = require(account, "id", expected=str)
        flag = "true" if delete_existing_snapshots else "false"
        response = self._delete(
            "internal", f"/aws/account/{account_id}?delete_existing_snapshots={flag}", timeout=timeout
        )
        return dict(self._wait_for_job(response, timeout=timeout).payload)
