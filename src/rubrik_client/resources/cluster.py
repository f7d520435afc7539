"""Cluster-wide settings and bootstrap."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from ..capabilities import VersionTuple, require_release
from ..exceptions import ConnectionUnavailableError, ValidationError
from ..jobs import BOOTSTRAP_PENDING_STATES, JobHandle
from ..payload import dig, require
from ..reconcile import OperationResult, is_equivalent, same_members
from ..validation import SMTP_ENCRYPTION, SYSLOG_PROTOCOLS, TIMEZONES, require_choice
from .base import ResourceBase

logger = logging.getLogger(__name__)

# Freshly installed nodes take a few minutes before the API answers.
BOOTSTRAP_TIMEOUT_ATTEMPTS = 6
BOOTSTRAP_CONNECT_ATTEMPTS = 24
BOOTSTRAP_RETRY_INTERVAL = 10.0
REGISTER_TIMEOUT = 160.0


class ClusterResource(ResourceBase):
    """Read and configure cluster-level settings."""

    def version(self, *, timeout: float | None = None) -> str:
        payload = self._get("v1", "/cluster/me/version", timeout=timeout)
        return require(payload, "version", expected=str)

    def version_check(self, minimum: VersionTuple, *, timeout: float | None = None) -> None:
        """Raise `VersionError` when the cluster runs a release older than ``minimum``."""

        require_release(self.version(timeout=timeout), minimum)

    def node_ips(self, *, timeout: float | None = None) -> list[str]:
        nodes = self._data(self._get("internal", "/cluster/me/node", timeout=timeout))
        return [require(node, "ipAddress", expected=str) for node in nodes]

    def node_names(self, *, timeout: float | None = None) -> list[str]:
        nodes = self._data(self._get("internal", "/cluster/me/node", timeout=timeout))
        return [require(node, "id", expected=str) for node in nodes]

    def is_bootstrapped(
        self, *, timeout: float | None = None, sleep: Callable[[float], Any] = time.sleep
    ) -> bool:
        """Report whether the node has been bootstrapped, tolerating a slow start.

        Connection timeouts are retried up to 6 times and refused connections up
        to 24 times, 10 seconds apart, before the error propagates.
        """

        timeouts = refused = 0
        while True:
            try:
                payload = self._get("internal", "/node_management/is_bootstrapped", timeout=timeout)
            except ConnectionUnavailableError as exc:
                if exc.timed_out:
                    timeouts += 1
                    exhausted = timeouts >= BOOTSTRAP_TIMEOUT_ATTEMPTS
                else:
                    refused += 1
                    exhausted = refused >= BOOTSTRAP_CONNECT_ATTEMPTS
                if exhausted:
                    raise
                logger.info("Node is not answering yet (%s); retrying", exc.details)
                sleep(BOOTSTRAP_RETRY_INTERVAL)
                continue
            return require(payload, "value", expected=bool)

    def bootstrap(
        self,
        cluster_name: str,
        admin_email: str,
        admin_password: str,
        management_gateway: str,
        management_subnet_mask: str,
        dns_search_domains: Sequence[str],
        dns_name_servers: Sequence[str],
        ntp_servers: Sequence[str],
        node_config: Mapping[str, str],
        *,
        enable_encryption: bool = True,
        wait_for_completion: bool = True,
        timeout: float | None = None,
    ) -> OperationResult:
        """Bootstrap a new cluster; ``node_config`` maps node names to management IPs.

        The client must be anonymous (empty username and password).
        """

        if not self._client.credentials.anonymous:
            raise ValidationError("When bootstrapping a cluster the 'username' must be a blank string")
        if self._client.credentials.password:
            raise ValidationError("When bootstrapping a cluster the 'password' must be a blank string")

        config = {
            "enableSoftwareEncryptionAtRest": enable_encryption,
            "name": cluster_name,
            "dnsNameservers": list(dns_name_servers),
            "dnsSearchDomains": list(dns_search_domains),
            "ntpServers": list(ntp_servers),
            "adminUserInfo": {"password": admin_password, "emailAddress": admin_email, "id": "admin"},
            "nodeConfigs": {
                node: {
                    "managementIpConfig": {
                        "netmask": management_subnet_mask,
                        "gateway": management_gateway,
                        "address": address,
                    }
                }
                for node, address in node_config.items()
            },
        }

        if self.is_bootstrapped(timeout=timeout):
            return OperationResult.no_change("The provided Rubrik node is already bootstrapped.")

        response = self._post("internal", "/cluster/me/bootstrap", config, timeout=timeout)
        if not wait_for_completion:
            return OperationResult.applied(response)

        request_id = require(response, "id", expected=(int, float))
        status_url = self._client.build_url(
            "internal", f"/cluster/me/bootstrap?request_id={int(request_id)}"
        )
        poller = self._client.jobs.with_states(
            BOOTSTRAP_PENDING_STATES, interval=self._client.config.bootstrap_poll_interval
        )
        status = poller.wait(JobHandle(status_url), timeout=timeout)
        return OperationResult.applied(status.payload)

    def is_registered(self, *, timeout: float | None = None) -> bool:
        return dig(self._get("internal", "/cluster/me/is_registered", timeout=timeout), "value") is True

    def register(self, username: str, password: str, *, timeout: float | None = None) -> OperationResult:
        """Submit support-portal registration details (default timeout 160 seconds)."""

        if self.is_registered(timeout=timeout):
            return OperationResult.no_change("No change required. The cluster is already registered.")
        response = self._post(
            "internal",
            "/cluster/me/register",
            {"username": username, "password": password},
            timeout=REGISTER_TIMEOUT if timeout is None else timeout,
        )
        return OperationResult.applied(response)

    def configure_timezone(self, timezone: str, *, timeout: float | None = None) -> OperationResult:
        require_choice(timezone, TIMEZONES, "timezone")
        current = self._get("v1", "/cluster/me", timeout=timeout)
        if dig(current, "timezone", "timezone") == timezone:
            return OperationResult.no_change(
                f"No change required. The Rubrik cluster is already configured with '{timezone}' as its timezone."
            )
        response = self._patch("v1", "/cluster/me", {"timezone": {"timezone": timezone}}, timeout=timeout)
        return OperationResult.applied(response)

    def configure_ntp(self, ntp_servers: Sequence[str], *, timeout: float | None = None) -> OperationResult:
        current = dig(self._get("internal", "/cluster/me/ntp_server", timeout=timeout), "data", default=[])
        if is_equivalent(list(ntp_servers), current):
            return OperationResult.no_change(
                f"No change required. The NTP server(s) {list(ntp_servers)} has already been added to the Rubrik cluster."
            )
        response = self._post("internal", "/cluster/me/ntp_server", list(ntp_servers), timeout=timeout)
        return OperationResult.applied(response)

    def configure_syslog(
        self, syslog_ip: str, protocol: str, port: int, *, timeout: float | None = None
    ) -> OperationResult:
        """Send activity-log events to a syslog server, replacing a different existing one."""

        require_choice(protocol, SYSLOG_PROTOCOLS, "protocol")
        config = {"hostname": syslog_ip, "protocol": protocol, "port": port}

        existing = self._data(self._get("internal", "/syslog", timeout=timeout))
        if existing:
            if self._client.profiles["syslog"].matches(config, existing[0]):
                return OperationResult.no_change(
                    "No change required. The Rubrik cluster is already configured to use the syslog "
                    f"server '{syslog_ip}' on port '{port}' using the '{protocol}' protocol."
                )
            syslog_id = existing[0].get("id", "1")
            self._delete("internal", f"/syslog/{syslog_id}", timeout=timeout)

        response = self._post("internal", "/syslog", config, timeout=timeout)
        return OperationResult.applied(response)

    def configure_dns_servers(self, servers: Sequence[str], *, timeout: float | None = None) -> OperationResult:
        return self._configure_string_set(
            "/cluster/me/dns_nameserver", servers, "DNS servers", timeout=timeout
        )

    def configure_search_domains(self, domains: Sequence[str], *, timeout: float | None = None) -> OperationResult:
        return self._configure_string_set(
            "/cluster/me/dns_search_domain", domains, "DNS search domains", timeout=timeout
        )

    def configure_smtp(
        self,
        hostname: str,
        from_email: str,
        username: str,
        password: str,
        encryption: str,
        port: int,
        *,
        timeout: float | None = None,
    ) -> OperationResult:
        require_choice(encryption, SMTP_ENCRYPTION, "encryption")
        config: dict[str, Any] = {
            "smtpSecurity": encryption,
            "smtpHostname": hostname,
            "smtpPort": port,
            "smtpUsername": username,
            "fromEmailId": from_email,
        }

        payload = self._get("internal", "/smtp_instance", timeout=timeout)
        instances = self._data(payload)
        if not instances:
            response = self._post("internal", "/smtp_instance", dict(config, smtpPassword=password), timeout=timeout)
            return OperationResult.applied(response)

        current = instances[0]
        if self._client.profiles["smtp"].matches(config, current):
            return OperationResult.no_change(
                "No change required. The Rubrik cluster is already configured with the provided SMTP settings."
            )
        smtp_id = require(current, "id", expected=str)
        response = self._patch("internal", f"/smtp_instance/{smtp_id}", config, timeout=timeout)
        return OperationResult.applied(response)

    def configure_vlan(
        self, netmask: str, vlan: int, ips: Mapping[str, str], *, timeout: float | None = None
    ) -> OperationResult:
        """Tag cluster traffic with ``vlan``; ``ips`` maps node names to interface IPs."""

        config = {
            "vlan": vlan,
            "netmask": netmask,
            "interfaces": [{"node": node, "ip": ip} for node, ip in ips.items()],
        }
        existing = self._data(self._get("internal", "/cluster/me/vlan", timeout=timeout))
        if existing and self._vlan_matches(config, existing[0]):
            return OperationResult.no_change(
                "No change required. The Rubrik cluster is already configured with the provided VLAN information."
            )
        response = self._post("internal", "/cluster/me/vlan", config, timeout=timeout)
        return OperationResult.applied(response)

    # Internal helpers -------------------------------------------------------
    def _configure_string_set(
        self, endpoint: str, values: Sequence[str], label: str, *, timeout: float | None
    ) -> OperationResult:
        current = dig(self._get("internal", endpoint, timeout=timeout), "data", default=[])
        if isinstance(current, list) and same_members(values, current):
            return OperationResult.no_change(
                f"No change required. The Rubrik cluster is already configured with the provided {label}."
            )
        response = self._post("internal", endpoint, list(values), timeout=timeout)
        return OperationResult.applied(response)

    def _vlan_matches(self, desired: dict[str, Any], observed: Mapping[str, Any]) -> bool:
        # Interface order is whatever the node map iterated in; compare as a set.
        stripped = self._client.profiles["vlan"].strip(observed)
        interfaces = stripped.pop("interfaces", None)
        wanted = dict(desired)
        wanted_interfaces = wanted.pop("interfaces")
        if not is_equivalent(wanted, stripped) or not isinstance(interfaces, list):
            return False
        key = lambda item: (str(item.get("node")), str(item.get("ip")))  # noqa: E731
        try:
            return is_equivalent(sorted(wanted_interfaces, key=key), sorted(interfaces, key=key))
        except AttributeError:
            return False
