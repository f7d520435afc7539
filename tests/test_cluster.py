import pytest
import requests

from rubrik_client import RubrikClient
from rubrik_client.exceptions import ConnectionUnavailableError, ValidationError, VersionError

HOST = "rubrik.example.com"
BASE = f"https://{HOST}/api"
IS_BOOTSTRAPPED = f"{BASE}/internal/node_management/is_bootstrapped"


def build_client(username="admin", password="secret"):
    return RubrikClient.connect(HOST, username, password, poll_interval=0, bootstrap_poll_interval=0)


def test_version_and_version_check(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE}/v1/cluster/me/version", json={"version": "4.1.2-1234"})

    assert client.cluster.version() == "4.1.2-1234"
    client.cluster.version_check((4, 1, 0))
    with pytest.raises(VersionError):
        client.cluster.version_check((4, 2, 0))


def test_node_ips_and_names(requests_mock):
    client = build_client()
    requests_mock.get(
        f"{BASE}/internal/cluster/me/node",
        json={"total": 2, "data": [{"id": "RVM1", "ipAddress": "10.0.0.1"}, {"id": "RVM2", "ipAddress": "10.0.0.2"}]},
    )

    assert client.cluster.node_ips() == ["10.0.0.1", "10.0.0.2"]
    assert client.cluster.node_names() == ["RVM1", "RVM2"]


def test_is_bootstrapped_retries_while_node_starts(requests_mock):
    client = build_client("", "")
    sleeps: list[float] = []
    requests_mock.get(
        IS_BOOTSTRAPPED,
        [
            {"exc": requests.exceptions.ConnectTimeout},
            {"exc": requests.exceptions.ConnectionError},
            {"json": {"value": True}},
        ],
    )

    assert client.cluster.is_bootstrapped(sleep=sleeps.append) is True
    assert sleeps == [10.0, 10.0]


def test_is_bootstrapped_gives_up_after_repeated_timeouts(requests_mock):
    client = build_client("", "")
    sleeps: list[float] = []
    requests_mock.get(IS_BOOTSTRAPPED, exc=requests.exceptions.ConnectTimeout)

    with pytest.raises(ConnectionUnavailableError):
        client.cluster.is_bootstrapped(sleep=sleeps.append)

    assert len(sleeps) == 5


def test_bootstrap_waits_for_completion(requests_mock):
    client = build_client("", "")
    requests_mock.get(IS_BOOTSTRAPPED, json={"value": False})
    post = requests_mock.post(f"{BASE}/internal/cluster/me/bootstrap", json={"id": 7, "status": "IN_PROGRESS"})
    status = requests_mock.get(
        f"{BASE}/internal/cluster/me/bootstrap",
        [
            {"json": {"status": "IN_PROGRESS", "message": "Configuring", "setupEncryptionAtRest": "RUNNING"}},
            {"json": {"status": "SUCCESS", "message": "", "setupEncryptionAtRest": "SUCCESS"}},
        ],
    )

    result = client.cluster.bootstrap(
        "lab",
        "admin@example.com",
        "RubrikPassword1!",
        "10.0.0.254",
        "255.255.255.0",
        ["example.com"],
        ["10.0.0.10"],
        ["pool.ntp.org"],
        {"RVM1": "10.0.0.1"},
    )

    assert result.changed is True
    assert result.data["status"] == "SUCCESS"
    assert status.call_count == 2
    assert "request_id=7" in status.last_request.url
    body = post.last_request.json()
    assert body["nodeConfigs"]["RVM1"]["managementIpConfig"]["address"] == "10.0.0.1"
    assert body["adminUserInfo"]["id"] == "admin"
    assert "Authorization" not in post.last_request.headers


def test_bootstrap_requires_anonymous_client(requests_mock):
    with pytest.raises(ValidationError):
        build_client().cluster.bootstrap("lab", "a@b.c", "pw", "gw", "mask", [], [], [], {})

    assert not requests_mock.called


def test_bootstrap_skips_bootstrapped_node(requests_mock):
    client = build_client("", "")
    requests_mock.get(IS_BOOTSTRAPPED, json={"value": True})
    post = requests_mock.post(f"{BASE}/internal/cluster/me/bootstrap", json={"id": 1})

    result = client.cluster.bootstrap("lab", "a@b.c", "pw", "gw", "mask", [], [], [], {})

    assert result.changed is False
    assert not post.called


def test_register_skips_registered_cluster(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE}/internal/cluster/me/is_registered", json={"value": True})
    post = requests_mock.post(f"{BASE}/internal/cluster/me/register", json={})

    assert client.cluster.register("user", "pw").changed is False
    assert not post.called


def test_configure_timezone(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE}/v1/cluster/me", json={"id": "me", "timezone": {"timezone": "UTC"}})
    patch = requests_mock.patch(f"{BASE}/v1/cluster/me", json={"id": "me", "timezone": {"timezone": "Europe/London"}})

    assert client.cluster.configure_timezone("UTC").changed is False
    assert client.cluster.configure_timezone("Europe/London").changed is True
    assert patch.last_request.json() == {"timezone": {"timezone": "Europe/London"}}
    with pytest.raises(ValidationError):
        client.cluster.configure_timezone("Mars/Olympus")


def test_configure_syslog_replaces_different_server(requests_mock):
    client = build_client()
    requests_mock.get(
        f"{BASE}/internal/syslog",
        json={"total": 1, "data": [{"id": "1", "hostname": "10.0.0.9", "protocol": "UDP", "port": 514}]},
    )
    delete = requests_mock.delete(f"{BASE}/internal/syslog/1", status_code=204)
    post = requests_mock.post(f"{BASE}/internal/syslog", json={"id": "2"})

    result = client.cluster.configure_syslog("10.0.0.5", "TCP", 514)

    assert result.changed is True
    assert delete.called
    assert post.last_request.json() == {"hostname": "10.0.0.5", "protocol": "TCP", "port": 514}


def test_configure_syslog_no_change(requests_mock):
    client = build_client()
    requests_mock.get(
        f"{BASE}/internal/syslog",
        json={"total": 1, "data": [{"id": "1", "hostname": "10.0.0.5", "protocol": "TCP", "port": 514}]},
    )
    post = requests_mock.post(f"{BASE}/internal/syslog", json={"id": "2"})

    assert client.cluster.configure_syslog("10.0.0.5", "TCP", 514).changed is False
    assert not post.called


def test_dns_servers_compare_without_order(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE}/internal/cluster/me/dns_nameserver", json={"data": ["8.8.8.8", "1.1.1.1"]})
    post = requests_mock.post(f"{BASE}/internal/cluster/me/dns_nameserver", status_code=204)

    assert client.cluster.configure_dns_servers(["1.1.1.1", "8.8.8.8"]).changed is False
    result = client.cluster.configure_dns_servers(["9.9.9.9"])

    assert result.changed is True
    assert result.data == {"statusCode": 204}
    assert post.last_request.json() == ["9.9.9.9"]


def test_search_domains(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE}/internal/cluster/me/dns_search_domain", json={"data": ["example.com"]})
    post = requests_mock.post(f"{BASE}/internal/cluster/me/dns_search_domain", status_code=204)

    assert client.cluster.configure_search_domains(["example.com", "lab.example.com"]).changed is True
    assert post.called


def test_configure_ntp(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE}/internal/cluster/me/ntp_server", json={"data": ["pool.ntp.org"]})
    post = requests_mock.post(f"{BASE}/internal/cluster/me/ntp_server", status_code=204)

    assert client.cluster.configure_ntp(["pool.ntp.org"]).changed is False
    assert not post.called


def test_configure_smtp_creates_first_instance(requests_mock):
    client = build_client()
    requests_mock.get(f"{BASE}/internal/smtp_instance", json={"total": 0, "data": []})
    post = requests_mock.post(f"{BASE}/internal/smtp_instance", json={"id": "smtp-1"})

    result = client.cluster.configure_smtp("smtp.example.com", "rubrik@example.com", "user", "pw", "NONE", 25)

    assert result.changed is True
    assert post.last_request.json()["smtpPassword"] == "pw"


def test_configure_smtp_patches_changed_instance(requests_mock):
    client = build_client()
    current = {
        "id": "smtp-1",
        "smtpSecurity": "NONE",
        "smtpHostname": "old.example.com",
        "smtpPort": 25,
        "smtpUsername": "user",
        "fromEmailId": "rubrik@example.com",
    }
    requests_mock.get(f"{BASE}/internal/smtp_instance", json={"total": 1, "data": [current]})
    patch = requests_mock.patch(f"{BASE}/internal/smtp_instance/smtp-1", json={"id": "smtp-1"})

    unchanged = client.cluster.configure_smtp("old.example.com", "rubrik@example.com", "user", "pw", "NONE", 25)
    changed = client.cluster.configure_smtp("smtp.example.com", "rubrik@example.com", "user", "pw", "NONE", 25)

    assert unchanged.changed is False
    assert changed.changed is True
    assert patch.call_count == 1
    assert "smtpPassword" not in patch.last_request.json()


def test_configure_vlan_ignores_interface_order(requests_mock):
    client = build_client()
    requests_mock.get(
        f"{BASE}/internal/cluster/me/vlan",
        json={
            "total": 1,
            "data": [
                {
                    "vlan": 100,
                    "netmask": "255.255.255.0",
                    "interfaces": [{"node": "RVM2", "ip": "10.1.0.2"}, {"node": "RVM1", "ip": "10.1.0.1"}],
                }
            ],
        },
    )
    post = requests_mock.post(f"{BASE}/internal/cluster/me/vlan", status_code=204)

    result = client.cluster.configure_vlan("255.255.255.0", 100, {"RVM1": "10.1.0.1", "RVM2": "10.1.0.2"})

    assert result.changed is False
    assert not post.called
