import pytest

from rubrik_client import RubrikClient
from rubrik_client.exceptions import ResolutionError, ValidationError, VersionError

HOST = "rubrik.example.com"
BASE = f"https://{HOST}/api"
ACCOUNTS = f"{BASE}/internal/aws/account"
JOB_URL = f"{BASE}/internal/aws/account/job/ADD_1"


def build_client(requests_mock, version="5.0.1"):
    requests_mock.get(f"{BASE}/v1/cluster/me/version", json={"version": version})
    return RubrikClient.connect(HOST, "admin", "secret", poll_interval=0)


def test_add_account_posts_and_waits(requests_mock):
    client = build_client(requests_mock)
    requests_mock.get(ACCOUNTS, json={"total": 0, "data": []})
    post = requests_mock.post(ACCOUNTS, json={"id": "ADD_1", "status": "QUEUED", "links": [{"href": JOB_URL}]})
    requests_mock.get(JOB_URL, [{"json": {"status": "RUNNING"}}, {"json": {"status": "SUCCEEDED"}}])

    result = client.aws.add("prod", "AKIA1", "secret", ["us-east-1", "eu-west-1"])

    assert result.changed is True
    assert result.data["status"] == "SUCCEEDED"
    body = post.last_request.json()
    assert body["regions"] == ["us-east-1", "eu-west-1"]
    assert body["regionalBoltNetworkConfigs"] == []


def test_add_account_requires_recent_release(requests_mock):
    client = build_client(requests_mock, version="4.1.3")
    post = requests_mock.post(ACCOUNTS, json={})

    with pytest.raises(VersionError):
        client.aws.add("prod", "AKIA1", "secret", ["us-east-1"])

    assert not post.called


def test_add_account_rejects_unknown_region(requests_mock):
    client = build_client(requests_mock)

    with pytest.raises(ValidationError):
        client.aws.add("prod", "AKIA1", "secret", ["moon-1"])


def test_existing_access_key_is_no_change(requests_mock):
    client = build_client(requests_mock)
    requests_mock.get(ACCOUNTS, json={"data": [{"id": "acc-1", "name": "other"}]})
    requests_mock.get(f"{ACCOUNTS}/acc-1", json={"id": "acc-1", "name": "other", "accessKey": "AKIA1"})
    post = requests_mock.post(ACCOUNTS, json={})

    result = client.aws.add("prod", "AKIA1", "secret", ["us-east-1"])

    assert result.changed is False
    assert not post.called


def test_duplicate_name_is_rejected(requests_mock):
    client = build_client(requests_mock)
    requests_mock.get(ACCOUNTS, json={"data": [{"id": "acc-1", "name": "prod"}]})
    requests_mock.get(f"{ACCOUNTS}/acc-1", json={"id": "acc-1", "name": "prod", "accessKey": "AKIA9"})

    with pytest.raises(ValidationError):
        client.aws.add("prod", "AKIA1", "secret", ["us-east-1"])


def test_summary_for_missing_account(requests_mock):
    client = build_client(requests_mock)
    requests_mock.get(ACCOUNTS, json={"data": []})

    with pytest.raises(ResolutionError):
        client.aws.summary("prod")


def test_remove_account_passes_snapshot_flag(requests_mock):
    client = build_client(requests_mock)
    requests_mock.get(ACCOUNTS, json={"data": [{"id": "acc-1", "name": "prod"}]})
    requests_mock.get(f"{ACCOUNTS}/acc-1", json={"id": "acc-1", "name": "prod"})
    delete = requests_mock.delete(f"{ACCOUNTS}/acc-1", json={"id": "DEL_1", "links": [{"href": JOB_URL}]})
    requests_mock.get(JOB_URL, json={"status": "SUCCEEDED"})

    result = client.aws.remove("prod", delete_existing_snapshots=True)

    assert result["status"] == "SUCCEEDED"
    assert delete.last_request.url.endswith("delete_existing_snapshots=true")


def test_update_account_patches_by_id(requests_mock):
    client = build_client(requests_mock)
    requests_mock.get(ACCOUNTS, json={"data": [{"id": "acc-1", "name": "prod"}]})
    requests_mock.get(f"{ACCOUNTS}/acc-1", json={"id": "acc-1", "name": "prod"})
    patch = requests_mock.patch(f"{ACCOUNTS}/acc-1", json={"id": "acc-1", "name": "renamed"})

    assert client.aws.update("prod", {"name": "renamed"})["name"] == "renamed"
    assert patch.last_request.json() == {"name": "renamed"}
